"""
HTTP client for the NewebPay credit card APIs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .cipher import seal
from .config import GatewayConfig
from .credentials import MerchantCredentials
from .encoding import stringify
from .errors import ChecksumMismatch, TransportError
from .payloads import (
    CloseRequest,
    CreditCardCancelPostData,
    CreditCardClosePostData,
    MPGTradeInfo,
    MPGTransaction,
    QueryPostData,
    RequestedAt,
    TransactionPostData,
    new_binding_order_no,
    new_token_term,
    timestamp,
)
from .reconcile import SettlementOutcome, refund_all, retain
from .responses import (
    STATUS_SUCCESS,
    STATUS_THREE_D_VERIFY,
    CreditCardBehaviorResult,
    GatewayResponse,
    MPGTradeResult,
    RedirectMarkup,
    ResponseEnvelope,
    TradeSnapshot,
    TransactionResult,
    decrypt_mpg_trade_info,
    unwrap,
)
from .schema import to_wire
from .signing import check_value

__all__ = ["GatewayClient", "submit_form"]


def submit_form(
    session: requests.Session,
    url: str,
    form: Dict[str, Any],
    *,
    timeout: float,
) -> ResponseEnvelope:
    try:
        response = session.post(url, data=form, timeout=timeout)
    except requests.RequestException as exc:
        raise TransportError(f"Failed to submit form to {url}: {exc}") from exc
    if response.status_code >= 400:
        raise TransportError(
            f"Gateway responded with {response.status_code}: {response.text}"
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise TransportError(
            f"Failed to parse JSON from gateway at {url}: {response.text}"
        ) from exc
    return ResponseEnvelope.from_payload(payload)


class GatewayClient:
    """
    Encrypts requests, posts them, and unwraps the answers.

    Every operation takes the merchant explicitly; when omitted, the merchant
    from the configuration is used. Rejections come back as a
    :class:`GatewayResponse` whose ``is_success`` is false; only transport,
    envelope and checksum failures raise.
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _merchant(self, merchant: Optional[MerchantCredentials]) -> MerchantCredentials:
        return merchant if merchant is not None else self.config.require_merchant()

    def _post_envelope(
        self,
        operation: str,
        url: str,
        record: Any,
        merchant: MerchantCredentials,
        *,
        respond_format: Optional[str] = None,
        expected_status: str = STATUS_SUCCESS,
    ) -> ResponseEnvelope:
        envelope = seal(record, merchant)
        form = {
            "MerchantID_": merchant.merchant_id,
            "PostData_": envelope.ciphertext_hex,
        }
        if respond_format is not None:
            form["Pos_"] = respond_format
        logging.info(
            "Submitting %s for order %s to %s",
            operation,
            record.merchant_order_no,
            url,
        )
        response = submit_form(self.session, url, form, timeout=self.config.timeout_seconds)
        if response.status != expected_status:
            logging.warning(
                "%s for order %s answered %s: %s",
                operation,
                record.merchant_order_no,
                response.status,
                response.message,
            )
        return response

    def charge_token(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        payer_email: str,
        prod_desc: str,
        token_value: str,
        token_term: str,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> GatewayResponse[TransactionResult]:
        """Charge a bound card token without 3-D secure."""
        merchant = self._merchant(merchant)
        record = TransactionPostData(
            merchant_order_no=merchant_order_no,
            amount=amount,
            prod_desc=prod_desc,
            payer_email=payer_email,
            token_value=token_value,
            token_term=token_term,
            time_stamp=timestamp(requested_at),
        )
        envelope = self._post_envelope(
            "token charge",
            self.config.endpoints.credit_card,
            record,
            merchant,
            respond_format="JSON",
        )
        response = unwrap(envelope, TransactionResult)
        if response.result is not None and response.result.check_code:
            response.result.ensure_check_code(merchant)
        return response

    def charge_token_3d(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        payer_email: str,
        prod_desc: str,
        token_value: str,
        token_term: str,
        notify_url: str,
        return_url: str,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> GatewayResponse[RedirectMarkup]:
        """
        Start a 3-D secure token charge.

        The gateway answers ``3dVerify`` with HTML the payer must be shown;
        the outcome arrives later on ``notify_url``.
        """
        merchant = self._merchant(merchant)
        record = TransactionPostData(
            merchant_order_no=merchant_order_no,
            amount=amount,
            prod_desc=prod_desc,
            payer_email=payer_email,
            token_value=token_value,
            token_term=token_term,
            time_stamp=timestamp(requested_at),
            p3d="1",
            notify_url=notify_url,
            return_url=return_url,
        )
        envelope = self._post_envelope(
            "3-D secure token charge",
            self.config.endpoints.credit_card,
            record,
            merchant,
            respond_format="JSON",
            expected_status=STATUS_THREE_D_VERIFY,
        )
        return unwrap(envelope, RedirectMarkup, expected_status=STATUS_THREE_D_VERIFY)

    def _close(
        self,
        request: CloseRequest,
        merchant_order_no: str,
        amount: int,
        merchant: Optional[MerchantCredentials],
        requested_at: RequestedAt,
    ) -> GatewayResponse[CreditCardBehaviorResult]:
        merchant = self._merchant(merchant)
        record = CreditCardClosePostData.build(request, merchant_order_no, amount, requested_at)
        envelope = self._post_envelope(
            f"close {request.value}",
            self.config.endpoints.close,
            record,
            merchant,
        )
        response = unwrap(envelope, CreditCardBehaviorResult)
        if response.result is not None and response.result.check_code:
            response.result.ensure_check_code(merchant)
        return response

    def capture(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> GatewayResponse[CreditCardBehaviorResult]:
        return self._close(CloseRequest.CAPTURE, merchant_order_no, amount, merchant, requested_at)

    def refund(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> GatewayResponse[CreditCardBehaviorResult]:
        return self._close(CloseRequest.REFUND, merchant_order_no, amount, merchant, requested_at)

    def cancel_capture(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> GatewayResponse[CreditCardBehaviorResult]:
        return self._close(
            CloseRequest.CANCEL_CAPTURE, merchant_order_no, amount, merchant, requested_at
        )

    def cancel_refund(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> GatewayResponse[CreditCardBehaviorResult]:
        return self._close(
            CloseRequest.CANCEL_REFUND, merchant_order_no, amount, merchant, requested_at
        )

    def cancel_authorization(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> GatewayResponse[CreditCardBehaviorResult]:
        """Release the authorization hold; ``amount`` must be the authorized amount."""
        merchant = self._merchant(merchant)
        record = CreditCardCancelPostData(
            merchant_order_no=merchant_order_no,
            amount=amount,
            time_stamp=timestamp(requested_at),
        )
        envelope = self._post_envelope(
            "authorization cancel",
            self.config.endpoints.cancel,
            record,
            merchant,
        )
        response = unwrap(envelope, CreditCardBehaviorResult)
        if response.result is not None and response.result.check_code:
            response.result.ensure_check_code(merchant)
        return response

    def query_trade_info(
        self,
        merchant_order_no: str,
        amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
        gateway: Optional[str] = None,
    ) -> GatewayResponse[TradeSnapshot]:
        merchant = self._merchant(merchant)
        record = QueryPostData(
            merchant_id=merchant.merchant_id,
            merchant_order_no=merchant_order_no,
            amount=amount,
            check_value=check_value(
                amount,
                merchant.merchant_id,
                merchant_order_no,
                merchant.hash_key,
                merchant.hash_iv,
            ),
            time_stamp=timestamp(requested_at),
            gateway=gateway,
        )
        url = self.config.endpoints.query
        form = _plain_form(record)
        logging.info("Querying trade info for order %s at %s", merchant_order_no, url)
        envelope = submit_form(self.session, url, form, timeout=self.config.timeout_seconds)
        if not envelope.is_success:
            logging.warning(
                "Trade query for order %s answered %s: %s",
                merchant_order_no,
                envelope.status,
                envelope.message,
            )
        response = unwrap(envelope, TradeSnapshot)
        snapshot = response.result
        if snapshot is not None:
            # CheckCode is mandatory on query snapshots.
            if not snapshot.check_code:
                raise ChecksumMismatch(
                    f"Trade query for order {merchant_order_no} returned no CheckCode"
                )
            snapshot.ensure_check_code(merchant)
        return response

    def build_card_binding(
        self,
        *,
        email: str,
        return_url: str,
        notify_url: str,
        client_back_url: str,
        item_desc: str = "Credit card binding",
        order_comment: str = "",
        token_term: Optional[str] = None,
        merchant_order_no: Optional[str] = None,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> MPGTransaction:
        """
        Prepare the MPG form that binds a card with a 1-unit agreement charge.

        The binding order number is generated with the prefix that
        :meth:`MPGTradeResult.is_card_binding` recognises.
        """
        merchant = self._merchant(merchant)
        trade_info = MPGTradeInfo(
            merchant_id=merchant.merchant_id,
            merchant_order_no=merchant_order_no or new_binding_order_no(),
            amount=1,
            item_desc=item_desc,
            email=email,
            token_term=token_term or new_token_term(),
            return_url=return_url,
            notify_url=notify_url,
            client_back_url=client_back_url,
            time_stamp=timestamp(requested_at),
            order_comment=order_comment,
        )
        envelope = seal(trade_info, merchant)
        logging.info("Prepared card binding form for order %s", trade_info.merchant_order_no)
        return MPGTransaction(
            action_url=self.config.endpoints.mpg,
            merchant_id=merchant.merchant_id,
            trade_info=envelope.ciphertext_hex,
            trade_sha=envelope.signature,
        )

    def decrypt_trade_info(
        self,
        trade_info: str,
        *,
        trade_sha: Optional[str] = None,
        merchant: Optional[MerchantCredentials] = None,
    ) -> GatewayResponse[MPGTradeResult]:
        return decrypt_mpg_trade_info(trade_info, self._merchant(merchant), trade_sha=trade_sha)

    def retain(
        self,
        snapshot: GatewayResponse[TradeSnapshot],
        target_amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> SettlementOutcome:
        return retain(
            self,
            snapshot,
            target_amount,
            merchant=self._merchant(merchant),
            requested_at=requested_at,
        )

    def refund_all(
        self,
        snapshot: GatewayResponse[TradeSnapshot],
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> SettlementOutcome:
        return refund_all(
            self,
            snapshot,
            merchant=self._merchant(merchant),
            requested_at=requested_at,
        )

    def query_and_retain(
        self,
        merchant_order_no: str,
        amount: int,
        target_amount: int,
        *,
        merchant: Optional[MerchantCredentials] = None,
        requested_at: RequestedAt = None,
    ) -> SettlementOutcome:
        """Query a fresh snapshot, then reconcile it toward ``target_amount``."""
        merchant = self._merchant(merchant)
        snapshot = self.query_trade_info(
            merchant_order_no, amount, merchant=merchant, requested_at=requested_at
        )
        return self.retain(
            snapshot, target_amount, merchant=merchant, requested_at=requested_at
        )


def _plain_form(record: QueryPostData) -> Dict[str, str]:
    return {key: stringify(value) for key, value in to_wire(record).items() if value is not None}
