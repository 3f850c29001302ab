"""
Unwrapping of ``{Status, Message, Result}`` responses into typed results.

``Result`` changes shape with the operation that produced it: an object for
close/cancel/query calls, an HTML string for 3-D secure, or a JSON document
embedded as a string. The wrapper never guesses; the caller names the result
class it expects and :meth:`ResponseEnvelope.project` re-decodes ``Result``
into it.
"""

from __future__ import annotations

import calendar
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Generic, Mapping, Optional, Type, TypeVar

from .cipher import open_json
from .errors import ChecksumMismatch, InvalidCloseStatus, RemoteRejected, ResultShapeMismatch
from .payloads import BINDING_ORDER_PREFIX
from .schema import from_wire, wire
from .signing import ensure_check_code, verify_check_code, verify_trade_sha

if TYPE_CHECKING:
    from .credentials import MerchantCredentials

__all__ = [
    "STATUS_SUCCESS",
    "STATUS_THREE_D_VERIFY",
    "CardInfo",
    "CloseStatus",
    "CreditCardBehaviorResult",
    "GatewayResponse",
    "MPGTradeResult",
    "RedirectMarkup",
    "ResponseEnvelope",
    "TradeSnapshot",
    "TransactionResult",
    "decrypt_mpg_trade_info",
    "unwrap",
]

STATUS_SUCCESS = "SUCCESS"
STATUS_THREE_D_VERIFY = "3dVerify"

TAIPEI = timezone(timedelta(hours=8))

T = TypeVar("T")


class CloseStatus(Enum):
    UNCAPTURED = "0"
    CAPTURE_PENDING = "1"
    CAPTURE_PROCESSING = "2"
    CAPTURED = "3"

    @classmethod
    def parse(cls, value: Any) -> "CloseStatus":
        try:
            return cls(str(value).strip())
        except ValueError as exc:
            raise InvalidCloseStatus(f"invalid CloseStatus: {value!r}") from exc


class _CheckCodeMixin:
    amount: int
    merchant_id: str
    merchant_order_no: str
    trade_no: str
    check_code: Optional[str]

    def verify_check_code(self, credentials: "MerchantCredentials") -> bool:
        return verify_check_code(
            self.check_code or "",
            self.amount,
            self.merchant_id,
            self.merchant_order_no,
            self.trade_no,
            credentials.hash_key,
            credentials.hash_iv,
        )

    def ensure_check_code(self, credentials: "MerchantCredentials") -> None:
        ensure_check_code(
            self.check_code or "",
            self.amount,
            self.merchant_id,
            self.merchant_order_no,
            self.trade_no,
            credentials.hash_key,
            credentials.hash_iv,
        )


@dataclass(frozen=True)
class RedirectMarkup:
    """HTML returned for a 3-D secure interstitial; the caller renders it."""

    html: str


@dataclass(frozen=True)
class CreditCardBehaviorResult(_CheckCodeMixin):
    merchant_id: str = wire("MerchantID")
    amount: int = wire("Amt", kind=int)
    merchant_order_no: str = wire("MerchantOrderNo")
    trade_no: str = wire("TradeNo", default="")
    check_code: Optional[str] = wire("CheckCode", default=None)


@dataclass(frozen=True)
class TransactionResult(_CheckCodeMixin):
    merchant_id: str = wire("MerchantID")
    amount: int = wire("Amt", kind=int)
    trade_no: str = wire("TradeNo")
    merchant_order_no: str = wire("MerchantOrderNo")
    respond_code: str = wire("RespondCode", default="")
    auth_bank: str = wire("AuthBank", default="")
    auth: str = wire("Auth", default="")
    auth_date: str = wire("AuthDate", default="")
    auth_time: str = wire("AuthTime", default="")
    card6_no: str = wire("Card6No", default="")
    card4_no: str = wire("Card4No", default="")
    exp: str = wire("Exp", default="")
    inst: int = wire("Inst", kind=int, default=0)
    inst_first: int = wire("InstFirst", kind=int, default=0)
    inst_each: int = wire("InstEach", kind=int, default=0)
    eci: str = wire("ECI", default="")
    payment_method: str = wire("PaymentMethod", default="")
    ip: Optional[str] = wire("IP", default=None)
    escrow_bank: str = wire("EscrowBank", default="")
    check_code: Optional[str] = wire("CheckCode", default=None)
    token_life: str = wire("TokenLife", default="")
    token_use_status: int = wire("TokenUseStatus", kind=int, default=0)

    def transacted_at(self) -> datetime:
        """Authorization time (AuthDate + AuthTime, Taipei time) in UTC."""
        try:
            local = datetime.strptime(self.auth_date + self.auth_time, "%Y%m%d%H%M%S")
        except ValueError as exc:
            raise ResultShapeMismatch(
                f"AuthDate/AuthTime {self.auth_date!r}/{self.auth_time!r} are not a timestamp"
            ) from exc
        return local.replace(tzinfo=TAIPEI).astimezone(timezone.utc)


@dataclass(frozen=True)
class TradeSnapshot(_CheckCodeMixin):
    """Point-in-time state of one trade as reported by QueryTradeInfo."""

    merchant_id: str = wire("MerchantID")
    amount: int = wire("Amt", kind=int)
    merchant_order_no: str = wire("MerchantOrderNo")
    close_status: str = wire("CloseStatus")
    trade_no: str = wire("TradeNo", default="")
    trade_status: str = wire("TradeStatus", default="")
    payment_type: str = wire("PaymentType", default="")
    create_time: str = wire("CreateTime", default="")
    pay_time: str = wire("PayTime", default="")
    check_code: Optional[str] = wire("CheckCode", default=None)
    fund_time: str = wire("FundTime", default="")
    shop_merchant_id: str = wire("ShopMerchantID", default="")
    respond_code: str = wire("RespondCode", default="")
    auth: str = wire("Auth", default="")
    eci: str = wire("ECI", default="")
    close_amount: Optional[int] = wire("CloseAmt", kind=int, default=None)
    back_balance: str = wire("BackBalance", default="")
    back_status: str = wire("BackStatus", default="")
    respond_msg: str = wire("RespondMsg", default="")
    inst: str = wire("Inst", default="")
    inst_first: str = wire("InstFirst", default="")
    inst_each: str = wire("InstEach", default="")
    payment_method: str = wire("PaymentMethod", default="")
    card6_no: str = wire("Card6No", default="")
    card4_no: str = wire("Card4No", default="")
    auth_bank: str = wire("AuthBank", default="")

    @property
    def state(self) -> CloseStatus:
        return CloseStatus.parse(self.close_status)

    @property
    def captured_amount(self) -> int:
        """CloseAmt when the gateway reports one, otherwise the order amount."""
        return self.amount if self.close_amount is None else self.close_amount


@dataclass(frozen=True)
class CardInfo:
    token_value: str
    expires: str
    card6_no: str
    card4_no: str


def _last_day_of_expiry(exp: str) -> str:
    if len(exp) != 4 or not exp.isdigit():
        raise ResultShapeMismatch(f"invalid expires format {exp!r}: must be YYMM")
    year = 2000 + int(exp[:2])
    month = int(exp[2:])
    if not 1 <= month <= 12:
        raise ResultShapeMismatch(f"invalid month in expires: {exp[2:]}")
    last_day = calendar.monthrange(year, month)[1]
    return f"{year:04d}-{month:02d}-{last_day:02d}"


@dataclass(frozen=True)
class MPGTradeResult:
    merchant_id: str = wire("MerchantID")
    amount: int = wire("Amt", kind=int)
    trade_no: str = wire("TradeNo")
    merchant_order_no: str = wire("MerchantOrderNo")
    payment_type: str = wire("PaymentType", default="")
    respond_type: str = wire("RespondType", default="")
    pay_time: str = wire("PayTime", default="")
    ip: str = wire("IP", default="")
    escrow_bank: str = wire("EscrowBank", default="")
    auth_bank: str = wire("AuthBank", default="")
    respond_code: str = wire("RespondCode", default="")
    auth: str = wire("Auth", default="")
    card6_no: str = wire("Card6No", default="")
    card4_no: str = wire("Card4No", default="")
    exp: str = wire("Exp", default="")
    inst: int = wire("Inst", kind=int, default=0)
    inst_first: int = wire("InstFirst", kind=int, default=0)
    inst_each: int = wire("InstEach", kind=int, default=0)
    eci: str = wire("ECI", default="")
    token_use_status: int = wire("TokenUseStatus", kind=int, default=0)
    token_value: str = wire("TokenValue", default="")
    token_life: str = wire("TokenLife", default="")

    def credit_card_info(self) -> CardInfo:
        return CardInfo(
            token_value=self.token_value,
            expires=_last_day_of_expiry(self.exp),
            card6_no=self.card6_no,
            card4_no=self.card4_no,
        )

    def is_card_binding(self) -> bool:
        return self.merchant_order_no.startswith(BINDING_ORDER_PREFIX)

    def paid_at(self) -> datetime:
        try:
            local = datetime.strptime(self.pay_time, "%Y-%m-%d %H:%M:%S")
        except ValueError as exc:
            raise ResultShapeMismatch(f"PayTime {self.pay_time!r} is not a timestamp") from exc
        return local.replace(tzinfo=TAIPEI).astimezone(timezone.utc)


@dataclass(frozen=True)
class ResponseEnvelope:
    """The raw ``{Status, Message, Result}`` wrapper as decoded from JSON."""

    status: str
    message: str
    result: Any
    raw: Dict[str, Any]

    @classmethod
    def from_payload(cls, payload: Any) -> "ResponseEnvelope":
        if not isinstance(payload, Mapping):
            raise ResultShapeMismatch(
                f"Response must be a JSON object, got {type(payload).__name__}"
            )
        status = payload.get("Status", payload.get("status"))
        if not isinstance(status, str):
            raise ResultShapeMismatch("Response carries no Status field")
        message = payload.get("Message", payload.get("message")) or ""
        result = payload.get("Result", payload.get("result"))
        return cls(status=status, message=str(message), result=result, raw=dict(payload))

    @property
    def is_success(self) -> bool:
        return self.status == STATUS_SUCCESS

    @property
    def is_three_d_verify(self) -> bool:
        return self.status == STATUS_THREE_D_VERIFY

    def raise_for_status(self, expected: str = STATUS_SUCCESS) -> None:
        if self.status != expected:
            raise RemoteRejected(self.status, self.message)

    def project(self, target: Type[T]) -> T:
        """Re-decode ``Result`` as ``target``."""
        if target is RedirectMarkup:
            if not isinstance(self.result, str):
                raise ResultShapeMismatch("Expected HTML markup in Result")
            return RedirectMarkup(html=self.result)  # type: ignore[return-value]

        value = self.result
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ResultShapeMismatch(
                    f"Result is a string that is not a JSON document for {target.__name__}"
                ) from exc

        try:
            document = json.loads(json.dumps(value))
        except (TypeError, ValueError) as exc:
            raise ResultShapeMismatch(f"Result cannot be re-encoded: {exc}") from exc
        return from_wire(target, document)


@dataclass(frozen=True)
class GatewayResponse(Generic[T]):
    """
    An unwrapped response.

    ``result`` is only populated when ``status`` is the status the operation
    expects; otherwise it is ``None`` and the gateway's status and message are
    kept verbatim.
    """

    status: str
    message: str
    result: Optional[T]
    raw: Dict[str, Any]
    expected_status: str = STATUS_SUCCESS

    @property
    def is_success(self) -> bool:
        return self.status == self.expected_status

    def raise_for_status(self) -> None:
        if not self.is_success:
            raise RemoteRejected(self.status, self.message)

    def result_or_raise(self) -> T:
        self.raise_for_status()
        if self.result is None:
            raise ResultShapeMismatch(f"{self.status} response carries no Result")
        return self.result


def unwrap(
    envelope: ResponseEnvelope,
    target: Type[T],
    *,
    expected_status: str = STATUS_SUCCESS,
) -> GatewayResponse[T]:
    result = envelope.project(target) if envelope.status == expected_status else None
    return GatewayResponse(
        status=envelope.status,
        message=envelope.message,
        result=result,
        raw=envelope.raw,
        expected_status=expected_status,
    )


def decrypt_mpg_trade_info(
    trade_info: str,
    credentials: "MerchantCredentials",
    *,
    trade_sha: Optional[str] = None,
) -> GatewayResponse[MPGTradeResult]:
    """
    Decrypt the ``TradeInfo`` field of an MPG notify/return post.

    When ``trade_sha`` is given it is checked before anything is decrypted.
    """
    if trade_sha is not None and not verify_trade_sha(
        trade_info, trade_sha, credentials.hash_key, credentials.hash_iv
    ):
        raise ChecksumMismatch("TradeSha does not match TradeInfo")
    envelope = ResponseEnvelope.from_payload(open_json(trade_info, credentials))
    return unwrap(envelope, MPGTradeResult)
