"""
Request schemas for each NewebPay operation.

Each class flattens to the ``PostData_`` (or ``TradeInfo``) record expected by
one endpoint. Values are checked when the object is built so a bad amount or
order number never reaches the cipher.
"""

from __future__ import annotations

import re
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Union

from .errors import MalformedRecord
from .schema import wire

__all__ = [
    "BINDING_ORDER_PREFIX",
    "CloseRequest",
    "CreditCardCancelPostData",
    "CreditCardClosePostData",
    "MPGTradeInfo",
    "MPGTransaction",
    "QueryPostData",
    "TransactionPostData",
    "new_binding_order_no",
    "new_token_term",
    "timestamp",
]

BINDING_ORDER_PREFIX = "BIND"
TOKEN_TERM_LENGTH = 20

_ORDER_NO = re.compile(r"^[A-Za-z0-9_]{1,30}$")
_ALPHANUMERIC = string.ascii_letters + string.digits

RequestedAt = Union[int, datetime, None]


def timestamp(requested_at: RequestedAt = None) -> str:
    """Unix timestamp string for ``requested_at`` (default: now)."""
    if requested_at is None:
        return str(int(time.time()))
    if isinstance(requested_at, datetime):
        if requested_at.tzinfo is None:
            requested_at = requested_at.replace(tzinfo=timezone.utc)
        return str(int(requested_at.timestamp()))
    return str(int(requested_at))


def new_binding_order_no() -> str:
    return BINDING_ORDER_PREFIX + "".join(
        secrets.choice(string.digits) for _ in range(16)
    )


def new_token_term() -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(TOKEN_TERM_LENGTH))


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise MalformedRecord(f"Amt must be an integer, got {amount!r}")
    if amount <= 0:
        raise MalformedRecord(f"Amt must be positive, got {amount}")


def _check_order_no(order_no: str) -> None:
    if not isinstance(order_no, str) or not _ORDER_NO.match(order_no):
        raise MalformedRecord(
            f"MerchantOrderNo must be 1-30 letters, digits or underscores, got {order_no!r}"
        )


class CloseRequest(Enum):
    """Operations served by the CreditCard/Close endpoint."""

    CAPTURE = "B031"
    REFUND = "B032"
    CANCEL_CAPTURE = "B033"
    CANCEL_REFUND = "B034"

    @property
    def close_type(self) -> int:
        return 1 if self in (CloseRequest.CAPTURE, CloseRequest.CANCEL_CAPTURE) else 2

    @property
    def cancel(self) -> int:
        return 1 if self in (CloseRequest.CANCEL_CAPTURE, CloseRequest.CANCEL_REFUND) else 0


@dataclass(frozen=True)
class TransactionPostData:
    """Token (agreement) charge against the CreditCard endpoint."""

    merchant_order_no: str = wire("MerchantOrderNo")
    amount: int = wire("Amt", kind=int)
    prod_desc: str = wire("ProdDesc")
    payer_email: str = wire("PayerEmail")
    token_value: str = wire("TokenValue")
    token_term: str = wire("TokenTerm")
    time_stamp: str = wire("TimeStamp")
    p3d: str = wire("P3D", default="0")
    notify_url: str = wire("NotifyURL", default="")
    return_url: str = wire("ReturnURL", default="")
    version: str = wire("Version", default="2.1")
    use_for: int = wire("UseFor", kind=int, default=0)
    inst: str = wire("Inst", default="0")
    token_switch: str = wire("TokenSwitch", default="on")

    def __post_init__(self) -> None:
        _check_order_no(self.merchant_order_no)
        _check_amount(self.amount)
        if len(self.prod_desc) > 50:
            raise MalformedRecord("ProdDesc must be at most 50 characters")
        if not self.token_value or not self.token_term:
            raise MalformedRecord("TokenValue and TokenTerm are required for a token charge")
        if self.p3d not in ("0", "1"):
            raise MalformedRecord(f"P3D must be '0' or '1', got {self.p3d!r}")


@dataclass(frozen=True)
class CreditCardClosePostData:
    """Capture, refund, or cancellation of either (B031-B034)."""

    merchant_order_no: str = wire("MerchantOrderNo")
    amount: int = wire("Amt", kind=int)
    close_type: int = wire("CloseType", kind=int)
    cancel: int = wire("Cancel", kind=int)
    time_stamp: str = wire("TimeStamp")
    respond_type: str = wire("RespondType", default="JSON")
    version: str = wire("Version", default="1.0")
    index_type: int = wire("IndexType", kind=int, default=1)
    trade_no: Optional[str] = wire("TradeNo", default=None)

    def __post_init__(self) -> None:
        _check_order_no(self.merchant_order_no)
        _check_amount(self.amount)
        if self.close_type not in (1, 2) or self.cancel not in (0, 1):
            raise MalformedRecord(
                f"Unsupported CloseType/Cancel pair {self.close_type}/{self.cancel}"
            )

    @classmethod
    def build(
        cls,
        request: CloseRequest,
        merchant_order_no: str,
        amount: int,
        requested_at: RequestedAt = None,
    ) -> "CreditCardClosePostData":
        return cls(
            merchant_order_no=merchant_order_no,
            amount=amount,
            close_type=request.close_type,
            cancel=request.cancel,
            time_stamp=timestamp(requested_at),
        )


@dataclass(frozen=True)
class CreditCardCancelPostData:
    """Release of an authorization hold; Amt must equal the authorized amount."""

    merchant_order_no: str = wire("MerchantOrderNo")
    amount: int = wire("Amt", kind=int)
    time_stamp: str = wire("TimeStamp")
    respond_type: str = wire("RespondType", default="JSON")
    version: str = wire("Version", default="1.0")
    index_type: int = wire("IndexType", kind=int, default=1)
    trade_no: Optional[str] = wire("TradeNo", default=None)

    def __post_init__(self) -> None:
        _check_order_no(self.merchant_order_no)
        _check_amount(self.amount)


@dataclass(frozen=True)
class QueryPostData:
    """QueryTradeInfo form; sent in clear with a CheckValue instead of PostData_."""

    merchant_id: str = wire("MerchantID")
    merchant_order_no: str = wire("MerchantOrderNo")
    amount: int = wire("Amt", kind=int)
    check_value: str = wire("CheckValue")
    time_stamp: str = wire("TimeStamp")
    version: str = wire("Version", default="1.3")
    respond_type: str = wire("RespondType", default="JSON")
    gateway: Optional[str] = wire("Gateway", default=None)

    def __post_init__(self) -> None:
        _check_order_no(self.merchant_order_no)
        _check_amount(self.amount)


@dataclass(frozen=True)
class MPGTradeInfo:
    """TradeInfo for an MPG (hosted page) agreement / card binding."""

    merchant_id: str = wire("MerchantID")
    merchant_order_no: str = wire("MerchantOrderNo")
    amount: int = wire("Amt", kind=int)
    item_desc: str = wire("ItemDesc")
    email: str = wire("Email")
    token_term: str = wire("TokenTerm")
    return_url: str = wire("ReturnURL")
    notify_url: str = wire("NotifyURL")
    client_back_url: str = wire("ClientBackURL")
    time_stamp: str = wire("TimeStamp")
    order_comment: str = wire("OrderComment", default="")
    respond_type: str = wire("RespondType", default="JSON")
    version: str = wire("Version", default="2.1")
    lang_type: str = wire("LangType", default="zh-tw")
    email_modify: int = wire("EmailModify", kind=int, default=0)
    amex_agreement: int = wire("CREDITAEAGREEMENT", kind=int, default=0)
    inst_flag: str = wire("InstFlag", default="0")
    credit_agreement: int = wire("CREDITAGREEMENT", kind=int, default=1)
    token_life: Optional[str] = wire("TokenLife", default=None)
    use_for: int = wire("UseFor", kind=int, default=0)

    def __post_init__(self) -> None:
        _check_order_no(self.merchant_order_no)
        _check_amount(self.amount)
        if not self.token_term:
            raise MalformedRecord("TokenTerm is required for an agreement transaction")


@dataclass(frozen=True)
class MPGTransaction:
    """Fields the browser posts to the MPG gateway; rendering the form is up to the caller."""

    action_url: str
    merchant_id: str
    trade_info: str
    trade_sha: str
    version: str = "2.1"
    encrypt_type: str = "0"

    def as_form(self) -> Dict[str, str]:
        return {
            "MerchantID": self.merchant_id,
            "TradeInfo": self.trade_info,
            "TradeSha": self.trade_sha,
            "Version": self.version,
            "EncryptType": self.encrypt_type,
        }
