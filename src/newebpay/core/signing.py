"""
SHA-256 integrity codes exchanged with the gateway.

Three constructions are in use:

* ``TradeSha`` signs an outbound ciphertext.
* ``CheckCode`` lets us verify amount and order identifiers in a result; its
  middle section is the canonical query of exactly four fields.
* ``CheckValue`` is only used by QueryTradeInfo and has a fixed, unsorted
  field order.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional, Union

from .encoding import build_query
from .errors import ChecksumMismatch

__all__ = [
    "check_code",
    "check_value",
    "ensure_check_code",
    "trade_sha",
    "verify_check_code",
    "verify_trade_sha",
]

Secret = Union[str, bytes]


def _text(value: Secret) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


def _digest(message: str) -> str:
    return hashlib.sha256(message.encode("utf-8")).hexdigest().upper()


def _matches(expected: str, supplied: Optional[str]) -> bool:
    # Compare as bytes: compare_digest rejects non-ASCII str arguments.
    return hmac.compare_digest(expected.encode("ascii"), (supplied or "").upper().encode("utf-8"))


def trade_sha(ciphertext_hex: str, key: Secret, iv: Secret) -> str:
    return _digest(f"HashKey={_text(key)}&{ciphertext_hex}&HashIV={_text(iv)}")


def verify_trade_sha(ciphertext_hex: str, signature: str, key: Secret, iv: Secret) -> bool:
    expected = trade_sha(ciphertext_hex, key, iv)
    return _matches(expected, signature)


def check_code(
    amount: int,
    merchant_id: str,
    merchant_order_no: str,
    trade_no: str,
    key: Secret,
    iv: Secret,
) -> str:
    query = build_query(
        {
            "Amt": amount,
            "MerchantID": merchant_id,
            "MerchantOrderNo": merchant_order_no,
            "TradeNo": trade_no,
        }
    )
    return _digest(f"HashIV={_text(iv)}&{query}&HashKey={_text(key)}")


def verify_check_code(
    supplied: str,
    amount: int,
    merchant_id: str,
    merchant_order_no: str,
    trade_no: str,
    key: Secret,
    iv: Secret,
) -> bool:
    expected = check_code(amount, merchant_id, merchant_order_no, trade_no, key, iv)
    return _matches(expected, supplied)


def ensure_check_code(
    supplied: str,
    amount: int,
    merchant_id: str,
    merchant_order_no: str,
    trade_no: str,
    key: Secret,
    iv: Secret,
) -> None:
    """Raise :class:`ChecksumMismatch` unless ``supplied`` matches."""
    if not verify_check_code(supplied, amount, merchant_id, merchant_order_no, trade_no, key, iv):
        raise ChecksumMismatch(
            f"CheckCode mismatch for order {merchant_order_no} (trade {trade_no})"
        )


def check_value(
    amount: int,
    merchant_id: str,
    merchant_order_no: str,
    key: Secret,
    iv: Secret,
) -> str:
    return _digest(
        f"IV={_text(iv)}&Amt={amount}&MerchantID={merchant_id}"
        f"&MerchantOrderNo={merchant_order_no}&Key={_text(key)}"
    )
