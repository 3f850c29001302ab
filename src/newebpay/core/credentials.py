"""
Merchant key material.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .cipher import validate_key_material
from .errors import ConfigError

__all__ = ["MerchantCredentials"]


@dataclass(frozen=True)
class MerchantCredentials:
    """
    ``(MerchantID, HashKey, HashIV)`` issued by NewebPay for one shop.

    The key and IV are validated on construction and kept out of ``repr`` so
    the object can be logged or shown in tracebacks safely.
    """

    merchant_id: str
    hash_key: str = field(repr=False)
    hash_iv: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.merchant_id or not self.merchant_id.strip():
            raise ConfigError("MerchantID must not be empty")
        validate_key_material(self.hash_key, self.hash_iv)
