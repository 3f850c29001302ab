"""
AES-CBC envelope used for ``PostData_`` and ``TradeInfo`` payloads.
"""

from __future__ import annotations

import binascii
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .encoding import build_query
from .errors import (
    InvalidBlockAlignment,
    InvalidEncoding,
    InvalidKeyMaterial,
    InvalidPadding,
    ResultShapeMismatch,
)
from .signing import trade_sha

if TYPE_CHECKING:
    from .credentials import MerchantCredentials

__all__ = [
    "BLOCK_SIZE",
    "KEY_SIZES",
    "Envelope",
    "decrypt",
    "encrypt",
    "open_json",
    "pad",
    "seal",
    "unpad",
    "validate_key_material",
]

BLOCK_SIZE = 16
KEY_SIZES = (16, 24, 32)

Secret = Union[str, bytes]


def _as_bytes(value: Secret) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def validate_key_material(key: Secret, iv: Secret) -> tuple[bytes, bytes]:
    key_bytes = _as_bytes(key)
    iv_bytes = _as_bytes(iv)
    if len(key_bytes) not in KEY_SIZES:
        raise InvalidKeyMaterial(
            f"HashKey must be {', '.join(map(str, KEY_SIZES))} bytes long, got {len(key_bytes)}"
        )
    if len(iv_bytes) != BLOCK_SIZE:
        raise InvalidKeyMaterial(
            f"HashIV must be {BLOCK_SIZE} bytes long, got {len(iv_bytes)}"
        )
    return key_bytes, iv_bytes


def pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    # Aligned input still gets a full block so unpad never has to guess.
    count = block_size - len(data) % block_size
    return data + bytes([count]) * count


def unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    if not data:
        raise InvalidPadding("Cannot strip padding from an empty buffer")
    count = data[-1]
    if count == 0 or count > len(data) or count > block_size:
        raise InvalidPadding(f"Pad length {count} is out of range")
    if data[-count:] != bytes([count]) * count:
        raise InvalidPadding("Pad bytes do not all match the pad length")
    return data[:-count]


def encrypt(plaintext: Union[str, bytes], key: Secret, iv: Secret) -> str:
    """Pad, encrypt with AES-CBC and return lowercase hex."""
    key_bytes, iv_bytes = validate_key_material(key, iv)
    data = plaintext.encode("utf-8") if isinstance(plaintext, str) else plaintext
    encryptor = Cipher(algorithms.AES(key_bytes), modes.CBC(iv_bytes)).encryptor()
    ciphertext = encryptor.update(pad(data)) + encryptor.finalize()
    return ciphertext.hex()


def decrypt_bytes(ciphertext_hex: str, key: Secret, iv: Secret) -> bytes:
    key_bytes, iv_bytes = validate_key_material(key, iv)
    try:
        ciphertext = binascii.unhexlify(ciphertext_hex.strip())
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidEncoding("Ciphertext is not valid hex") from exc
    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise InvalidBlockAlignment(
            f"Ciphertext length {len(ciphertext)} is not a multiple of {BLOCK_SIZE}"
        )
    decryptor = Cipher(algorithms.AES(key_bytes), modes.CBC(iv_bytes)).decryptor()
    return unpad(decryptor.update(ciphertext) + decryptor.finalize())


def decrypt(ciphertext_hex: str, key: Secret, iv: Secret) -> str:
    """Reverse :func:`encrypt`, returning the plaintext as text."""
    plaintext = decrypt_bytes(ciphertext_hex, key, iv)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncoding("Decrypted payload is not UTF-8 text") from exc


@dataclass(frozen=True)
class Envelope:
    """Encrypted request parameters plus the TradeSha computed over them."""

    ciphertext_hex: str
    signature: str


def seal(record: Any, credentials: "MerchantCredentials") -> Envelope:
    ciphertext = encrypt(build_query(record), credentials.hash_key, credentials.hash_iv)
    return Envelope(
        ciphertext_hex=ciphertext,
        signature=trade_sha(ciphertext, credentials.hash_key, credentials.hash_iv),
    )


def open_json(ciphertext_hex: str, credentials: "MerchantCredentials") -> Dict[str, Any]:
    """Decrypt a payload the gateway encrypted as a JSON document."""
    plaintext = decrypt(ciphertext_hex, credentials.hash_key, credentials.hash_iv)
    try:
        document = json.loads(plaintext)
    except json.JSONDecodeError as exc:
        raise ResultShapeMismatch("Decrypted payload is not JSON") from exc
    if not isinstance(document, dict):
        raise ResultShapeMismatch("Decrypted payload is not a JSON object")
    return document
