"""
Pytest configuration and shared fakes for the newebpay tests.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

import pytest

from newebpay.core.cipher import decrypt
from newebpay.core.config import GatewayConfig
from newebpay.core.credentials import MerchantCredentials

HASH_KEY = "12345678901234567890123456789012"
HASH_IV = "abcdefghijklmnop"
MERCHANT_ID = "MS12345678"


class FakeResponse:
    def __init__(self, body: Any, status_code: int = 200) -> None:
        self._body = body
        self.status_code = status_code

    @property
    def text(self) -> str:
        return self._body if isinstance(self._body, str) else json.dumps(self._body)

    def json(self) -> Any:
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body


class FakeSession:
    """Stands in for ``requests.Session``; replies are consumed in order."""

    def __init__(self, *replies: Any) -> None:
        self.replies: List[Any] = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, body: Any, status_code: int = 200) -> None:
        self.replies.append(FakeResponse(body, status_code))

    def post(self, url: str, data: Optional[Dict[str, str]] = None, timeout: Any = None):
        self.calls.append({"url": url, "data": dict(data or {}), "timeout": timeout})
        if not self.replies:
            raise AssertionError(f"Unexpected POST to {url}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, FakeResponse):
            return reply
        return FakeResponse(reply)


def decrypt_post_data(form: Dict[str, str]) -> Dict[str, str]:
    """Decode the PostData_ field of a captured form back into its fields."""
    return dict(parse_qsl(decrypt(form["PostData_"], HASH_KEY, HASH_IV), keep_blank_values=True))


def success(result: Any, message: str = "OK") -> Dict[str, Any]:
    return {"Status": "SUCCESS", "Message": message, "Result": result}


@pytest.fixture
def merchant() -> MerchantCredentials:
    return MerchantCredentials(merchant_id=MERCHANT_ID, hash_key=HASH_KEY, hash_iv=HASH_IV)


@pytest.fixture
def config(merchant: MerchantCredentials) -> GatewayConfig:
    return GatewayConfig.for_deployment("sandbox", merchant=merchant, timeout_seconds=5)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
