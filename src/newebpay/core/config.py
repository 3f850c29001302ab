"""
Configuration objects and helpers for the NewebPay client.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .credentials import MerchantCredentials
from .environment import build_environment
from .errors import ConfigError

__all__ = [
    "Deployment",
    "Endpoints",
    "GatewayConfig",
    "GatewayParameters",
    "load_gateway_config",
]

_PARAMETER_TO_ENV_KEY = {
    "environment": "NEWEBPAY_ENV",
    "merchant_id": "NEWEBPAY_MERCHANT_ID",
    "hash_key": "NEWEBPAY_HASH_KEY",
    "hash_iv": "NEWEBPAY_HASH_IV",
    "timeout_seconds": "NEWEBPAY_TIMEOUT_SECONDS",
    "base_url": "NEWEBPAY_BASE_URL",
}

PRODUCTION_ROOT = "https://core.newebpay.com"
SANDBOX_ROOT = "https://ccore.newebpay.com"


class Deployment(str, Enum):
    PRODUCTION = "production"
    SANDBOX = "sandbox"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Deployment":
        # Anything other than "production" talks to the test host.
        if value is not None and value.strip().lower() == cls.PRODUCTION.value:
            return cls.PRODUCTION
        return cls.SANDBOX


@dataclass(frozen=True)
class Endpoints:
    credit_card: str
    close: str
    cancel: str
    query: str
    mpg: str

    @classmethod
    def for_root(cls, root: str) -> "Endpoints":
        root = root.rstrip("/")
        return cls(
            credit_card=f"{root}/API/CreditCard",
            close=f"{root}/API/CreditCard/Close",
            cancel=f"{root}/API/CreditCard/Cancel",
            query=f"{root}/API/QueryTradeInfo",
            mpg=f"{root}/MPG/mpg_gateway",
        )

    @classmethod
    def for_deployment(cls, deployment: Deployment) -> "Endpoints":
        if deployment is Deployment.PRODUCTION:
            return cls.for_root(PRODUCTION_ROOT)
        return cls.for_root(SANDBOX_ROOT)


def _stringify(value: Any) -> str:
    if isinstance(value, Deployment):
        return value.value
    return str(value)


@dataclass(frozen=True)
class GatewayParameters:
    """
    Explicit parameter bundle for :func:`load_gateway_config`.

    Every field is optional; ``None`` leaves the environment value in place.
    """

    environment: Optional[str] = None
    merchant_id: Optional[str] = None
    hash_key: Optional[str] = None
    hash_iv: Optional[str] = None
    timeout_seconds: Optional[int | str] = None
    base_url: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(
            f"NEWEBPAY_TIMEOUT_SECONDS must be a number, got '{raw}'"
        ) from exc
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigError("NEWEBPAY_TIMEOUT_SECONDS must be a finite number greater than zero")
    return timeout


@dataclass(frozen=True)
class GatewayConfig:
    deployment: Deployment
    endpoints: Endpoints
    timeout_seconds: float = 30.0
    merchant: Optional[MerchantCredentials] = None

    @classmethod
    def for_deployment(
        cls,
        deployment: Deployment | str = Deployment.SANDBOX,
        *,
        merchant: Optional[MerchantCredentials] = None,
        timeout_seconds: float = 30.0,
    ) -> "GatewayConfig":
        if not isinstance(deployment, Deployment):
            deployment = Deployment.parse(deployment)
        return cls(
            deployment=deployment,
            endpoints=Endpoints.for_deployment(deployment),
            timeout_seconds=timeout_seconds,
            merchant=merchant,
        )

    def require_merchant(self) -> MerchantCredentials:
        if self.merchant is None:
            raise ConfigError(
                "No merchant credentials configured; set NEWEBPAY_MERCHANT_ID, "
                "NEWEBPAY_HASH_KEY and NEWEBPAY_HASH_IV"
            )
        return self.merchant

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "GatewayConfig":
        deployment = Deployment.parse(values.get("NEWEBPAY_ENV"))

        base_url = values.get("NEWEBPAY_BASE_URL")
        if base_url:
            endpoints = Endpoints.for_root(base_url)
        else:
            endpoints = Endpoints.for_deployment(deployment)

        timeout_seconds = _parse_timeout(values.get("NEWEBPAY_TIMEOUT_SECONDS", "30"))

        merchant_id = values.get("NEWEBPAY_MERCHANT_ID")
        hash_key = values.get("NEWEBPAY_HASH_KEY")
        hash_iv = values.get("NEWEBPAY_HASH_IV")
        supplied = [item for item in (merchant_id, hash_key, hash_iv) if item]
        if supplied and len(supplied) != 3:
            raise ConfigError(
                "NEWEBPAY_MERCHANT_ID, NEWEBPAY_HASH_KEY and NEWEBPAY_HASH_IV "
                "must be provided together"
            )
        merchant = None
        if supplied:
            merchant = MerchantCredentials(
                merchant_id=merchant_id.strip(),
                hash_key=hash_key.strip(),
                hash_iv=hash_iv.strip(),
            )

        return cls(
            deployment=deployment,
            endpoints=endpoints,
            timeout_seconds=timeout_seconds,
            merchant=merchant,
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        parameters: Optional[GatewayParameters] = None,
        environment: Optional[str] = None,
        merchant_id: Optional[str] = None,
        hash_key: Optional[str] = None,
        hash_iv: Optional[str] = None,
        timeout_seconds: Optional[int | str] = None,
        base_url: Optional[str] = None,
    ) -> "GatewayConfig":
        merged_overrides = dict(overrides or {})
        if parameters is not None:
            merged_overrides.update(parameters.as_overrides())
        merged_overrides.update(
            GatewayParameters(
                environment=environment,
                merchant_id=merchant_id,
                hash_key=hash_key,
                hash_iv=hash_iv,
                timeout_seconds=timeout_seconds,
                base_url=base_url,
            ).as_overrides()
        )

        resolved = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        try:
            return cls.from_mapping(resolved.variables)
        except ConfigError as exc:
            sources = ", ".join(
                f"{key} from {resolved.origin(key)}"
                for key in _PARAMETER_TO_ENV_KEY.values()
                if resolved.origin(key) is not None
            )
            if not sources:
                raise
            raise type(exc)(f"{exc} (resolved {sources})") from exc


def load_gateway_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[GatewayParameters] = None,
    environment: Optional[str] = None,
    merchant_id: Optional[str] = None,
    hash_key: Optional[str] = None,
    hash_iv: Optional[str] = None,
    timeout_seconds: Optional[int | str] = None,
    base_url: Optional[str] = None,
) -> GatewayConfig:
    """
    Convenience wrapper that mirrors :meth:`GatewayConfig.from_env`.

    The configuration can come from environment variables, a ``.env`` file,
    keyword arguments, or any combination of the three.
    """
    return GatewayConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        environment=environment,
        merchant_id=merchant_id,
        hash_key=hash_key,
        hash_iv=hash_iv,
        timeout_seconds=timeout_seconds,
        base_url=base_url,
    )
