"""
Public, high-level helpers for working with the NewebPay gateway.
"""

from __future__ import annotations

from typing import Mapping, Optional

import requests

from .core.client import GatewayClient
from .core.config import GatewayConfig, GatewayParameters, load_gateway_config
from .core.payloads import RequestedAt
from .core.reconcile import SettlementOutcome

__all__ = [
    "create_gateway_client",
    "reconcile_order",
]


def _resolve_config(
    config: Optional[GatewayConfig],
    *,
    env_file: Optional[str],
    overrides: Optional[Mapping[str, str]],
    base: Optional[Mapping[str, str]],
    parameters: Optional[GatewayParameters],
    environment: Optional[str],
    merchant_id: Optional[str],
    hash_key: Optional[str],
    hash_iv: Optional[str],
    timeout_seconds: Optional[int | str],
    base_url: Optional[str],
) -> GatewayConfig:
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            environment,
            merchant_id,
            hash_key,
            hash_iv,
            timeout_seconds,
            base_url,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built GatewayConfig or individual parameters, not both."
            )
        return config
    return load_gateway_config(
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


def create_gateway_client(
    *,
    config: Optional[GatewayConfig] = None,
    session: Optional[requests.Session] = None,
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
) -> GatewayClient:
    """
    Construct a :class:`GatewayClient`.

    Callers either supply a ready-made :class:`GatewayConfig` or let the
    helper assemble one from environment data and keyword arguments.
    """
    cfg = _resolve_config(
        config,
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
    return GatewayClient(cfg, session=session)


def reconcile_order(
    merchant_order_no: str,
    amount: int,
    target_amount: int,
    *,
    config: Optional[GatewayConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    requested_at: RequestedAt = None,
) -> SettlementOutcome:
    """
    Query ``merchant_order_no`` and bring its captured amount to ``target_amount``
    using the merchant from the configuration.
    """
    client = create_gateway_client(
        config=config,
        session=session,
        env_file=env_file,
        overrides=overrides,
    )
    return client.query_and_retain(
        merchant_order_no,
        amount,
        target_amount,
        requested_at=requested_at,
    )
