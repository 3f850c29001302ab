"""
Public facade for the NewebPay gateway helpers.

The most useful pieces are re-exported here so integrators can
``from newebpay import ...`` without navigating the package.
"""

from .api import create_gateway_client, reconcile_order
from .core import (
    AmountExceedsAuthorization,
    AmountExceedsCapture,
    ChecksumMismatch,
    CloseStatus,
    ConfigError,
    CreditCardBehaviorResult,
    Deployment,
    GatewayClient,
    GatewayConfig,
    GatewayError,
    GatewayParameters,
    GatewayResponse,
    InvalidBlockAlignment,
    InvalidCloseStatus,
    InvalidEncoding,
    InvalidKeyMaterial,
    InvalidPadding,
    MalformedRecord,
    MerchantCredentials,
    MPGTradeResult,
    MPGTransaction,
    RedirectMarkup,
    RemoteRejected,
    ResultShapeMismatch,
    SettlementOutcome,
    TradeSnapshot,
    TransactionResult,
    TransportError,
    build_query,
    check_code,
    decrypt,
    decrypt_mpg_trade_info,
    encrypt,
    load_gateway_config,
    plan_retain,
    refund_all,
    retain,
    trade_sha,
)

__all__ = (
    "AmountExceedsAuthorization",
    "AmountExceedsCapture",
    "ChecksumMismatch",
    "CloseStatus",
    "ConfigError",
    "CreditCardBehaviorResult",
    "Deployment",
    "GatewayClient",
    "GatewayConfig",
    "GatewayError",
    "GatewayParameters",
    "GatewayResponse",
    "InvalidBlockAlignment",
    "InvalidCloseStatus",
    "InvalidEncoding",
    "InvalidKeyMaterial",
    "InvalidPadding",
    "MPGTradeResult",
    "MPGTransaction",
    "MalformedRecord",
    "MerchantCredentials",
    "RedirectMarkup",
    "RemoteRejected",
    "ResultShapeMismatch",
    "SettlementOutcome",
    "TradeSnapshot",
    "TransactionResult",
    "TransportError",
    "build_query",
    "check_code",
    "create_gateway_client",
    "decrypt",
    "decrypt_mpg_trade_info",
    "encrypt",
    "load_gateway_config",
    "plan_retain",
    "reconcile_order",
    "refund_all",
    "retain",
    "trade_sha",
)
