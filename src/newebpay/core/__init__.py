"""
Core primitives: envelope codec, integrity codes, response unwrapping,
settlement reconciliation and the HTTP client that ties them together.
"""

from .cipher import Envelope, decrypt, encrypt, open_json, seal
from .client import GatewayClient, submit_form
from .config import (
    Deployment,
    Endpoints,
    GatewayConfig,
    GatewayParameters,
    load_gateway_config,
)
from .credentials import MerchantCredentials
from .encoding import build_query
from .environment import GatewayEnvironment, build_environment, load_env_file
from .errors import (
    AmountExceedsAuthorization,
    AmountExceedsCapture,
    ChecksumMismatch,
    ConfigError,
    EnvelopeError,
    GatewayError,
    InvalidBlockAlignment,
    InvalidCloseStatus,
    InvalidEncoding,
    InvalidKeyMaterial,
    InvalidPadding,
    MalformedRecord,
    RemoteRejected,
    ResultShapeMismatch,
    TransportError,
)
from .payloads import CloseRequest, MPGTransaction
from .reconcile import (
    SettlementAction,
    SettlementOperation,
    SettlementOutcome,
    plan_retain,
    refund_all,
    retain,
)
from .responses import (
    CloseStatus,
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
from .signing import check_code, check_value, trade_sha

__all__ = [
    "AmountExceedsAuthorization",
    "AmountExceedsCapture",
    "ChecksumMismatch",
    "CloseRequest",
    "CloseStatus",
    "ConfigError",
    "CreditCardBehaviorResult",
    "Deployment",
    "Endpoints",
    "Envelope",
    "EnvelopeError",
    "GatewayClient",
    "GatewayConfig",
    "GatewayEnvironment",
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
    "ResponseEnvelope",
    "ResultShapeMismatch",
    "SettlementAction",
    "SettlementOperation",
    "SettlementOutcome",
    "TradeSnapshot",
    "TransactionResult",
    "TransportError",
    "build_environment",
    "build_query",
    "check_code",
    "check_value",
    "decrypt",
    "decrypt_mpg_trade_info",
    "encrypt",
    "load_env_file",
    "load_gateway_config",
    "open_json",
    "plan_retain",
    "refund_all",
    "retain",
    "seal",
    "submit_form",
    "trade_sha",
    "unwrap",
]
