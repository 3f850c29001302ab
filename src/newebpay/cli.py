"""
Command-line interface for inspecting and reconciling NewebPay trades.
"""

from __future__ import annotations

import argparse
import logging
from typing import Iterable, Optional, Sequence, Tuple

import requests

from .core.client import GatewayClient
from .core.config import load_gateway_config
from .core.errors import ConfigError, GatewayError
from .core.reconcile import SettlementOutcome
from .core.responses import GatewayResponse, TradeSnapshot


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _non_negative(value: str) -> int:
    try:
        amount = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"'{value}' is not an integer amount") from exc
    if amount < 0:
        raise argparse.ArgumentTypeError("Amounts must not be negative")
    return amount


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    return {key: value for key, value in pairs}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="newebpay",
        description="Query and reconcile NewebPay credit card trades",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing NEWEBPAY_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser("query", help="Show the gateway's view of an order")
    query.add_argument("order_no", help="MerchantOrderNo of the trade")
    query.add_argument("amount", type=_non_negative, help="Authorized order amount")

    retain = commands.add_parser(
        "retain", help="Capture, cancel or refund until the order holds TARGET"
    )
    retain.add_argument("order_no", help="MerchantOrderNo of the trade")
    retain.add_argument("amount", type=_non_negative, help="Authorized order amount")
    retain.add_argument("target", type=_non_negative, help="Amount the order should keep")

    refund_all = commands.add_parser(
        "refund-all", help="Release the authorization or refund everything captured"
    )
    refund_all.add_argument("order_no", help="MerchantOrderNo of the trade")
    refund_all.add_argument("amount", type=_non_negative, help="Authorized order amount")
    return parser


def _report_snapshot(response: GatewayResponse[TradeSnapshot]) -> int:
    if not response.is_success or response.result is None:
        logging.error("Query rejected: %s %s", response.status, response.message)
        return 1
    snapshot = response.result
    logging.info(
        "Order %s (trade %s): amount %s, captured %s, close status %s, trade status %s",
        snapshot.merchant_order_no,
        snapshot.trade_no,
        snapshot.amount,
        snapshot.captured_amount,
        snapshot.close_status,
        snapshot.trade_status,
    )
    return 0


def _report_outcome(outcome: SettlementOutcome) -> int:
    if outcome.is_noop:
        logging.info("Nothing to do; the order already holds the requested amount")
        return 0
    for step in outcome.steps:
        logging.info(
            "%s %s -> %s %s",
            step.action.operation.value,
            step.action.amount,
            step.response.status,
            step.response.message,
        )
    if not outcome.is_success:
        logging.error("Reconciliation did not complete; query the order before retrying")
        return 1
    return 0


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    try:
        config = load_gateway_config(env_file=args.env_file, overrides=overrides)
        config.require_merchant()
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = GatewayClient(config, session=requests.Session())

    try:
        if args.command == "query":
            return _report_snapshot(client.query_trade_info(args.order_no, args.amount))
        if args.command == "retain":
            outcome = client.query_and_retain(args.order_no, args.amount, args.target)
        else:
            snapshot = client.query_trade_info(args.order_no, args.amount)
            outcome = client.refund_all(snapshot)
    except (GatewayError, ValueError) as exc:
        logging.error("%s failed: %s", args.command, exc)
        return 1

    return _report_outcome(outcome)


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
