"""
Minimal script that uses the public API to bring an order to a target amount.
"""

from __future__ import annotations

import argparse
import logging
import sys

from newebpay import ConfigError, GatewayError, create_gateway_client


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile a NewebPay order using the SDK API")
    parser.add_argument("order_no", help="MerchantOrderNo to reconcile")
    parser.add_argument("amount", type=int, help="Authorized order amount")
    parser.add_argument("target", type=int, help="Amount the order should keep")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing NEWEBPAY_* settings",
    )
    parser.add_argument(
        "--environment",
        help="production or sandbox (default: NEWEBPAY_ENV, else sandbox)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        client = create_gateway_client(env_file=args.env_file, environment=args.environment)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    try:
        snapshot = client.query_trade_info(args.order_no, args.amount)
        outcome = client.retain(snapshot, args.target)
    except (GatewayError, ValueError) as exc:
        logging.error("Reconciliation failed: %s", exc)
        return 1

    if outcome.is_noop:
        logging.info("Order %s already holds %s", args.order_no, args.target)
        return 0

    response = outcome.response
    if not outcome.is_success:
        logging.error("Gateway stopped the run: %s %s", response.status, response.message)
        return 1

    logging.info("Order %s now settled at %s", args.order_no, args.target)
    return 0


if __name__ == "__main__":
    sys.exit(main())
