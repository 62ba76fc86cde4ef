"""
Minimal script that uses the public API to place a JSAPI order.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Tuple

from wechat_sdk import (
    ConfigurationError,
    UnifiedOrder,
    WeChatError,
    create_merchant,
    load_client_config,
    with_timeout,
)


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    return dict(pairs)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a WeChat Pay order using the SDK API")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing WECHAT_* settings",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--openid", required=True, help="Payer's openid under this app")
    parser.add_argument("--out-trade-no", required=True, help="Merchant order number")
    parser.add_argument("--total-fee", type=int, required=True, help="Amount in fen")
    parser.add_argument("--body", default="Test order", help="Goods description")
    parser.add_argument(
        "--notify-url",
        default="https://example.com/wechat/notify",
        help="URL WeChat Pay posts the payment result to",
    )
    parser.add_argument("--client-ip", default="127.0.0.1", help="Payer's IP address")
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Give up after this many seconds (default: 10)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        config = load_client_config(
            env_file=args.env_file,
            overrides=_build_overrides(args.set or ()),
        )
        merchant = create_merchant(config=config)
    except ConfigurationError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    order = UnifiedOrder(
        body=args.body,
        out_trade_no=args.out_trade_no,
        total_fee=args.total_fee,
        spbill_create_ip=args.client_ip,
        notify_url=args.notify_url,
        openid=args.openid,
    )

    try:
        result = merchant.unified_order(with_timeout(args.timeout), order)
    except WeChatError as exc:
        logging.error("Unified order failed: %s", exc)
        return 1

    prepay_id = result["prepay_id"]
    logging.info("Order %s accepted, prepay id %s", order.out_trade_no, prepay_id)

    for key, value in merchant.jsapi_params(prepay_id).items():
        print(f"{key}={value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
