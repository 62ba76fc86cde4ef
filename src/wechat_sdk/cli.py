"""
Command-line interface for exercising the Official Account helpers.
"""

from __future__ import annotations

import argparse
import logging
from typing import Iterable, Sequence, Tuple

from .api import create_official_account
from .core.config import ClientConfig, load_client_config
from .core.context import with_timeout
from .core.errors import ConfigurationError, WeChatError


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


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wechat-sdk",
        description="Call WeChat Official Account helpers from the shell",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing WECHAT_* settings (default: .env)",
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
        default="WARNING",
        help="Python logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    auth_parser = subparsers.add_parser("auth-url", help="Print a web authorization URL")
    auth_parser.add_argument("redirect_uri")
    auth_parser.add_argument("--scope", choices=("base", "userinfo"), default="base")

    token_parser = subparsers.add_parser("access-token", help="Fetch an application access token")
    token_parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Give up after this many seconds (default: 10)",
    )

    verify_parser = subparsers.add_parser(
        "verify-server",
        help="Check the signature WeChat sends when validating a callback URL",
    )
    verify_parser.add_argument("signature")
    verify_parser.add_argument("timestamp")
    verify_parser.add_argument("nonce")
    return parser


def _load_config(args: argparse.Namespace) -> ClientConfig:
    return load_client_config(
        env_file=args.env_file,
        overrides=_collect_overrides(args.set or ()),
    )


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    try:
        config = _load_config(args)
    except ConfigurationError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    oa = create_official_account(config=config)

    if args.command == "auth-url":
        print(oa.auth_url(args.scope, args.redirect_uri))
        return 0

    if args.command == "verify-server":
        try:
            valid = oa.verify_server(args.signature, args.timestamp, args.nonce)
        except ConfigurationError as exc:
            logging.error("Invalid configuration: %s", exc)
            return 1
        print("valid" if valid else "invalid")
        return 0 if valid else 1

    try:
        token = oa.access_token(with_timeout(args.timeout))
    except WeChatError as exc:
        logging.error("Access token request failed: %s", exc)
        return 1

    print(token.token)
    logging.info("Access token expires in %s seconds", token.expires_in)
    return 0


if __name__ == "__main__":
    raise SystemExit(run_cli())
