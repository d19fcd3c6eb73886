"""
Minimal script that uses the public API to pay for a protected resource.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Tuple

from xgrain402 import ConfigError, PaymentDeclined, create_payment_client_from_env


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    return {key: value for key, value in pairs}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch a paywalled URL, paying on 402")
    parser.add_argument("url", help="Resource to request")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing XGRAIN402_* settings",
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
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        client = create_payment_client_from_env(
            env_file=args.env_file,
            overrides=_build_overrides(args.set or ()),
        )
    except (KeyError, ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    try:
        response = client.get(args.url)
    except PaymentDeclined as exc:
        logging.error("Refusing to pay: %s", exc)
        return 1

    logging.info("Server answered %s", response.status_code)
    print(response.text)
    return 0 if response.ok else 1


if __name__ == "__main__":
    sys.exit(main())
