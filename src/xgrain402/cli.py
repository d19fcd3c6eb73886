"""
Command-line interface for exercising the xgrain402 payment APIs.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, Tuple

import requests

from .api import create_payment_client_from_env, create_payment_processor
from .core.config import RouteConfig, RouteOptions, TokenAmount
from .core.encoding import decode_payment_header
from .core.environment import build_environment
from .core.exceptions import ConfigError, PaymentDeclined, ValidationError, X402Error
from .core.facilitator import FacilitatorClient
from .core.types import PAYMENT_RESPONSE_HEADER, PaymentRequirement


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


def _print_json(document: Any) -> None:
    print(json.dumps(document, indent=2, sort_keys=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xgrain402",
        description="Pay for and protect HTTP endpoints with on-chain micropayments",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing XGRAIN402_* settings (default: .env)",
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

    supported = commands.add_parser("supported", help="List the facilitator's payment kinds")
    supported.add_argument("--facilitator-url", help="Overrides XGRAIN402_FACILITATOR_URL")
    supported.add_argument("--network", help="Only show kinds for this network")

    decode = commands.add_parser("decode", help="Print an X-PAYMENT header as JSON")
    decode.add_argument("header", help="Base64 X-PAYMENT value")

    requirement = commands.add_parser(
        "requirement", help="Print the 402 body a server would answer with"
    )
    requirement.add_argument("--price", required=True, help="Price in atomic units")
    requirement.add_argument("--resource", help="Resource URL (defaults to XGRAIN402_RESOURCE)")
    requirement.add_argument("--network", help="Network to charge on (defaults to XGRAIN402_NETWORK)")

    for name in ("verify", "settle"):
        sub = commands.add_parser(name, help=f"Submit a payment to the facilitator's /{name}")
        sub.add_argument("--header", required=True, help="Base64 X-PAYMENT value")
        sub.add_argument(
            "--requirement",
            required=True,
            type=Path,
            help="JSON file holding the payment requirement",
        )
        sub.add_argument("--facilitator-url", help="Overrides XGRAIN402_FACILITATOR_URL")

    fetch = commands.add_parser("fetch", help="Request a URL, paying if it answers 402")
    fetch.add_argument("url")
    fetch.add_argument("--method", default="GET")
    fetch.add_argument("--data", help="Request body")

    return parser


def _facilitator(args: argparse.Namespace, overrides: dict[str, str]) -> FacilitatorClient:
    url = args.facilitator_url
    if not url:
        environment = build_environment(env_file=args.env_file, overrides=overrides)
        url = environment.get("FACILITATOR_URL")
    if not url:
        raise ConfigError("XGRAIN402_FACILITATOR_URL or --facilitator-url must be provided")
    return FacilitatorClient(url, session=requests.Session())


def _load_requirement(path: Path) -> PaymentRequirement:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValidationError(f"Unable to read payment requirement from {path}: {exc}") from exc
    # Accept either a bare requirement or a full 402 body.
    if isinstance(data, dict) and isinstance(data.get("accepts"), list) and data["accepts"]:
        data = data["accepts"][0]
    return PaymentRequirement.from_dict(data)


def _run_supported(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    kinds = _facilitator(args, overrides).supported()
    if args.network:
        kinds = [kind for kind in kinds if kind.network == args.network]
    _print_json(
        [
            {
                "x402Version": kind.x402_version,
                "scheme": kind.scheme,
                "network": kind.network,
                "feePayer": kind.fee_payer,
            }
            for kind in kinds
        ]
    )
    return 0


def _run_decode(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    _print_json(decode_payment_header(args.header).to_dict())
    return 0


def _run_requirement(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    processor = create_payment_processor(env_file=args.env_file, overrides=overrides)
    route = RouteConfig(
        price=TokenAmount(args.price),
        network=args.network,
        options=RouteOptions(resource=args.resource),
    )
    requirement = processor.create_payment_requirements(route)
    _print_json(processor.create_402_response(requirement)["body"])
    return 0


def _run_verify(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    requirement = _load_requirement(args.requirement)
    result = _facilitator(args, overrides).verify_payment(args.header, requirement)
    if not result.is_valid:
        logging.error("Payment rejected: %s", result.invalid_reason)
        return 1
    logging.info("Facilitator accepted payment payload for payer %s", result.payer)
    return 0


def _run_settle(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    requirement = _load_requirement(args.requirement)
    settlement = _facilitator(args, overrides).settle_payment(args.header, requirement)
    if not settlement.success:
        logging.error("Settlement failed: %s", settlement.error_reason)
        return 1
    logging.info(
        "Payment settled on %s. Transaction: %s",
        settlement.network,
        settlement.transaction,
    )
    return 0


def _run_fetch(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    client = create_payment_client_from_env(env_file=args.env_file, overrides=overrides)
    response = client.request(args.method.upper(), args.url, data=args.data)
    logging.info("%s %s -> %s", args.method.upper(), args.url, response.status_code)
    receipt = response.headers.get(PAYMENT_RESPONSE_HEADER)
    if receipt:
        logging.info("Payment receipt: %s", receipt)
    print(response.text)
    return 0 if response.ok else 1


_COMMANDS = {
    "supported": _run_supported,
    "decode": _run_decode,
    "requirement": _run_requirement,
    "verify": _run_verify,
    "settle": _run_settle,
    "fetch": _run_fetch,
}


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    try:
        return _COMMANDS[args.command](args, overrides)
    except (KeyError, ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1
    except PaymentDeclined as exc:
        logging.error("Payment declined: %s", exc)
        return 1
    except X402Error as exc:
        logging.error("%s failed: %s", args.command, exc)
        return 1
    except requests.RequestException as exc:
        logging.error("Request failed: %s", exc)
        return 1


def main() -> None:
    raise SystemExit(run_cli())
