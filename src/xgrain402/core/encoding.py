"""
Codec for the ``X-PAYMENT`` header.

A signed transaction is serialized in its chain's customary text form
(base64 for Solana, ``0x``-hex for EVM chains), wrapped in the payment
envelope and the envelope JSON is base64-encoded.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, Mapping, Optional, Tuple

from hexbytes import HexBytes

from .config import EVM, NetworkConfig, SVM, get_network_config
from .exceptions import InvalidPaymentHeader, ValidationError
from .types import SCHEME_EXACT, X402_VERSION, PaymentHeader, PaymentRequirement

__all__ = [
    "decode_payment_document",
    "decode_payment_header",
    "deserialize_transaction",
    "encode_payment_header",
    "header_transaction_bytes",
    "serialize_transaction",
]


def serialize_transaction(family: str, raw: bytes) -> str:
    if family == SVM:
        return base64.b64encode(bytes(raw)).decode("ascii")
    if family == EVM:
        return "0x" + bytes(raw).hex()
    raise ValidationError(f"Unknown network family '{family}'")


def deserialize_transaction(family: str, value: str) -> bytes:
    try:
        if family == SVM:
            return base64.b64decode(value, validate=True)
        if family == EVM:
            return bytes(HexBytes(value))
    except (binascii.Error, ValueError, TypeError) as exc:
        raise InvalidPaymentHeader(f"Transaction is not valid {family} encoding") from exc
    raise ValidationError(f"Unknown network family '{family}'")


def encode_payment_header(
    raw_transaction: bytes,
    requirement: PaymentRequirement,
    version: int = X402_VERSION,
    *,
    networks: Optional[Mapping[str, NetworkConfig]] = None,
) -> str:
    """Wrap a signed transaction for ``requirement`` into an ``X-PAYMENT`` token."""
    family = get_network_config(requirement.network, networks).family
    header = PaymentHeader(
        x402_version=version,
        scheme=requirement.scheme,
        network=requirement.network,
        transaction=serialize_transaction(family, raw_transaction),
    )
    document = json.dumps(header.to_dict(), separators=(",", ":"))
    return base64.b64encode(document.encode("utf-8")).decode("ascii")


def _decode(token: str) -> Tuple[Dict[str, Any], PaymentHeader]:
    """
    Decode an ``X-PAYMENT`` token into its JSON object and parsed envelope.

    Raises :class:`InvalidPaymentHeader` when the token is not base64, the
    envelope is not a JSON object, a field is missing, or the scheme is not
    ``"exact"``.
    """
    if not isinstance(token, str) or not token.strip():
        raise InvalidPaymentHeader("Payment header is empty")
    try:
        document = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise InvalidPaymentHeader("Payment header is not valid base64") from exc
    try:
        data = json.loads(document)
    except json.JSONDecodeError as exc:
        raise InvalidPaymentHeader("Payment header does not contain valid JSON") from exc
    if not isinstance(data, dict):
        raise InvalidPaymentHeader("Payment header must encode a JSON object")

    try:
        header = PaymentHeader.from_dict(data)
    except ValidationError as exc:
        raise InvalidPaymentHeader(str(exc)) from exc
    if header.scheme != SCHEME_EXACT:
        raise InvalidPaymentHeader(f"Unsupported payment scheme '{header.scheme}'")
    return data, header


def decode_payment_header(token: str) -> PaymentHeader:
    """Decode an ``X-PAYMENT`` token into a :class:`PaymentHeader`."""
    return _decode(token)[1]


def decode_payment_document(token: str) -> Dict[str, Any]:
    """Validated JSON object of an ``X-PAYMENT`` token, unknown fields included."""
    return _decode(token)[0]


def header_transaction_bytes(
    header: PaymentHeader,
    networks: Optional[Mapping[str, NetworkConfig]] = None,
) -> bytes:
    family = get_network_config(header.network, networks).family
    return deserialize_transaction(family, header.transaction)
