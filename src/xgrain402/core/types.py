"""
Wire-level data model of the pay-per-call handshake.

Field names on the wire are camelCase; the dataclasses expose snake_case
attributes and convert in ``to_dict`` / ``from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .amounts import parse_atomic_amount
from .exceptions import ValidationError

__all__ = [
    "PAYMENT_HEADER",
    "PAYMENT_RESPONSE_HEADER",
    "SCHEME_EXACT",
    "X402_VERSION",
    "PaymentHeader",
    "PaymentRequiredBody",
    "PaymentRequirement",
    "SettlementResult",
    "SupportedKind",
    "VerifyResult",
]

X402_VERSION = 1
SCHEME_EXACT = "exact"
PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"


def _require(data: Mapping[str, Any], key: str, owner: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ValidationError(f"{owner} is missing '{key}'")
    return value


def _integer(value: Any, default: int, owner: str, key: str) -> int:
    if value is None:
        return default
    message = f"{owner} '{key}' must be an integer"
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(message)
    try:
        return int(value)
    except ValueError as exc:
        raise ValidationError(message) from exc


@dataclass(frozen=True)
class PaymentRequirement:
    """Server-issued description of what a single request attempt costs."""

    network: str
    max_amount_required: str
    pay_to: str
    resource: str
    max_timeout_seconds: int = 300
    scheme: str = SCHEME_EXACT
    asset: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = None
    output_schema: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Normalise ints to their decimal-string form; reject floats.
        amount = parse_atomic_amount(self.max_amount_required)
        object.__setattr__(self, "max_amount_required", str(amount))

    @property
    def amount(self) -> int:
        return int(self.max_amount_required)

    @property
    def fee_payer(self) -> Optional[str]:
        value = (self.extra or {}).get("feePayer")
        return value if isinstance(value, str) and value else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "scheme": self.scheme,
            "network": self.network,
            "maxAmountRequired": self.max_amount_required,
            "resource": self.resource,
            "description": self.description,
            "mimeType": self.mime_type,
            "outputSchema": self.output_schema,
            "payTo": self.pay_to,
            "maxTimeoutSeconds": self.max_timeout_seconds,
            "asset": self.asset,
            "extra": dict(self.extra or {}),
        }
        # Absent optionals are left out rather than sent as null.
        return {key: value for key, value in data.items() if value is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaymentRequirement":
        if not isinstance(data, Mapping):
            raise ValidationError("Payment requirement must be a JSON object")
        return cls(
            scheme=_require(data, "scheme", "Payment requirement"),
            network=_require(data, "network", "Payment requirement"),
            max_amount_required=_require(data, "maxAmountRequired", "Payment requirement"),
            # payTo and resource are checked where they are needed so a
            # client can still report which field the server left out.
            pay_to=data.get("payTo") or "",
            resource=data.get("resource") or "",
            max_timeout_seconds=_integer(
                data.get("maxTimeoutSeconds"), 300, "Payment requirement", "maxTimeoutSeconds"
            ),
            asset=data.get("asset") or None,
            description=data.get("description"),
            mime_type=data.get("mimeType"),
            output_schema=data.get("outputSchema"),
            extra=dict(data.get("extra") or {}),
        )


@dataclass(frozen=True)
class PaymentHeader:
    """Envelope carried, base64-encoded, in the ``X-PAYMENT`` request header."""

    network: str
    transaction: str
    scheme: str = SCHEME_EXACT
    x402_version: int = X402_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x402Version": self.x402_version,
            "scheme": self.scheme,
            "network": self.network,
            "payload": {"transaction": self.transaction},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaymentHeader":
        payload = data.get("payload")
        if not isinstance(payload, Mapping):
            raise ValidationError("Payment header is missing 'payload'")
        version = _require(data, "x402Version", "Payment header")
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValidationError("Payment header 'x402Version' must be an integer")
        return cls(
            x402_version=version,
            scheme=_require(data, "scheme", "Payment header"),
            network=_require(data, "network", "Payment header"),
            transaction=_require(payload, "transaction", "Payment header payload"),
        )


@dataclass(frozen=True)
class PaymentRequiredBody:
    """JSON body of an HTTP 402 response."""

    accepts: List[PaymentRequirement]
    error: Optional[str] = None
    x402_version: int = X402_VERSION

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "x402Version": self.x402_version,
            "accepts": [requirement.to_dict() for requirement in self.accepts],
        }
        if self.error is not None:
            body["error"] = self.error
        return body

    @classmethod
    def from_dict(cls, data: Any) -> "PaymentRequiredBody":
        if not isinstance(data, Mapping):
            raise ValidationError("402 response body must be a JSON object")
        raw_accepts = data.get("accepts") or []
        if not isinstance(raw_accepts, list):
            raise ValidationError("402 response 'accepts' must be a list")
        return cls(
            x402_version=_integer(data.get("x402Version"), X402_VERSION, "402 response", "x402Version"),
            accepts=[PaymentRequirement.from_dict(item) for item in raw_accepts],
            error=data.get("error"),
        )


@dataclass(frozen=True)
class SupportedKind:
    """One entry of the facilitator's ``/supported`` capability list."""

    scheme: str
    network: str
    x402_version: int = X402_VERSION
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def fee_payer(self) -> Optional[str]:
        value = (self.extra or {}).get("feePayer")
        return value if isinstance(value, str) and value else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SupportedKind":
        return cls(
            scheme=str(data.get("scheme") or ""),
            network=str(data.get("network") or ""),
            x402_version=int(data.get("x402Version", X402_VERSION)),
            extra=dict(data.get("extra") or {}),
        )


@dataclass(frozen=True)
class VerifyResult:
    is_valid: bool
    invalid_reason: Optional[str] = None
    payer: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "VerifyResult":
        return cls(
            is_valid=payload.get("isValid") is True,
            invalid_reason=payload.get("invalidReason") or payload.get("reason"),
            payer=payload.get("payer"),
            raw=payload,
        )

    @classmethod
    def failure(cls, reason: str) -> "VerifyResult":
        return cls(is_valid=False, invalid_reason=reason)


@dataclass(frozen=True)
class SettlementResult:
    success: bool
    network: Optional[str] = None
    transaction: Optional[str] = None
    error_reason: Optional[str] = None
    payer: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "SettlementResult":
        return cls(
            success=payload.get("success") is True,
            network=payload.get("network"),
            transaction=payload.get("transaction"),
            error_reason=payload.get("errorReason") or payload.get("reason"),
            payer=payload.get("payer"),
            raw=payload,
        )

    @classmethod
    def failure(cls, reason: str) -> "SettlementResult":
        return cls(success=False, error_reason=reason)
