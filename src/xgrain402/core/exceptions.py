"""
Exception hierarchy shared by the client and server halves of the protocol.
"""

__all__ = [
    "AmountExceeded",
    "ConfigError",
    "ConfigurationError",
    "FacilitatorUnavailable",
    "InvalidPaymentHeader",
    "MissingDestination",
    "MissingFeePayer",
    "MissingWalletAddress",
    "NoSuitableRequirement",
    "PaymentDeclined",
    "SourceAccountNotFound",
    "UnsupportedWalletCapability",
    "ValidationError",
    "X402Error",
]


class X402Error(Exception):
    """Base class for xgrain402 errors."""


class ConfigurationError(X402Error):
    """Raised when the supplied configuration is invalid or unsupported."""


ConfigError = ConfigurationError


class ValidationError(X402Error):
    """Raised when a requirement, amount or payload is malformed."""


class MissingFeePayer(ValidationError):
    """Raised when a requirement does not name a fee payer in ``extra.feePayer``."""


class MissingDestination(ValidationError):
    """Raised when a requirement does not name a ``payTo`` address."""


class MissingWalletAddress(ValidationError):
    """Raised when the wallet adapter exposes neither a public key nor an address."""


class InvalidPaymentHeader(ValidationError):
    """Raised when an ``X-PAYMENT`` token cannot be decoded."""


class PaymentDeclined(X402Error):
    """The client refused to pay for a 402 response."""


class NoSuitableRequirement(PaymentDeclined):
    """None of the advertised requirements can be paid by this client."""


class AmountExceeded(PaymentDeclined):
    """The selected requirement asks for more than the configured maximum."""


class SourceAccountNotFound(X402Error):
    """The payer has no token account for the requested mint."""


class UnsupportedWalletCapability(X402Error):
    """The wallet adapter cannot sign transactions."""


class FacilitatorUnavailable(X402Error):
    """The facilitator could not be reached or returned an unusable response."""
