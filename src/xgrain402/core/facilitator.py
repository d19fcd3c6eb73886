"""
HTTP client for the payment facilitator.

``/verify`` and ``/settle`` never raise: transport failures, non-2xx
answers and undecodable headers all come back as a negative result so
servers can answer uniformly with a 402. Fee-payer discovery, on the other
hand, fails loudly because no transaction can be built without one.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .encoding import decode_payment_document
from .exceptions import ConfigurationError, FacilitatorUnavailable, InvalidPaymentHeader
from .types import (
    SCHEME_EXACT,
    X402_VERSION,
    PaymentRequirement,
    SettlementResult,
    SupportedKind,
    VerifyResult,
)

__all__ = ["FacilitatorClient"]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def _decode_json(response: requests.Response, url: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise FacilitatorUnavailable(
            f"Failed to parse JSON from facilitator at {url}: {response.text}"
        ) from exc


class FacilitatorClient:
    """Thin wrapper around the facilitator's ``/supported``, ``/verify`` and ``/settle``."""

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FacilitatorUnavailable(f"Failed to reach facilitator at {url}: {exc}") from exc
        if response.status_code >= 400:
            raise FacilitatorUnavailable(
                f"Facilitator {path} responded with {response.status_code}: {response.text}"
            )
        return _decode_json(response, url)

    def _post_json(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FacilitatorUnavailable(f"Failed to reach facilitator at {url}: {exc}") from exc
        if response.status_code >= 400:
            raise FacilitatorUnavailable(
                f"Facilitator {path} responded with {response.status_code}: {response.text}"
            )
        payload = _decode_json(response, url)
        if not isinstance(payload, dict):
            raise FacilitatorUnavailable(f"Facilitator {path} returned a non-object response")
        return payload

    def supported(self) -> List[SupportedKind]:
        """Return the payment kinds the facilitator advertises."""
        payload = self._get_json("/supported")
        kinds = payload.get("kinds") if isinstance(payload, dict) else None
        return [SupportedKind.from_dict(kind) for kind in kinds or [] if isinstance(kind, dict)]

    def discover_fee_payer(self, network: str, scheme: str = SCHEME_EXACT) -> str:
        """
        Look up the fee payer the facilitator registered for ``network``/``scheme``.

        Raises :class:`ConfigurationError` when the pair is unsupported or the
        facilitator did not publish a fee payer for it.
        """
        for kind in self.supported():
            if kind.network == network and kind.scheme == scheme:
                if kind.fee_payer:
                    logger.debug("Facilitator fee payer for %s/%s is %s", network, scheme, kind.fee_payer)
                    return kind.fee_payer
                break
        raise ConfigurationError(
            f'Facilitator does not support network "{network}" with scheme "{scheme}" '
            "or feePayer not provided"
        )

    def _request_body(
        self,
        payment_header: str,
        requirement: PaymentRequirement,
        version: int,
    ) -> Dict[str, Any]:
        return {
            "x402Version": version,
            "paymentPayload": decode_payment_document(payment_header),
            "paymentRequirements": requirement.to_dict(),
        }

    def verify_payment(
        self,
        payment_header: str,
        requirement: PaymentRequirement,
        version: int = X402_VERSION,
    ) -> VerifyResult:
        try:
            body = self._request_body(payment_header, requirement, version)
            logger.info("Submitting payment for verification to %s/verify", self.base_url)
            result = VerifyResult.from_response(self._post_json("/verify", body))
        except (InvalidPaymentHeader, FacilitatorUnavailable) as exc:
            logger.warning("Payment verification failed: %s", exc)
            return VerifyResult.failure(str(exc))

        if not result.is_valid:
            logger.warning("Facilitator rejected payment: %s", result.invalid_reason)
        return result

    def verify(
        self,
        payment_header: str,
        requirement: PaymentRequirement,
        version: int = X402_VERSION,
    ) -> bool:
        return self.verify_payment(payment_header, requirement, version).is_valid

    def settle_payment(
        self,
        payment_header: str,
        requirement: PaymentRequirement,
        version: int = X402_VERSION,
    ) -> SettlementResult:
        try:
            body = self._request_body(payment_header, requirement, version)
            logger.info("Submitting payment for settlement to %s/settle", self.base_url)
            result = SettlementResult.from_response(self._post_json("/settle", body))
        except (InvalidPaymentHeader, FacilitatorUnavailable) as exc:
            logger.warning("Payment settlement failed: %s", exc)
            return SettlementResult.failure(str(exc))

        if result.success:
            logger.info("Payment settled on %s. Transaction: %s", result.network, result.transaction)
        else:
            logger.warning("Facilitator could not settle payment: %s", result.error_reason)
        return result

    def settle(
        self,
        payment_header: str,
        requirement: PaymentRequirement,
        version: int = X402_VERSION,
    ) -> bool:
        return self.settle_payment(payment_header, requirement, version).success
