"""
Framework-agnostic server side of the handshake.

Adapters for a given web framework pull the headers out of the request, call
into :class:`PaymentProcessor`, and translate the returned status/body back
into a framework response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

import requests

from .config import RouteConfig, ServerConfig, get_network_config, normalize_address
from .encoding import decode_payment_header
from .exceptions import InvalidPaymentHeader, ValidationError
from .facilitator import FacilitatorClient
from .types import (
    PAYMENT_HEADER,
    SCHEME_EXACT,
    X402_VERSION,
    PaymentRequiredBody,
    PaymentRequirement,
    SettlementResult,
)

__all__ = ["PaymentProcessor", "ProcessedResponse"]

logger = logging.getLogger(__name__)

HeaderValue = Union[str, Iterable[str], None]
Headers = Union[Mapping[str, HeaderValue], Any]

DEFAULT_DESCRIPTION = "Payment required"
DEFAULT_MIME_TYPE = "application/json"
DEFAULT_TIMEOUT_SECONDS = 300


@dataclass(frozen=True)
class ProcessedResponse:
    status: int
    body: Any
    settlement: Optional[SettlementResult] = None


def _header_items(headers: Headers) -> Iterable[Tuple[str, HeaderValue]]:
    # Multi-valued containers (werkzeug, starlette) expose every value via getlist();
    # plain dicts hold strings or lists.
    getlist = getattr(headers, "getlist", None)
    if callable(getlist) and hasattr(headers, "keys"):
        return [(key, getlist(key)) for key in headers.keys()]
    return headers.items()


class PaymentProcessor:
    def __init__(
        self,
        config: ServerConfig,
        *,
        facilitator: Optional[FacilitatorClient] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.facilitator = facilitator or FacilitatorClient(config.facilitator_url, session=session)

    def extract_payment(self, headers: Headers) -> Optional[str]:
        """
        Return the ``X-PAYMENT`` value from ``headers``, matching the name case-insensitively.

        List values yield their first element.
        """
        wanted = PAYMENT_HEADER.lower()
        for key, value in _header_items(headers):
            if str(key).lower() != wanted:
                continue
            if value is None:
                continue
            if isinstance(value, (bytes, bytearray)):
                value = value.decode("latin-1")
            if not isinstance(value, str):
                value = next(iter(value), None)
            if value:
                return value
        return None

    def create_payment_requirements(
        self,
        route: RouteConfig,
        resource: Optional[str] = None,
    ) -> PaymentRequirement:
        options = route.options.merged_over(self.config.middleware)
        final_resource = resource or options.resource
        if not final_resource:
            raise ValidationError(
                "resource is required: provide it as a parameter or in the route options"
            )

        network = route.network or self.config.network
        network_config = get_network_config(network, self.config.networks)
        if route.price.asset is not None:
            asset = route.price.asset
        elif network == self.config.network:
            asset = self.config.resolved_default_asset
        else:
            asset = network_config.default_asset

        if network == self.config.network:
            pay_to = self.config.treasury_address
        else:
            pay_to = normalize_address(
                self.config.treasury_address, network_config.family, "treasury_address"
            )

        fee_payer = self.config.fee_payer_override or self.facilitator.discover_fee_payer(network)

        return PaymentRequirement(
            scheme=SCHEME_EXACT,
            network=network,
            max_amount_required=route.price.amount,
            resource=final_resource,
            description=options.description or DEFAULT_DESCRIPTION,
            mime_type=options.mime_type or DEFAULT_MIME_TYPE,
            pay_to=pay_to,
            max_timeout_seconds=options.max_timeout_seconds or DEFAULT_TIMEOUT_SECONDS,
            asset=asset.address,
            output_schema=options.output_schema or {},
            extra={"feePayer": fee_payer},
        )

    def create_402_response(
        self,
        requirement: PaymentRequirement,
        error: str = DEFAULT_DESCRIPTION,
    ) -> Dict[str, Any]:
        body = PaymentRequiredBody(accepts=[requirement], error=error, x402_version=X402_VERSION)
        return {"status": 402, "body": body.to_dict()}

    def _matches_requirement(self, payment_header: str, requirement: PaymentRequirement) -> bool:
        try:
            header = decode_payment_header(payment_header)
        except InvalidPaymentHeader as exc:
            logger.warning("Rejecting payment header: %s", exc)
            return False
        if header.scheme != requirement.scheme or header.network != requirement.network:
            logger.warning(
                "Payment header is for %s/%s but the requirement is %s/%s",
                header.scheme,
                header.network,
                requirement.scheme,
                requirement.network,
            )
            return False
        return True

    def verify_payment(self, payment_header: str, requirement: PaymentRequirement) -> bool:
        if not self._matches_requirement(payment_header, requirement):
            return False
        return self.facilitator.verify(payment_header, requirement, X402_VERSION)

    def settle_payment(self, payment_header: str, requirement: PaymentRequirement) -> bool:
        if not self._matches_requirement(payment_header, requirement):
            return False
        return self.facilitator.settle(payment_header, requirement, X402_VERSION)

    def process(
        self,
        headers: Headers,
        route: RouteConfig,
        handler: Callable[[], Any],
        resource: Optional[str] = None,
    ) -> ProcessedResponse:
        """
        Run ``handler`` behind the full verify -> execute -> settle sequence.

        The handler is only invoked after the facilitator verified the payment.
        Its result is withheld (and a 402 returned) if settlement fails.
        """
        requirement = self.create_payment_requirements(route, resource)
        payment_header = self.extract_payment(headers)
        if payment_header is None:
            logger.info("No %s header for %s, returning 402", PAYMENT_HEADER, requirement.resource)
            return self._payment_required(requirement, f"{PAYMENT_HEADER} header is required")

        if not self.verify_payment(payment_header, requirement):
            return self._payment_required(requirement, "Payment verification failed")

        result = handler()

        settlement = self.facilitator.settle_payment(payment_header, requirement, X402_VERSION)
        if not settlement.success:
            return self._payment_required(
                requirement, "Payment settlement failed", settlement=settlement
            )
        return ProcessedResponse(status=200, body=result, settlement=settlement)

    def _payment_required(
        self,
        requirement: PaymentRequirement,
        error: str,
        settlement: Optional[SettlementResult] = None,
    ) -> ProcessedResponse:
        response = self.create_402_response(requirement, error)
        return ProcessedResponse(status=402, body=response["body"], settlement=settlement)
