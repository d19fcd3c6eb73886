"""
Client-side handling of ``402 Payment Required`` responses.

A request goes out once. If the answer is a 402, the first acceptable
requirement is paid and the request is replayed exactly once with the
``X-PAYMENT`` header attached. Whatever the replay returns, including another
402, is handed back to the caller unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import requests

from .builders import TransactionBuilder, create_payment_header
from .config import NetworkConfig
from .exceptions import AmountExceeded, NoSuitableRequirement, ValidationError
from .types import (
    PAYMENT_HEADER,
    PAYMENT_RESPONSE_HEADER,
    SCHEME_EXACT,
    X402_VERSION,
    PaymentRequirement,
)

__all__ = [
    "PaymentInterceptor",
    "ensure_within_cap",
    "parse_payment_required",
    "select_payment_requirement",
]

logger = logging.getLogger(__name__)


def _scheme_and_network(entry: Any) -> Tuple[Any, Any]:
    if isinstance(entry, PaymentRequirement):
        return entry.scheme, entry.network
    if isinstance(entry, Mapping):
        return entry.get("scheme"), entry.get("network")
    return None, None


def select_payment_requirement(
    accepts: Sequence[Union[PaymentRequirement, Mapping[str, Any]]],
    supported_networks: Iterable[str],
) -> PaymentRequirement:
    """
    Return the first ``exact`` requirement on a supported network, in server order.

    ``accepts`` may hold raw 402 JSON entries. Only the chosen entry is
    parsed, so entries the client would skip anyway (other schemes, other
    networks, malformed objects) never abort the negotiation.
    """
    supported = set(supported_networks)
    for entry in accepts:
        scheme, network = _scheme_and_network(entry)
        if scheme != SCHEME_EXACT or not isinstance(network, str) or network not in supported:
            continue
        if isinstance(entry, PaymentRequirement):
            return entry
        return PaymentRequirement.from_dict(entry)
    offered = [_scheme_and_network(entry)[1] for entry in accepts]
    raise NoSuitableRequirement(
        f"No suitable payment requirement found (offered networks: {offered}, "
        f"supported: {sorted(supported)})"
    )


def ensure_within_cap(requirement: PaymentRequirement, max_amount: Optional[int]) -> None:
    """A cap of ``None`` or ``0`` means no limit."""
    if max_amount and requirement.amount > max_amount:
        raise AmountExceeded(
            f"Payment amount {requirement.max_amount_required} exceeds maximum allowed {max_amount}"
        )


def parse_payment_required(response: requests.Response) -> Tuple[int, List[Any]]:
    """
    Return the ``x402Version`` and the raw ``accepts`` entries of a 402 body.

    Entries are left unparsed for :func:`select_payment_requirement`.
    """
    try:
        body = response.json()
    except ValueError as exc:
        raise ValidationError("402 response body is not valid JSON") from exc
    if not isinstance(body, Mapping):
        raise ValidationError("402 response body must be a JSON object")
    accepts = body.get("accepts") or []
    if not isinstance(accepts, list):
        raise ValidationError("402 response 'accepts' must be a list")
    version = body.get("x402Version", X402_VERSION)
    if isinstance(version, bool) or not isinstance(version, int):
        raise ValidationError("402 response 'x402Version' must be an integer")
    return version, accepts


class PaymentInterceptor:
    """
    Wraps a :class:`requests.Session` so paywalled endpoints are paid automatically.

    ``builders`` maps network names to the builder able to pay on them; a
    requirement is only considered when its network is both supported and
    has a builder.
    """

    def __init__(
        self,
        wallet: Any,
        builders: Mapping[str, TransactionBuilder],
        *,
        session: Optional[requests.Session] = None,
        supported_networks: Optional[Iterable[str]] = None,
        max_payment_amount: Optional[int] = None,
        networks: Optional[Mapping[str, NetworkConfig]] = None,
    ) -> None:
        self.wallet = wallet
        self.session = session or requests.Session()
        self._builders = dict(builders)
        names = self._builders if supported_networks is None else supported_networks
        self.supported_networks = tuple(name for name in names if name in self._builders)
        self.max_payment_amount = max_payment_amount
        self._networks = networks

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        response = self.session.request(method, url, **kwargs)
        if response.status_code != 402:
            return response

        logger.info("Received 402 Payment Required for %s %s", method, url)
        try:
            version, accepts = parse_payment_required(response)
        finally:
            response.close()
        requirement = select_payment_requirement(accepts, self.supported_networks)
        ensure_within_cap(requirement, self.max_payment_amount)
        logger.info(
            "Paying %s atomic units of %s on %s to %s",
            requirement.max_amount_required,
            requirement.asset or "native currency",
            requirement.network,
            requirement.pay_to,
        )

        payment_header = create_payment_header(
            self._builders[requirement.network],
            self.wallet,
            requirement,
            version,
            networks=self._networks,
        )

        headers = dict(kwargs.pop("headers", None) or {})
        headers[PAYMENT_HEADER] = payment_header
        headers["Access-Control-Expose-Headers"] = PAYMENT_RESPONSE_HEADER
        retry = self.session.request(method, url, headers=headers, **kwargs)
        logger.info("Retried %s %s with payment, status=%s", method, url, retry.status_code)
        return retry

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", url, **kwargs)
