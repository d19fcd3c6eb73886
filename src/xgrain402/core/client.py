"""
Paying HTTP client assembled from a :class:`ClientConfig`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from .builders import TransactionBuilder, create_builder
from .config import ClientConfig, get_network_config
from .interceptor import PaymentInterceptor

__all__ = ["PaymentClient"]


class PaymentClient:
    """
    Thin convenience wrapper that owns a :class:`PaymentInterceptor`.

    One builder is created per supported network; the configured ``rpc_url``
    only applies to the primary network.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        builders: Optional[Dict[str, TransactionBuilder]] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        if builders is None:
            builders = {
                network: create_builder(
                    get_network_config(network, config.networks),
                    config.rpc_url_for(network),
                )
                for network in config.supported_networks
            }
        self.interceptor = PaymentInterceptor(
            config.wallet,
            builders,
            session=self.session,
            supported_networks=config.supported_networks,
            max_payment_amount=config.max_payment_amount,
            networks=config.networks,
        )

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        return self.interceptor.request(method, url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.interceptor.get(url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.interceptor.post(url, **kwargs)
