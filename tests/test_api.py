# tests/test_api.py
"""
Tests for the high-level client and processor factories.
"""
from unittest.mock import MagicMock, patch

import pytest

from conftest import EVM_PRIVATE_KEY, make_response
from xgrain402.api import (
    create_payment_client,
    create_payment_client_from_env,
    create_payment_processor,
    fetch_with_payment,
)
from xgrain402.core.builders import EvmTransactionBuilder, SolanaTransactionBuilder
from xgrain402.core.client import PaymentClient
from xgrain402.core.config import ClientConfig
from xgrain402.core.exceptions import ConfigError
from xgrain402.core.wallets import LocalEvmWallet


class TestCreatePaymentClient:
    """Test PaymentClient assembly."""

    def test_builders_per_supported_network(self):
        """Test that each supported network gets a builder of its family."""
        client = create_payment_client(
            wallet=MagicMock(),
            network="solana-devnet",
            supported_networks=["solana-devnet", "bsc-testnet"],
            max_payment_amount="1000",
        )
        builders = client.interceptor._builders
        assert isinstance(builders["solana-devnet"], SolanaTransactionBuilder)
        assert isinstance(builders["bsc-testnet"], EvmTransactionBuilder)
        assert client.interceptor.max_payment_amount == 1000
        assert client.interceptor.supported_networks == ("solana-devnet", "bsc-testnet")

    def test_config_and_parameters_are_exclusive(self):
        """Test that mixing a config object with parameters is refused."""
        config = ClientConfig(wallet=MagicMock(), network="solana-devnet")
        with pytest.raises(ValueError, match="not both"):
            create_payment_client(config=config, network="bsc")

    def test_network_required(self):
        """Test that a client needs at least a network."""
        with pytest.raises(ConfigError, match="network"):
            create_payment_client(wallet=MagicMock())

    def test_client_delegates_to_interceptor(self):
        """Test that PaymentClient.get goes through the session once for non-402 responses."""
        session = MagicMock()
        session.request.return_value = make_response(200, {})
        config = ClientConfig(wallet=MagicMock(), network="bsc-testnet")
        client = PaymentClient(config, session=session, builders={"bsc-testnet": MagicMock()})

        assert client.get("https://api.example.com/free").status_code == 200
        session.request.assert_called_once_with("GET", "https://api.example.com/free")

    def test_from_env(self):
        """Test that the environment's private key becomes the client's wallet."""
        client = create_payment_client_from_env(
            env_file=None,
            base={
                "XGRAIN402_NETWORK": "bsc-testnet",
                "XGRAIN402_PAYER_PRIVATE_KEY": EVM_PRIVATE_KEY,
                "XGRAIN402_MAX_PAYMENT_AMOUNT": "100",
            },
        )
        assert isinstance(client.config.wallet, LocalEvmWallet)
        assert client.config.max_payment_amount == 100

    def test_from_env_without_key(self):
        """Test that a missing private key is a configuration error."""
        with pytest.raises(ConfigError, match="PAYER_PRIVATE_KEY"):
            create_payment_client_from_env(env_file=None, base={})

    def test_fetch_with_payment(self):
        """Test that fetch_with_payment uses the supplied client."""
        client = MagicMock()
        fetch_with_payment("POST", "https://api.example.com", client=client, json={"a": 1})
        client.request.assert_called_once_with("POST", "https://api.example.com", json={"a": 1})


class TestCreatePaymentProcessor:
    """Test PaymentProcessor assembly."""

    def test_explicit_parameters(self, treasury):
        """Test building a processor from explicit settings."""
        processor = create_payment_processor(
            network="solana-devnet",
            treasury_address=treasury,
            facilitator_url="https://facilitator.example.com/",
        )
        assert processor.config.treasury_address == treasury
        assert processor.facilitator.base_url == "https://facilitator.example.com"

    def test_incomplete_parameters(self, treasury):
        """Test that partial explicit settings are rejected."""
        with pytest.raises(ConfigError, match="facilitator_url"):
            create_payment_processor(network="solana-devnet", treasury_address=treasury)

    def test_from_environment(self, treasury):
        """Test that the environment is used when nothing explicit is passed."""
        processor = create_payment_processor(
            env_file=None,
            base={
                "XGRAIN402_TREASURY_ADDRESS": treasury,
                "XGRAIN402_FACILITATOR_URL": "https://facilitator.example.com",
            },
        )
        assert processor.config.network == "solana-devnet"

    def test_shared_session(self, treasury):
        """Test that the given session is used for facilitator calls."""
        session = MagicMock()
        with patch("xgrain402.api.PaymentProcessor") as processor_cls:
            create_payment_processor(
                network="solana-devnet",
                treasury_address=treasury,
                facilitator_url="https://facilitator.example.com",
                session=session,
            )
        assert processor_cls.call_args.kwargs["session"] is session
