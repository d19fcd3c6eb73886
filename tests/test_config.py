# tests/test_config.py
"""
Tests for configuration objects and environment layering.
"""
import pytest

from conftest import EVM_TREASURY
from xgrain402.core.config import (
    DEFAULT_NETWORKS,
    AssetInfo,
    ClientConfig,
    RouteOptions,
    TokenAmount,
    get_network_config,
    load_client_settings,
    load_server_config,
    normalize_address,
)
from xgrain402.core.environment import build_environment
from xgrain402.core.exceptions import ConfigError, ConfigurationError


class TestNetworkTable:
    """Test the built-in network table."""

    def test_known_networks(self):
        """Test that both families are present with their default assets."""
        assert get_network_config("solana").family == "svm"
        assert get_network_config("solana-devnet").default_asset.decimals == 6
        assert get_network_config("bsc").chain_id == 56
        assert get_network_config("bsc-testnet").chain_id == 97

    def test_unknown_network(self):
        """Test that an unknown network is a configuration error listing the options."""
        with pytest.raises(ConfigurationError, match="bsc-testnet"):
            get_network_config("dogechain")

    def test_table_is_read_only(self):
        """Test that the default table cannot be mutated at runtime."""
        with pytest.raises(TypeError):
            DEFAULT_NETWORKS["evil"] = DEFAULT_NETWORKS["bsc"]


class TestNormalizeAddress:
    """Test per-family address normalisation."""

    def test_evm_checksummed(self):
        """Test that EVM addresses are checksummed and prefixed."""
        assert normalize_address(EVM_TREASURY.lower()[2:], "evm", "payTo") == EVM_TREASURY

    def test_evm_invalid(self):
        """Test that short hex is rejected."""
        with pytest.raises(ConfigError, match="payTo"):
            normalize_address("0x1234", "evm", "payTo")

    def test_solana_invalid(self):
        """Test that non-base58 Solana addresses are rejected."""
        with pytest.raises(ConfigError, match="treasury"):
            normalize_address("not-a-key", "svm", "treasury")

    def test_empty(self):
        """Test that blank addresses are rejected."""
        with pytest.raises(ConfigError, match="empty"):
            normalize_address("  ", "svm", "treasury")


class TestRouteTypes:
    """Test route option merging and prices."""

    def test_merged_over(self):
        """Test that set fields override defaults and unset fields inherit."""
        defaults = RouteOptions(resource="r", description="d", max_timeout_seconds=60)
        merged = RouteOptions(description="route").merged_over(defaults)
        assert merged == RouteOptions(resource="r", description="route", max_timeout_seconds=60)

    def test_token_amount_normalised(self):
        """Test that integer prices are stored as strings."""
        assert TokenAmount(10000).amount == "10000"

    def test_token_amount_rejects_fraction(self):
        """Test that fractional atomic prices are configuration errors."""
        with pytest.raises(ConfigError):
            TokenAmount("0.5")


class TestClientConfig:
    """Test client configuration defaults."""

    def test_supported_networks_default(self):
        """Test that the primary network is supported by default."""
        config = ClientConfig(wallet=object(), network="solana-devnet", max_payment_amount="10")
        assert config.supported_networks == ("solana-devnet",)
        assert config.max_payment_amount == 10
        assert config.rpc_url_for("solana-devnet") == "https://api.devnet.solana.com"

    def test_zero_cap_means_unlimited(self):
        """Test that a zero maximum payment amount disables the cap."""
        config = ClientConfig(wallet=object(), network="solana-devnet", max_payment_amount="0")
        assert config.max_payment_amount is None

    def test_rpc_override_applies_to_primary_only(self):
        """Test that a custom RPC URL only replaces the primary network's endpoint."""
        config = ClientConfig(
            wallet=object(),
            network="solana-devnet",
            rpc_url="https://rpc.example.com",
            supported_networks=("solana-devnet", "bsc-testnet"),
        )
        assert config.rpc_url_for("solana-devnet") == "https://rpc.example.com"
        assert config.rpc_url_for("bsc-testnet") == DEFAULT_NETWORKS["bsc-testnet"].rpc_url

    def test_wallet_required(self):
        """Test that a client without a wallet is rejected."""
        with pytest.raises(ConfigError, match="wallet"):
            ClientConfig(wallet=None, network="solana")

    def test_unknown_supported_network(self):
        """Test that unsupported network names are rejected up front."""
        with pytest.raises(ConfigurationError):
            ClientConfig(wallet=object(), network="solana", supported_networks=("nope",))


class TestServerConfigFromEnvironment:
    """Test XGRAIN402_* environment loading."""

    def test_minimal(self, treasury):
        """Test that the required keys produce a usable configuration."""
        config = load_server_config(
            env_file=None,
            base={
                "XGRAIN402_TREASURY_ADDRESS": treasury,
                "XGRAIN402_FACILITATOR_URL": "https://facilitator.example.com/",
            },
        )
        assert config.network == "solana-devnet"
        assert config.facilitator_url == "https://facilitator.example.com"
        assert config.fee_payer_override is None
        assert config.resolved_rpc_url == "https://api.devnet.solana.com"

    def test_full(self):
        """Test that every optional key is honoured."""
        config = load_server_config(
            env_file=None,
            base={
                "XGRAIN402_NETWORK": "bsc",
                "XGRAIN402_TREASURY_ADDRESS": EVM_TREASURY.lower(),
                "XGRAIN402_FACILITATOR_URL": "https://facilitator.example.com",
                "XGRAIN402_RPC_URL": "https://bsc.example.com",
                "XGRAIN402_DEFAULT_ASSET": "0x55d398326f99059fF775485246999027B3197955",
                "XGRAIN402_DEFAULT_ASSET_DECIMALS": "18",
                "XGRAIN402_FEE_PAYER": EVM_TREASURY,
                "XGRAIN402_DESCRIPTION": "Weather API",
                "XGRAIN402_TIMEOUT_SECONDS": "120",
            },
        )
        assert config.treasury_address == EVM_TREASURY
        assert config.resolved_rpc_url == "https://bsc.example.com"
        assert config.resolved_default_asset == AssetInfo(
            "0x55d398326f99059fF775485246999027B3197955", 18
        )
        assert config.fee_payer_override == EVM_TREASURY
        assert config.middleware.description == "Weather API"
        assert config.middleware.max_timeout_seconds == 120

    def test_missing_treasury(self):
        """Test that a missing treasury address is reported by name."""
        with pytest.raises(ConfigError, match="TREASURY_ADDRESS"):
            load_server_config(
                env_file=None, base={"XGRAIN402_FACILITATOR_URL": "https://f.example.com"}
            )

    def test_asset_without_decimals(self, treasury):
        """Test that a custom default asset needs its decimals."""
        with pytest.raises(ConfigError, match="DECIMALS"):
            load_server_config(
                env_file=None,
                base={
                    "XGRAIN402_TREASURY_ADDRESS": treasury,
                    "XGRAIN402_FACILITATOR_URL": "https://f.example.com",
                    "XGRAIN402_DEFAULT_ASSET": "So11111111111111111111111111111111111111112",
                },
            )

    def test_overrides_win_over_env_file(self, tmp_path, treasury):
        """Test .env values are used unless an override or base value exists."""
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# server settings\n"
            f"export XGRAIN402_TREASURY_ADDRESS={treasury}\n"
            "XGRAIN402_FACILITATOR_URL='https://from-file.example.com'\n"
            "XGRAIN402_DESCRIPTION=\"From file\"\n",
            encoding="utf-8",
        )
        config = load_server_config(
            env_file=str(env_file),
            base={"XGRAIN402_DESCRIPTION": "From base"},
            overrides={"XGRAIN402_FACILITATOR_URL": "https://override.example.com"},
        )
        assert config.treasury_address == treasury
        assert config.facilitator_url == "https://override.example.com"
        assert config.middleware.description == "From base"


class TestEnvironmentHelpers:
    """Test the .env helpers directly."""

    def test_blank_values_are_missing(self):
        """Test that blank variables fall back to the default."""
        environment = build_environment(env_file=None, base={"XGRAIN402_NETWORK": "  "})
        assert environment.get("NETWORK", "solana") == "solana"

    def test_prefixed_lookup(self):
        """Test that prefixed and bare keys resolve to the same variable."""
        environment = build_environment(env_file=None, base={"XGRAIN402_NETWORK": "bsc"})
        assert environment.get("NETWORK") == environment.get("XGRAIN402_NETWORK") == "bsc"

    def test_env_file_does_not_clobber_base(self, tmp_path):
        """Test that base values win over the file and quotes are stripped."""
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\nexport XGRAIN402_NETWORK=bsc\nXGRAIN402_RESOURCE='https://x'\nNOPE\n",
            encoding="utf-8",
        )
        environment = build_environment(
            env_file=str(env_file), base={"XGRAIN402_NETWORK": "solana"}
        )
        assert environment.get("NETWORK") == "solana"
        assert environment.get("RESOURCE") == "https://x"
        assert "NOPE" not in environment.variables

    def test_require(self):
        """Test that a missing required variable names the prefixed key."""
        environment = build_environment(env_file=None, base={})
        with pytest.raises(ConfigurationError, match="XGRAIN402_TREASURY_ADDRESS must be provided"):
            environment.require("TREASURY_ADDRESS")

    def test_get_int(self):
        """Test integer lookups and their error."""
        environment = build_environment(
            env_file=None,
            base={"XGRAIN402_TIMEOUT_SECONDS": "60", "XGRAIN402_DEFAULT_ASSET_DECIMALS": "six"},
        )
        assert environment.get_int("TIMEOUT_SECONDS") == 60
        assert environment.get_int("RESOURCE") is None
        with pytest.raises(ConfigError, match="must be an integer"):
            environment.get_int("DEFAULT_ASSET_DECIMALS")

    def test_missing_file_is_ignored(self, tmp_path):
        """Test that a missing .env file yields the base mapping unchanged."""
        environment = build_environment(env_file=str(tmp_path / "absent"), base={"X": "1"})
        assert dict(environment.variables) == {"X": "1"}

    def test_client_settings(self):
        """Test the environment-derived client settings."""
        settings = load_client_settings(
            env_file=None,
            base={
                "XGRAIN402_NETWORK": "bsc-testnet",
                "XGRAIN402_MAX_PAYMENT_AMOUNT": "5000",
                "XGRAIN402_PAYER_PRIVATE_KEY": "0xabc",
            },
        )
        assert settings.network == "bsc-testnet"
        assert settings.max_payment_amount == 5000
        assert settings.private_key == "0xabc"
        assert settings.rpc_url is None
