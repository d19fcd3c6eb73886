"""
Shared fixtures for the xgrain402 test-suite.
"""
from unittest.mock import MagicMock

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from xgrain402.core.types import PaymentRequirement

DEVNET_USDC = "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU"

# Well-known hardhat test key; never holds real funds.
EVM_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcaf784d7bf4f2ff80"
EVM_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
EVM_TREASURY = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


def make_response(status_code=200, payload=None, text=""):
    """Build a ``requests.Response`` stand-in returning ``payload`` from ``json()``."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.headers = {}
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def treasury():
    return str(Pubkey.new_unique())


@pytest.fixture
def fee_payer():
    return str(Pubkey.new_unique())


@pytest.fixture
def payer_keypair():
    return Keypair()


@pytest.fixture
def solana_requirement(treasury, fee_payer):
    return PaymentRequirement(
        network="solana-devnet",
        max_amount_required="10000",
        pay_to=treasury,
        resource="https://api.example.com/premium",
        asset=DEVNET_USDC,
        description="Premium data",
        mime_type="application/json",
        extra={"feePayer": fee_payer},
    )


@pytest.fixture
def bsc_requirement():
    return PaymentRequirement(
        network="bsc-testnet",
        max_amount_required="1000000000000000",
        pay_to=EVM_TREASURY,
        resource="https://api.example.com/premium",
        asset="0x0000000000000000000000000000000000000000",
    )
