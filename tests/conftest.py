"""
conftest.py - Shared pytest fixtures for fractose tests

Provides:
- A platform with a registry, a source NFT contract and funded clients
- A platform where one token has already been securitized
- A directly constructed ShareLedger for unit tests
"""

import pytest

from fractose import Platform, Registry, NonFungibleToken, ShareLedger, ONE_UNIT

from tests.fake_context import (
    make_context, securitize_token,
    REGISTRY, NFT, ALICE, BOB, CAROL,
    TOTAL_SUPPLY, SHARE_PRICE, DECIMALS, TOKEN_ID,
)


@pytest.fixture
def platform():
    """Platform with a registry, an NFT contract and three funded clients."""
    p = Platform(verbose=False)
    for account in (ALICE, BOB, CAROL):
        p.create_account(account, 1000 * ONE_UNIT)
    p.deploy(REGISTRY, Registry, 100 * ONE_UNIT)
    p.call(REGISTRY, REGISTRY, "new")
    p.deploy(NFT, NonFungibleToken, 10 * ONE_UNIT)
    p.call(NFT, NFT, "new", owner_id=NFT)
    return p


@pytest.fixture
def securitized(platform):
    """Platform where alice has securitized token "0" into 1000 shares worth 10 units."""
    ledger_id = securitize_token(platform)
    return platform, ledger_id


@pytest.fixture
def share_ledger():
    """ShareLedger built directly, alice owning the whole supply."""
    return ShareLedger.create(
        make_context(signer=REGISTRY, state_exists=False),
        nft_contract_address=NFT,
        nft_token_id=TOKEN_ID,
        owner_id=ALICE,
        shares_count=TOTAL_SUPPLY,
        decimals=DECIMALS,
        share_price=SHARE_PRICE,
    )
