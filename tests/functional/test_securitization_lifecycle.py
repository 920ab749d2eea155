"""
test_securitization_lifecycle.py - End-to-end securitization scenarios

Tests complete asset lifecycles on a Platform:
- Securitize: wrapper and share ledger spawned, asset moved, shares minted
- Partial redemption followed by a claim that closes the ledger
- Full-holder redemption closing the ledger at once
- Outright buyout by a non-holder
- Several assets from one contract sharing a wrapper
"""

import pytest

from fractose import (
    ONE_UNIT, ONE_YOCTO, STORAGE_BALANCE_MIN, DEFAULT_WRAPPER_FUNDING, DEFAULT_SHARE_LEDGER_FUNDING,
    ActorNotFound, NothingToClaim, AlreadyRedeemed, CannotWrapWrapper,
)
from tests.fake_context import (
    securitize_token, register_holder, send_shares, nft_owner,
    REGISTRY, NFT, ALICE, BOB, CAROL, TOKEN_ID,
)

SHARE_PRICE = 10 * ONE_UNIT // 1000


class TestSecuritize:
    """State right after a securitization has been fully delivered."""

    def test_asset_moves_to_share_ledger(self, securitized):
        platform, ledger_id = securitized
        assert nft_owner(platform) == ledger_id
        assert platform.failed_receipts() == []

    def test_shares_minted_to_caller(self, securitized):
        platform, ledger_id = securitized
        assert platform.view(ledger_id, "ft_total_supply") == 1000
        assert platform.view(ledger_id, "ft_balance_of", account_id=ALICE) == 1000
        assert platform.view(ledger_id, "exit_price") == 10 * ONE_UNIT
        meta = platform.view(ledger_id, "ft_metadata")
        assert meta.share_price == SHARE_PRICE
        assert meta.nft_contract_address == NFT

    def test_registry_records(self, securitized):
        platform, ledger_id = securitized
        wrapper_id = platform.view(REGISTRY, "get_wrapper", asset_contract=NFT)
        assert platform.view(REGISTRY, "is_wrapper", account_id=wrapper_id)
        assert platform.view(REGISTRY, "get_share_ledger", asset_contract=NFT, asset_id=TOKEN_ID) == ledger_id
        assert platform.view(REGISTRY, "get_securitized_asset", share_ledger_id=ledger_id) == (NFT, TOKEN_ID)

    def test_actors_funded(self, securitized):
        platform, ledger_id = securitized
        wrapper_id = platform.view(REGISTRY, "get_wrapper", asset_contract=NFT)
        assert platform.balance_of(wrapper_id) == DEFAULT_WRAPPER_FUNDING
        assert platform.balance_of(ledger_id) == DEFAULT_SHARE_LEDGER_FUNDING
        assert platform.balance_of(REGISTRY) == (
            100 * ONE_UNIT - DEFAULT_WRAPPER_FUNDING - DEFAULT_SHARE_LEDGER_FUNDING - ONE_YOCTO
        )
        assert platform.verify_native_supply()['valid']

    def test_cannot_securitize_a_wrapper(self, securitized):
        platform, _ = securitized
        wrapper_id = platform.view(REGISTRY, "get_wrapper", asset_contract=NFT)
        with pytest.raises(CannotWrapWrapper):
            platform.call(ALICE, REGISTRY, "securitize", asset_contract=wrapper_id, asset_id="0",
                          shares_count=10, decimals=0, exit_price=100)


class TestPartialRedemptionThenClaim:
    """bob buys 300 shares' worth of control, redeems, alice claims the rest."""

    @pytest.fixture
    def redeemed(self, securitized):
        platform, ledger_id = securitized
        register_holder(platform, ledger_id, BOB)
        send_shares(platform, ledger_id, ALICE, BOB, 300)

        required = platform.view(ledger_id, "redeem_amount_of", account_id=BOB)
        assert required == 700 * SHARE_PRICE
        platform.call(BOB, ledger_id, "redeem", deposit=required)
        platform.run()
        return platform, ledger_id

    def test_redeemer_gets_asset(self, redeemed):
        platform, ledger_id = redeemed
        assert nft_owner(platform) == BOB
        assert platform.view(ledger_id, "ft_balance_of", account_id=BOB) == 0
        assert platform.view(ledger_id, "ft_total_supply") == 700
        assert platform.view(ledger_id, "ft_metadata").released is True

    def test_vault(self, redeemed):
        platform, ledger_id = redeemed
        assert platform.view(ledger_id, "vault_balance") == 7 * ONE_UNIT
        assert platform.view(ledger_id, "vault_balance_of", account_id=ALICE) == 7 * ONE_UNIT
        with pytest.raises(AlreadyRedeemed):
            platform.view(ledger_id, "redeem_amount_of", account_id=ALICE)

    def test_claim_closes_ledger(self, redeemed):
        platform, ledger_id = redeemed
        before = platform.balance_of(ALICE)
        platform.call(ALICE, ledger_id, "claim")
        platform.run()

        assert not platform.exists(ledger_id)
        with pytest.raises(ActorNotFound):
            platform.view(ledger_id, "ft_total_supply")
        # payout plus the ledger's residual: its funding and bob's storage deposit
        assert platform.balance_of(ALICE) == (
            before + 7 * ONE_UNIT + DEFAULT_SHARE_LEDGER_FUNDING + STORAGE_BALANCE_MIN
        )
        assert platform.failed_receipts() == []
        assert platform.verify_native_supply()['valid']

    def test_registry_keeps_stale_mapping(self, redeemed):
        platform, ledger_id = redeemed
        platform.call(ALICE, ledger_id, "claim")
        platform.run()
        assert platform.view(REGISTRY, "get_share_ledger", asset_contract=NFT, asset_id=TOKEN_ID) == ledger_id

    def test_redeemer_cannot_claim(self, redeemed):
        platform, ledger_id = redeemed
        with pytest.raises(NothingToClaim):
            platform.call(BOB, ledger_id, "claim")


class TestFullHolderRedemption:

    def test_redeem_all_shares_closes_at_once(self, securitized):
        platform, ledger_id = securitized
        assert platform.view(ledger_id, "redeem_amount_of", account_id=ALICE) == 0
        before = platform.balance_of(ALICE)

        platform.call(ALICE, ledger_id, "redeem")
        platform.run()

        assert nft_owner(platform) == ALICE
        assert not platform.exists(ledger_id)
        assert platform.balance_of(ALICE) == before + DEFAULT_SHARE_LEDGER_FUNDING - ONE_YOCTO
        assert platform.verify_native_supply()['valid']


class TestBuyout:

    def test_non_holder_buys_out_and_holders_claim(self, securitized):
        platform, ledger_id = securitized
        register_holder(platform, ledger_id, BOB)
        send_shares(platform, ledger_id, ALICE, BOB, 250)

        carol_before = platform.balance_of(CAROL)
        platform.call(CAROL, ledger_id, "redeem", deposit=10 * ONE_UNIT + 5)
        platform.run()
        assert nft_owner(platform) == CAROL
        assert platform.balance_of(CAROL) == carol_before - 10 * ONE_UNIT

        bob_before = platform.balance_of(BOB)
        platform.call(BOB, ledger_id, "claim")
        platform.run()
        assert platform.balance_of(BOB) == bob_before + 250 * SHARE_PRICE
        assert platform.exists(ledger_id)

        platform.call(ALICE, ledger_id, "claim")
        platform.run()
        assert not platform.exists(ledger_id)
        assert platform.verify_native_supply()['valid']


class TestManyAssets:

    def test_one_wrapper_per_contract(self, platform):
        ledgers = [securitize_token(platform, token_id=str(i)) for i in range(3)]
        assert len(set(ledgers)) == 3
        assert len(platform.view(REGISTRY, "list_wrappers")) == 1
        for i, ledger_id in enumerate(ledgers):
            assert nft_owner(platform, str(i)) == ledger_id
        assert platform.failed_receipts() == []
