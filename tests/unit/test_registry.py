"""
test_registry.py - Unit tests for the Registry handlers

Tests cover:
- compute_share_price() divisibility and zero checks
- ensure_wrapper(): one spawn per contract, refusal to wrap a wrapper
- securitize(): message order, mapping, caller as share owner
- Registry actor init and views
"""

import pytest

from fractose import (
    Registry, RegistryStore, FundingConfig, ShareLedger, Wrapper, MessageKind,
    ensure_wrapper, securitize, compute_share_price, derive_identity, format_asset_key,
    InvalidAmount, FractionalSharePrice, CannotWrapWrapper, AlreadyInitialized,
    ONE_YOCTO, DEFAULT_WRAPPER_FUNDING, DEFAULT_SHARE_LEDGER_FUNDING,
)
from tests.fake_context import make_context, messages_of_kind, REGISTRY, NFT, ALICE


def registry_context(signer=ALICE):
    return make_context(signer=signer, current=REGISTRY)


# =============================================================================
# SHARE PRICE
# =============================================================================

class TestComputeSharePrice:
    """Tests for compute_share_price."""

    def test_divisible(self):
        assert compute_share_price(1000, 10 ** 30) == 10 ** 27

    def test_fractional(self):
        with pytest.raises(FractionalSharePrice, match="share price cannot be fractional"):
            compute_share_price(1000, 10 ** 30 + 1)

    def test_zero_exit_price(self):
        with pytest.raises(InvalidAmount, match="exit price must be positive"):
            compute_share_price(1000, 0)

    def test_zero_shares(self):
        with pytest.raises(InvalidAmount, match="shares count must be positive"):
            compute_share_price(0, 1000)

    def test_out_of_range(self):
        with pytest.raises(InvalidAmount):
            compute_share_price(1, 2 ** 128)


# =============================================================================
# WRAPPERS
# =============================================================================

class TestEnsureWrapper:
    """Tests for ensure_wrapper."""

    def test_first_call_spawns_and_initializes(self):
        store = RegistryStore()
        ctx = registry_context()
        wrapper_id = ensure_wrapper(store, ctx, NFT)

        assert wrapper_id == derive_identity("wrapper", NFT, REGISTRY)
        spawn, init = ctx.outbox
        assert spawn.kind == MessageKind.SPAWN
        assert spawn.receiver == wrapper_id
        assert spawn.code is Wrapper
        assert spawn.amount == DEFAULT_WRAPPER_FUNDING
        assert init.kind == MessageKind.CALL
        assert init.method == Wrapper.INIT_METHOD
        assert init.args_dict == {'asset_contract': NFT, 'registry_id': REGISTRY}
        assert store.wrappers == {wrapper_id}

    def test_idempotent(self):
        store = RegistryStore()
        first = ensure_wrapper(store, registry_context(), NFT)
        ctx = registry_context()
        second = ensure_wrapper(store, ctx, NFT)
        assert first == second
        assert ctx.outbox == []

    def test_cannot_wrap_wrapper(self):
        store = RegistryStore()
        wrapper_id = ensure_wrapper(store, registry_context(), NFT)
        with pytest.raises(CannotWrapWrapper, match="cannot wrap a wrapper"):
            ensure_wrapper(store, registry_context(), wrapper_id)

    def test_distinct_contracts_get_distinct_wrappers(self):
        store = RegistryStore()
        a = ensure_wrapper(store, registry_context(), "a.near")
        b = ensure_wrapper(store, registry_context(), "b.near")
        assert a != b
        assert len(store.wrappers) == 2


# =============================================================================
# SECURITIZE
# =============================================================================

class TestSecuritize:
    """Tests for securitize."""

    def test_message_order(self):
        store = RegistryStore()
        ctx = registry_context()
        ledger_id = securitize(store, ctx, NFT, "0", 1000, 8, 10 ** 30)

        kinds = [(m.kind, m.receiver, m.method) for m in ctx.outbox]
        wrapper_id = store.wrapper_by_contract[NFT]
        assert kinds == [
            (MessageKind.SPAWN, wrapper_id, None),
            (MessageKind.CALL, wrapper_id, "new"),
            (MessageKind.SPAWN, ledger_id, None),
            (MessageKind.CALL, ledger_id, "create"),
            (MessageKind.CALL, NFT, "nft_transfer"),
        ]

    def test_share_ledger_init_args(self):
        store = RegistryStore()
        ctx = registry_context(signer=ALICE)
        ledger_id = securitize(store, ctx, NFT, "0", 1000, 8, 10 ** 30)
        spawn = ctx.outbox[2]
        init = ctx.outbox[3]
        assert spawn.code is ShareLedger
        assert spawn.amount == DEFAULT_SHARE_LEDGER_FUNDING
        assert init.args_dict == {
            'nft_contract_address': NFT,
            'nft_token_id': "0",
            'owner_id': ALICE,
            'shares_count': 1000,
            'decimals': 8,
            'share_price': 10 ** 27,
        }
        transfer = ctx.outbox[4]
        assert transfer.args_dict == {'receiver_id': ledger_id, 'token_id': "0"}
        assert transfer.amount == ONE_YOCTO

    def test_records_mapping_both_ways(self):
        store = RegistryStore()
        ledger_id = securitize(store, registry_context(), NFT, "0", 10, 0, 100)
        assert store.ledger_by_asset[format_asset_key(NFT, "0")] == ledger_id
        assert store.asset_by_ledger[ledger_id] == (NFT, "0")

    def test_second_asset_reuses_wrapper(self):
        store = RegistryStore()
        securitize(store, registry_context(), NFT, "0", 10, 0, 100)
        ctx = registry_context()
        securitize(store, ctx, NFT, "1", 10, 0, 100)
        assert len(messages_of_kind(ctx, MessageKind.SPAWN)) == 1

    def test_fractional_price_emits_nothing(self):
        store = RegistryStore()
        ctx = registry_context()
        with pytest.raises(FractionalSharePrice):
            securitize(store, ctx, NFT, "0", 1000, 8, 10 ** 30 + 1)
        assert ctx.outbox == []
        assert store.ledger_by_asset == {}

    def test_securitize_wrapper_rejected(self):
        store = RegistryStore()
        wrapper_id = ensure_wrapper(store, registry_context(), NFT)
        with pytest.raises(CannotWrapWrapper):
            securitize(store, registry_context(), wrapper_id, "0", 10, 0, 100)

    def test_custom_funding(self):
        store = RegistryStore(funding=FundingConfig(wrapper_funding=5, share_ledger_funding=6))
        ctx = registry_context()
        securitize(store, ctx, NFT, "0", 10, 0, 100)
        assert [m.amount for m in messages_of_kind(ctx, MessageKind.SPAWN)] == [5, 6]


# =============================================================================
# ACTOR
# =============================================================================

class TestRegistryActor:
    """Tests for the Registry actor shell."""

    def test_new_defaults(self):
        registry = Registry.new(make_context(current=REGISTRY, state_exists=False))
        assert registry.funding() == FundingConfig()

    def test_new_with_funding(self):
        registry = Registry.new(make_context(current=REGISTRY, state_exists=False),
                                share_ledger_funding=42)
        assert registry.funding().share_ledger_funding == 42
        assert registry.funding().wrapper_funding == DEFAULT_WRAPPER_FUNDING

    def test_new_twice(self):
        with pytest.raises(AlreadyInitialized):
            Registry.new(make_context(current=REGISTRY, state_exists=True))

    def test_views(self):
        registry = Registry.new(make_context(current=REGISTRY, state_exists=False))
        ledger_id = registry.securitize(registry_context(), NFT, "0", 10, 0, 100)
        wrapper_id = registry.get_wrapper(NFT)
        assert registry.is_wrapper(wrapper_id)
        assert not registry.is_wrapper(NFT)
        assert registry.list_wrappers() == [wrapper_id]
        assert registry.get_share_ledger(NFT, "0") == ledger_id
        assert registry.get_share_ledger(NFT, "1") is None
        assert registry.get_securitized_asset(ledger_id) == (NFT, "0")
