"""
Wrapping Conformance Tests

INVARIANT: Wrappers are unique per contract and never wrapped.

    ∀ contract C:
        ensure_wrapper(C) returns the same identity every time
        ensure_wrapper(C) spawns an actor at most once

    ∀ wrapper W:
        ensure_wrapper(W) fails with CannotWrapWrapper
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fractose import RegistryStore, MessageKind, ensure_wrapper, CannotWrapWrapper
from tests.fake_context import make_context, securitize_token, REGISTRY, NFT, ALICE

CONTRACTS = ["nft.near", "art.near", "game.items.near", "nft-near", "NFT.near"]


class TestWrappingProperties:
    """Property-based wrapper uniqueness tests."""

    @given(st.lists(st.sampled_from(CONTRACTS), min_size=1, max_size=30))
    @settings(max_examples=100)
    def test_one_wrapper_per_contract(self, requests):
        """
        PROPERTY: |wrappers| == |distinct contracts|, one spawn each.
        """
        store = RegistryStore()
        spawns = []
        for contract in requests:
            ctx = make_context(signer=ALICE, current=REGISTRY)
            wrapper_id = ensure_wrapper(store, ctx, contract)
            assert store.wrapper_by_contract[contract] == wrapper_id
            spawns.extend(m.receiver for m in ctx.outbox if m.kind == MessageKind.SPAWN)

        assert len(store.wrappers) == len(set(requests))
        assert sorted(spawns) == sorted(store.wrappers)

    @given(st.lists(st.sampled_from(CONTRACTS), min_size=1, max_size=10))
    @settings(max_examples=50)
    def test_wrappers_never_wrapped(self, requests):
        """
        PROPERTY: Every wrapper identity is rejected as a source contract.
        """
        store = RegistryStore()
        for contract in requests:
            ensure_wrapper(store, make_context(signer=ALICE, current=REGISTRY), contract)
        for wrapper_id in list(store.wrappers):
            ctx = make_context(signer=ALICE, current=REGISTRY)
            with pytest.raises(CannotWrapWrapper):
                ensure_wrapper(store, ctx, wrapper_id)
            assert ctx.outbox == []


class TestWrappingOnPlatform:

    def test_wrapper_spawned_once(self, platform):
        for token_id in ("0", "1", "2"):
            securitize_token(platform, token_id=token_id)
        wrapper_spawns = [
            r for r in platform.receipts
            if r.kind == MessageKind.SPAWN and platform.view(REGISTRY, "is_wrapper", account_id=r.receiver)
        ]
        assert len(wrapper_spawns) == 1
        assert wrapper_spawns[0].succeeded
        assert platform.view(wrapper_spawns[0].receiver, "asset_contract") == NFT
