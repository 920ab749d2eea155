"""
wrapper.py - Wrapper Actor

A wrapper is a pass-through identity bound to one source asset-contract. The
registry spawns one per distinct contract and refuses to wrap a wrapper,
which rules out recursive securitization chains.
"""

from __future__ import annotations

from ..core import AccountId, TokenId, CallContext, ONE_YOCTO, AlreadyInitialized, DepositRequired


class Wrapper:
    """
    Pass-through identity bound to one source asset-contract.

    Example:
        platform.call("alice.near", wrapper_id, "nft_transfer", deposit=ONE_YOCTO,
                      receiver_id="bob.near", token_id="0")
        # forwards nft_transfer to the bound contract with one yocto attached
    """

    INIT_METHOD = "new"
    CHANGE_METHODS = frozenset({"nft_transfer"})
    VIEW_METHODS = frozenset({"asset_contract", "registry_id"})
    PRIVATE_METHODS = frozenset()

    def __init__(self, asset_contract: AccountId, registry_id: AccountId):
        self._asset_contract = asset_contract
        self._registry_id = registry_id

    @classmethod
    def new(cls, ctx: CallContext, asset_contract: AccountId, registry_id: AccountId) -> Wrapper:
        if ctx.state_exists:
            raise AlreadyInitialized("Already initialized")
        if not asset_contract or not asset_contract.strip():
            raise ValueError("asset_contract cannot be empty")
        return cls(asset_contract, registry_id)

    def asset_contract(self) -> AccountId:
        return self._asset_contract

    def registry_id(self) -> AccountId:
        return self._registry_id

    def nft_transfer(self, ctx: CallContext, receiver_id: AccountId, token_id: TokenId) -> None:
        """Forward a transfer request to the bound source contract."""
        if ctx.attached_deposit != ONE_YOCTO:
            raise DepositRequired("Requires attached deposit of exactly 1 yoctoNEAR")
        ctx.function_call(
            self._asset_contract,
            "nft_transfer",
            {'receiver_id': receiver_id, 'token_id': token_id},
            deposit=ONE_YOCTO,
        )
