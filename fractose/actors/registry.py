"""
registry.py - Registry Actor

The registry is the entry point for securitization. It keeps two append-only
stores and orchestrates the actors that back each securitized asset.

1. RegistryStore - explicit state: wrapper set + wrapper map, and the
   bidirectional asset <-> share ledger mapping
2. ensure_wrapper() - Return the wrapper of a source contract, spawning it once
3. securitize() - Spawn and initialize a share ledger, record it, move the asset
4. Registry - the actor shell that owns a RegistryStore and exposes the above

Every cross-actor effect is a one-way message. The registry writes its local
records in the same call that emits the messages, before it can know whether
any of them will succeed; a failed spawn leaves a record pointing at an actor
that never came to exist. Records are never pruned, including after a share
ledger deletes itself.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..core import (
    AccountId, TokenId, CallContext, FundingConfig,
    AlreadyInitialized, CannotWrapWrapper, FractionalSharePrice, InvalidAmount,
    ONE_YOCTO,
    derive_identity, format_asset_key, require_u128, require_u8,
)
from .share_ledger import ShareLedger
from .wrapper import Wrapper


WRAPPER_ROLE = "wrapper"
SHARES_ROLE = "shares"


# ============================================================================
# STATE
# ============================================================================

@dataclass
class RegistryStore:
    """
    Registry state, passed by reference into every handler.

    Attributes:
        funding: Funding attached to spawned actors
        wrappers: Every wrapper identity ever spawned
        wrapper_by_contract: Source contract -> wrapper identity (1:1)
        ledger_by_asset: "{contract}:{asset_id}" -> share ledger identity
        asset_by_ledger: Share ledger identity -> (contract, asset_id)
    """
    funding: FundingConfig = field(default_factory=FundingConfig)
    wrappers: Set[AccountId] = field(default_factory=set)
    wrapper_by_contract: Dict[AccountId, AccountId] = field(default_factory=dict)
    ledger_by_asset: Dict[str, AccountId] = field(default_factory=dict)
    asset_by_ledger: Dict[AccountId, Tuple[AccountId, TokenId]] = field(default_factory=dict)

    def record_securitization(
        self,
        asset_contract: AccountId,
        asset_id: TokenId,
        ledger_id: AccountId,
    ) -> None:
        """Write both directions of the asset <-> share ledger mapping."""
        self.ledger_by_asset[format_asset_key(asset_contract, asset_id)] = ledger_id
        self.asset_by_ledger[ledger_id] = (asset_contract, asset_id)


# ============================================================================
# HANDLERS
# ============================================================================

def ensure_wrapper(store: RegistryStore, ctx: CallContext, asset_contract: AccountId) -> AccountId:
    """
    Return the wrapper bound to a source contract, spawning it if needed.

    The wrapper identity is derived deterministically from the contract
    identity, so repeated calls return the same wrapper and spawn it once.

    Args:
        store: Registry state
        ctx: Call context (spawn and init messages are emitted through it)
        asset_contract: Source asset-contract identity

    Returns:
        The wrapper identity

    Raises:
        CannotWrapWrapper: If asset_contract is itself a wrapper
    """
    if asset_contract in store.wrappers:
        raise CannotWrapWrapper("cannot wrap a wrapper")

    existing = store.wrapper_by_contract.get(asset_contract)
    if existing is not None:
        return existing

    wrapper_id = derive_identity(WRAPPER_ROLE, asset_contract, ctx.current_account_id)
    ctx.log(f"Deploying wrapper contract {wrapper_id}")
    ctx.spawn(wrapper_id, Wrapper, store.funding.wrapper_funding)
    ctx.function_call(wrapper_id, Wrapper.INIT_METHOD, {
        'asset_contract': asset_contract,
        'registry_id': ctx.current_account_id,
    })

    store.wrappers.add(wrapper_id)
    store.wrapper_by_contract[asset_contract] = wrapper_id
    return wrapper_id


def compute_share_price(shares_count: int, exit_price: int) -> int:
    """
    Price of one share in settlement currency.

    Raises:
        InvalidAmount: If either amount is zero
        FractionalSharePrice: If exit_price is not a multiple of shares_count
    """
    require_u128(shares_count, "shares_count")
    require_u128(exit_price, "exit_price")
    if exit_price == 0:
        raise InvalidAmount("exit price must be positive")
    if shares_count == 0:
        raise InvalidAmount("shares count must be positive")
    if exit_price % shares_count != 0:
        raise FractionalSharePrice("share price cannot be fractional")
    return exit_price // shares_count


def securitize(
    store: RegistryStore,
    ctx: CallContext,
    asset_contract: AccountId,
    asset_id: TokenId,
    shares_count: int,
    decimals: int,
    exit_price: int,
) -> AccountId:
    """
    Turn one asset into ``shares_count`` shares owned by the caller.

    Messages are emitted in this order and none is awaited:
        1. spawn the share ledger at its derived identity
        2. initialize it with the caller as owner of every share
        3. (local) record the asset <-> ledger mapping
        4. ask the source contract to transfer the asset to the ledger

    Returns:
        The share ledger identity

    Raises:
        InvalidAmount: If shares_count or exit_price is zero
        FractionalSharePrice: If exit_price % shares_count != 0
        CannotWrapWrapper: If asset_contract is a wrapper
    """
    share_price = compute_share_price(shares_count, exit_price)
    require_u8(decimals, "decimals")

    ensure_wrapper(store, ctx, asset_contract)

    ledger_id = derive_identity(
        SHARES_ROLE, format_asset_key(asset_contract, asset_id), ctx.current_account_id
    )
    ctx.log(f"Securitizing token {asset_id} from contract {asset_contract} into {ledger_id}")

    ctx.spawn(ledger_id, ShareLedger, store.funding.share_ledger_funding)
    ctx.function_call(ledger_id, ShareLedger.INIT_METHOD, {
        'nft_contract_address': asset_contract,
        'nft_token_id': asset_id,
        'owner_id': ctx.predecessor_id,
        'shares_count': shares_count,
        'decimals': decimals,
        'share_price': share_price,
    })

    store.record_securitization(asset_contract, asset_id, ledger_id)

    ctx.function_call(
        asset_contract,
        "nft_transfer",
        {'receiver_id': ledger_id, 'token_id': asset_id},
        deposit=ONE_YOCTO,
    )
    return ledger_id


# ============================================================================
# ACTOR
# ============================================================================

class Registry:
    """Actor shell around a RegistryStore."""

    INIT_METHOD = "new"
    CHANGE_METHODS = frozenset({"ensure_wrapper", "securitize"})
    VIEW_METHODS = frozenset({
        "get_wrapper", "is_wrapper", "list_wrappers",
        "get_share_ledger", "get_securitized_asset", "funding",
    })
    PRIVATE_METHODS = frozenset()

    def __init__(self, store: RegistryStore):
        self.store = store

    @classmethod
    def new(
        cls,
        ctx: CallContext,
        wrapper_funding: Optional[int] = None,
        share_ledger_funding: Optional[int] = None,
    ) -> Registry:
        if ctx.state_exists:
            raise AlreadyInitialized("Already initialized")
        defaults = FundingConfig()
        funding = FundingConfig(
            wrapper_funding=defaults.wrapper_funding if wrapper_funding is None else wrapper_funding,
            share_ledger_funding=(
                defaults.share_ledger_funding if share_ledger_funding is None else share_ledger_funding
            ),
        )
        return cls(RegistryStore(funding=funding))

    def ensure_wrapper(self, ctx: CallContext, asset_contract: AccountId) -> AccountId:
        return ensure_wrapper(self.store, ctx, asset_contract)

    def securitize(
        self,
        ctx: CallContext,
        asset_contract: AccountId,
        asset_id: TokenId,
        shares_count: int,
        decimals: int,
        exit_price: int,
    ) -> AccountId:
        return securitize(self.store, ctx, asset_contract, asset_id,
                          shares_count, decimals, exit_price)

    # Views

    def funding(self) -> FundingConfig:
        return self.store.funding

    def get_wrapper(self, asset_contract: AccountId) -> Optional[AccountId]:
        return self.store.wrapper_by_contract.get(asset_contract)

    def is_wrapper(self, account_id: AccountId) -> bool:
        return account_id in self.store.wrappers

    def list_wrappers(self) -> List[AccountId]:
        return sorted(self.store.wrappers)

    def get_share_ledger(self, asset_contract: AccountId, asset_id: TokenId) -> Optional[AccountId]:
        return self.store.ledger_by_asset.get(format_asset_key(asset_contract, asset_id))

    def get_securitized_asset(self, share_ledger_id: AccountId) -> Optional[Tuple[AccountId, TokenId]]:
        return self.store.asset_by_ledger.get(share_ledger_id)
