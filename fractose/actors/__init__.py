"""
Actors module - The autonomous actors of the securitization system.

- Registry: entry point, wrapper bookkeeping, asset <-> share ledger mapping
- Wrapper: pass-through identity per source asset-contract
- ShareLedger: balance table and redemption state machine of one asset
- NonFungibleToken: minimal source asset-contract collaborator

All actors are re-exported here for convenience.
"""

from .share_ledger import ShareLedger
from .wrapper import Wrapper
from .registry import (
    Registry,
    RegistryStore,
    ensure_wrapper,
    securitize,
    compute_share_price,
    WRAPPER_ROLE,
    SHARES_ROLE,
)
from .nft import NonFungibleToken, TokenRecord

__all__ = [
    'ShareLedger',
    'Wrapper',
    'Registry', 'RegistryStore', 'ensure_wrapper', 'securitize', 'compute_share_price',
    'WRAPPER_ROLE', 'SHARES_ROLE',
    'NonFungibleToken', 'TokenRecord',
]
