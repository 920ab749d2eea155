"""
fractose - NFT Securitization into Redeemable Shares

Turns sole ownership of one unique asset into a fixed supply of fungible
shares. The asset can later be reclaimed by whoever collects enough shares,
or bought out at the exit price, after which remaining holders claim their
payout.

Usage:
    from fractose import Platform, Registry, NonFungibleToken, ONE_UNIT

    platform = Platform(verbose=False)
    platform.create_account("alice.near", 100 * ONE_UNIT)
    platform.deploy("registry.near", Registry, 50 * ONE_UNIT)
    platform.call("registry.near", "registry.near", "new")

    platform.deploy("nft.near", NonFungibleToken)
    platform.call("nft.near", "nft.near", "new", owner_id="nft.near")
    platform.call("nft.near", "nft.near", "nft_mint", token_id="0", receiver_id="alice.near")
    platform.call("alice.near", "nft.near", "nft_approve", token_id="0", account_id="registry.near")

    ledger_id = platform.call(
        "alice.near", "registry.near", "securitize",
        asset_contract="nft.near", asset_id="0",
        shares_count=1000, decimals=8, exit_price=10 * ONE_UNIT,
    )
    platform.run()
"""

# Core types
from .core import (
    AccountId,
    TokenId,
    CallContext,
    FundingConfig,
    Message,
    MessageKind,
    Receipt,
    ReceiptStatus,
    derive_identity,
    format_asset_key,
    require_u128,
    require_u8,
    FractoseError,
    InvalidAmount,
    FractionalSharePrice,
    CannotWrapWrapper,
    AlreadyInitialized,
    NotInitialized,
    InvalidMetadata,
    AlreadyRedeemed,
    NotRedeemed,
    InsufficientPayment,
    NothingToClaim,
    AlreadyClaimed,
    DepositRequired,
    Unauthorized,
    AccountNotRegistered,
    InsufficientBalance,
    PlatformError,
    ActorNotFound,
    MethodNotFound,
    PrivateMethod,
    InvalidArguments,
    SHARES_FT_METADATA_SPEC,
    ONE_YOCTO,
    ONE_UNIT,
    DEFAULT_WRAPPER_FUNDING,
    DEFAULT_SHARE_LEDGER_FUNDING,
    STORAGE_BALANCE_MIN,
    MAX_U128,
)

# Accounting and metadata
from .accounting import FungibleToken
from .metadata import SharesMetadata, create_shares_metadata

# Runtime
from .platform import Platform, Account

# Actors
from .actors import (
    ShareLedger,
    Wrapper,
    Registry,
    RegistryStore,
    ensure_wrapper,
    securitize,
    compute_share_price,
    NonFungibleToken,
)

__all__ = [
    # Core
    'AccountId', 'TokenId', 'CallContext', 'FundingConfig',
    'Message', 'MessageKind', 'Receipt', 'ReceiptStatus',
    'derive_identity', 'format_asset_key', 'require_u128', 'require_u8',
    'FractoseError', 'InvalidAmount', 'FractionalSharePrice', 'CannotWrapWrapper',
    'AlreadyInitialized', 'NotInitialized', 'InvalidMetadata',
    'AlreadyRedeemed', 'NotRedeemed', 'InsufficientPayment',
    'NothingToClaim', 'AlreadyClaimed', 'DepositRequired', 'Unauthorized',
    'AccountNotRegistered', 'InsufficientBalance',
    'PlatformError', 'ActorNotFound', 'MethodNotFound', 'PrivateMethod', 'InvalidArguments',
    'SHARES_FT_METADATA_SPEC', 'ONE_YOCTO', 'ONE_UNIT',
    'DEFAULT_WRAPPER_FUNDING', 'DEFAULT_SHARE_LEDGER_FUNDING',
    'STORAGE_BALANCE_MIN', 'MAX_U128',
    # Accounting / metadata
    'FungibleToken', 'SharesMetadata', 'create_shares_metadata',
    # Runtime
    'Platform', 'Account',
    # Actors
    'ShareLedger', 'Wrapper', 'Registry', 'RegistryStore',
    'ensure_wrapper', 'securitize', 'compute_share_price',
    'NonFungibleToken',
]

__version__ = '0.1.0'
