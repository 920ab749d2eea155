"""
metadata.py - Share Ledger Metadata

SharesMetadata is the metadata singleton of one share ledger. Every field is
fixed at creation except ``released``, which flips once when the underlying
asset is redeemed by payment.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional

from .core import (
    AccountId, TokenId,
    SHARES_FT_METADATA_SPEC, REFERENCE_HASH_LENGTH,
    InvalidMetadata,
    require_u128, require_u8,
)


DEFAULT_SHARES_SYMBOL = "SHARES"


@dataclass(frozen=True, slots=True)
class SharesMetadata:
    """
    Metadata of one securitized asset.

    Attributes:
        spec: Format tag, must equal SHARES_FT_METADATA_SPEC
        name: Human-readable share name
        symbol: Ticker-style share symbol
        icon: Optional data URL for wallets
        reference: Optional link to off-ledger metadata
        reference_hash: 32-byte hash of the referenced content
        decimals: Display decimals of one share
        nft_contract_address: Source asset-contract identity
        nft_token_id: Asset identity inside the source contract
        share_price: Settlement currency paid out per share on release
        released: True once the asset has been redeemed
    """
    spec: str
    name: str
    symbol: str
    decimals: int
    nft_contract_address: AccountId
    nft_token_id: TokenId
    share_price: int
    icon: Optional[str] = None
    reference: Optional[str] = None
    reference_hash: Optional[bytes] = None
    released: bool = False

    def assert_valid(self) -> None:
        """
        Check the creation-time invariants.

        Raises:
            InvalidMetadata: On a wrong spec tag, a reference without a hash
                             (or the reverse), or a hash that is not 32 bytes
            InvalidAmount: If decimals or share_price are out of range
        """
        if self.spec != SHARES_FT_METADATA_SPEC:
            raise InvalidMetadata(
                f"metadata spec must be {SHARES_FT_METADATA_SPEC!r}, got {self.spec!r}"
            )
        if (self.reference is None) != (self.reference_hash is None):
            raise InvalidMetadata("reference and reference_hash must be set together")
        if self.reference_hash is not None and len(self.reference_hash) != REFERENCE_HASH_LENGTH:
            raise InvalidMetadata("Hash has to be 32 bytes")
        require_u8(self.decimals, "decimals")
        require_u128(self.share_price, "share_price")

    def as_released(self) -> SharesMetadata:
        """Return a copy with ``released`` set. The transition is one-way."""
        return replace(self, released=True)


def create_shares_metadata(
    nft_contract_address: AccountId,
    nft_token_id: TokenId,
    decimals: int,
    share_price: int,
    symbol: str = DEFAULT_SHARES_SYMBOL,
    icon: Optional[str] = None,
    reference: Optional[str] = None,
    reference_hash: Optional[bytes] = None,
) -> SharesMetadata:
    """
    Build and validate the metadata of a new share ledger.

    Example:
        meta = create_shares_metadata("nft.near", "0", decimals=8, share_price=100000)
        assert meta.released is False
    """
    metadata = SharesMetadata(
        spec=SHARES_FT_METADATA_SPEC,
        name=f"Shares of {nft_contract_address} #{nft_token_id}",
        symbol=symbol,
        icon=icon,
        reference=reference,
        reference_hash=reference_hash,
        decimals=decimals,
        nft_contract_address=nft_contract_address,
        nft_token_id=nft_token_id,
        share_price=share_price,
        released=False,
    )
    metadata.assert_valid()
    return metadata
