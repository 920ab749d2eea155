"""
nft.py - Minimal Source Asset-Contract

NonFungibleToken is the collaborator whose assets get securitized: each token
id has one owner, owners may approve another account to move the token, and
a transfer clears all approvals.

Only what the securitization flow needs is implemented: mint, approve,
transfer and lookup.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Any, Set

from ..core import (
    AccountId, TokenId, CallContext, ONE_YOCTO,
    AlreadyInitialized, DepositRequired, Unauthorized,
)


@dataclass
class TokenRecord:
    owner_id: AccountId
    approved_account_ids: Set[AccountId] = field(default_factory=set)


class NonFungibleToken:
    """
    Token registry of one asset-contract.

    Example:
        platform.deploy("nft.near", NonFungibleToken)
        platform.call("nft.near", "nft.near", "new", owner_id="nft.near")
        platform.call("nft.near", "nft.near", "nft_mint", token_id="0", receiver_id="alice.near")
        platform.call("alice.near", "nft.near", "nft_approve", token_id="0", account_id="registry.near")
    """

    INIT_METHOD = "new"
    CHANGE_METHODS = frozenset({"nft_mint", "nft_approve", "nft_transfer"})
    VIEW_METHODS = frozenset({"nft_token", "owner_id"})
    PRIVATE_METHODS = frozenset()

    def __init__(self, owner_id: AccountId):
        self._owner_id = owner_id
        self.tokens: Dict[TokenId, TokenRecord] = {}

    @classmethod
    def new(cls, ctx: CallContext, owner_id: AccountId) -> NonFungibleToken:
        if ctx.state_exists:
            raise AlreadyInitialized("Already initialized")
        return cls(owner_id)

    def owner_id(self) -> AccountId:
        return self._owner_id

    def nft_token(self, token_id: TokenId) -> Optional[Dict[str, Any]]:
        record = self.tokens.get(token_id)
        if record is None:
            return None
        return {
            'token_id': token_id,
            'owner_id': record.owner_id,
            'approved_account_ids': sorted(record.approved_account_ids),
        }

    def nft_mint(self, ctx: CallContext, token_id: TokenId, receiver_id: AccountId) -> None:
        if ctx.predecessor_id != self._owner_id:
            raise Unauthorized("Unauthorized")
        if token_id in self.tokens:
            raise ValueError(f"token_id {token_id} must be unique")
        self.tokens[token_id] = TokenRecord(owner_id=receiver_id)
        ctx.log(f"Mint {token_id} to {receiver_id}")

    def nft_approve(self, ctx: CallContext, token_id: TokenId, account_id: AccountId) -> None:
        record = self._token(token_id)
        if ctx.predecessor_id != record.owner_id:
            raise Unauthorized("Predecessor must be the token owner")
        record.approved_account_ids.add(account_id)

    def nft_transfer(
        self,
        ctx: CallContext,
        receiver_id: AccountId,
        token_id: TokenId,
        approval_id: Optional[int] = None,
        memo: Optional[str] = None,
    ) -> None:
        """
        Move a token to a new owner.

        The predecessor must own the token or be approved for it. Requires
        exactly one yocto attached.
        """
        if ctx.attached_deposit != ONE_YOCTO:
            raise DepositRequired("Requires attached deposit of exactly 1 yoctoNEAR")
        record = self._token(token_id)
        sender = ctx.predecessor_id
        if sender != record.owner_id and sender not in record.approved_account_ids:
            raise Unauthorized(f"{sender} may not transfer token {token_id}")
        if receiver_id == record.owner_id:
            raise ValueError("The token owner and the receiver should be different")
        previous = record.owner_id
        self.tokens[token_id] = TokenRecord(owner_id=receiver_id)
        ctx.log(f"Transfer {token_id} from {previous} to {receiver_id}")

    def _token(self, token_id: TokenId) -> TokenRecord:
        record = self.tokens.get(token_id)
        if record is None:
            raise ValueError(f"Token {token_id} not found")
        return record
