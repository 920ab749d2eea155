"""
share_ledger.py - Share Ledger Actor

This module provides the actor that owns one securitized asset:
1. ShareLedger.create() - Mints the full share supply to the initial owner
2. exit_price() / redeem_amount_of() / vault_balance() / vault_balance_of() - Pure reads
3. ft_transfer() / storage_deposit() - Fungible share movement and registration
4. redeem() - Buy the asset out with shares plus settlement currency
5. claim() - Remaining holders collect their share of the vault after release
6. cleanup() - Self-delete once every share is gone

State machine:
    Active   (released = False)
        │  first successful redeem()
        ▼
    Released (released = True)
        │  total_supply reaches 0
        ▼
    Closed   (actor deleted, residual balance sent to the last burner)

Transitions are one-way.

Cross-actor effects are fire-and-forget. redeem() burns the redeemer's shares
and runs cleanup in the same call as the asset-transfer request, without
waiting to learn whether the transfer succeeds. claim() instead chains cleanup
as a continuation of the payout transfer, so it only runs once the payout has
been accepted. Both orderings are kept as they are.
"""

from __future__ import annotations
from typing import Dict, Optional

from ..accounting import FungibleToken
from ..core import (
    AccountId, TokenId, CallContext,
    ONE_YOCTO, STORAGE_BALANCE_MIN,
    AlreadyInitialized, AlreadyRedeemed, NotRedeemed, InsufficientPayment,
    NothingToClaim, AlreadyClaimed, DepositRequired, InvalidAmount,
    require_u128, require_u8,
)
from ..metadata import SharesMetadata, create_shares_metadata


class ShareLedger:
    """
    Balance table and redemption logic for one securitized asset.

    Invariants:
        sum(token.balances) == token.total_supply
        exit_price() == total_supply * share_price
    """

    INIT_METHOD = "create"
    CHANGE_METHODS = frozenset({"ft_transfer", "storage_deposit", "redeem", "claim"})
    VIEW_METHODS = frozenset({
        "ft_total_supply", "ft_balance_of", "ft_metadata",
        "storage_balance_bounds", "storage_balance_of",
        "exit_price", "redeem_amount_of", "vault_balance", "vault_balance_of",
    })
    PRIVATE_METHODS = frozenset({"cleanup"})

    def __init__(self, token: FungibleToken, metadata: SharesMetadata):
        self.token = token
        self.metadata = metadata

    @classmethod
    def create(
        cls,
        ctx: CallContext,
        nft_contract_address: AccountId,
        nft_token_id: TokenId,
        owner_id: AccountId,
        shares_count: int,
        decimals: int,
        share_price: int,
    ) -> ShareLedger:
        """
        Initialize a share ledger and mint every share to the owner.

        Args:
            ctx: Call context of the initialization message
            nft_contract_address: Source asset-contract identity
            nft_token_id: Asset identity inside the source contract
            owner_id: Account receiving the full supply
            shares_count: Number of shares to mint
            decimals: Display decimals of one share
            share_price: Settlement currency per share

        Raises:
            AlreadyInitialized: If the actor already has state
            InvalidMetadata: If the metadata fails validation
        """
        if ctx.state_exists:
            raise AlreadyInitialized("Already initialized")
        require_u128(shares_count, "shares_count")
        require_u8(decimals, "decimals")
        require_u128(share_price, "share_price")

        metadata = create_shares_metadata(
            nft_contract_address=nft_contract_address,
            nft_token_id=nft_token_id,
            decimals=decimals,
            share_price=share_price,
        )
        token = FungibleToken()
        token.register_account(owner_id)
        token.deposit(owner_id, shares_count)

        this = cls(token, metadata)
        this._on_securitize(ctx, owner_id)
        return this

    # ========================================================================
    # FUNGIBLE TOKEN VIEWS
    # ========================================================================

    def ft_total_supply(self) -> int:
        return self.token.total_supply

    def ft_balance_of(self, account_id: AccountId) -> int:
        return self.token.balance_of(account_id)

    def ft_metadata(self) -> SharesMetadata:
        return self.metadata

    def storage_balance_bounds(self) -> Dict[str, int]:
        return {'min': STORAGE_BALANCE_MIN, 'max': STORAGE_BALANCE_MIN}

    def storage_balance_of(self, account_id: AccountId) -> Optional[Dict[str, int]]:
        if not self.token.is_registered(account_id):
            return None
        return {'total': STORAGE_BALANCE_MIN, 'available': 0}

    # ========================================================================
    # REDEMPTION VIEWS
    # ========================================================================

    def exit_price(self) -> int:
        """Settlement currency needed to redeem the asset outright."""
        return self.token.total_supply * self.metadata.share_price

    def redeem_amount_of(self, account_id: AccountId) -> int:
        """
        Settlement currency a holder must add to their shares to redeem the asset.

        Raises:
            AlreadyRedeemed: Once the ledger has been released
        """
        if self.metadata.released:
            raise AlreadyRedeemed("token already redeemed")
        held = self.token.balance_of(account_id)
        return self.exit_price() - held * self.metadata.share_price

    def vault_balance(self) -> int:
        """
        Settlement currency owed to the remaining shareholders.

        Zero while active; after release it is backed by the redeemer's payment.
        """
        if not self.metadata.released:
            return 0
        return self.token.total_supply * self.metadata.share_price

    def vault_balance_of(self, account_id: AccountId) -> int:
        """A single holder's claim on the vault (zero while active)."""
        if not self.metadata.released:
            return 0
        return self.token.balance_of(account_id) * self.metadata.share_price

    # ========================================================================
    # STATE-CHANGING METHODS
    # ========================================================================

    def storage_deposit(self, ctx: CallContext, account_id: Optional[AccountId] = None) -> Dict[str, int]:
        """
        Register an account so it can receive shares.

        The attached deposit must cover storage_balance_bounds()['min'].
        Excess is refunded; a deposit for an already registered account is
        refunded in full.
        """
        account_id = account_id or ctx.predecessor_id
        amount = ctx.attached_deposit
        if self.token.is_registered(account_id):
            if amount > 0:
                ctx.transfer(ctx.predecessor_id, amount)
            return {'total': STORAGE_BALANCE_MIN, 'available': 0}
        if amount < STORAGE_BALANCE_MIN:
            raise InsufficientPayment(
                "The attached deposit is less than the minimum storage balance"
            )
        self.token.register_account(account_id)
        refund = amount - STORAGE_BALANCE_MIN
        if refund > 0:
            ctx.transfer(ctx.predecessor_id, refund)
        return {'total': STORAGE_BALANCE_MIN, 'available': 0}

    def ft_transfer(
        self,
        ctx: CallContext,
        receiver_id: AccountId,
        amount: int,
        memo: Optional[str] = None,
    ) -> None:
        """
        Transfer shares from the predecessor to a registered receiver.

        Requires exactly one yocto attached.
        """
        if ctx.attached_deposit != ONE_YOCTO:
            raise DepositRequired("Requires attached deposit of exactly 1 yoctoNEAR")
        require_u128(amount, "amount")
        if amount == 0:
            raise InvalidAmount("The amount should be a positive number")
        self.token.transfer(ctx.predecessor_id, receiver_id, amount)
        ctx.log(f"Transfer {amount} from {ctx.predecessor_id} to {receiver_id}")
        if memo:
            ctx.log(f"Memo: {memo}")

    def redeem(self, ctx: CallContext) -> None:
        """
        Redeem the underlying asset with held shares plus attached payment.

        The redeemer's shares are burned and their top-up becomes the vault
        the other holders claim against. The asset-transfer request is not
        awaited: if it later fails, the shares stay burned.

        Raises:
            AlreadyRedeemed: If the ledger has already been released
            InsufficientPayment: If the attached deposit is below the top-up
        """
        if self.metadata.released:
            raise AlreadyRedeemed("token already redeemed")

        redeemer = ctx.signer_id
        payment = ctx.attached_deposit
        required = self.redeem_amount_of(redeemer)
        if payment < required:
            raise InsufficientPayment("insufficient payment amount")

        change = payment - required
        if change > 0:
            ctx.transfer(redeemer, change)

        self.metadata = self.metadata.as_released()

        burned = self.token.burn_all(redeemer)
        self._on_tokens_burned(ctx, redeemer, burned)

        ctx.function_call(
            self.metadata.nft_contract_address,
            "nft_transfer",
            {'receiver_id': redeemer, 'token_id': self.metadata.nft_token_id},
            deposit=ONE_YOCTO,
        )
        self._on_redeem(ctx, redeemer)

        self._cleanup(ctx)

    def claim(self, ctx: CallContext) -> None:
        """
        Collect a holder's share of the vault after release.

        The holder's shares are burned and the payout is sent; cleanup is
        chained behind the payout so it only runs once the payout has been
        accepted.

        Raises:
            NotRedeemed: If the ledger has not been released
            NothingToClaim: If the caller holds no shares
            AlreadyClaimed: If the caller's vault share resolves to zero
        """
        if not self.metadata.released:
            raise NotRedeemed("token not redeemed")

        claimant = ctx.signer_id
        shares = self.token.balance_of(claimant)
        if shares == 0:
            raise NothingToClaim("nothing to claim")

        claim_amount = self.vault_balance_of(claimant)
        if claim_amount == 0:
            raise AlreadyClaimed("balance has already been claimed")

        burned = self.token.burn_all(claimant)
        self._on_tokens_burned(ctx, claimant, burned)
        self._on_claim(ctx, claimant, burned)

        ctx.transfer(
            claimant,
            claim_amount,
            then=ctx.call_message(ctx.current_account_id, "cleanup"),
        )

    def cleanup(self, ctx: CallContext) -> None:
        """Continuation entry point for cleanup (private to this actor)."""
        self._cleanup(ctx)

    def _cleanup(self, ctx: CallContext) -> None:
        # Residual balance goes to whoever signed the call that burned the last share
        if self.token.total_supply == 0:
            ctx.delete_account(ctx.signer_id)

    # ========================================================================
    # EVENTS
    # ========================================================================

    def _on_securitize(self, ctx: CallContext, owner_id: AccountId) -> None:
        ctx.log(
            f"Securitize({owner_id}, {self.metadata.nft_contract_address}, "
            f"{self.metadata.nft_token_id}, {ctx.current_account_id})"
        )

    def _on_tokens_burned(self, ctx: CallContext, account_id: AccountId, amount: int) -> None:
        ctx.log(f"Account @{account_id} burned {amount}")

    def _on_redeem(self, ctx: CallContext, redeemer_id: AccountId) -> None:
        ctx.log(
            f"Redeem({redeemer_id}, {self.metadata.nft_contract_address}, "
            f"{self.metadata.nft_token_id}, {ctx.current_account_id})"
        )

    def _on_claim(self, ctx: CallContext, claimant_id: AccountId, shares: int) -> None:
        ctx.log(
            f"Claim({claimant_id}, {self.metadata.nft_contract_address}, "
            f"{self.metadata.nft_token_id}, {ctx.current_account_id}, {shares})"
        )
