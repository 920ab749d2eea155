"""
accounting.py - Fungible Share Accounting

FungibleToken is the balance table a share ledger owns: a mapping from holder
to integer balance plus a total-supply counter.

Key responsibilities:
    - Account registration (a holder must be registered to receive transfers)
    - Mint (deposit), burn (withdraw, burn_all) and transfer
    - Conservation check: sum of balances always equals total supply

All amounts are unsigned 128-bit integers. Every mutation validates before it
writes, so a failed call leaves the table untouched.
"""

from __future__ import annotations
from typing import Dict, Any

from .core import (
    AccountId,
    InvalidAmount, InsufficientBalance, AccountNotRegistered,
    require_u128,
)


class FungibleToken:
    """
    Integer balance table with a total-supply counter.

    Invariant:
        sum(balances.values()) == total_supply

    Example:
        token = FungibleToken()
        token.register_account("alice")
        token.deposit("alice", 1000)
        token.register_account("bob")
        token.transfer("alice", "bob", 400)
        assert token.verify_supply()['valid']
    """

    def __init__(self):
        self.balances: Dict[AccountId, int] = {}
        self.total_supply: int = 0

    # ========================================================================
    # QUERIES
    # ========================================================================

    def is_registered(self, account_id: AccountId) -> bool:
        return account_id in self.balances

    def balance_of(self, account_id: AccountId) -> int:
        """Balance of an account (0 if the account is not registered)."""
        return self.balances.get(account_id, 0)

    def verify_supply(self) -> Dict[str, Any]:
        """
        Verify that the balance table conserves supply.

        Returns:
            Dict with keys:
            - 'valid': bool - True if sum of balances equals total supply
            - 'total_supply': int - the counter
            - 'sum_of_balances': int - sum over every registered account
            - 'discrepancy': int - sum_of_balances - total_supply
        """
        balance_sum = sum(self.balances[a] for a in sorted(self.balances))
        return {
            'valid': balance_sum == self.total_supply,
            'total_supply': self.total_supply,
            'sum_of_balances': balance_sum,
            'discrepancy': balance_sum - self.total_supply,
        }

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def register_account(self, account_id: AccountId) -> None:
        """
        Register an account with a zero balance.

        Raises:
            ValueError: If the account id is empty or already registered
        """
        if not account_id or not account_id.strip():
            raise ValueError("account_id cannot be empty")
        if account_id in self.balances:
            raise ValueError(f"The account {account_id} is already registered")
        self.balances[account_id] = 0

    def _require_registered(self, account_id: AccountId) -> None:
        if account_id not in self.balances:
            raise AccountNotRegistered(f"The account {account_id} is not registered")

    def deposit(self, account_id: AccountId, amount: int) -> None:
        """Mint ``amount`` to a registered account."""
        require_u128(amount, "amount")
        self._require_registered(account_id)
        new_balance = self.balances[account_id] + amount
        new_supply = self.total_supply + amount
        require_u128(new_balance, "balance")
        require_u128(new_supply, "total_supply")
        self.balances[account_id] = new_balance
        self.total_supply = new_supply

    def withdraw(self, account_id: AccountId, amount: int) -> None:
        """Burn ``amount`` from a registered account."""
        require_u128(amount, "amount")
        self._require_registered(account_id)
        balance = self.balances[account_id]
        if balance < amount:
            raise InsufficientBalance(
                f"The account {account_id} doesn't have enough balance: {balance} < {amount}"
            )
        self.balances[account_id] = balance - amount
        self.total_supply -= amount

    def burn_all(self, account_id: AccountId) -> int:
        """
        Burn an account's entire balance.

        The account is registered with a zero balance if it was unknown, so
        the holder keeps an entry in the table after the burn.

        Returns:
            The amount burned
        """
        if account_id not in self.balances:
            self.register_account(account_id)
        burned = self.balances[account_id]
        self.withdraw(account_id, burned)
        return burned

    def transfer(self, sender_id: AccountId, receiver_id: AccountId, amount: int) -> None:
        """
        Move ``amount`` between two registered accounts.

        Raises:
            ValueError: If sender and receiver are the same account
            InvalidAmount: If amount is not positive
            AccountNotRegistered: If either side is not registered
            InsufficientBalance: If the sender cannot cover the amount
        """
        if sender_id == receiver_id:
            raise ValueError("Sender and receiver should be different")
        require_u128(amount, "amount")
        if amount == 0:
            raise InvalidAmount("The amount should be a positive number")
        self._require_registered(sender_id)
        self._require_registered(receiver_id)
        balance = self.balances[sender_id]
        if balance < amount:
            raise InsufficientBalance(
                f"The account {sender_id} doesn't have enough balance: {balance} < {amount}"
            )
        self.balances[sender_id] = balance - amount
        self.balances[receiver_id] += amount
