"""
platform.py - Actor Runtime

The Platform hosts accounts and actors and delivers the one-way messages they
exchange. It is the only module that moves settlement currency or installs
and deletes actors.

Key responsibilities:
    - Accounts with native (settlement-currency) balances
    - Actor code installation, initialization and deletion
    - Executes each call atomically: on error the actor's state, balance and
      outbound messages are rolled back and the attached deposit is refunded
    - Delivers queued messages FIFO, one at a time, recording a Receipt for
      every processed call (the receipts list is the audit trail)
    - Never compensates a sender for a downstream failure beyond returning
      the value attached to the failed message

Actor classes plug in through four class attributes:
    INIT_METHOD     - name of the classmethod that builds initial state
    CHANGE_METHODS  - public state-changing methods, called as method(ctx, **args)
    VIEW_METHODS    - read-only methods, called as method(**args)
    PRIVATE_METHODS - callbacks only the actor itself may invoke
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Deque, Dict, List, Optional, Type
import copy
import inspect

from .core import (
    AccountId, CallArgs,
    Message, MessageKind, Receipt, ReceiptStatus, CallContext,
    FractoseError, PlatformError, ActorNotFound, MethodNotFound, PrivateMethod,
    NotInitialized, InsufficientBalance, InvalidArguments,
    require_u128,
)


def _check_arguments(handler: Any, method: str, leading: tuple, args: CallArgs) -> None:
    # Only the binding is checked; a TypeError raised inside the method propagates
    try:
        inspect.signature(handler).bind(*leading, **args)
    except TypeError as e:
        raise InvalidArguments(f"Invalid arguments for {method}: {e}") from None


@dataclass
class Account:
    """
    One platform account.

    Attributes:
        account_id: Identity of the account
        balance: Native settlement-currency balance
        code: Installed actor class (None for plain client accounts)
        state: Actor instance once initialized
    """
    account_id: AccountId
    balance: int = 0
    code: Optional[Type[Any]] = None
    state: Optional[Any] = None


class Platform:
    """
    Single-threaded actor runtime with an explicit outbound message queue.

    Each call runs to completion before the next one starts, so an actor never
    observes a concurrent mutation of its own state. Messages emitted during a
    call are only enqueued once that call has succeeded.

    Thread Safety:
        Not thread-safe. Each thread should drive its own Platform instance.

    Example:
        platform = Platform(verbose=False)
        platform.create_account("alice.near", 100 * ONE_UNIT)
        platform.deploy("registry.near", Registry, 50 * ONE_UNIT)
        platform.call("registry.near", "registry.near", "new")
        platform.call("alice.near", "registry.near", "securitize",
                      asset_contract="nft.near", asset_id="0",
                      shares_count=1000, decimals=8, exit_price=10 ** 27)
        platform.run()
    """

    def __init__(self, verbose: bool = True, max_steps: int = 10_000):
        """
        Create a platform.

        Args:
            verbose: Print one line per processed call (default: True)
            max_steps: Safety limit for run() (default: 10,000 messages)
        """
        self.accounts: Dict[AccountId, Account] = {}
        self.queue: Deque[Message] = deque()
        self.receipts: List[Receipt] = []
        self.verbose = verbose
        self.max_steps = max_steps
        self._next_sequence: int = 0
        # Settlement currency created at account creation / lost to deleted accounts
        self.minted: int = 0
        self.burned: int = 0

    # ========================================================================
    # ACCOUNTS
    # ========================================================================

    def create_account(self, account_id: AccountId, balance: int = 0) -> AccountId:
        """
        Create a plain (client) account with an initial balance.

        Raises:
            ValueError: If the account already exists
        """
        return self._open(account_id, balance, code=None)

    def deploy(self, account_id: AccountId, code: Type[Any], balance: int = 0) -> AccountId:
        """
        Create an account with actor code installed but no state.

        The actor must be initialized with a call to its INIT_METHOD.
        """
        return self._open(account_id, balance, code=code)

    def _open(self, account_id: AccountId, balance: int, code: Optional[Type[Any]]) -> AccountId:
        if not account_id or not account_id.strip():
            raise ValueError("account_id cannot be empty")
        if account_id in self.accounts:
            raise ValueError(f"Account {account_id} already exists")
        require_u128(balance, "balance")
        self.accounts[account_id] = Account(account_id, balance, code)
        self.minted += balance
        return account_id

    def exists(self, account_id: AccountId) -> bool:
        return account_id in self.accounts

    def balance_of(self, account_id: AccountId) -> int:
        """Native balance of an account."""
        return self._account(account_id).balance

    def get_actor(self, account_id: AccountId) -> Any:
        """
        Return the live state object of an initialized actor.

        Intended for inspection; mutate actors only through call().
        """
        account = self._account(account_id)
        if account.state is None:
            raise NotInitialized("The contract is not initialized")
        return account.state

    def _account(self, account_id: AccountId) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            raise ActorNotFound(f"actor does not exist: {account_id}")
        return account

    def verify_native_supply(self) -> Dict[str, Any]:
        """
        Verify settlement currency is conserved across all accounts.

        Every unit ever minted is either held by a live account, sitting in
        the queue attached to an undelivered message, or was burned by a
        transfer to a deleted account.
        """
        held = sum(a.balance for a in self.accounts.values())
        in_flight = sum(m.cost for m in self.queue)
        return {
            'valid': held + in_flight + self.burned == self.minted,
            'held': held,
            'in_flight': in_flight,
            'burned': self.burned,
            'minted': self.minted,
        }

    # ========================================================================
    # TOP-LEVEL CALLS
    # ========================================================================

    def call(
        self,
        signer_id: AccountId,
        receiver_id: AccountId,
        method: str,
        /,
        deposit: int = 0,
        **args: Any,
    ) -> Any:
        """
        Execute a signed call synchronously.

        The routing parameters are positional-only, so actor methods are free
        to take keyword arguments named receiver_id, method or signer_id.

        Validation failures abort the call with no local state change and
        are raised to the caller. Messages the method emitted are enqueued
        but not delivered; use step() or run() to deliver them.

        Args:
            signer_id: Account signing the call (pays the deposit)
            receiver_id: Target actor
            method: Method name
            deposit: Settlement currency attached to the call
            **args: Method keyword arguments

        Returns:
            The method's return value

        Raises:
            FractoseError: Any validation or platform failure
        """
        signer = self._account(signer_id)
        require_u128(deposit, "deposit")
        if signer.balance < deposit:
            raise InsufficientBalance(
                f"{signer_id} cannot attach {deposit}: balance {signer.balance}"
            )
        signer.balance -= deposit
        correlation_id = self._next_id("tx")
        return self._invoke(
            correlation_id=correlation_id,
            parent_id=None,
            kind=MessageKind.CALL,
            predecessor_id=signer_id,
            signer_id=signer_id,
            receiver_id=receiver_id,
            method=method,
            args=args,
            deposit=deposit,
        )

    def view(self, receiver_id: AccountId, method: str, /, **args: Any) -> Any:
        """
        Run a read-only method.

        Raises:
            ActorNotFound: If the actor does not exist
            NotInitialized: If the actor has no state yet
            MethodNotFound: If the method is not a view method
            InvalidArguments: If args do not match the method signature
        """
        account = self._account(receiver_id)
        if account.code is None or method not in getattr(account.code, "VIEW_METHODS", ()):
            raise MethodNotFound(f"{receiver_id} has no view method {method}")
        if account.state is None:
            raise NotInitialized("The contract is not initialized")
        handler = getattr(account.state, method)
        _check_arguments(handler, method, (), args)
        return handler(**args)

    # ========================================================================
    # MESSAGE DELIVERY
    # ========================================================================

    def pending_count(self) -> int:
        """Number of undelivered messages."""
        return len(self.queue)

    def peek_next(self) -> Optional[Message]:
        """Peek at the next message without delivering it."""
        return self.queue[0] if self.queue else None

    def step(self) -> Optional[Receipt]:
        """
        Deliver exactly one queued message.

        Returns:
            The Receipt of the delivered message, or None if the queue is empty
        """
        if not self.queue:
            return None
        message = self.queue.popleft()

        if message.kind == MessageKind.CALL:
            return self._deliver_call(message)
        if message.kind == MessageKind.TRANSFER:
            return self._deliver_transfer(message)
        if message.kind == MessageKind.SPAWN:
            return self._deliver_spawn(message)
        return self._deliver_delete(message)

    def run(self, max_steps: Optional[int] = None) -> List[Receipt]:
        """
        Deliver messages until the queue is empty.

        Args:
            max_steps: Safety limit (defaults to the platform's max_steps)

        Returns:
            Receipts of every delivered message, in delivery order

        Raises:
            PlatformError: If the queue is still not empty after max_steps
        """
        limit = self.max_steps if max_steps is None else max_steps
        delivered: List[Receipt] = []
        for _ in range(limit):
            receipt = self.step()
            if receipt is None:
                return delivered
            delivered.append(receipt)
        if self.queue:
            raise PlatformError(f"queue not idle after {limit} steps")
        return delivered

    def failed_receipts(self) -> List[Receipt]:
        """All receipts whose call or message failed."""
        return [r for r in self.receipts if not r.succeeded]

    def _deliver_call(self, message: Message) -> Receipt:
        try:
            self._invoke(
                correlation_id=message.correlation_id,
                parent_id=message.parent_id,
                kind=MessageKind.CALL,
                predecessor_id=message.sender,
                signer_id=message.signer,
                receiver_id=message.receiver,
                method=message.method,
                args=message.args_dict,
                deposit=message.amount,
            )
        except (FractoseError, ValueError):
            self._release_continuation(message)
            return self.receipts[-1]
        self._schedule_continuation(message)
        return self.receipts[-1]

    def _deliver_transfer(self, message: Message) -> Receipt:
        account = self.accounts.get(message.receiver)
        if account is None:
            self._credit(message.sender, message.amount)
            self._release_continuation(message)
            return self._record(message, ReceiptStatus.FAILURE,
                                error=f"actor does not exist: {message.receiver}")
        account.balance += message.amount
        self._schedule_continuation(message)
        return self._record(message, ReceiptStatus.SUCCESS)

    def _deliver_spawn(self, message: Message) -> Receipt:
        if message.receiver in self.accounts:
            self._credit(message.sender, message.amount)
            self._release_continuation(message)
            return self._record(message, ReceiptStatus.FAILURE,
                                error=f"account {message.receiver} already exists")
        self.accounts[message.receiver] = Account(
            message.receiver, message.amount, message.code
        )
        self._schedule_continuation(message)
        return self._record(message, ReceiptStatus.SUCCESS)

    def _deliver_delete(self, message: Message) -> Receipt:
        account = self.accounts.get(message.receiver)
        if account is None:
            self._release_continuation(message)
            return self._record(message, ReceiptStatus.FAILURE,
                                error=f"actor does not exist: {message.receiver}")
        del self.accounts[message.receiver]
        residual = account.balance
        self._credit(message.beneficiary, residual)
        self._schedule_continuation(message)
        return self._record(
            message, ReceiptStatus.SUCCESS,
            logs=(f"Closed @{message.receiver} with {residual}",),
        )

    # ========================================================================
    # CALL EXECUTION
    # ========================================================================

    def _invoke(
        self,
        correlation_id: str,
        parent_id: Optional[str],
        kind: MessageKind,
        predecessor_id: AccountId,
        signer_id: AccountId,
        receiver_id: AccountId,
        method: str,
        args: CallArgs,
        deposit: int,
    ) -> Any:
        """
        Run one method atomically against one actor.

        On success the outbound messages are paid for and enqueued. On any
        error the actor is restored, the deposit goes back to the predecessor,
        a failed receipt is recorded and the error is re-raised.
        """
        account = self.accounts.get(receiver_id)
        snapshot = None
        ctx: Optional[CallContext] = None
        try:
            if account is None:
                raise ActorNotFound(f"actor does not exist: {receiver_id}")
            if account.code is None:
                raise MethodNotFound(f"{receiver_id} has no actor code installed")

            snapshot = (copy.deepcopy(account.state), account.balance)
            account.balance += deposit

            ctx = CallContext(
                current_account_id=receiver_id,
                signer_id=signer_id,
                predecessor_id=predecessor_id,
                attached_deposit=deposit,
                state_exists=account.state is not None,
            )
            result = self._dispatch(account, ctx, method, args)

            cost = sum(m.cost for m in ctx.outbox)
            if cost > account.balance:
                raise InsufficientBalance(
                    f"{receiver_id} cannot cover outbound messages: {cost} > {account.balance}"
                )
            account.balance -= cost
        except Exception as e:
            if snapshot is not None:
                account.state, account.balance = snapshot
            self._credit(predecessor_id, deposit)
            self._record_call(correlation_id, parent_id, kind, predecessor_id, receiver_id,
                              method, ReceiptStatus.FAILURE, error=str(e),
                              logs=tuple(ctx.logs) if ctx else ())
            raise

        emitted = tuple(self._enqueue(m, correlation_id) for m in ctx.outbox)
        self._record_call(correlation_id, parent_id, kind, predecessor_id, receiver_id,
                          method, ReceiptStatus.SUCCESS, logs=tuple(ctx.logs), emitted=emitted)
        return result

    def _dispatch(self, account: Account, ctx: CallContext, method: str, args: CallArgs) -> Any:
        code = account.code
        if method == getattr(code, "INIT_METHOD", None):
            # The init classmethod enforces single initialization itself
            init = getattr(code, method)
            _check_arguments(init, method, (ctx,), args)
            account.state = init(ctx, **args)
            return None
        if account.state is None:
            raise NotInitialized("The contract is not initialized")
        private = getattr(code, "PRIVATE_METHODS", frozenset())
        public = getattr(code, "CHANGE_METHODS", frozenset())
        if method in private:
            if ctx.predecessor_id != ctx.current_account_id:
                raise PrivateMethod(f"Method {method} is private")
        elif method not in public:
            raise MethodNotFound(f"{account.account_id} has no method {method}")
        handler = getattr(account.state, method)
        _check_arguments(handler, method, (ctx,), args)
        return handler(ctx, **args)

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _next_id(self, prefix: str) -> str:
        sequence = self._next_sequence
        self._next_sequence += 1
        return f"{prefix}:{sequence:08d}"

    def _enqueue(self, message: Message, parent_id: Optional[str]) -> str:
        correlation_id = self._next_id("msg")
        self.queue.append(replace(message, correlation_id=correlation_id, parent_id=parent_id))
        return correlation_id

    def _schedule_continuation(self, message: Message) -> None:
        if message.then is not None:
            self._enqueue(message.then, message.correlation_id)

    def _release_continuation(self, message: Message) -> None:
        # A dropped continuation never runs; its prepaid value goes back to the sender
        if message.then is not None:
            self._credit(message.then.sender, message.then.cost)

    def _credit(self, account_id: Optional[AccountId], amount: int) -> None:
        if amount == 0:
            return
        account = self.accounts.get(account_id) if account_id else None
        if account is None:
            self.burned += amount
            return
        account.balance += amount

    def _record(
        self,
        message: Message,
        status: ReceiptStatus,
        error: Optional[str] = None,
        logs: tuple = (),
    ) -> Receipt:
        return self._record_call(message.correlation_id, message.parent_id, message.kind,
                                 message.sender, message.receiver, message.method,
                                 status, error=error, logs=logs)

    def _record_call(
        self,
        correlation_id: str,
        parent_id: Optional[str],
        kind: MessageKind,
        sender: AccountId,
        receiver: AccountId,
        method: Optional[str],
        status: ReceiptStatus,
        error: Optional[str] = None,
        logs: tuple = (),
        emitted: tuple = (),
    ) -> Receipt:
        receipt = Receipt(
            correlation_id=correlation_id,
            parent_id=parent_id,
            kind=kind,
            sender=sender,
            receiver=receiver,
            method=method,
            status=status,
            error=error,
            logs=logs,
            emitted=emitted,
        )
        self.receipts.append(receipt)
        if self.verbose:
            icon = "✓" if receipt.succeeded else "✗"
            print(f"{icon} {receipt!r}")
            for line in logs:
                print(f"    {line}")
        return receipt
