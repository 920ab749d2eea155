"""
Core types and pure functions for the securitization system.

This module provides the foundational data structures shared by every actor:
1. Constants: metadata spec tag, funding defaults, integer bounds
2. Exceptions: FractoseError and domain-specific error types
3. Immutable data structures: FundingConfig, Message, Receipt
4. CallContext: the explicit handle an actor method uses to emit effects
5. Identity helpers: derive_identity, format_asset_key

Nothing in this module touches global state. Actors receive everything they
need through a CallContext and report effects back through it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import hashlib
import re
from typing import Dict, List, Optional, Any, Tuple, Type


# ============================================================================
# CONSTANTS
# ============================================================================

# Format tag every share ledger's metadata must carry.
SHARES_FT_METADATA_SPEC = "shares-ft-1.0.0"

# Smallest settlement-currency unit; 10**24 yocto make one unit.
ONE_YOCTO = 1
ONE_UNIT = 10 ** 24

# Funding attached to freshly spawned actors.
DEFAULT_WRAPPER_FUNDING = 1_500_000 * 10 ** 18
DEFAULT_SHARE_LEDGER_FUNDING = 3 * ONE_UNIT

# Deposit required to register an account with a share ledger.
STORAGE_BALANCE_MIN = 1_250_000_000_000_000_000_000

MAX_U128 = 2 ** 128 - 1
MAX_U8 = 2 ** 8 - 1

# Bytes in a metadata content-reference hash.
REFERENCE_HASH_LENGTH = 32

_IDENTITY_UNSAFE = re.compile(r"[^a-z0-9_\-]")


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Account identity on the platform (e.g. "alice.near", "registry.near").
AccountId = str

# Identifier of an asset inside its source asset-contract.
TokenId = str

# Keyword arguments carried by a function-call message.
CallArgs = Dict[str, Any]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FractoseError(Exception):
    """Base exception for all securitization errors."""
    pass


class InvalidAmount(FractoseError):
    """Raised when an amount is zero, negative, or outside the u128 range."""
    pass


class FractionalSharePrice(FractoseError):
    """Raised when the exit price is not evenly divisible by the share count."""
    pass


class CannotWrapWrapper(FractoseError):
    """Raised when asked to wrap an identity that is itself a wrapper."""
    pass


class AlreadyInitialized(FractoseError):
    """Raised when an actor's init method runs a second time."""
    pass


class NotInitialized(FractoseError):
    """Raised when a non-init method reaches an actor without state."""
    pass


class InvalidMetadata(FractoseError):
    """Raised when share metadata fails validation."""
    pass


class AlreadyRedeemed(FractoseError):
    """Raised when redeeming, or quoting a redemption, after release."""
    pass


class NotRedeemed(FractoseError):
    """Raised when claiming against a vault that has not been released."""
    pass


class InsufficientPayment(FractoseError):
    """Raised when the attached payment is below the redemption top-up."""
    pass


class NothingToClaim(FractoseError):
    """Raised when the claimant holds no shares."""
    pass


class AlreadyClaimed(FractoseError):
    """Raised when the claimant's vault share resolves to zero."""
    pass


class DepositRequired(FractoseError):
    """Raised when a method needs an exact attached deposit."""
    pass


class Unauthorized(FractoseError):
    """Raised when the predecessor may not perform the requested action."""
    pass


class AccountNotRegistered(FractoseError):
    """Raised when a share transfer targets an unregistered account."""
    pass


class InsufficientBalance(FractoseError):
    """Raised when a share or settlement-currency balance cannot cover a debit."""
    pass


class PlatformError(FractoseError):
    """Base exception for failures raised by the platform itself."""
    pass


class ActorNotFound(PlatformError):
    """Raised when a call, view or transfer targets an identity that does not exist."""
    pass


class MethodNotFound(PlatformError):
    """Raised when an actor does not expose the requested method."""
    pass


class PrivateMethod(PlatformError):
    """Raised when a private callback is invoked by anyone but the actor itself."""
    pass


class InvalidArguments(PlatformError):
    """Raised when a call's keyword arguments do not match the method signature."""
    pass


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def require_u128(value: Any, name: str) -> int:
    """
    Validate that a value is an unsigned 128-bit integer.

    Args:
        value: The value to check
        name: Field name used in the error message

    Returns:
        The value, unchanged

    Raises:
        InvalidAmount: If the value is not an int in [0, 2**128)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > MAX_U128:
        raise InvalidAmount(f"{name} out of u128 range: {value}")
    return value


def require_u8(value: Any, name: str) -> int:
    """Validate that a value is an unsigned 8-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > MAX_U8:
        raise InvalidAmount(f"{name} out of u8 range: {value}")
    return value


# ============================================================================
# IDENTITIES
# ============================================================================

def format_asset_key(asset_contract: AccountId, asset_id: TokenId) -> str:
    """Single-string key identifying an asset within its source contract."""
    return f"{asset_contract}:{asset_id}"


def derive_identity(role: str, seed: str, namespace: AccountId) -> AccountId:
    """
    Derive a deterministic actor identity from a seed.

    The seed is sanitized into a readable prefix and suffixed with a short
    hash of ``role:seed``, so two different seeds (or the same seed under two
    roles) never map to the same identity. The result is namespaced under
    the deriving actor's own identity.

    Args:
        role: Kind of actor being derived ("wrapper", "shares")
        seed: Source string (asset-contract identity or asset key)
        namespace: Identity of the actor that owns the derived identity

    Returns:
        Identity of the form "{prefix}-{hash8}.{namespace}"

    Example:
        derive_identity("wrapper", "nft.near", "registry.near")
        # -> "nft-near-<8 hex chars>.registry.near"
    """
    if not seed or not seed.strip():
        raise ValueError("seed cannot be empty")
    if not namespace or not namespace.strip():
        raise ValueError("namespace cannot be empty")
    prefix = _IDENTITY_UNSAFE.sub("-", seed.lower())[:32]
    digest = hashlib.sha256(f"{role}:{seed}".encode()).hexdigest()[:8]
    return f"{prefix}-{digest}.{namespace}"


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class FundingConfig:
    """
    Settlement-currency funding attached to actors the registry spawns.

    Attributes:
        wrapper_funding: Initial balance of each wrapper actor
        share_ledger_funding: Initial balance of each share ledger actor
    """
    wrapper_funding: int = DEFAULT_WRAPPER_FUNDING
    share_ledger_funding: int = DEFAULT_SHARE_LEDGER_FUNDING

    def __post_init__(self):
        require_u128(self.wrapper_funding, "wrapper_funding")
        require_u128(self.share_ledger_funding, "share_ledger_funding")


# ============================================================================
# MESSAGES AND RECEIPTS
# ============================================================================

class MessageKind(Enum):
    """
    The one-way actions an actor can ask the platform to perform.

    SPAWN: Create an account at an identity, fund it, install actor code.
    CALL: Invoke a method on another actor, optionally with attached deposit.
    TRANSFER: Pay settlement currency to an account.
    DELETE: Delete the sending actor, sending its residual balance to a beneficiary.
    """
    SPAWN = "spawn"
    CALL = "call"
    TRANSFER = "transfer"
    DELETE = "delete"


class ReceiptStatus(Enum):
    """Outcome of a processed call or message."""
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class Message:
    """
    A fire-and-forget request from one actor to another.

    Messages are built inside an actor method and committed by the platform
    only if that method finishes without error. The platform assigns the
    correlation id when it enqueues the message.

    Attributes:
        kind: What the platform should do
        sender: Actor that emitted the message
        receiver: Target identity
        signer: Account that signed the originating top-level call
        method: Method name (CALL only)
        args: Keyword arguments for the method (CALL only)
        amount: Attached deposit, transfer amount, or spawn funding
        code: Actor class to install (SPAWN only)
        beneficiary: Receiver of residual balance (DELETE only)
        then: Continuation enqueued after this message succeeds
        correlation_id: Assigned on enqueue
        parent_id: Correlation id of the call that emitted this message
    """
    kind: MessageKind
    sender: AccountId
    receiver: AccountId
    signer: AccountId
    method: Optional[str] = None
    args: Tuple[Tuple[str, Any], ...] = ()
    amount: int = 0
    code: Optional[Type[Any]] = None
    beneficiary: Optional[AccountId] = None
    then: Optional['Message'] = None
    correlation_id: str = ""
    parent_id: Optional[str] = None

    def __post_init__(self):
        if not self.sender or not self.sender.strip():
            raise ValueError("Message sender cannot be empty")
        if not self.receiver or not self.receiver.strip():
            raise ValueError("Message receiver cannot be empty")
        if self.kind == MessageKind.CALL and not self.method:
            raise ValueError("CALL message requires a method")
        if self.kind == MessageKind.SPAWN and self.code is None:
            raise ValueError("SPAWN message requires code")
        if self.kind == MessageKind.DELETE and not self.beneficiary:
            raise ValueError("DELETE message requires a beneficiary")
        require_u128(self.amount, "amount")

    @property
    def args_dict(self) -> CallArgs:
        return dict(self.args)

    @property
    def cost(self) -> int:
        """Settlement currency the sender pays when this message is committed, continuation included."""
        own = 0 if self.kind == MessageKind.DELETE else self.amount
        return own + (self.then.cost if self.then is not None else 0)

    def __repr__(self) -> str:
        target = f"{self.receiver}.{self.method}" if self.method else self.receiver
        return f"Message({self.correlation_id or '-'} {self.kind.value} {self.sender}→{target} amount={self.amount})"


@dataclass(frozen=True, slots=True)
class Receipt:
    """
    Executed, immutable record of one processed call or message.

    Attributes:
        correlation_id: Id of the message (or top-level call) processed
        parent_id: Correlation id of the call that emitted it, if any
        kind: Message kind ("call" for top-level calls)
        sender: Predecessor of the call
        receiver: Target identity
        method: Method name, if a function call
        status: SUCCESS or FAILURE
        error: Error text when status is FAILURE
        logs: Lines logged by the actor during the call
        emitted: Correlation ids of messages this call committed
    """
    correlation_id: str
    parent_id: Optional[str]
    kind: MessageKind
    sender: AccountId
    receiver: AccountId
    method: Optional[str]
    status: ReceiptStatus
    error: Optional[str] = None
    logs: Tuple[str, ...] = ()
    emitted: Tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status == ReceiptStatus.SUCCESS

    def __repr__(self) -> str:
        target = f"{self.receiver}.{self.method}" if self.method else self.receiver
        outcome = "ok" if self.succeeded else f"FAILED: {self.error}"
        return f"Receipt({self.correlation_id} {self.kind.value} {self.sender}→{target}: {outcome})"


# ============================================================================
# CALL CONTEXT
# ============================================================================

@dataclass
class CallContext:
    """
    Explicit execution environment handed to every state-changing actor method.

    The actor reads who called it and what was attached, and emits its
    cross-actor effects through the helper methods. Emitted messages sit in
    ``outbox`` until the platform commits them after the method returns.

    Attributes:
        current_account_id: Identity of the executing actor
        signer_id: Account that signed the originating top-level call
        predecessor_id: Immediate caller (user or actor)
        attached_deposit: Settlement currency attached to this call
        state_exists: Whether the actor has already been initialized
    """
    current_account_id: AccountId
    signer_id: AccountId
    predecessor_id: AccountId
    attached_deposit: int = 0
    state_exists: bool = True
    outbox: List[Message] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    def log(self, line: str) -> None:
        """Record an event line for this call's receipt."""
        self.logs.append(line)

    def _emit(self, message: Message) -> Message:
        self.outbox.append(message)
        return message

    def transfer(
        self,
        receiver_id: AccountId,
        amount: int,
        then: Optional[Message] = None,
    ) -> Message:
        """Queue a settlement-currency payment from this actor."""
        return self._emit(Message(
            kind=MessageKind.TRANSFER,
            sender=self.current_account_id,
            receiver=receiver_id,
            signer=self.signer_id,
            amount=amount,
            then=then,
        ))

    def function_call(
        self,
        receiver_id: AccountId,
        method: str,
        args: Optional[CallArgs] = None,
        deposit: int = 0,
        then: Optional[Message] = None,
    ) -> Message:
        """Queue a one-way method call on another actor."""
        return self._emit(Message(
            kind=MessageKind.CALL,
            sender=self.current_account_id,
            receiver=receiver_id,
            signer=self.signer_id,
            method=method,
            args=tuple(sorted((args or {}).items())),
            amount=deposit,
            then=then,
        ))

    def call_message(
        self,
        receiver_id: AccountId,
        method: str,
        args: Optional[CallArgs] = None,
        deposit: int = 0,
    ) -> Message:
        """Build (without queueing) a call message, for use as a continuation."""
        return Message(
            kind=MessageKind.CALL,
            sender=self.current_account_id,
            receiver=receiver_id,
            signer=self.signer_id,
            method=method,
            args=tuple(sorted((args or {}).items())),
            amount=deposit,
        )

    def spawn(self, account_id: AccountId, code: Type[Any], funding: int) -> Message:
        """Queue creation of a funded actor running ``code`` at ``account_id``."""
        return self._emit(Message(
            kind=MessageKind.SPAWN,
            sender=self.current_account_id,
            receiver=account_id,
            signer=self.signer_id,
            amount=funding,
            code=code,
        ))

    def delete_account(self, beneficiary_id: AccountId) -> Message:
        """Queue deletion of this actor, its residual balance going to the beneficiary."""
        return self._emit(Message(
            kind=MessageKind.DELETE,
            sender=self.current_account_id,
            receiver=self.current_account_id,
            signer=self.signer_id,
            beneficiary=beneficiary_id,
        ))
