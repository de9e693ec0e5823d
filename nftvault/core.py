"""
Core types and pure functions for the NFT vault.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only ledger access
2. Immutable data structures: Move, PendingTransaction, Transaction, Unit, Rate
3. Exceptions: LedgerError for token accounting, VaultError for vault preconditions
4. Type aliases: Positions, BalanceMap, UnitState
5. Transfer rules: Pure validation functions for moves
6. Unit factories: Functions to create fungible token and collectible units

All quantities are integers in the smallest unit of their token, so every
balance and every valuation is exact. No function in this module mutates
ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from fractions import Fraction
from functools import total_ordering
import copy
import hashlib
from typing import (
    Dict, List, Set, Optional, Callable, Any, Protocol,
    Tuple, FrozenSet, runtime_checkable,
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and redemption.
# The system wallet is exempt from balance validation and can hold any balance.
SYSTEM_WALLET = "system"

UNIT_TYPE_TOKEN = "TOKEN"
UNIT_TYPE_COLLECTIBLE = "COLLECTIBLE"
UNIT_TYPE_COLLECTION = "COLLECTION"

# Fixed-point scale shared by prices, ETH values and the debt accrual index.
PRICE_DECIMALS = 18
PORTION_SCALE = 10 ** 18

YEAR_SECONDS = 365 * 24 * 60 * 60

DAO_ROLE = "DAO_ROLE"
LIQUIDATOR_ROLE = "LIQUIDATOR_ROLE"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from wallet ID to quantity held by that wallet for a specific unit.
Positions = Dict[str, int]

# Mapping from unit symbol to quantity held in a single wallet.
BalanceMap = Dict[str, int]

# Internal state for a unit: allowances, approvals, collection metadata.
UnitState = Dict[str, Any]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Token wrappers and valuation helpers accept a LedgerView when they only
    need to look at balances, unit state or the clock. The Ledger class
    implements this protocol and also provides the mutation methods.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the ledger."""
        ...

    def get_balance(self, wallet_id: str, unit_symbol: str) -> int:
        """Return the balance of a unit in a wallet (0 if none)."""
        ...

    def get_unit_state(self, unit_symbol: str) -> UnitState:
        """Return a copy of the unit's internal state."""
        ...

    def get_positions(self, unit_symbol: str) -> Positions:
        """Return all non-zero positions for a unit across all wallets."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...

    def get_unit(self, symbol: str) -> 'Unit':
        """Return the Unit object for a given symbol."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was successfully validated and applied to the ledger.
    ALREADY_APPLIED: Transaction ID was previously processed (idempotent behavior).
    REJECTED: Transaction failed validation due to insufficient funds, balance
              constraints, or transfer rule violations.
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"           # Direct token call by a wallet holder
    CONTRACT = "contract"                 # Vault entry point
    SYSTEM = "system"                     # Issuance, initial setup


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InsufficientFunds(LedgerError):
    """Raised when a move would cause a wallet balance to fall below the unit's minimum."""
    pass


class InsufficientAllowance(LedgerError):
    """Raised when a spender moves more than the owner approved."""
    pass


class TransferRuleViolation(LedgerError):
    """Raised when a move violates the unit's transfer rule."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when attempting to operate on a unit that has not been registered with the ledger."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when attempting to operate on a wallet that has not been registered with the ledger."""
    pass


class VaultError(Exception):
    """
    Base exception for vault precondition failures.

    Errors carry their arguments the way the vault reports them, so
    str(InvalidNFT(10001)) reads "InvalidNFT(10001)".
    """

    def __str__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(a) for a in self.args)})"


class InvalidNFT(VaultError):
    """Asset id is outside the collection's valid range."""

    def __init__(self, asset_id: int):
        super().__init__(asset_id)
        self.asset_id = asset_id


class InvalidAmount(VaultError):
    """Amount is zero or exceeds the applicable limit."""

    def __init__(self, amount: int):
        super().__init__(amount)
        self.amount = amount


class DebtCapReached(InvalidAmount):
    """Borrowing would push total protocol debt over the borrow cap."""
    pass


class Unauthorized(VaultError):
    """Caller is not the required principal or lacks the required role."""
    pass


class InvalidPosition(VaultError):
    """Position does not exist or is in the wrong state for the operation."""

    def __init__(self, asset_id: int):
        super().__init__(asset_id)
        self.asset_id = asset_id


class PositionLiquidated(InvalidPosition):
    pass


class PositionInsuranceNotExpired(VaultError):
    def __init__(self, asset_id: int):
        super().__init__(asset_id)
        self.asset_id = asset_id


class PositionInsuranceExpired(VaultError):
    def __init__(self, asset_id: int):
        super().__init__(asset_id)
        self.asset_id = asset_id


class NonZeroDebt(VaultError):
    """Position still owes debt; carries the exact amount including interest."""

    def __init__(self, amount: int):
        super().__init__(amount)
        self.amount = amount


class InvalidNFTType(VaultError):
    def __init__(self, nft_type: Optional[str]):
        super().__init__(nft_type)
        self.nft_type = nft_type


class InvalidUnlockTime(VaultError):
    def __init__(self, unlock_at: datetime):
        super().__init__(unlock_at)
        self.unlock_at = unlock_at


class NoOracleSet(VaultError):
    pass


class ZeroAddress(VaultError):
    pass


class InvalidOracleResults(VaultError):
    pass


class InvalidRate(VaultError):
    def __init__(self, rate: 'Rate'):
        super().__init__(rate)
        self.rate = rate


class InvalidAction(VaultError):
    def __init__(self, opcode: int):
        super().__init__(opcode)
        self.opcode = opcode


# ============================================================================
# RATE
# ============================================================================

@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class Rate:
    """
    Exact rational fraction used for every percentage and ratio.

    apply() multiplies and rounds down, so a rate never rounds in the
    borrower's favor. Rates compare by value: Rate(1, 2) == Rate(2, 4).
    """
    numerator: int
    denominator: int

    def __post_init__(self):
        for part in (self.numerator, self.denominator):
            if isinstance(part, bool) or not isinstance(part, int):
                raise ValueError("Rate numerator and denominator must be int")
        if self.denominator <= 0:
            raise ValueError(f"Rate denominator must be positive, got {self.denominator}")
        if self.numerator < 0:
            raise ValueError(f"Rate numerator cannot be negative, got {self.numerator}")

    def apply(self, value: int) -> int:
        return value * self.numerator // self.denominator

    def as_fraction(self) -> Fraction:
        return Fraction(self.numerator, self.denominator)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rate):
            return NotImplemented
        return self.numerator * other.denominator == other.numerator * self.denominator

    def __lt__(self, other: 'Rate') -> bool:
        if not isinstance(other, Rate):
            return NotImplemented
        return self.numerator * other.denominator < other.numerator * self.denominator

    def __hash__(self) -> int:
        return hash(self.as_fraction())

    def __repr__(self) -> str:
        return f"Rate({self.numerator}/{self.denominator})"


ONE = Rate(1, 1)


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the specific source (vault name, wallet, etc.)
        unit_symbol: Symbol of the unit that triggered this (if applicable)
        event_type: Specific event within the source (e.g., "BORROW", "LIQUIDATE")
    """
    origin_type: OriginType
    source_id: str
    unit_symbol: Optional[str] = None
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        parts = [f"{self.origin_type.value}:{self.source_id}"]
        if self.unit_symbol:
            parts.append(f"unit={self.unit_symbol}")
        if self.event_type:
            parts.append(f"event={self.event_type}")
        return f"Origin({', '.join(parts)})"


# ============================================================================
# UNIT STATE CHANGE
# ============================================================================

@dataclass(frozen=True, slots=True)
class UnitStateChange:
    """
    Record of a unit state change, stored with complete before/after snapshots.

    Attributes:
        unit: Symbol of the unit whose state changed
        old_state: Complete state before the change (dict or None)
        new_state: Complete state after the change (dict)
    """
    unit: str
    old_state: Any
    new_state: Any

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """Return {field: (old, new)} for the fields that differ."""
        old = self.old_state if isinstance(self.old_state, dict) else {}
        new = self.new_state if isinstance(self.new_state, dict) else {}
        changes = {}
        for key in set(old.keys()) | set(new.keys()):
            old_val = old.get(key)
            new_val = new.get(key)
            if old_val != new_val:
                changes[key] = (old_val, new_val)
        return changes


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of value between two wallets.

    Attributes:
        quantity: Positive integer amount in the unit's smallest denomination.
        unit_symbol: The symbol of the unit being transferred (e.g., "PUSD").
        source: The wallet ID from which value is debited.
        dest: The wallet ID to which value is credited.
        contract_id: Identifier of the operation generating this move.
        metadata: Optional additional information about the move.
    """
    quantity: int
    unit_symbol: str
    source: str
    dest: str
    contract_id: str
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}→{self.dest})"


def _canonicalize(value: Any) -> str:
    """
    Produce a canonical string representation of a value for hashing.

    Output is independent of dict insertion order and set iteration order.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"N:{value}"
    if isinstance(value, str):
        return f"S:{value}"
    if isinstance(value, datetime):
        return f"T:{value.isoformat()}"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        serialized = ",".join(f"{_canonicalize(k)}:{_canonicalize(v)}" for k, v in items)
        return f"{{{serialized}}}"
    if isinstance(value, (list, tuple)):
        serialized = ",".join(_canonicalize(item) for item in value)
        return f"[{serialized}]"
    if isinstance(value, (set, frozenset)):
        serialized = ",".join(_canonicalize(item) for item in sorted(value, key=str))
        return f"<{serialized}>"
    return f"R:{repr(value)}"


def _compute_intent_id(
    moves: Tuple[Move, ...],
    state_changes: Tuple[UnitStateChange, ...],
    origin: TransactionOrigin,
    units_to_create: Tuple['Unit', ...] = ()
) -> str:
    """
    Compute a deterministic content hash for a transaction's intent.

    Same moves, state changes, origin and created units always produce the
    same intent_id. Used for idempotency checking.
    """
    sorted_moves = sorted(
        moves,
        key=lambda m: (m.quantity, m.unit_symbol, m.source, m.dest, m.contract_id)
    )

    content_parts = [f"origin:{origin.origin_type.value}:{origin.source_id}"]
    if origin.unit_symbol:
        content_parts.append(f"unit:{origin.unit_symbol}")
    if origin.event_type:
        content_parts.append(f"event:{origin.event_type}")

    for unit in sorted(units_to_create, key=lambda u: u.symbol):
        content_parts.append(f"unit_create:{unit.symbol}|{unit.unit_type}")

    for m in sorted_moves:
        content_parts.append(f"move:{m.quantity}|{m.unit_symbol}|{m.source}|{m.dest}|{m.contract_id}")

    for sc in sorted(state_changes, key=lambda s: s.unit):
        content_parts.append(
            f"state_change:{sc.unit}|{_canonicalize(sc.old_state)}|{_canonicalize(sc.new_state)}"
        )

    content = "|".join(content_parts)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction specification before execution - represents INTENT.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes (with old_state and new_state)
        origin: Who/what created this transaction and why
        timestamp: When this pending transaction was created
        units_to_create: Tuple of Unit objects to register before executing moves
        intent_id: Content-addressable hash of the transaction intent (auto-computed)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    timestamp: datetime
    units_to_create: Tuple['Unit', ...] = ()
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            computed_id = _compute_intent_id(
                self.moves, self.state_changes, self.origin, self.units_to_create
            )
            object.__setattr__(self, 'intent_id', computed_id)

    def is_empty(self) -> bool:
        """Return True if there are no moves, no state deltas and no units to create."""
        return not self.moves and not self.state_changes and not self.units_to_create

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {len(self.state_changes)} deltas, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    state_changes: Optional[List[UnitStateChange]] = None,
    origin: Optional[TransactionOrigin] = None,
    units_to_create: Optional[Tuple['Unit', ...]] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves and state deltas.

    State snapshots are deep-copied so the caller can keep mutating its dicts.

    Example:
        moves = [Move(100, "PUSD", "alice", "bob", "PUSD:transfer:0")]
        ledger.execute(build_transaction(ledger, moves))
    """
    if origin is None:
        origin = TransactionOrigin(
            origin_type=OriginType.USER_ACTION,
            source_id="user",
        )

    copied_changes: Tuple[UnitStateChange, ...] = ()
    if state_changes:
        copied_changes = tuple(
            UnitStateChange(
                unit=sc.unit,
                old_state=copy.deepcopy(sc.old_state),
                new_state=copy.deepcopy(sc.new_state),
            )
            for sc in state_changes
        )

    return PendingTransaction(
        moves=tuple(moves),
        state_changes=copied_changes,
        origin=origin,
        timestamp=view.current_time,
        units_to_create=units_to_create or (),
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of ledger state changes - represents FACT.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was created
        intent_id: Content hash from PendingTransaction (for idempotency)
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: When this was executed and logged
        sequence_number: Monotonic sequence within the ledger (for ordering)
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    timestamp: datetime
    intent_id: str
    exec_id: str
    ledger_name: str
    execution_time: datetime
    sequence_number: int
    units_to_create: Tuple['Unit', ...] = ()
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves and not self.state_changes and not self.units_to_create:
            raise ValueError("Transaction must have moves, state_changes, or units_to_create")
        if self.contract_ids is None:
            object.__setattr__(
                self, 'contract_ids',
                frozenset(m.contract_id for m in self.moves)
            )

    def __repr__(self) -> str:
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Transaction: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   intent_id      : ' + self.intent_id)}│",
            f"│{pad('   execution_time : ' + str(self.execution_time))}│",
            f"│{pad('   sequence       : ' + str(self.sequence_number))}│",
            f"│{pad('   origin         : ' + str(self.origin))}│",
        ]
        if self.units_to_create:
            lines.append(f"├{bar}┤")
            for unit in self.units_to_create:
                lines.append(f"│{pad('   created ' + unit.symbol + ' (' + unit.name + ')')}│")
        lines.append(f"├{bar}┤")
        lines.append(f"│{pad(' Moves (' + str(len(self.moves)) + '):')}│")
        for i, move in enumerate(self.moves):
            move_str = f"   [{i}] {move.quantity} {move.unit_symbol}: {move.source} → {move.dest}"
            lines.append(f"│{pad(move_str)}│")
        if self.state_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' State Changes (' + str(len(self.state_changes)) + '):')}│")
            for sc in self.state_changes:
                lines.append(f"│{pad('   [' + sc.unit + ']')}│")
                for field_name, (old_val, new_val) in sc.changed_fields().items():
                    lines.append(f"│{pad(f'      {field_name}: {old_val!r} → {new_val!r}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


# Transfer rules validate moves and raise TransferRuleViolation if invalid.
TransferRule = Callable[[LedgerView, Move], None]


def _freeze_state(state: Optional[UnitState]) -> Tuple[Tuple[str, Any], ...]:
    """Convert a state dict to a tuple of (key, value) pairs sorted by key."""
    if not state:
        return ()
    return tuple(sorted(state.items()))


def _thaw_state(frozen_state: Tuple[Tuple[str, Any], ...]) -> UnitState:
    return dict(frozen_state)


@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of a unit (token or collectible item) in the ledger.

    Attributes:
        symbol: Short identifier for the unit (e.g., "PUSD", "PUNK#42").
        name: Human-readable name for the unit.
        unit_type: TOKEN, COLLECTIBLE or COLLECTION.
        min_balance: Minimum allowed balance in any non-system wallet.
        max_balance: Maximum allowed balance in any non-system wallet (None = unbounded).
        decimals: Display decimals of the smallest denomination.
        transfer_rule: Optional function to validate moves involving this unit.
        _frozen_state: Internal frozen state representation (tuple of key-value pairs).
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: int = 0
    max_balance: Optional[int] = None
    decimals: int = 0
    transfer_rule: Optional[TransferRule] = None
    _frozen_state: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    @property
    def state(self) -> UnitState:
        """Return the unit's state as a new dict."""
        return _thaw_state(self._frozen_state)


# ============================================================================
# TRANSFER RULES
# ============================================================================

def single_item_transfer_rule(view: LedgerView, move: Move) -> None:
    """
    Collectible items are indivisible: every move carries exactly one item.

    Raises:
        TransferRuleViolation: If the move quantity is not 1.
    """
    if move.quantity != 1:
        raise TransferRuleViolation(
            f"Collectible {move.unit_symbol} moves one item at a time, got {move.quantity}"
        )


# ============================================================================
# UNIT FACTORIES
# ============================================================================

def fungible_token(symbol: str, name: str, decimals: int = PRICE_DECIMALS) -> Unit:
    """
    Create a fungible token unit.

    Non-system wallets cannot go negative; supply is created by issuing from
    SYSTEM_WALLET. Allowances live in the unit state under "allowances".
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_TOKEN,
        min_balance=0,
        decimals=decimals,
        _frozen_state=_freeze_state({'allowances': {}}),
    )


def collection_unit(collection: str, name: str, size: int) -> Unit:
    """
    Create the collection-level unit that carries operator approvals.

    It never holds balances; asset ids 0..size-1 belong to the collection.
    """
    return Unit(
        symbol=collection,
        name=name,
        unit_type=UNIT_TYPE_COLLECTION,
        min_balance=0,
        max_balance=0,
        _frozen_state=_freeze_state({'size': size, 'operators': {}}),
    )


def collectible_item(collection: str, asset_id: int) -> Unit:
    """Create the unit for one collectible item: at most one per wallet."""
    return Unit(
        symbol=collectible_symbol(collection, asset_id),
        name=f"{collection} #{asset_id}",
        unit_type=UNIT_TYPE_COLLECTIBLE,
        min_balance=0,
        max_balance=1,
        transfer_rule=single_item_transfer_rule,
        _frozen_state=_freeze_state({
            'collection': collection,
            'asset_id': asset_id,
            'approved': None,
        }),
    )


def collectible_symbol(collection: str, asset_id: int) -> str:
    return f"{collection}#{asset_id}"
