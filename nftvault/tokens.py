"""
tokens.py - Token wrappers over the shared ledger

FungibleToken models the pegged stablecoin and the escrow token: issuance,
redemption, transfers and spender allowances. CollectibleCustody models a
collection of non-fungible items, one ledger unit per item.

Every operation builds one PendingTransaction carrying both the balance moves
and the allowance/approval state change, so a move and the allowance it
consumes are applied together or not at all. A rejected transaction surfaces
as an exception and leaves the ledger untouched.
"""

from __future__ import annotations
from typing import Dict, List, Optional

from .core import (
    Move, UnitStateChange, TransactionOrigin, OriginType, ExecuteResult,
    SYSTEM_WALLET,
    InsufficientFunds, InsufficientAllowance, TransferRuleViolation,
    WalletNotRegistered, LedgerError,
    build_transaction, fungible_token, collection_unit, collectible_item,
    collectible_symbol,
)
from .ledger import Ledger


def _next_state(state: Dict, **updates) -> Dict:
    """Apply updates and bump the nonce so no two state changes hash alike."""
    return {**state, **updates, 'nonce': state.get('nonce', 0) + 1}


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Token amount must be int, got {type(amount)}")
    if amount < 0:
        raise ValueError(f"Token amount cannot be negative, got {amount}")


class FungibleToken:
    """
    ERC20-style token held in a Ledger.

    Allowances are stored in the unit state as
    {"allowances": {owner: {spender: amount}}}.
    """

    def __init__(self, ledger: Ledger, symbol: str, name: str, decimals: int = 18):
        self.ledger = ledger
        self.symbol = symbol
        if not ledger.has_unit(symbol):
            ledger.register_unit(fungible_token(symbol, name, decimals))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def balance_of(self, wallet: str) -> int:
        return self.ledger.get_balance(wallet, self.symbol)

    def allowance(self, owner: str, spender: str) -> int:
        allowances = self.ledger.get_unit_state(self.symbol).get('allowances', {})
        return allowances.get(owner, {}).get(spender, 0)

    def total_supply(self) -> int:
        return self.ledger.circulating_supply(self.symbol)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def issue(self, to: str, amount: int, origin: Optional[TransactionOrigin] = None) -> None:
        """Create amount new tokens in the `to` wallet."""
        self._move(SYSTEM_WALLET, to, amount, "issue", origin)

    def redeem(self, holder: str, amount: int, origin: Optional[TransactionOrigin] = None) -> None:
        """Destroy amount tokens held by `holder`."""
        self._move(holder, SYSTEM_WALLET, amount, "redeem", origin)

    def transfer(self, src: str, dst: str, amount: int,
                 origin: Optional[TransactionOrigin] = None) -> None:
        self._move(src, dst, amount, "transfer", origin)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set the amount `spender` may move out of `owner`'s wallet."""
        _check_amount(amount)
        self._require_wallets(owner, spender)
        old_state = self.ledger.get_unit_state(self.symbol)
        new_state = self._with_allowance(old_state, owner, spender, amount)
        pending = build_transaction(
            self.ledger, [],
            [UnitStateChange(self.symbol, old_state, new_state)],
            origin=TransactionOrigin(OriginType.USER_ACTION, owner, self.symbol, "APPROVE"),
        )
        self._execute(pending, f"approve {spender} for {owner}")

    def transfer_from(self, spender: str, src: str, dst: str, amount: int,
                      origin: Optional[TransactionOrigin] = None) -> None:
        """Move tokens out of `src` on `spender`'s allowance."""
        self._move(src, dst, amount, "transfer_from", origin, spender=spender)

    def redeem_from(self, spender: str, holder: str, amount: int,
                    origin: Optional[TransactionOrigin] = None) -> None:
        """Destroy tokens held by `holder` on `spender`'s allowance."""
        self._move(holder, SYSTEM_WALLET, amount, "redeem_from", origin, spender=spender)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _move(self, src: str, dst: str, amount: int, action: str,
              origin: Optional[TransactionOrigin], spender: Optional[str] = None) -> None:
        _check_amount(amount)
        if amount == 0:
            return
        self._require_wallets(src, dst)

        state_changes: List[UnitStateChange] = []
        if spender is not None and spender != src:
            current = self.allowance(src, spender)
            if current < amount:
                raise InsufficientAllowance(
                    f"{spender} may move {current} {self.symbol} from {src}, needs {amount}"
                )
            old_state = self.ledger.get_unit_state(self.symbol)
            new_state = self._with_allowance(old_state, src, spender, current - amount)
            state_changes.append(UnitStateChange(self.symbol, old_state, new_state))

        if origin is None:
            origin = TransactionOrigin(OriginType.USER_ACTION, spender or src, self.symbol, action.upper())
        contract_id = f"{self.symbol}:{action}:{self.ledger.next_sequence}"
        pending = build_transaction(
            self.ledger,
            [Move(amount, self.symbol, src, dst, contract_id)],
            state_changes,
            origin=origin,
        )
        self._execute(pending, f"{action} {amount} {self.symbol} {src}→{dst}")

    def _execute(self, pending, description: str) -> None:
        result = self.ledger.execute(pending)
        if result == ExecuteResult.REJECTED:
            raise InsufficientFunds(f"{description} rejected")

    def _require_wallets(self, *wallets: str) -> None:
        for wallet in wallets:
            if not self.ledger.is_registered(wallet):
                raise WalletNotRegistered(f"Wallet {wallet} not registered")

    @staticmethod
    def _with_allowance(state: Dict, owner: str, spender: str, amount: int) -> Dict:
        allowances = state.get('allowances', {})
        owner_allowances = dict(allowances.get(owner, {}))
        if amount:
            owner_allowances[spender] = amount
        else:
            owner_allowances.pop(spender, None)
        new_allowances = dict(allowances)
        if owner_allowances:
            new_allowances[owner] = owner_allowances
        else:
            new_allowances.pop(owner, None)
        return _next_state(state, allowances=new_allowances)

    def __repr__(self):
        return f"FungibleToken({self.symbol})"


class CollectibleCustody:
    """
    ERC721-style collection held in a Ledger.

    Item units ("PUNK#42") are created on mint and hold at most one item per
    wallet. Per-item approvals live in the item's state; operator approvals
    live in the collection unit's state.
    """

    def __init__(self, ledger: Ledger, collection: str, name: str, size: int):
        self.ledger = ledger
        self.collection = collection
        self.size = size
        if not ledger.has_unit(collection):
            ledger.register_unit(collection_unit(collection, name, size))

    def symbol(self, asset_id: int) -> str:
        return collectible_symbol(self.collection, asset_id)

    def exists(self, asset_id: int) -> bool:
        return self.ledger.has_unit(self.symbol(asset_id))

    def owner_of(self, asset_id: int) -> Optional[str]:
        """Wallet holding the item, or None if it was never minted."""
        if not self.exists(asset_id):
            return None
        for wallet, quantity in self.ledger.get_positions(self.symbol(asset_id)).items():
            if wallet != SYSTEM_WALLET and quantity == 1:
                return wallet
        return None

    def get_approved(self, asset_id: int) -> Optional[str]:
        return self.ledger.get_unit_state(self.symbol(asset_id)).get('approved')

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        operators = self.ledger.get_unit_state(self.collection).get('operators', {})
        return operator in operators.get(owner, ())

    def mint(self, to: str, asset_id: int) -> None:
        if not 0 <= asset_id < self.size:
            raise ValueError(f"{self.collection} ids run from 0 to {self.size - 1}, got {asset_id}")
        if self.exists(asset_id):
            raise LedgerError(f"{self.symbol(asset_id)} already minted")
        if not self.ledger.is_registered(to):
            raise WalletNotRegistered(f"Wallet {to} not registered")
        item = collectible_item(self.collection, asset_id)
        pending = build_transaction(
            self.ledger,
            [Move(1, item.symbol, SYSTEM_WALLET, to, f"{item.symbol}:mint")],
            origin=TransactionOrigin(OriginType.SYSTEM, self.collection, item.symbol, "MINT"),
            units_to_create=(item,),
        )
        if self.ledger.execute(pending) != ExecuteResult.APPLIED:
            raise LedgerError(f"mint of {item.symbol} rejected")

    def approve(self, owner: str, spender: Optional[str], asset_id: int) -> None:
        """Let `spender` move one item; None clears the approval."""
        if self.owner_of(asset_id) != owner:
            raise TransferRuleViolation(f"{owner} does not hold {self.symbol(asset_id)}")
        symbol = self.symbol(asset_id)
        old_state = self.ledger.get_unit_state(symbol)
        pending = build_transaction(
            self.ledger, [],
            [UnitStateChange(symbol, old_state, _next_state(old_state, approved=spender))],
            origin=TransactionOrigin(OriginType.USER_ACTION, owner, symbol, "APPROVE"),
        )
        if self.ledger.execute(pending) != ExecuteResult.APPLIED:
            raise LedgerError(f"approval of {symbol} rejected")

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        old_state = self.ledger.get_unit_state(self.collection)
        operators = {k: list(v) for k, v in old_state.get('operators', {}).items()}
        granted = set(operators.get(owner, ()))
        if approved:
            granted.add(operator)
        else:
            granted.discard(operator)
        operators[owner] = sorted(granted)
        pending = build_transaction(
            self.ledger, [],
            [UnitStateChange(self.collection, old_state, _next_state(old_state, operators=operators))],
            origin=TransactionOrigin(OriginType.USER_ACTION, owner, self.collection, "APPROVE_ALL"),
        )
        if self.ledger.execute(pending) != ExecuteResult.APPLIED:
            raise LedgerError(f"operator approval on {self.collection} rejected")

    def transfer_from(self, operator: str, src: str, dst: str, asset_id: int,
                      origin: Optional[TransactionOrigin] = None) -> None:
        """
        Move an item from `src` to `dst` on behalf of `operator`.

        Raises:
            TransferRuleViolation: If `src` does not hold the item
            InsufficientAllowance: If `operator` is neither the holder nor approved
        """
        symbol = self.symbol(asset_id)
        if self.owner_of(asset_id) != src:
            raise TransferRuleViolation(f"{src} does not hold {symbol}")
        if not self.ledger.is_registered(dst):
            raise WalletNotRegistered(f"Wallet {dst} not registered")
        old_state = self.ledger.get_unit_state(symbol)
        if operator != src and old_state.get('approved') != operator \
                and not self.is_approved_for_all(src, operator):
            raise InsufficientAllowance(f"{operator} is not approved to move {symbol}")

        if origin is None:
            origin = TransactionOrigin(OriginType.USER_ACTION, operator, symbol, "TRANSFER")
        pending = build_transaction(
            self.ledger,
            [Move(1, symbol, src, dst, f"{symbol}:transfer:{self.ledger.next_sequence}")],
            [UnitStateChange(symbol, old_state, _next_state(old_state, approved=None))],
            origin=origin,
        )
        if self.ledger.execute(pending) != ExecuteResult.APPLIED:
            raise LedgerError(f"transfer of {symbol} from {src} to {dst} rejected")

    def __repr__(self):
        return f"CollectibleCustody({self.collection}, size={self.size})"
