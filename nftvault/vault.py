"""
vault.py - NFT-collateralized debt vault

NFTVault lets holders of a collection borrow the pegged stablecoin against
their items. It owns the process-wide state (risk parameters, accrual
index, positions, value locks, asset types) and exposes every entry point:

    Position registry:     borrow, repay, close_position
    Liquidation engine:    liquidate, repurchase, claim_expired_insurance_nft
    Value locks:           apply_trait_boost, unlock_jpeg
    Treasury:              collect
    Batches:               do_actions
    Governance (DAO_ROLE): set_* / toggle_* / override_floor ...

Each entry point runs as one atomic unit: if anything raises, the ledger and
the vault state are restored to what they were before the call. Every call
accrues interest before it reads debt; accrual is a no-op within a
timestamp, so a batch accrues once.

Usage:
    vault = NFTVault(
        ledger, pusd, jpeg, punks,
        eth_usd_oracle=StaticPriceFeed(3000 * 10**8, 8),
        floor_oracle=StaticPriceFeed(50 * 10**18),
        permissions=roles, staking=stakes,
        settings=default_risk_parameters(),
    )
    punks.approve("alice", vault.name, 42)
    vault.borrow("alice", 42, 1000 * 10**18, use_insurance=True)
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .accrual import (
    AccrualState, initial_accrual_state, calculate_accrual,
    add_debt, remove_debt, take_fees, debt_for_portion, portion_for_amount, total_debt,
)
from .access import PermissionGate, StakingStatus, requires_role
from .actions import ActionCode, parse_actions
from .config import RiskParameters
from .core import (
    Rate, ONE, TransactionOrigin, OriginType,
    DAO_ROLE, LIQUIDATOR_ROLE,
    InvalidNFT, InvalidAmount, DebtCapReached, Unauthorized, InvalidPosition,
    PositionLiquidated, PositionInsuranceNotExpired, PositionInsuranceExpired,
    NonZeroDebt, InvalidNFTType, InvalidUnlockTime, NoOracleSet, InvalidRate,
)
from .credit import calculate_credit_limit, calculate_liquidation_limit, is_over_limit
from .ledger import Ledger
from .locks import ValueLock, calculate_escrow_to_lock, calculate_lock_settlement
from .positions import Position, PositionRegistry
from .pricing_source import PriceFeed, normalize_answer
from .tokens import CollectibleCustody, FungibleToken
from .valuation import (
    FloorSources, require_feed, calculate_floor_eth, type_multiplier,
    calculate_value_eth, calculate_value_usd,
)


class NFTVault:
    """
    Collateralized debt vault for one collection.

    Callers are identified by wallet id and passed explicitly as the first
    argument of every entry point. Not thread-safe.
    """

    def __init__(
        self,
        ledger: Ledger,
        stablecoin: FungibleToken,
        escrow_token: FungibleToken,
        custody: CollectibleCustody,
        eth_usd_oracle: Optional[PriceFeed],
        floor_oracle: Optional[PriceFeed],
        permissions: PermissionGate,
        staking: StakingStatus,
        settings: RiskParameters,
        nft_types: Iterable[Tuple[str, Rate, Iterable[int]]] = (),
        name: str = "nft_vault",
        verbose: bool = False,
    ):
        """
        Args:
            nft_types: (tag, multiplier, asset ids) triples registered at start
            name: Wallet id of the vault; created on the ledger if missing
        """
        self.ledger = ledger
        self.stablecoin = stablecoin
        self.escrow_token = escrow_token
        self.custody = custody
        self.eth_usd_oracle = require_feed(eth_usd_oracle)
        self.floor_oracle = require_feed(floor_oracle)
        self.permissions = permissions
        self.staking = staking
        self.settings = settings
        self.name = name
        self.verbose = verbose

        self.fallback_oracle: Optional[PriceFeed] = None
        self.use_fallback = False
        self.override_floor_value: Optional[int] = None
        self.jpeg_oracle: Optional[PriceFeed] = None

        self.accrual: AccrualState = initial_accrual_state(ledger.current_time)
        self.registry = PositionRegistry()
        self._locks: Dict[int, ValueLock] = {}
        self._nft_types: Dict[int, str] = {}
        self._type_multipliers: Dict[str, Rate] = {}
        self._depth = 0

        for tag, multiplier, asset_ids in nft_types:
            self._type_multipliers[tag] = multiplier
            for asset_id in asset_ids:
                self._validate_nft_index(asset_id)
                self._nft_types[asset_id] = tag

        if not ledger.is_registered(name):
            ledger.register_wallet(name)

    # ========================================================================
    # ATOMICITY
    # ========================================================================

    def _snapshot_state(self) -> Dict[str, Any]:
        return {
            'settings': self.settings,
            'accrual': self.accrual,
            'registry': self.registry.copy(),
            '_locks': dict(self._locks),
            '_nft_types': dict(self._nft_types),
            '_type_multipliers': dict(self._type_multipliers),
            'fallback_oracle': self.fallback_oracle,
            'use_fallback': self.use_fallback,
            'override_floor_value': self.override_floor_value,
            'jpeg_oracle': self.jpeg_oracle,
        }

    def _restore_state(self, snapshot: Dict[str, Any]) -> None:
        for attr, value in snapshot.items():
            setattr(self, attr, value)

    @contextmanager
    def _atomic(self):
        """All-or-nothing scope; nested scopes join the outermost one."""
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        ledger_snapshot = self.ledger.snapshot()
        vault_snapshot = self._snapshot_state()
        self._depth = 1
        try:
            yield
        except Exception:
            self.ledger.restore(ledger_snapshot)
            self._restore_state(vault_snapshot)
            raise
        finally:
            self._depth = 0

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"🏦 [{self.name}] {message}")

    def _origin(self, event: str) -> TransactionOrigin:
        return TransactionOrigin(OriginType.CONTRACT, self.name, event_type=event)

    def _now(self) -> datetime:
        return self.ledger.current_time

    def _validate_nft_index(self, asset_id: int) -> None:
        if isinstance(asset_id, bool) or not isinstance(asset_id, int) \
                or not 0 <= asset_id < self.custody.size:
            raise InvalidNFT(asset_id)

    def _accrue(self) -> None:
        self.accrual = calculate_accrual(self.accrual, self.settings.debt_interest_apr, self._now())

    def _previewed_accrual(self) -> AccrualState:
        return calculate_accrual(self.accrual, self.settings.debt_interest_apr, self._now())

    def _position_debt(self, position: Position, accrual: Optional[AccrualState] = None) -> int:
        accrual = accrual or self.accrual
        return max(position.debt_principal, debt_for_portion(accrual, position.debt_portion))

    def _floor_sources(self) -> FloorSources:
        return FloorSources(
            primary=self.floor_oracle,
            fallback=self.fallback_oracle,
            use_fallback=self.use_fallback,
            override_floor=self.override_floor_value,
        )

    def _credit_owner(self, asset_id: int) -> Optional[str]:
        position = self.registry.get(asset_id)
        if position is not None:
            return position.owner
        return self.custody.owner_of(asset_id)

    def _is_staked(self, asset_id: int) -> bool:
        owner = self._credit_owner(asset_id)
        return owner is not None and self.staking.is_qualifying_stake_holder(owner)

    def _require_position_owner(self, caller: str, asset_id: int) -> Position:
        position = self.registry.get(asset_id)
        if position is None or position.owner != caller:
            raise Unauthorized()
        return position

    def _repurchase_deadline(self, position: Position) -> datetime:
        return position.liquidated_at + self.settings.insurance_repurchase_limit

    # ========================================================================
    # VALUATION
    # ========================================================================

    def get_floor_eth(self) -> int:
        return calculate_floor_eth(self._floor_sources())

    def get_nft_value_eth(self, asset_id: int) -> int:
        """Appraised value in ETH (18 decimals), boosted while a lock is live."""
        self._validate_nft_index(asset_id)
        multiplier = type_multiplier(
            self._nft_types.get(asset_id),
            self._type_multipliers,
            self._locks.get(asset_id),
            self._now(),
        )
        return calculate_value_eth(self.get_floor_eth(), multiplier)

    def get_nft_value_usd(self, asset_id: int) -> int:
        """Appraised value in the pegged unit."""
        return calculate_value_usd(self.get_nft_value_eth(asset_id), self.eth_usd_oracle)

    # ========================================================================
    # CREDIT & LIQUIDATION VIEWS
    # ========================================================================

    def get_credit_limit(self, asset_id: int) -> int:
        value = self.get_nft_value_usd(asset_id)
        return calculate_credit_limit(value, self.settings, self._is_staked(asset_id))

    def get_liquidation_limit(self, asset_id: int) -> int:
        value = self.get_nft_value_usd(asset_id)
        return calculate_liquidation_limit(value, self.settings, self._is_staked(asset_id))

    def is_liquidatable(self, asset_id: int) -> bool:
        self._validate_nft_index(asset_id)
        position = self.registry.get(asset_id)
        if position is None or position.is_liquidated:
            return False
        debt = self._position_debt(position, self._previewed_accrual())
        return is_over_limit(debt, self.get_liquidation_limit(asset_id))

    def get_debt_amount(self, asset_id: int) -> int:
        """Current debt including interest not yet accrued."""
        self._validate_nft_index(asset_id)
        position = self.registry.get(asset_id)
        if position is None:
            return 0
        return self._position_debt(position, self._previewed_accrual())

    def get_debt_interest(self, asset_id: int) -> int:
        position = self.registry.get(asset_id)
        if position is None:
            return 0
        return self.get_debt_amount(asset_id) - position.debt_principal

    def total_debt_amount(self) -> int:
        return total_debt(self._previewed_accrual())

    # ========================================================================
    # STATE ACCESSORS
    # ========================================================================

    def positions(self, asset_id: int) -> Optional[Position]:
        return self.registry.get(asset_id)

    def position_owner(self, asset_id: int) -> Optional[str]:
        position = self.registry.get(asset_id)
        return position.owner if position is not None else None

    def open_positions_indexes(self) -> List[int]:
        return self.registry.open_indexes()

    def total_positions(self) -> int:
        return len(self.registry)

    def lock_positions(self, asset_id: int) -> Optional[ValueLock]:
        return self._locks.get(asset_id)

    def nft_types(self, asset_id: int) -> Optional[str]:
        return self._nft_types.get(asset_id)

    def nft_type_multiplier(self, nft_type: str) -> Optional[Rate]:
        return self._type_multipliers.get(nft_type)

    # ========================================================================
    # POSITION REGISTRY
    # ========================================================================

    def borrow(self, caller: str, asset_id: int, amount: int, use_insurance: bool = False) -> None:
        """
        Borrow `amount` against `asset_id`, opening the position if needed.

        The caller receives `amount` minus the organization fee and, when
        insurance is bought now, the insurance fee.

        Raises:
            InvalidNFT, InvalidAmount, DebtCapReached, Unauthorized,
            PositionLiquidated; custody and token failures propagate.
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            if amount <= 0:
                raise InvalidAmount(amount)
            position = self.registry.get(asset_id)
            if position is not None:
                if position.owner != caller:
                    raise Unauthorized()
                if position.is_liquidated:
                    raise PositionLiquidated(asset_id)

            self._accrue()

            current_debt = self._position_debt(position) if position is not None else 0
            if current_debt + amount > self.get_credit_limit(asset_id):
                raise InvalidAmount(amount)
            if total_debt(self.accrual) + amount > self.settings.borrow_amount_cap:
                raise DebtCapReached(amount)

            if position is None:
                self.custody.transfer_from(
                    self.name, caller, self.name, asset_id, origin=self._origin("BORROW")
                )
                position = Position(owner=caller)

            fee = self.settings.organization_fee_rate.apply(amount)
            if use_insurance and not position.insurance_active:
                fee += self.settings.insurance_purchase_rate.apply(amount)

            portion = portion_for_amount(self.accrual, amount)
            self.accrual = add_debt(self.accrual, portion, fee)
            self.registry.put(asset_id, replace(
                position,
                debt_portion=position.debt_portion + portion,
                debt_principal=position.debt_principal + amount,
                insurance_active=position.insurance_active or use_insurance,
            ))
            self.stablecoin.issue(caller, amount - fee, origin=self._origin("BORROW"))
            self._log(f"BORROW #{asset_id} {amount} by {caller} (fee {fee})")

    def repay(self, caller: str, asset_id: int, amount: int) -> None:
        """
        Repay up to `amount` of a position's debt; anything above the debt
        (REPAY_ALL included) is capped at the debt. Interest is paid first.

        Raises:
            InvalidNFT, InvalidAmount, Unauthorized, PositionLiquidated;
            allowance and balance failures propagate.
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            if amount <= 0:
                raise InvalidAmount(amount)
            position = self._require_position_owner(caller, asset_id)
            if position.is_liquidated:
                raise PositionLiquidated(asset_id)

            self._accrue()

            debt = self._position_debt(position)
            if debt == 0:
                raise InvalidAmount(amount)
            amount = min(amount, debt)

            if amount == debt:
                paid_portion = position.debt_portion
                new_principal = 0
            else:
                paid_portion = min(portion_for_amount(self.accrual, amount), position.debt_portion)
                interest = debt - position.debt_principal
                new_principal = position.debt_principal - max(0, amount - interest)

            self.stablecoin.redeem_from(self.name, caller, amount, origin=self._origin("REPAY"))
            self.accrual = remove_debt(self.accrual, paid_portion)
            self.registry.put(asset_id, replace(
                position,
                debt_portion=position.debt_portion - paid_portion,
                debt_principal=new_principal,
            ))
            self._log(f"REPAY #{asset_id} {amount} by {caller}")

    def close_position(self, caller: str, asset_id: int) -> None:
        """
        Return a debt-free asset to its owner and delete the position.

        Raises:
            InvalidNFT, Unauthorized, PositionLiquidated,
            NonZeroDebt (carrying the amount still owed)
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            position = self._require_position_owner(caller, asset_id)
            if position.is_liquidated:
                raise PositionLiquidated(asset_id)

            self._accrue()

            debt = self._position_debt(position)
            if debt > 0:
                raise NonZeroDebt(debt)

            self.registry.remove(asset_id)
            self.custody.transfer_from(
                self.name, self.name, caller, asset_id, origin=self._origin("CLOSE_POSITION")
            )
            self._log(f"CLOSE #{asset_id} by {caller}")

    # ========================================================================
    # LIQUIDATION ENGINE
    # ========================================================================

    @requires_role(LIQUIDATOR_ROLE)
    def liquidate(self, caller: str, asset_id: int, recipient: str) -> None:
        """
        Settle a liquidatable position's debt out of the caller's stablecoin.

        Uninsured: the asset goes to `recipient` and the position is deleted.
        Insured: the asset stays in the vault and the owner may repurchase it
        until insurance_repurchase_limit has passed.

        Raises:
            Unauthorized, InvalidNFT, InvalidPosition, PositionLiquidated;
            allowance and balance failures propagate.
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            position = self.registry.get(asset_id)
            if position is None:
                raise InvalidPosition(asset_id)
            if position.is_liquidated:
                raise PositionLiquidated(asset_id)

            self._accrue()

            debt = self._position_debt(position)
            if not is_over_limit(debt, self.get_liquidation_limit(asset_id)):
                raise InvalidPosition(asset_id)

            self.stablecoin.redeem_from(self.name, caller, debt, origin=self._origin("LIQUIDATE"))
            self.accrual = remove_debt(self.accrual, position.debt_portion)

            if position.insurance_active:
                self.registry.put(asset_id, replace(
                    position,
                    debt_portion=0,
                    debt_principal=0,
                    liquidated_at=self._now(),
                    liquidator=caller,
                    debt_amount_for_repurchase=debt,
                ))
            else:
                self.registry.remove(asset_id)
                self.custody.transfer_from(
                    self.name, self.name, recipient, asset_id, origin=self._origin("LIQUIDATE")
                )
            self._log(f"LIQUIDATE #{asset_id} debt {debt} by {caller}"
                      f"{' (insured)' if position.insurance_active else ''}")

    def repurchase(self, caller: str, asset_id: int) -> None:
        """
        Buy back an insured, liquidated asset within the repurchase window.

        The owner pays the debt settled at liquidation plus the insurance
        liquidation penalty to the liquidator.

        Raises:
            InvalidNFT, Unauthorized, InvalidPosition, PositionInsuranceExpired;
            allowance and balance failures propagate.
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            position = self._require_position_owner(caller, asset_id)
            if not position.is_liquidated:
                raise InvalidPosition(asset_id)
            if self._now() >= self._repurchase_deadline(position):
                raise PositionInsuranceExpired(asset_id)

            self._accrue()

            debt = position.debt_amount_for_repurchase
            penalty = self.settings.insurance_liquidation_penalty_rate.apply(debt)
            self.stablecoin.transfer_from(
                self.name, caller, position.liquidator, debt + penalty,
                origin=self._origin("REPURCHASE"),
            )
            self.registry.remove(asset_id)
            self.custody.transfer_from(
                self.name, self.name, caller, asset_id, origin=self._origin("REPURCHASE")
            )
            self._log(f"REPURCHASE #{asset_id} for {debt + penalty} by {caller}")

    @requires_role(LIQUIDATOR_ROLE)
    def claim_expired_insurance_nft(self, caller: str, asset_id: int, recipient: str) -> None:
        """
        Hand an insured, liquidated asset to the liquidator's `recipient`
        once the repurchase window has closed.

        Raises:
            Unauthorized, InvalidNFT, InvalidPosition, PositionInsuranceNotExpired
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            position = self.registry.get(asset_id)
            if position is None or not position.is_liquidated:
                raise InvalidPosition(asset_id)
            if self._now() < self._repurchase_deadline(position):
                raise PositionInsuranceNotExpired(asset_id)
            if position.liquidator != caller:
                raise Unauthorized()

            self.registry.remove(asset_id)
            self.custody.transfer_from(
                self.name, self.name, recipient, asset_id, origin=self._origin("CLAIM_EXPIRED")
            )
            self._log(f"CLAIM #{asset_id} to {recipient} by {caller}")

    # ========================================================================
    # VALUE LOCKS
    # ========================================================================

    def apply_trait_boost(self, caller: str, asset_id: int, unlock_at: datetime) -> None:
        """
        Escrow tokens to unlock the asset's type multiplier until `unlock_at`.

        Replacing an existing lock requires a later unlock_at. The same owner
        settles only the difference; a different caller funds the full
        requirement and the previous owner is refunded.

        Raises:
            InvalidNFT, InvalidNFTType, InvalidUnlockTime, Unauthorized,
            NoOracleSet; allowance and balance failures propagate.
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            nft_type = self._nft_types.get(asset_id)
            if nft_type is None:
                raise InvalidNFTType(nft_type)
            existing = self._locks.get(asset_id)
            if unlock_at <= self._now() or (existing is not None and unlock_at <= existing.unlock_at):
                raise InvalidUnlockTime(unlock_at)

            position = self.registry.get(asset_id)
            if position is not None:
                if position.owner != caller:
                    raise Unauthorized()
            elif self.custody.owner_of(asset_id) != caller:
                raise Unauthorized()

            if self.jpeg_oracle is None:
                raise NoOracleSet()

            boosted_eth = calculate_value_eth(
                self.get_floor_eth(), self._type_multipliers.get(nft_type, ONE)
            )
            required = calculate_escrow_to_lock(
                boosted_eth,
                self.settings.credit_limit_rate,
                self.settings.value_increase_lock_rate,
                normalize_answer(self.jpeg_oracle),
            )
            settlement = calculate_lock_settlement(existing, caller, required)

            origin = self._origin("APPLY_TRAIT_BOOST")
            self.escrow_token.transfer_from(self.name, caller, self.name, settlement.charge, origin=origin)
            self.escrow_token.transfer(self.name, settlement.refund_to or caller, settlement.refund, origin=origin)
            self._locks[asset_id] = ValueLock(caller, required, unlock_at)
            self._log(f"TRAIT_BOOST #{asset_id} locks {required} until {unlock_at} for {caller}")

    def unlock_jpeg(self, caller: str, asset_id: int) -> None:
        """
        Return an expired lock's escrow to its owner.

        Raises:
            Unauthorized: If caller does not own the lock or it is still live
        """
        with self._atomic():
            self._validate_nft_index(asset_id)
            lock = self._locks.get(asset_id)
            if lock is None or lock.owner != caller or self._now() < lock.unlock_at:
                raise Unauthorized()
            del self._locks[asset_id]
            self.escrow_token.transfer(self.name, caller, lock.locked_value, origin=self._origin("UNLOCK_JPEG"))
            self._log(f"UNLOCK #{asset_id} returns {lock.locked_value} to {caller}")

    # ========================================================================
    # TREASURY
    # ========================================================================

    @requires_role(DAO_ROLE)
    def collect(self, caller: str) -> int:
        """Issue accrued interest and borrow fees to the caller; returns the amount."""
        with self._atomic():
            self._accrue()
            self.accrual, fees = take_fees(self.accrual)
            self.stablecoin.issue(caller, fees, origin=self._origin("COLLECT"))
            self._log(f"COLLECT {fees} to {caller}")
            return fees

    # ========================================================================
    # BATCHES
    # ========================================================================

    def do_actions(self, caller: str, opcodes: Sequence[int], encoded_args: Sequence[bytes]) -> None:
        """
        Run a batch of actions in order as one atomic unit.

        Raises:
            InvalidAction: On unknown opcodes or malformed arguments; any
            failure of a step rolls back the whole batch.
        """
        handlers = {
            ActionCode.BORROW: self.borrow,
            ActionCode.REPAY: self.repay,
            ActionCode.CLOSE_POSITION: self.close_position,
            ActionCode.REPURCHASE: self.repurchase,
            ActionCode.UNLOCK_JPEG: self.unlock_jpeg,
            ActionCode.APPLY_TRAIT_BOOST: self.apply_trait_boost,
        }
        with self._atomic():
            for action in parse_actions(opcodes, encoded_args):
                handlers[action.code](caller, *action.args)

    # ========================================================================
    # GOVERNANCE
    # ========================================================================

    def _update_settings(self, **changes: Any) -> None:
        with self._atomic():
            self._accrue()
            self.settings = self.settings.with_changes(**changes)
            self._log(f"SETTINGS {', '.join(sorted(changes))}")

    @requires_role(DAO_ROLE)
    def set_debt_interest_apr(self, caller: str, rate: Rate) -> None:
        """Interest up to now is charged at the old rate."""
        self._update_settings(debt_interest_apr=rate)

    @requires_role(DAO_ROLE)
    def set_credit_limit_rates(self, caller: str, credit_rate: Rate, liquidation_rate: Rate) -> None:
        self._update_settings(credit_limit_rate=credit_rate, liquidation_limit_rate=liquidation_rate)

    @requires_role(DAO_ROLE)
    def set_cig_staked_rates(self, caller: str, credit_rate: Rate, liquidation_rate: Rate) -> None:
        self._update_settings(
            cig_staked_credit_limit_rate=credit_rate,
            cig_staked_liquidation_limit_rate=liquidation_rate,
        )

    @requires_role(DAO_ROLE)
    def set_value_increase_lock_rate(self, caller: str, rate: Rate) -> None:
        self._update_settings(value_increase_lock_rate=rate)

    @requires_role(DAO_ROLE)
    def set_organization_fee_rate(self, caller: str, rate: Rate) -> None:
        self._update_settings(organization_fee_rate=rate)

    @requires_role(DAO_ROLE)
    def set_insurance_params(
        self, caller: str, purchase_rate: Rate, penalty_rate: Rate, repurchase_limit: timedelta
    ) -> None:
        self._update_settings(
            insurance_purchase_rate=purchase_rate,
            insurance_liquidation_penalty_rate=penalty_rate,
            insurance_repurchase_limit=repurchase_limit,
        )

    @requires_role(DAO_ROLE)
    def set_borrow_amount_cap(self, caller: str, cap: int) -> None:
        self._update_settings(borrow_amount_cap=cap)

    @requires_role(DAO_ROLE)
    def set_nft_type(self, caller: str, asset_id: int, nft_type: Optional[str]) -> None:
        """Assign a registered type to an asset; None clears it."""
        with self._atomic():
            self._validate_nft_index(asset_id)
            if nft_type is None:
                self._nft_types.pop(asset_id, None)
            else:
                if nft_type not in self._type_multipliers:
                    raise InvalidNFTType(nft_type)
                self._nft_types[asset_id] = nft_type
            self._log(f"NFT_TYPE #{asset_id} -> {nft_type}")

    @requires_role(DAO_ROLE)
    def set_nft_type_multiplier(self, caller: str, nft_type: str, multiplier: Rate) -> None:
        with self._atomic():
            if multiplier < ONE:
                raise InvalidRate(multiplier)
            self._type_multipliers[nft_type] = multiplier
            self._log(f"MULTIPLIER {nft_type} = {multiplier}")

    @requires_role(DAO_ROLE)
    def set_fallback_oracle(self, caller: str, feed: Optional[PriceFeed]) -> None:
        with self._atomic():
            self.fallback_oracle = require_feed(feed)
            self._log("FALLBACK_ORACLE set")

    @requires_role(DAO_ROLE)
    def toggle_fallback_oracle(self, caller: str, use_fallback: bool) -> None:
        with self._atomic():
            if use_fallback and self.fallback_oracle is None:
                raise NoOracleSet()
            self.use_fallback = use_fallback
            self._log(f"USE_FALLBACK {use_fallback}")

    @requires_role(DAO_ROLE)
    def set_jpeg_oracle(self, caller: str, feed: Optional[PriceFeed]) -> None:
        with self._atomic():
            self.jpeg_oracle = require_feed(feed)
            self._log("JPEG_ORACLE set")

    @requires_role(DAO_ROLE)
    def override_floor(self, caller: str, floor_eth: int) -> None:
        """Pin the floor price (18-decimal ETH) until disable_floor_override()."""
        with self._atomic():
            if floor_eth <= 0:
                raise InvalidAmount(floor_eth)
            self.override_floor_value = floor_eth
            self._log(f"FLOOR_OVERRIDE {floor_eth}")

    @requires_role(DAO_ROLE)
    def disable_floor_override(self, caller: str) -> None:
        with self._atomic():
            self.override_floor_value = None
            self._log("FLOOR_OVERRIDE off")

    def __repr__(self):
        return (f"NFTVault({self.name}, {len(self.registry)} open positions, "
                f"debt={total_debt(self.accrual)})")
