"""
nftvault - NFT-collateralized debt vault

Borrow a pegged stablecoin against collectible items, with lazily accrued
interest, insurance-backed liquidations and escrow-funded valuation boosts.
Token balances live in a double-entry Ledger.

Usage:
    from datetime import datetime
    from nftvault import (
        Ledger, FungibleToken, CollectibleCustody, StaticPriceFeed,
        RoleRegistry, StakingRegistry, NFTVault, Rate,
        default_risk_parameters, DAO_ROLE, LIQUIDATOR_ROLE,
    )

    ledger = Ledger("main", datetime(2025, 1, 1), verbose=False)
    for wallet in ("dao", "alice"):
        ledger.register_wallet(wallet)

    pusd = FungibleToken(ledger, "PUSD", "PUSD Stablecoin")
    jpeg = FungibleToken(ledger, "JPEG", "JPEG Token")
    punks = CollectibleCustody(ledger, "PUNK", "CryptoPunks", size=10000)

    roles = RoleRegistry()
    roles.grant_role(DAO_ROLE, "dao")
    roles.grant_role(LIQUIDATOR_ROLE, "dao")

    vault = NFTVault(
        ledger, pusd, jpeg, punks,
        eth_usd_oracle=StaticPriceFeed(3000 * 10**8, 8),
        floor_oracle=StaticPriceFeed(50 * 10**18),
        permissions=roles, staking=StakingRegistry(),
        settings=default_risk_parameters(),
        nft_types=[("APE", Rate(10, 1), [42])],
    )

    punks.mint("alice", 42)
    punks.approve("alice", vault.name, 42)
    vault.borrow("alice", 42, 30000 * 10**18)
"""

# Core types
from .core import (
    LedgerView,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    build_transaction,
    Unit,
    UnitStateChange,
    ExecuteResult,
    Rate,
    ONE,
    fungible_token,
    collection_unit,
    collectible_item,
    single_item_transfer_rule,
    SYSTEM_WALLET,
    PORTION_SCALE,
    PRICE_DECIMALS,
    YEAR_SECONDS,
    DAO_ROLE,
    LIQUIDATOR_ROLE,
    UNIT_TYPE_TOKEN,
    UNIT_TYPE_COLLECTIBLE,
    UNIT_TYPE_COLLECTION,
    # Ledger errors
    LedgerError,
    InsufficientFunds,
    InsufficientAllowance,
    TransferRuleViolation,
    UnitNotRegistered,
    WalletNotRegistered,
    # Vault errors
    VaultError,
    InvalidNFT,
    InvalidAmount,
    DebtCapReached,
    Unauthorized,
    InvalidPosition,
    PositionLiquidated,
    PositionInsuranceNotExpired,
    PositionInsuranceExpired,
    NonZeroDebt,
    InvalidNFTType,
    InvalidUnlockTime,
    NoOracleSet,
    ZeroAddress,
    InvalidOracleResults,
    InvalidRate,
    InvalidAction,
)

# Ledger
from .ledger import Ledger

# Tokens
from .tokens import FungibleToken, CollectibleCustody

# Pricing
from .pricing_source import (
    PriceFeed,
    StaticPriceFeed,
    TimeSeriesPriceFeed,
    normalize_answer,
)

# Collaborators
from .access import (
    PermissionGate,
    StakingStatus,
    RoleRegistry,
    StakingRegistry,
    requires_role,
)

# Configuration
from .config import (
    RiskParameters,
    default_risk_parameters,
    risk_parameters_from_dict,
    risk_parameters_to_dict,
    load_risk_parameters,
)

# Accounting
from .accrual import (
    AccrualState,
    initial_accrual_state,
    calculate_accrual,
    debt_for_portion,
    portion_for_amount,
    total_debt,
)
from .positions import Position, PositionRegistry
from .locks import (
    ValueLock,
    LockSettlement,
    calculate_escrow_to_lock,
    calculate_lock_settlement,
    is_lock_active,
)
from .credit import (
    calculate_credit_limit,
    calculate_liquidation_limit,
    is_over_limit,
)
from .valuation import (
    FloorSources,
    calculate_floor_eth,
    calculate_value_eth,
    calculate_value_usd,
    type_multiplier,
)

# Actions
from .actions import (
    ActionCode,
    Action,
    REPAY_ALL,
    encode_args,
    decode_args,
    parse_actions,
    to_unix,
    from_unix,
)

# Vault
from .vault import NFTVault

__all__ = [
    # Core
    'LedgerView', 'Move', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'build_transaction',
    'Unit', 'UnitStateChange', 'ExecuteResult', 'Rate', 'ONE',
    'fungible_token', 'collection_unit', 'collectible_item', 'single_item_transfer_rule',
    'SYSTEM_WALLET', 'PORTION_SCALE', 'PRICE_DECIMALS', 'YEAR_SECONDS',
    'DAO_ROLE', 'LIQUIDATOR_ROLE',
    'UNIT_TYPE_TOKEN', 'UNIT_TYPE_COLLECTIBLE', 'UNIT_TYPE_COLLECTION',
    'LedgerError', 'InsufficientFunds', 'InsufficientAllowance',
    'TransferRuleViolation', 'UnitNotRegistered', 'WalletNotRegistered',
    'VaultError', 'InvalidNFT', 'InvalidAmount', 'DebtCapReached', 'Unauthorized',
    'InvalidPosition', 'PositionLiquidated', 'PositionInsuranceNotExpired',
    'PositionInsuranceExpired', 'NonZeroDebt', 'InvalidNFTType', 'InvalidUnlockTime',
    'NoOracleSet', 'ZeroAddress', 'InvalidOracleResults', 'InvalidRate', 'InvalidAction',
    # Ledger
    'Ledger',
    # Tokens
    'FungibleToken', 'CollectibleCustody',
    # Pricing
    'PriceFeed', 'StaticPriceFeed', 'TimeSeriesPriceFeed', 'normalize_answer',
    # Collaborators
    'PermissionGate', 'StakingStatus', 'RoleRegistry', 'StakingRegistry', 'requires_role',
    # Configuration
    'RiskParameters', 'default_risk_parameters', 'risk_parameters_from_dict',
    'risk_parameters_to_dict', 'load_risk_parameters',
    # Accounting
    'AccrualState', 'initial_accrual_state', 'calculate_accrual',
    'debt_for_portion', 'portion_for_amount', 'total_debt',
    'Position', 'PositionRegistry',
    'ValueLock', 'LockSettlement', 'calculate_escrow_to_lock',
    'calculate_lock_settlement', 'is_lock_active',
    'calculate_credit_limit', 'calculate_liquidation_limit', 'is_over_limit',
    'FloorSources', 'calculate_floor_eth', 'calculate_value_eth',
    'calculate_value_usd', 'type_multiplier',
    # Actions
    'ActionCode', 'Action', 'REPAY_ALL', 'encode_args', 'decode_args',
    'parse_actions', 'to_unix', 'from_unix',
    # Vault
    'NFTVault',
]

__version__ = '1.0.0'
