#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the NFT Vault Step by Step

This is a pedagogical demonstration of how the vault lends against
collectibles. Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-2: Foundation   - Wiring the vault, valuing collateral
  3-4: Debt         - Borrowing with fees, interest accrual, treasury collection
  5-6: Boosts       - Escrow-backed trait boosts, batched actions
  7-8: Risk         - Insured liquidation and repurchase, conservation proof

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import sys

from nftvault import (
    Ledger, FungibleToken, CollectibleCustody, StaticPriceFeed,
    RoleRegistry, StakingRegistry, NFTVault, Rate,
    ActionCode, encode_args,
    default_risk_parameters, DAO_ROLE, LIQUIDATOR_ROLE,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)

    eth_usd: int = 3000 * 10**8          # 8 decimals
    floor_eth: int = 50 * 10**18
    jpeg_eth: int = 10**15

    borrow_amount: int = 30000 * 10**18
    crash_eth_usd: int = 100 * 10**8

    ape_id: int = 7350
    plain_id: int = 7000


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def fmt(amount: int) -> str:
    """18-decimal amount as a readable number."""
    return f"{amount / 10**18:,.4f}"


@dataclass
class World:
    ledger: Ledger
    vault: NFTVault
    pusd: FungibleToken
    jpeg: FungibleToken
    punks: CollectibleCustody
    eth_oracle: StaticPriceFeed
    jpeg_oracle: StaticPriceFeed


# ============================================================================
# PHASE 1: FOUNDATION
# ============================================================================

def step_01_wire_vault() -> World:
    """Create the ledger, tokens, collection, oracles and the vault."""
    step_header(1, "Wiring the Vault",
        "See every collaborator the vault depends on.")

    print("""
    The vault never owns balances itself. Every token lives in a Ledger:

    - PUSD  : the pegged stablecoin the vault issues and redeems
    - JPEG  : the escrow token locked by trait boosts
    - PUNK  : the collection; each item is its own one-of-one unit

    Prices come from feeds answering (value, decimals), roles from a gate.
    """)

    wait_for_enter()

    ledger = Ledger("tutorial", CONFIG.start_time, verbose=False)
    for wallet in ("dao", "alice"):
        ledger.register_wallet(wallet)

    pusd = FungibleToken(ledger, "PUSD", "PUSD Stablecoin")
    jpeg = FungibleToken(ledger, "JPEG", "JPEG Token")
    punks = CollectibleCustody(ledger, "PUNK", "CryptoPunks", size=10000)

    roles = RoleRegistry()
    roles.grant_role(DAO_ROLE, "dao")
    roles.grant_role(LIQUIDATOR_ROLE, "dao")

    eth_oracle = StaticPriceFeed(CONFIG.eth_usd, 8)
    jpeg_oracle = StaticPriceFeed(CONFIG.jpeg_eth)

    vault = NFTVault(
        ledger, pusd, jpeg, punks,
        eth_usd_oracle=eth_oracle,
        floor_oracle=StaticPriceFeed(CONFIG.floor_eth),
        permissions=roles,
        staking=StakingRegistry(),
        settings=default_risk_parameters(),
        nft_types=[("APE", Rate(10, 1), [CONFIG.ape_id])],
        verbose=True,
    )
    vault.set_jpeg_oracle("dao", jpeg_oracle)

    punks.mint("alice", CONFIG.plain_id)
    punks.mint("alice", CONFIG.ape_id)

    section_header("Initial State")
    print(f"Wallets:  {sorted(ledger.list_wallets())}")
    print(f"Units:    {ledger.list_units()}")
    print(f"Vault:    {vault}")

    return World(ledger, vault, pusd, jpeg, punks, eth_oracle, jpeg_oracle)


def step_02_valuation(world: World):
    """Value an item and derive its credit line."""
    step_header(2, "Valuing Collateral",
        "floor (ETH) x multiplier x ETH/USD = value; rates give the limits.")

    vault = world.vault
    item = CONFIG.plain_id
    print(f"Floor:             {fmt(vault.get_floor_eth())} ETH")
    print(f"Value:             {fmt(vault.get_nft_value_usd(item))} PUSD")
    print(f"Credit limit:      {fmt(vault.get_credit_limit(item))} PUSD (32%)")
    print(f"Liquidation limit: {fmt(vault.get_liquidation_limit(item))} PUSD (33%)")

    section_header("Key Insight")
    print("""
    Every division rounds down, so a limit never rounds in the borrower's favor.
    The ape is worth the floor too: its multiplier needs a live value lock.
    """)
    wait_for_enter()


# ============================================================================
# PHASE 2: DEBT
# ============================================================================

def step_03_borrow(world: World):
    """Open an insured position."""
    step_header(3, "Borrowing",
        "Deposit the item, receive PUSD minus the organization and insurance fees.")

    world.punks.approve("alice", world.vault.name, CONFIG.plain_id)
    world.vault.borrow("alice", CONFIG.plain_id, CONFIG.borrow_amount, use_insurance=True)

    print(f"Item holder:  {world.punks.owner_of(CONFIG.plain_id)}")
    print(f"Alice PUSD:   {fmt(world.pusd.balance_of('alice'))}")
    print(f"Debt:         {fmt(world.vault.get_debt_amount(CONFIG.plain_id))}")
    wait_for_enter()


def step_04_interest(world: World) -> int:
    """Let interest accrue and collect it with the borrow fees."""
    step_header(4, "Interest and the Treasury",
        "Debt grows through one global index; the DAO collects fees and interest.")

    world.ledger.advance_time(world.ledger.current_time + timedelta(days=30))
    print(f"Debt after 30 days: {fmt(world.vault.get_debt_amount(CONFIG.plain_id))}")
    collected = world.vault.collect("dao")
    print(f"Collected:          {fmt(collected)} PUSD")
    wait_for_enter()
    return collected


# ============================================================================
# PHASE 3: BOOSTS
# ============================================================================

def step_05_trait_boost(world: World):
    """Escrow JPEG to unlock the ape's 10x multiplier."""
    step_header(5, "Trait Boost",
        "Lock escrow worth 25% of the boosted credit line to value the ape at 10x.")

    world.jpeg.issue("alice", 40000 * 10**18)
    world.jpeg.approve("alice", world.vault.name, 40000 * 10**18)
    unlock_at = world.ledger.current_time + timedelta(days=90)
    world.vault.apply_trait_boost("alice", CONFIG.ape_id, unlock_at)

    lock = world.vault.lock_positions(CONFIG.ape_id)
    print(f"Locked:        {fmt(lock.locked_value)} JPEG until {lock.unlock_at}")
    print(f"Boosted value: {fmt(world.vault.get_nft_value_usd(CONFIG.ape_id))} PUSD")
    wait_for_enter()


def step_06_batch(world: World):
    """Borrow against the ape and pay it back in one atomic batch."""
    step_header(6, "Batched Actions",
        "Several actions, one all-or-nothing call.")

    ape = CONFIG.ape_id
    world.punks.approve("alice", world.vault.name, ape)
    world.pusd.approve("alice", world.vault.name, 1000 * 10**18)
    world.vault.do_actions(
        "alice",
        [int(ActionCode.BORROW), int(ActionCode.REPAY)],
        [encode_args(ape, 2000 * 10**18, False), encode_args(ape, 1000 * 10**18)],
    )
    print(f"Open positions: {world.vault.open_positions_indexes()}")
    print(f"Ape debt:       {fmt(world.vault.get_debt_amount(ape))}")
    wait_for_enter()


# ============================================================================
# PHASE 4: RISK
# ============================================================================

def step_07_liquidation(world: World):
    """Crash ETH, liquidate the insured position, then repurchase it."""
    step_header(7, "Liquidation and Repurchase",
        "Insurance keeps the item in the vault so the owner can buy it back.")

    item = CONFIG.plain_id
    world.eth_oracle.update_answer(CONFIG.crash_eth_usd)
    print(f"Liquidatable: {world.vault.is_liquidatable(item)}")

    debt = world.vault.get_debt_amount(item)
    world.pusd.issue("dao", debt)
    world.pusd.approve("dao", world.vault.name, debt)
    world.vault.liquidate("dao", item, "dao")

    price = debt + world.vault.settings.insurance_liquidation_penalty_rate.apply(debt)
    shortfall = price - world.pusd.balance_of("alice")
    if shortfall > 0:
        world.pusd.issue("alice", shortfall)
    world.pusd.approve("alice", world.vault.name, price)
    world.vault.repurchase("alice", item)

    print(f"Repurchase price: {fmt(price)} PUSD")
    print(f"Item holder:      {world.punks.owner_of(item)}")
    wait_for_enter()


def step_08_conservation(world: World) -> dict:
    """Prove every unit still nets to zero."""
    step_header(8, "Conservation Proof",
        "Issuance and redemption go through the system wallet; totals stay at zero.")

    result = world.ledger.verify_double_entry()
    print(f"Valid:        {result['valid']}")
    print(f"Transactions: {len(world.ledger.transaction_log)}")
    print(f"PUSD supply:  {fmt(world.pusd.total_supply())}")
    return result


def main() -> dict:
    world = step_01_wire_vault()
    step_02_valuation(world)
    step_03_borrow(world)
    collected = step_04_interest(world)
    step_05_trait_boost(world)
    step_06_batch(world)
    step_07_liquidation(world)
    result = step_08_conservation(world)

    print(f"\n{'='*70}")
    print("TUTORIAL COMPLETE")
    print(f"{'='*70}")
    return {
        'valid': result['valid'],
        'collected': collected,
        'open_positions': world.vault.open_positions_indexes(),
        'plain_owner': world.punks.owner_of(CONFIG.plain_id),
        'ape_debt': world.vault.get_debt_amount(CONFIG.ape_id),
    }


if __name__ == "__main__":
    main()
