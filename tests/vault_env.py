"""
vault_env.py - Test Helper for building a fully wired NFTVault

Mirrors the reference deployment: PUSD stablecoin, JPEG escrow token, a
10,000-item collection, ETH at 3000 USD (8-decimal feed), a 50 ETH floor
and two boosted item types.

Example:
    env = build_vault_env()
    env.mint_and_approve("user", 8000)
    env.vault.borrow("user", 8000, units(30000))
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from nftvault import (
    Ledger, FungibleToken, CollectibleCustody, PriceFeed, StaticPriceFeed, TimeSeriesPriceFeed,
    RoleRegistry, StakingRegistry, NFTVault, Rate, RiskParameters,
    default_risk_parameters, DAO_ROLE, LIQUIDATOR_ROLE,
)


T0 = datetime(2025, 1, 1)

COLLECTION_SIZE = 10000

APES = (7350, 3, 5)
ALIENS = (8, 9)

WALLETS = ("owner", "user", "dao", "stranger")


def units(n: int) -> int:
    """Whole tokens to 18-decimal base units."""
    return n * 10 ** 18


@dataclass
class VaultEnv:
    ledger: Ledger
    vault: NFTVault
    pusd: FungibleToken
    jpeg: FungibleToken
    punks: CollectibleCustody
    roles: RoleRegistry
    staking: StakingRegistry
    eth_oracle: PriceFeed
    floor_oracle: StaticPriceFeed
    fallback_oracle: StaticPriceFeed
    jpeg_oracle: StaticPriceFeed

    def mint_and_approve(self, wallet: str, asset_id: int) -> None:
        self.punks.mint(wallet, asset_id)
        self.punks.approve(wallet, self.vault.name, asset_id)

    def fund(self, wallet: str, amount: int) -> None:
        """Give a wallet PUSD from outside the vault."""
        self.pusd.issue(wallet, amount)

    def fund_jpeg(self, wallet: str, amount: int) -> None:
        self.jpeg.issue(wallet, amount)
        self.jpeg.approve(wallet, self.vault.name, amount)

    def advance(self, **delta) -> datetime:
        self.ledger.advance_time(self.ledger.current_time + timedelta(**delta))
        return self.ledger.current_time

    def enable_jpeg_oracle(self) -> None:
        self.vault.set_jpeg_oracle("dao", self.jpeg_oracle)


def build_vault_env(
    settings: RiskParameters = None,
    eth_path: Optional[List[Tuple[datetime, int]]] = None,
    verbose: bool = False,
) -> VaultEnv:
    """
    Args:
        eth_path: (time, answer) ETH/USD observations with 8 decimals; the
            feed then reads the ledger clock instead of a fixed 3000 USD
    """
    ledger = Ledger("test", T0, verbose=verbose, test_mode=True)
    for wallet in WALLETS:
        ledger.register_wallet(wallet)

    pusd = FungibleToken(ledger, "PUSD", "PUSD Stablecoin")
    jpeg = FungibleToken(ledger, "JPEG", "JPEG Token")
    punks = CollectibleCustody(ledger, "PUNK", "CryptoPunks", COLLECTION_SIZE)

    roles = RoleRegistry()
    roles.grant_role(DAO_ROLE, "dao")
    roles.grant_role(LIQUIDATOR_ROLE, "dao")
    staking = StakingRegistry()

    if eth_path is None:
        eth_oracle = StaticPriceFeed(3000 * 10 ** 8, 8)
    else:
        eth_oracle = TimeSeriesPriceFeed(ledger, 8, eth_path)
    floor_oracle = StaticPriceFeed(units(50))
    fallback_oracle = StaticPriceFeed(units(10))
    jpeg_oracle = StaticPriceFeed(10 ** 15)

    vault = NFTVault(
        ledger, pusd, jpeg, punks,
        eth_usd_oracle=eth_oracle,
        floor_oracle=floor_oracle,
        permissions=roles,
        staking=staking,
        settings=settings or default_risk_parameters(),
        nft_types=[
            ("APE", Rate(10, 1), APES),
            ("ALIEN", Rate(20, 1), ALIENS),
        ],
        verbose=verbose,
    )

    return VaultEnv(
        ledger=ledger,
        vault=vault,
        pusd=pusd,
        jpeg=jpeg,
        punks=punks,
        roles=roles,
        staking=staking,
        eth_oracle=eth_oracle,
        floor_oracle=floor_oracle,
        fallback_oracle=fallback_oracle,
        jpeg_oracle=jpeg_oracle,
    )
