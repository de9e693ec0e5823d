"""
conftest.py - Shared pytest fixtures for vault tests

Provides common fixtures used across unit and conformance tests:
- Bare ledgers with registered wallets
- A fully wired vault environment (see tests/vault_env.py)
- Vault environments with an open position or a live value lock
"""

import pytest

from nftvault import Ledger, FungibleToken

from tests.vault_env import build_vault_env, units, T0


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def ledger():
    """Empty test-mode ledger at 2025-01-01 with alice and bob registered."""
    ledger = Ledger("test", T0, verbose=False, test_mode=True)
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    return ledger


@pytest.fixture
def pusd(ledger):
    """PUSD token on the bare ledger; alice holds 1000."""
    token = FungibleToken(ledger, "PUSD", "PUSD Stablecoin")
    token.issue("alice", units(1000))
    return token


# =============================================================================
# VAULT FIXTURES
# =============================================================================

@pytest.fixture
def env():
    """Vault environment with reference oracles and no positions."""
    return build_vault_env()


@pytest.fixture
def borrowed_env(env):
    """user holds an uninsured position on item 7000 with 30000 PUSD of debt."""
    env.mint_and_approve("user", 7000)
    env.vault.borrow("user", 7000, units(30000))
    return env


@pytest.fixture
def insured_env(env):
    """user holds an insured position on item 7000 with 30000 PUSD of debt."""
    env.mint_and_approve("user", 7000)
    env.vault.borrow("user", 7000, units(30000), use_insurance=True)
    return env


@pytest.fixture
def boosted_env(env):
    """user owns ape 7350 with a 40000 JPEG lock live for 10 days."""
    env.enable_jpeg_oracle()
    env.punks.mint("user", 7350)
    env.fund_jpeg("user", units(40000))
    env.vault.apply_trait_boost("user", 7350, T0.replace(day=11))
    return env
