"""
access.py - Permission gate and staking status collaborators

The vault does not store roles or stakes itself. It asks a PermissionGate
whether a caller holds a role and a StakingStatus whether a borrower holds a
qualifying stake. RoleRegistry and StakingRegistry are in-memory versions of
both.
"""

from __future__ import annotations
from collections import defaultdict
from functools import wraps
from typing import Dict, Protocol, Set, runtime_checkable

from .core import Unauthorized


@runtime_checkable
class PermissionGate(Protocol):
    def has_role(self, role: str, principal: str) -> bool:
        ...


@runtime_checkable
class StakingStatus(Protocol):
    def is_qualifying_stake_holder(self, principal: str) -> bool:
        ...


class RoleRegistry:
    """Role -> members mapping."""

    def __init__(self):
        self._members: Dict[str, Set[str]] = defaultdict(set)

    def grant_role(self, role: str, principal: str) -> None:
        self._members[role].add(principal)

    def revoke_role(self, role: str, principal: str) -> None:
        self._members[role].discard(principal)

    def has_role(self, role: str, principal: str) -> bool:
        return principal in self._members.get(role, ())

    def __repr__(self):
        roles = {role: sorted(members) for role, members in self._members.items()}
        return f"RoleRegistry({roles})"


class StakingRegistry:
    """Set of principals holding a qualifying stake."""

    def __init__(self):
        self._stakers: Set[str] = set()

    def stake(self, principal: str) -> None:
        self._stakers.add(principal)

    def unstake(self, principal: str) -> None:
        self._stakers.discard(principal)

    def is_qualifying_stake_holder(self, principal: str) -> bool:
        return principal in self._stakers


def requires_role(role: str):
    """
    Gate a vault entry point on a role.

    The decorated method takes the caller as its first argument and reads the
    gate from self.permissions.

    Raises:
        Unauthorized: If the caller does not hold the role.
    """
    def decorator(method):
        @wraps(method)
        def wrapper(self, caller: str, *args, **kwargs):
            if not self.permissions.has_role(role, caller):
                raise Unauthorized()
            return method(self, caller, *args, **kwargs)
        return wrapper
    return decorator
