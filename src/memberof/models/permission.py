"""Permission tiers and the result of resolving them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "IMPLIED_PERMISSIONS",
    "Permission",
    "ResolutionResult",
]


class Permission(Enum):
    """A permission tier.

    Tiers are totally ordered by privilege: ``admin`` > ``write`` > ``read``
    > ``nodata``. Holding a tier implies holding every lower tier.
    """

    admin = "ADMIN"
    """Full administrative access."""

    write = "WRITE"
    """May modify data."""

    read = "READ"
    """May read data."""

    nodata = "NODATA"
    """May see metadata but no data."""

    @property
    def rank(self) -> int:
        """Privilege rank of the tier, where higher is more privileged."""
        return _RANKS[self]

    def implied(self) -> frozenset[Permission]:
        """Return this tier together with every tier it implies."""
        return IMPLIED_PERMISSIONS[self]


_RANKS = {
    Permission.nodata: 0,
    Permission.read: 1,
    Permission.write: 2,
    Permission.admin: 3,
}

IMPLIED_PERMISSIONS: dict[Permission, frozenset[Permission]] = {
    tier: frozenset(p for p in Permission if p.rank <= tier.rank)
    for tier in Permission
}
"""Map from a permission tier to the upward-closed set it grants."""


@dataclass
class ResolutionResult:
    """Display name and permissions of a user.

    A new instance is returned by every resolution and belongs to the caller.
    """

    name: str | None = None
    """Display name of the user, if the directory entry has one."""

    permissions: set[Permission] = field(default_factory=set)
    """Permissions granted by the user's group memberships."""

    def sorted_permissions(self) -> list[Permission]:
        """Return the permissions ordered from most to least privileged."""
        return sorted(self.permissions, key=lambda p: p.rank, reverse=True)
