"""Resolution of LDAP group memberships into permissions."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence, Set

import structlog
from structlog.stdlib import BoundLogger

from ..constants import (
    DEFAULT_GROUP_EXTRACT_REGEX,
    DEFAULT_MEMBEROF_KEY,
    DEFAULT_PERSON_NAME_KEY,
)
from ..exceptions import InvalidGroupPatternError, MissingAttributeError
from ..models.permission import Permission, ResolutionResult

__all__ = ["RoleResolver", "get_attribute"]


def get_attribute(
    attributes: Mapping[str, Sequence[str]], name: str
) -> Sequence[str] | None:
    """Return the values of an attribute, matching its name without case.

    Parameters
    ----------
    attributes
        Attributes of a directory entry.
    name
        Name of the attribute.

    Returns
    -------
    list of str or None
        The values of the attribute, or `None` if it is not present. An
        attribute that is present with no values returns an empty sequence.
    """
    if name in attributes:
        return attributes[name]
    folded = name.casefold()
    for key, values in attributes.items():
        if key.casefold() == folded:
            return values
    return None


class RoleResolver:
    """Compute the permissions granted by a user's group memberships.

    Each value of the group membership attribute is matched against the
    group extraction pattern. The first capture group, lowercased, is the
    group name. The group name is looked up in the role buckets from most to
    least privileged and the first bucket containing it grants its tier,
    along with every tier below it. Values that do not match the pattern and
    groups in no bucket grant nothing.

    The resolver holds only its settings, so one instance may be shared.

    Parameters
    ----------
    group_regex
        Pattern extracting the group name from a group DN. Not checked until
        the first resolution. Character classes match ASCII characters
        only.
    memberof_key
        Attribute listing the user's group DNs.
    name_key
        Attribute holding the user's display name.
    logger
        Logger for debug messages.
    """

    def __init__(
        self,
        group_regex: str = DEFAULT_GROUP_EXTRACT_REGEX,
        *,
        memberof_key: str = DEFAULT_MEMBEROF_KEY,
        name_key: str = DEFAULT_PERSON_NAME_KEY,
        logger: BoundLogger | None = None,
    ) -> None:
        self._group_regex = group_regex
        self._memberof_key = memberof_key
        self._name_key = name_key
        self._logger = logger or structlog.get_logger("memberof")

    @property
    def attributes(self) -> list[str]:
        """Attributes that must be fetched for a resolution."""
        return [self._memberof_key, self._name_key]

    def resolve(
        self,
        attributes: Mapping[str, Sequence[str]],
        admin_roles: Set[str],
        write_roles: Set[str],
        read_roles: Set[str],
        nodata_roles: Set[str],
    ) -> ResolutionResult:
        """Resolve the display name and permissions of a user.

        Parameters
        ----------
        attributes
            Attributes of the user's directory entry.
        admin_roles
            Lowercase names of groups granting admin rights.
        write_roles
            Lowercase names of groups granting write rights.
        read_roles
            Lowercase names of groups granting read rights.
        nodata_roles
            Lowercase names of groups granting no-data rights.

        Returns
        -------
        ResolutionResult
            Display name and permissions of the user.

        Raises
        ------
        InvalidGroupPatternError
            Raised if the group extraction pattern is not a valid regular
            expression or has no capture group.
        MissingAttributeError
            Raised if the group membership attribute is not present. This
            usually means the directory schema or the ``memberof.key``
            setting is wrong, so it is not treated as having no groups.
        """
        pattern = self._compile()
        members = get_attribute(attributes, self._memberof_key)
        if members is None:
            raise MissingAttributeError(self._memberof_key)

        buckets = _ordered_buckets(
            admin_roles, write_roles, read_roles, nodata_roles
        )
        permissions: set[Permission] = set()
        for value in members:
            group = self._extract(pattern, str(value))
            if group is None:
                self._logger.debug("Ignoring group", group_dn=str(value))
                continue
            tier = _classify(group, buckets)
            if tier is not None:
                permissions.update(tier.implied())

        return ResolutionResult(
            name=self._get_name(attributes), permissions=permissions
        )

    def extract_group(self, value: str) -> str | None:
        """Extract the lowercase group name from a group DN.

        Parameters
        ----------
        value
            One value of the group membership attribute.

        Returns
        -------
        str or None
            The group name, or `None` if the value does not match.

        Raises
        ------
        InvalidGroupPatternError
            Raised if the group extraction pattern is unusable.
        """
        return self._extract(self._compile(), value)

    def classify(
        self,
        group: str,
        admin_roles: Set[str],
        write_roles: Set[str],
        read_roles: Set[str],
        nodata_roles: Set[str],
    ) -> Permission | None:
        """Return the tier granted by a single lowercase group name.

        The buckets are checked from most to least privileged, so a group
        listed in several buckets gets the most privileged one.
        """
        buckets = _ordered_buckets(
            admin_roles, write_roles, read_roles, nodata_roles
        )
        return _classify(group, buckets)

    def _compile(self) -> re.Pattern[str]:
        try:
            pattern = re.compile(self._group_regex, re.ASCII)
        except re.error as e:
            msg = f"Invalid group extraction pattern {self._group_regex}: {e}"
            raise InvalidGroupPatternError(msg) from e
        if pattern.groups < 1:
            msg = (
                f"Group extraction pattern {self._group_regex} has no"
                " capture group"
            )
            raise InvalidGroupPatternError(msg)
        return pattern

    def _extract(self, pattern: re.Pattern[str], value: str) -> str | None:
        match = pattern.search(value)
        if not match or match.group(1) is None:
            return None
        return match.group(1).lower()

    def _get_name(self, attributes: Mapping[str, Sequence[str]]) -> str | None:
        values = get_attribute(attributes, self._name_key)
        if not values:
            return None
        return str(values[0])


def _ordered_buckets(
    admin_roles: Set[str],
    write_roles: Set[str],
    read_roles: Set[str],
    nodata_roles: Set[str],
) -> list[tuple[Set[str], Permission]]:
    return [
        (admin_roles, Permission.admin),
        (write_roles, Permission.write),
        (read_roles, Permission.read),
        (nodata_roles, Permission.nodata),
    ]


def _classify(
    group: str, buckets: list[tuple[Set[str], Permission]]
) -> Permission | None:
    for bucket, tier in buckets:
        if group in bucket:
            return tier
    return None
