"""Active Directory member-of plugin."""

from __future__ import annotations

from collections.abc import Mapping, Set
from typing import Any

import structlog
from structlog.stdlib import BoundLogger

from .config import MemberOfConfig
from .exceptions import (
    DirectoryError,
    MissingAttributeError,
    NotInitializedError,
    UserRolesError,
)
from .models.ldap import LDAPEntryIdentification
from .models.permission import ResolutionResult
from .services.roles import RoleResolver
from .storage.ldap import DirectoryContext

__all__ = ["MemberOfPlugin"]


class MemberOfPlugin:
    """Determine user permissions from the member-of attribute.

    The host application calls `initialize` once with its settings and then
    `get_user_info` for every authenticated user. Each call reads the group
    memberships and display name of the user's entry and maps the groups to
    permissions using the role buckets supplied with the call. Nothing is
    cached between calls.

    Parameters
    ----------
    logger
        Logger to use. Defaults to the ``memberof`` logger.
    """

    def __init__(self, logger: BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger("memberof")
        self._config: MemberOfConfig | None = None
        self._resolver: RoleResolver | None = None

    @property
    def config(self) -> MemberOfConfig:
        """Resolved settings of the plugin."""
        if self._config is None:
            raise NotInitializedError("Plugin has not been initialized")
        return self._config

    def initialize(self, settings: Mapping[str, Any]) -> None:
        """Resolve the plugin settings.

        Parameters
        ----------
        settings
            Settings source of the host application. Missing settings use
            their defaults.
        """
        self._config = MemberOfConfig.from_settings(settings)
        self._resolver = RoleResolver(
            self._config.group_extract_regex,
            memberof_key=self._config.memberof_key,
            name_key=self._config.person_name_key,
            logger=self._logger,
        )
        self._logger.debug(
            "Initialized member-of plugin", **self._config.model_dump()
        )

    def get_user_info(
        self,
        ctx: DirectoryContext,
        entry: LDAPEntryIdentification,
        admin_roles: Set[str],
        write_roles: Set[str],
        read_roles: Set[str],
        nodata_roles: Set[str],
    ) -> ResolutionResult:
        """Return the display name and permissions of a user.

        Parameters
        ----------
        ctx
            Directory context used to authenticate the user.
        entry
            Identification of the user's entry.
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
        NotInitializedError
            Raised if `initialize` has not been called.
        UserRolesError
            Raised if the entry could not be read or has no group membership
            attribute.
        """
        if self._resolver is None:
            raise NotInitializedError("Plugin has not been initialized")
        logger = self._logger.bind(entry=entry.absolute_name)

        try:
            attributes = ctx.get_attributes(
                entry.relative_name, self._resolver.attributes
            )
            result = self._resolver.resolve(
                attributes, admin_roles, write_roles, read_roles, nodata_roles
            )
        except (DirectoryError, MissingAttributeError) as e:
            msg = f"Could not retrieve user roles for {entry.absolute_name}"
            logger.error(msg, error=str(e))
            raise UserRolesError(msg, entry.absolute_name) from e

        logger.debug(
            "Resolved user permissions",
            name=result.name,
            permissions=[p.value for p in result.sorted_permissions()],
        )
        return result
