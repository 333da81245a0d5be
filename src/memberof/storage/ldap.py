"""LDAP storage layer for memberof."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

import bonsai
import structlog
from bonsai import LDAPConnection, LDAPSearchScope
from structlog.stdlib import BoundLogger

from ..constants import LDAP_TIMEOUT
from ..exceptions import DirectoryError

__all__ = [
    "BonsaiDirectoryContext",
    "DirectoryContext",
    "StaticDirectoryContext",
]


class DirectoryContext(Protocol):
    """An authenticated connection to a directory server.

    The caller owns the connection. Implementations read attributes only and
    must not open, pool, or close connections.
    """

    def get_attributes(
        self, name: str, attrlist: Sequence[str]
    ) -> Mapping[str, Sequence[str]]:
        """Read attributes of one entry.

        Parameters
        ----------
        name
            Name of the entry relative to the context.
        attrlist
            Attributes to retrieve.

        Returns
        -------
        dict of list of str
            Retrieved attributes. Attributes the entry does not have are
            omitted.

        Raises
        ------
        DirectoryError
            Raised if the attributes could not be read.
        """


class BonsaiDirectoryContext:
    """Directory context backed by a bound bonsai connection.

    Parameters
    ----------
    connection
        Synchronous bonsai connection, already bound by the caller.
    base_dn
        Base DN of the context. Names passed to `get_attributes` are
        relative to it.
    timeout
        Timeout (in seconds) of each read.
    logger
        Logger for debug messages.
    """

    def __init__(
        self,
        connection: LDAPConnection,
        base_dn: str = "",
        *,
        timeout: float = LDAP_TIMEOUT,
        logger: BoundLogger | None = None,
    ) -> None:
        self._conn = connection
        self._base_dn = base_dn
        self._timeout = timeout
        self._logger = logger or structlog.get_logger("memberof")

    def get_attributes(
        self, name: str, attrlist: Sequence[str]
    ) -> dict[str, list[str]]:
        """Read attributes of one entry.

        Parameters
        ----------
        name
            Name of the entry relative to the base DN.
        attrlist
            Attributes to retrieve.

        Returns
        -------
        dict of list of str
            Retrieved attributes. Attributes the entry does not have are
            omitted.

        Raises
        ------
        DirectoryError
            Raised if the search failed or the entry does not exist. Also
            raised if an attribute value is not valid UTF-8.
        """
        dn = self._absolute(name)
        logger = self._logger.bind(ldap_base=dn, ldap_attrs=list(attrlist))
        try:
            logger.debug("Querying LDAP")
            results = self._conn.search(
                base=dn,
                scope=LDAPSearchScope.BASE,
                filter_exp="(objectClass=*)",
                attrlist=list(attrlist),
                timeout=self._timeout,
            )
        except bonsai.LDAPError as e:
            raise DirectoryError(f"Error querying LDAP: {e}", dn) from e
        logger.debug("LDAP entry found", ldap_results=results)

        if not results:
            raise DirectoryError(f"LDAP entry {dn} not found", dn)
        return _select(results[0], attrlist, dn)

    def _absolute(self, name: str) -> str:
        if not self._base_dn:
            return name
        if not name:
            return self._base_dn
        return f"{name},{self._base_dn}"


class StaticDirectoryContext:
    """Directory context serving entries exported from a directory.

    Used to resolve permissions offline, for example from the command line.

    Parameters
    ----------
    entries
        Map from entry name to the attributes of that entry.
    """

    def __init__(
        self, entries: Mapping[str, Mapping[str, Sequence[str]]]
    ) -> None:
        self._entries = {k.casefold(): v for k, v in entries.items()}

    def get_attributes(
        self, name: str, attrlist: Sequence[str]
    ) -> dict[str, list[str]]:
        """Return the requested attributes of an exported entry.

        Raises
        ------
        DirectoryError
            Raised if there is no entry with that name.
        """
        attributes = self._entries.get(name.casefold())
        if attributes is None:
            raise DirectoryError(f"LDAP entry {name} not found", name)
        return _select(attributes, attrlist, name)


def _select(
    attributes: Mapping[str, Sequence[object]],
    attrlist: Sequence[str],
    dn: str,
) -> dict[str, list[str]]:
    wanted = {a.casefold() for a in attrlist}
    try:
        return {
            key: [_to_str(v) for v in values]
            for key, values in attributes.items()
            if key.casefold() in wanted
        }
    except UnicodeDecodeError as e:
        msg = f"Invalid attribute value in LDAP entry {dn}: {e}"
        raise DirectoryError(msg, dn) from e


def _to_str(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode()
    return str(value)
