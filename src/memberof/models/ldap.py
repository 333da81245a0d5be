"""Data models for LDAP."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["ExportedEntry", "LDAPEntryIdentification"]


@dataclass(frozen=True)
class LDAPEntryIdentification:
    """Identification of the LDAP entry of an authenticated user."""

    relative_name: str
    """DN of the entry relative to the base of the directory context."""

    absolute_name: str
    """Full DN of the entry, used in log messages and errors."""

    @classmethod
    def from_dn(cls, dn: str, base_dn: str = "") -> LDAPEntryIdentification:
        """Build the identification of an entry from its full DN.

        Parameters
        ----------
        dn
            Full DN of the entry.
        base_dn
            Base DN of the directory context. If the entry is under this
            base, the relative name is the DN with the base removed.

        Returns
        -------
        LDAPEntryIdentification
            The identification of the entry.
        """
        suffix = f",{base_dn}"
        if base_dn and dn.lower().endswith(suffix.lower()):
            return cls(relative_name=dn[: -len(suffix)], absolute_name=dn)
        return cls(relative_name=dn, absolute_name=dn)


class ExportedEntry(BaseModel):
    """A user entry exported from the directory, as read from a file.

    Single-valued attributes may be given as a plain string. An attribute
    with an empty value is present with no values.
    """

    model_config = ConfigDict(extra="forbid")

    dn: str = Field(
        ...,
        title="DN of the entry",
        description="Full DN of the exported entry",
    )

    attributes: dict[str, list[str]] = Field(
        ...,
        title="Attributes of the entry",
        description="Map of attribute name to its values",
    )

    @field_validator("attributes", mode="before")
    @classmethod
    def _validate_attributes(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        result = {}
        for key, values in v.items():
            if values is None:
                result[key] = []
            elif isinstance(values, list):
                result[key] = [str(value) for value in values]
            else:
                result[key] = [str(values)]
        return result
