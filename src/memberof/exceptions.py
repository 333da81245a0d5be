"""Exceptions for memberof."""

from __future__ import annotations

from safir.slack.blockkit import SlackException

__all__ = [
    "DirectoryError",
    "InvalidGroupPatternError",
    "MissingAttributeError",
    "NotInitializedError",
    "UserRolesError",
]


class DirectoryError(SlackException):
    """Reading attributes from the directory server failed.

    The ``user`` attribute holds the name of the entry being read, if known.
    """


class MissingAttributeError(SlackException):
    """A required attribute was not present on a directory entry.

    Parameters
    ----------
    attribute
        Name of the missing attribute.
    entry
        Name of the entry, if known.
    """

    def __init__(self, attribute: str, entry: str | None = None) -> None:
        self.attribute = attribute
        super().__init__(f"Attribute {attribute} not found", entry)


class UserRolesError(SlackException):
    """The permissions of a user could not be determined.

    This is the only error raised to callers of the plugin when the directory
    lookup fails or the entry lacks its group memberships. The caller should
    deny access. Any retry policy belongs to the caller.
    """


class InvalidGroupPatternError(ValueError):
    """The group extraction pattern cannot be used for matching."""


class NotInitializedError(RuntimeError):
    """The plugin was used before being initialized."""
