"""Configuration for memberof.

The plugin is configured by a settings source supplied by its host: a mapping
of dotted setting names, such as ``memberof.key``, to values. The source may
be either flat (the dotted name is a key) or nested (each component of the
name is a level of a mapping, as produced by parsing a YAML document). Every
setting is optional and falls back to a default.

The role buckets are maintained by the administrator of the host
application. `RoleMapping` is the form used by the command-line interface.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict
from safir.logging import LogLevel, configure_logging

from .constants import (
    DEFAULT_GROUP_EXTRACT_REGEX,
    DEFAULT_MEMBEROF_KEY,
    DEFAULT_PERSON_NAME_KEY,
    GROUP_EXTRACT_REGEX_SETTING,
    MEMBEROF_KEY_SETTING,
    PERSON_NAME_KEY_SETTING,
)

__all__ = [
    "CLIConfig",
    "MemberOfConfig",
    "RoleMapping",
    "get_setting",
    "has_setting",
    "read_string",
]

_MISSING = object()


def _lookup(settings: Mapping[str, Any], key: str) -> Any:
    if settings.get(key) is not None:
        return settings[key]
    head, sep, rest = key.partition(".")
    while sep:
        child = settings.get(head)
        if isinstance(child, Mapping):
            value = _lookup(child, rest)
            if value is not _MISSING:
                return value
        more, sep, rest = rest.partition(".")
        head = f"{head}.{more}"
    return _MISSING


def has_setting(settings: Mapping[str, Any], key: str) -> bool:
    """Return whether a setting is present in a settings source.

    Parameters
    ----------
    settings
        Settings source, either flat or nested.
    key
        Dotted name of the setting.

    Returns
    -------
    bool
        `True` if the setting is present, even if its value is empty. A
        null value counts as not present.
    """
    return _lookup(settings, key) is not _MISSING


def get_setting[T](
    settings: Mapping[str, Any],
    key: str,
    default: T,
    extractor: Callable[[Any], T],
) -> T:
    """Read a setting, returning a default if it is not present.

    Parameters
    ----------
    settings
        Settings source, either flat or nested.
    key
        Dotted name of the setting.
    default
        Value to return if the setting is not present.
    extractor
        Conversion from the raw setting value to the desired type.

    Returns
    -------
    T
        The converted setting value if present, otherwise ``default``.
    """
    value = _lookup(settings, key)
    if value is _MISSING:
        return default
    return extractor(value)


def read_string(settings: Mapping[str, Any], key: str, default: str) -> str:
    """Read a string setting, returning a default if it is not present."""
    return get_setting(settings, key, default, str)


class MemberOfConfig(BaseSettings):
    """Settings of the member-of plugin.

    Any setting may be overridden by an environment variable with the
    ``MEMBEROF_`` prefix when it is not given explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMBEROF_", extra="forbid", frozen=True
    )

    memberof_key: str = Field(
        DEFAULT_MEMBEROF_KEY,
        title="Group membership attribute",
        description=(
            "Multi-valued attribute of the user entry listing the DNs of the"
            " groups the user belongs to."
        ),
    )

    group_extract_regex: str = Field(
        DEFAULT_GROUP_EXTRACT_REGEX,
        title="Group extraction pattern",
        description=(
            "Regular expression applied to each group DN. The first capture"
            " group is the group name that is looked up in the role buckets."
            " DNs that do not match are ignored. The pattern is not checked"
            " until it is first used."
        ),
    )

    person_name_key: str = Field(
        DEFAULT_PERSON_NAME_KEY,
        title="Display name attribute",
        description="Attribute of the user entry holding the display name",
    )

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> Self:
        """Resolve the plugin settings from a settings source.

        Parameters
        ----------
        settings
            Settings source supplied by the host application.

        Returns
        -------
        MemberOfConfig
            The resolved settings, with defaults for anything not present.
        """
        defaults = cls()
        return cls(
            memberof_key=read_string(
                settings, MEMBEROF_KEY_SETTING, defaults.memberof_key
            ),
            group_extract_regex=read_string(
                settings,
                GROUP_EXTRACT_REGEX_SETTING,
                defaults.group_extract_regex,
            ),
            person_name_key=read_string(
                settings, PERSON_NAME_KEY_SETTING, defaults.person_name_key
            ),
        )

    def to_settings(self) -> dict[str, str]:
        """Return the settings as a flat settings source."""
        return {
            MEMBEROF_KEY_SETTING: self.memberof_key,
            GROUP_EXTRACT_REGEX_SETTING: self.group_extract_regex,
            PERSON_NAME_KEY_SETTING: self.person_name_key,
        }


class RoleMapping(BaseModel):
    """Mapping of LDAP group names to permission tiers.

    Group names are compared in lowercase, so they are lowercased here.
    Buckets should not overlap. If they do, the most privileged bucket wins.
    """

    model_config = ConfigDict(extra="forbid")

    admin: list[str] = Field(
        [],
        title="Admin groups",
        description="Groups whose members get admin rights",
    )

    write: list[str] = Field(
        [],
        title="Write groups",
        description="Groups whose members get write rights",
    )

    read: list[str] = Field(
        [],
        title="Read groups",
        description="Groups whose members get read rights",
    )

    nodata: list[str] = Field(
        [],
        title="No-data groups",
        description="Groups whose members may see metadata only",
    )

    @field_validator("admin", "write", "read", "nodata")
    @classmethod
    def _validate_groups(cls, v: list[str]) -> list[str]:
        return [g.lower() for g in v]

    def buckets(
        self,
    ) -> tuple[frozenset[str], frozenset[str], frozenset[str], frozenset[str]]:
        """Return the admin, write, read, and no-data buckets, in order."""
        return (
            frozenset(self.admin),
            frozenset(self.write),
            frozenset(self.read),
            frozenset(self.nodata),
        )


class CLIConfig(BaseModel):
    """Configuration file of the command-line interface."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
    )

    settings: dict[str, Any] = Field(
        {},
        title="Plugin settings",
        description="Settings source for the plugin, flat or nested",
    )

    roles: RoleMapping = Field(
        default_factory=RoleMapping,
        title="Role mapping",
        description="Group names granting each permission tier",
    )

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a configuration from a YAML file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        CLIConfig
            The corresponding configuration.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f) or {})

    def configure_logging(self) -> None:
        """Configure logging based on the configuration."""
        configure_logging(name="memberof", log_level=self.log_level)
