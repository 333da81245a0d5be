"""Constants for memberof."""

__all__ = [
    "DEFAULT_GROUP_EXTRACT_REGEX",
    "DEFAULT_MEMBEROF_KEY",
    "DEFAULT_PERSON_NAME_KEY",
    "GROUP_EXTRACT_REGEX_SETTING",
    "LDAP_TIMEOUT",
    "MEMBEROF_KEY_SETTING",
    "PERSON_NAME_KEY_SETTING",
]

MEMBEROF_KEY_SETTING = "memberof.key"
"""Setting naming the attribute that holds group memberships."""

GROUP_EXTRACT_REGEX_SETTING = "group.extract.regex"
"""Setting holding the pattern that extracts a group name from a DN."""

PERSON_NAME_KEY_SETTING = "person.name.key"
"""Setting naming the attribute that holds the display name."""

DEFAULT_MEMBEROF_KEY = "memberOf"
"""Default group membership attribute, as used by Active Directory."""

DEFAULT_GROUP_EXTRACT_REGEX = r"(?i)CN=(\w+),ou=Groups.*"
"""Default group extraction pattern.

Captures the leading common name of a group DN that lives under an
``ou=Groups`` subtree. Matching is case-insensitive.
"""

DEFAULT_PERSON_NAME_KEY = "sn"
"""Default display name attribute."""

LDAP_TIMEOUT = 5.0
"""Timeout (in seconds) for reading the attributes of one entry."""
