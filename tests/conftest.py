"""Test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from safir.logging import LogLevel, Profile, configure_logging

from memberof.plugin import MemberOfPlugin
from memberof.services.roles import RoleResolver

from .support.ldap import MockLDAP


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear environment variables that override plugin settings."""
    monkeypatch.delenv("MEMBEROF_CONFIG_PATH", raising=False)
    for setting in ("MEMBEROF_KEY", "GROUP_EXTRACT_REGEX", "PERSON_NAME_KEY"):
        monkeypatch.delenv(f"MEMBEROF_{setting}", raising=False)


@pytest.fixture(autouse=True)
def configure_test_logging() -> None:
    """Log JSON at debug level so that log messages can be checked."""
    configure_logging(
        name="memberof", profile=Profile.production, log_level=LogLevel.DEBUG
    )


@pytest.fixture
def mock_ldap() -> Iterator[MockLDAP]:
    """Return a mock bonsai connection with a few entries."""
    mock = MockLDAP()
    mock.add_entry_for_test(
        "CN=Jane Doe,ou=Users,dc=example,dc=com",
        {
            "memberOf": [
                "CN=Admins,ou=Groups,dc=example,dc=com",
                "CN=Everyone,ou=Groups,dc=example,dc=com",
            ],
            "sn": ["Jane Doe"],
            "mail": ["jane@example.com"],
        },
    )
    mock.add_entry_for_test(
        "CN=Viewer,ou=Users,dc=example,dc=com",
        {"memberOf": ["cn=viewers,OU=GROUPS,dc=example,dc=com"]},
    )
    mock.add_entry_for_test(
        "CN=Broken,ou=Users,dc=example,dc=com", {"sn": ["Broken"]}
    )
    yield mock


@pytest.fixture
def plugin() -> MemberOfPlugin:
    """Return a plugin initialized with the default settings."""
    plugin = MemberOfPlugin()
    plugin.initialize({})
    return plugin


@pytest.fixture
def resolver() -> RoleResolver:
    """Return a role resolver with the default settings."""
    return RoleResolver()
