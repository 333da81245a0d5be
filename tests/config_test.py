"""Test configuration parsing."""

from __future__ import annotations

import pytest
import yaml
from pydantic import ValidationError
from safir.logging import LogLevel

from memberof.config import (
    CLIConfig,
    MemberOfConfig,
    RoleMapping,
    get_setting,
    has_setting,
    read_string,
)
from memberof.constants import (
    DEFAULT_GROUP_EXTRACT_REGEX,
    DEFAULT_MEMBEROF_KEY,
    DEFAULT_PERSON_NAME_KEY,
)

from .support.config import config_path


def test_read_string() -> None:
    assert read_string({}, "memberof.key", "memberOf") == "memberOf"
    flat = {"memberof.key": "isMemberOf"}
    assert read_string(flat, "memberof.key", "x") == "isMemberOf"
    nested = {"memberof": {"key": "isMemberOf"}}
    assert read_string(nested, "memberof.key", "x") == "isMemberOf"

    # Present but empty settings are used as is.
    assert read_string({"memberof.key": ""}, "memberof.key", "x") == ""

    # Null settings, such as a YAML key with no value, are not present.
    assert read_string({"memberof.key": None}, "memberof.key", "x") == "x"
    assert read_string({"memberof": {"key": None}}, "memberof.key", "x") == "x"
    assert not has_setting({"memberof.key": None}, "memberof.key")
    config = MemberOfConfig.from_settings(yaml.safe_load("memberof.key:\n"))
    assert config.memberof_key == DEFAULT_MEMBEROF_KEY

    # Partial paths fall back to the default.
    assert read_string({"memberof": "value"}, "memberof.key", "x") == "x"
    assert read_string({"memberof": {}}, "memberof.key", "x") == "x"


def test_mixed_nesting() -> None:
    settings = {
        "group": {"extract.regex": "a"},
        "person.name": {"key": "b"},
        "other": {"memberof": {"key": "c"}},
    }
    assert read_string(settings, "group.extract.regex", "x") == "a"
    assert read_string(settings, "person.name.key", "x") == "b"
    assert read_string(settings, "memberof.key", "x") == "x"
    assert has_setting(settings, "group.extract.regex")
    assert not has_setting(settings, "group.extract")
    assert not has_setting(settings, "memberof.key")


def test_get_setting() -> None:
    settings = {"ldap": {"timeout": "10"}}
    assert get_setting(settings, "ldap.timeout", 5.0, float) == 10.0
    assert get_setting(settings, "ldap.retries", 0, int) == 0

    # The extractor is not called for missing settings.
    def fail(value: object) -> int:
        raise AssertionError("extractor called")

    assert get_setting({}, "ldap.retries", 3, fail) == 3


def test_defaults() -> None:
    config = MemberOfConfig.from_settings({})
    assert config.memberof_key == DEFAULT_MEMBEROF_KEY == "memberOf"
    assert config.group_extract_regex == DEFAULT_GROUP_EXTRACT_REGEX
    assert config.person_name_key == DEFAULT_PERSON_NAME_KEY == "sn"


def test_from_settings() -> None:
    config = MemberOfConfig.from_settings(
        {
            "memberof.key": "isMemberOf",
            "group": {"extract": {"regex": "cn=(\\w+)"}},
            "unrelated.setting": True,
        }
    )
    assert config.memberof_key == "isMemberOf"
    assert config.group_extract_regex == "cn=(\\w+)"
    assert config.person_name_key == "sn"
    assert config.to_settings() == {
        "memberof.key": "isMemberOf",
        "group.extract.regex": "cn=(\\w+)",
        "person.name.key": "sn",
    }


def test_invalid_pattern_accepted() -> None:
    config = MemberOfConfig.from_settings({"group.extract.regex": "CN=(\\w+"})
    assert config.group_extract_regex == "CN=(\\w+"


def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEMBEROF_PERSON_NAME_KEY", "displayName")
    monkeypatch.setenv("MEMBEROF_MEMBEROF_KEY", "isMemberOf")
    config = MemberOfConfig.from_settings({"memberof.key": "groupMembership"})
    assert config.person_name_key == "displayName"
    assert config.memberof_key == "groupMembership"


def test_role_mapping() -> None:
    roles = RoleMapping(admin=["Admins"], read=["Viewers", "AUDITORS"])
    assert roles.buckets() == (
        frozenset({"admins"}),
        frozenset(),
        frozenset({"viewers", "auditors"}),
        frozenset(),
    )
    with pytest.raises(ValidationError):
        RoleMapping.model_validate({"owner": ["admins"]})


def test_config_file() -> None:
    config = CLIConfig.from_file(config_path("default"))
    assert config.log_level == LogLevel.INFO
    assert config.settings == {}
    assert config.roles.buckets() == (
        frozenset({"admins"}),
        frozenset({"developers"}),
        frozenset({"viewers"}),
        frozenset({"auditors"}),
    )

    config = CLIConfig.from_file(config_path("nested"))
    assert config.log_level == LogLevel.WARNING
    plugin_config = MemberOfConfig.from_settings(config.settings)
    assert plugin_config.memberof_key == "groupMembership"
    assert plugin_config.group_extract_regex == "(?i)CN=([\\w-]+),ou=Teams.*"
    assert plugin_config.person_name_key == "displayName"
    assert config.roles.write == []


def test_config_invalid_log_level() -> None:
    with pytest.raises(ValidationError, match="logLevel"):
        CLIConfig.from_file(config_path("bad-log-level"))
