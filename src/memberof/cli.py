"""Command-line interface for checking permission resolution."""

from __future__ import annotations

import json
from pathlib import Path

import click
import structlog
import yaml
from pydantic import ValidationError
from safir.click import display_help

from .config import CLIConfig, RoleMapping
from .exceptions import InvalidGroupPatternError, UserRolesError
from .models.ldap import ExportedEntry, LDAPEntryIdentification
from .plugin import MemberOfPlugin
from .storage.ldap import StaticDirectoryContext

__all__ = [
    "help",
    "main",
    "resolve",
    "show_config",
]

_config_path_option = click.option(
    "--config-path",
    envvar="MEMBEROF_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=None,
    help="Configuration file with plugin settings and role mapping.",
)


def _load_config(config_path: Path | None) -> CLIConfig:
    try:
        if config_path:
            config = CLIConfig.from_file(config_path)
        else:
            config = CLIConfig()
    except (OSError, ValidationError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    config.configure_logging()
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="lenses-memberof", message="%(version)s")
def main() -> None:
    """Command-line interface for memberof."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
@click.argument(
    "entry_file", type=click.Path(exists=True, path_type=Path), nargs=1
)
@click.option(
    "--admin", multiple=True, help="Additional group granting admin rights."
)
@click.option(
    "--write", multiple=True, help="Additional group granting write rights."
)
@click.option(
    "--read", multiple=True, help="Additional group granting read rights."
)
@click.option(
    "--nodata",
    multiple=True,
    help="Additional group granting no-data rights.",
)
@_config_path_option
def resolve(
    *,
    entry_file: Path,
    admin: tuple[str, ...],
    write: tuple[str, ...],
    read: tuple[str, ...],
    nodata: tuple[str, ...],
    config_path: Path | None,
) -> None:
    """Resolve the permissions of an exported directory entry.

    ENTRY_FILE is a YAML file with the ``dn`` and ``attributes`` of the
    entry. The result is printed as JSON.
    """
    config = _load_config(config_path)
    logger = structlog.get_logger("memberof")
    try:
        with entry_file.open("r") as f:
            entry = ExportedEntry.model_validate(yaml.safe_load(f))
    except (ValidationError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid entry file: {e}") from e

    roles = RoleMapping(
        admin=[*config.roles.admin, *admin],
        write=[*config.roles.write, *write],
        read=[*config.roles.read, *read],
        nodata=[*config.roles.nodata, *nodata],
    )
    plugin = MemberOfPlugin(logger)
    plugin.initialize(config.settings)
    ctx = StaticDirectoryContext({entry.dn: entry.attributes})
    try:
        result = plugin.get_user_info(
            ctx, LDAPEntryIdentification.from_dn(entry.dn), *roles.buckets()
        )
    except (InvalidGroupPatternError, UserRolesError) as e:
        raise click.ClickException(str(e)) from e

    output = {
        "name": result.name,
        "permissions": [p.value for p in result.sorted_permissions()],
    }
    click.echo(json.dumps(output, indent=2))


@main.command()
@_config_path_option
def show_config(*, config_path: Path | None) -> None:
    """Show the effective plugin settings and role mapping."""
    config = _load_config(config_path)
    plugin = MemberOfPlugin()
    plugin.initialize(config.settings)
    output = {
        "settings": plugin.config.to_settings(),
        "roles": config.roles.model_dump(),
    }
    click.echo(yaml.safe_dump(output, sort_keys=False), nl=False)
