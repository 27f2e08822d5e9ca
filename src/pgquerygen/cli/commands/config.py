"""Configuration management CLI commands."""

from __future__ import annotations

import os

import typer

from pgquerygen.cli.commands._shared import get_app_config, get_resolved_config
from pgquerygen.core.config import PROFILE_ENV_VAR, config_path, resolve_gen_settings

config_app = typer.Typer(help="Configuration management commands")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _mask_password(value: str | None) -> str:
    if value is None:
        return "not set"
    return "***"


def _search_path(schemas: list[str]) -> str:
    return ", ".join(schemas) if schemas else "not set"


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved configuration with source attribution."""
    resolved = get_resolved_config(ctx)
    sources = resolved.sources

    typer.echo("Connection Settings (resolved):")
    connection_fields = [
        ("host", "host", resolved.host),
        ("port", "port", str(resolved.port)),
        ("database", "dbname", resolved.dbname),
        ("user", "user", resolved.user or "not set"),
        ("password", "password", _mask_password(resolved.password)),
        ("sslmode", "sslmode", resolved.sslmode),
        ("search path", "search_path", _search_path(resolved.search_path)),
        ("statement timeout", "statement_timeout", f"{resolved.statement_timeout}s"),
    ]
    for label, field_name, value in connection_fields:
        typer.echo(f"  {label}: {value} ({sources.get(field_name, 'default')})")

    gen = resolve_gen_settings(get_app_config(ctx))
    typer.echo("")
    typer.echo("Gen Defaults:")
    gen_fields = [
        ("query globs", "query_globs", ", ".join(gen.query_globs) or "none"),
        ("schema globs", "schema_globs", ", ".join(gen.schema_globs) or "none"),
        ("output dir", "output_dir", gen.output_dir or "next to query files"),
        ("keep going", "keep_going", "yes" if gen.keep_going else "no"),
    ]
    for label, field_name, value in gen_fields:
        typer.echo(f"  {label}: {value} ({gen.sources.get(field_name, 'default')})")

    typer.echo("")
    typer.echo(f"Active Profile: {resolved.active_profile or 'none'}")
    typer.echo(f"Config File: {config_path(ctx.obj.get('config_file'))}")


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List available connection profiles."""
    app_config = get_app_config(ctx)
    active_profile = (
        ctx.obj.get("profile")
        or os.environ.get(PROFILE_ENV_VAR)
        or app_config.default_profile
    )

    if not app_config.profiles:
        typer.echo("No profiles configured.")
        typer.echo(f"Add profiles to: {config_path(ctx.obj.get('config_file'))}")
        return

    typer.echo("Available Profiles:")
    typer.echo("")
    for name, profile in sorted(app_config.profiles.items()):
        is_active = name == active_profile
        marker = "* " if is_active else "  "
        label = " (active)" if is_active else ""
        typer.echo(f"{marker}{name}{label}")

        display_fields = [
            ("host", profile.host),
            ("port", str(profile.port)),
            ("database", profile.dbname),
        ]
        if profile.user:
            display_fields.append(("user", profile.user))
        if profile.search_path:
            display_fields.append(("search path", _search_path(profile.search_path)))
        if profile.statement_timeout is not None:
            display_fields.append(("statement timeout", f"{profile.statement_timeout}s"))

        for field_name, value in display_fields:
            typer.echo(f"      {field_name}: {value}")
        typer.echo("")
