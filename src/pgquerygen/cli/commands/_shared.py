"""Shared CLI plumbing for command modules.

Config loading, client creation, format-option handling and output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pgquerygen.cli.output import get_formatter, write_output
from pgquerygen.core.client import PgClient
from pgquerygen.core.config import load_config, resolve_config

if TYPE_CHECKING:
    from collections.abc import Sequence

    import typer

    from pgquerygen.core.config import AppConfig, ResolvedConfig
    from pgquerygen.infer.query import TypedQuery


def get_app_config(ctx: typer.Context) -> AppConfig:
    obj = ctx.ensure_object(dict)
    return load_config(obj.get("config_file"))


def get_resolved_config(
    ctx: typer.Context, timeout: float | None = None
) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = get_app_config(ctx)

    cli_overrides: dict[str, Any] = {}
    for key in ("host", "port", "database", "user", "password", "schema"):
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    if timeout is not None:
        cli_overrides["timeout"] = timeout

    return resolve_config(
        config,
        profile_name=obj.get("profile"),
        dsn=obj.get("dsn"),
        **cli_overrides,
    )


def get_client(ctx: typer.Context, timeout: float | None = None) -> PgClient:
    return PgClient(get_resolved_config(ctx, timeout))


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format"),
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def output_queries(
    ctx: typer.Context, queries: Sequence[TypedQuery], default_format: str = "table"
) -> None:
    formatter = get_formatter(default_format=default_format, **format_options(ctx))
    write_output(formatter, queries)
