"""gen command: write typed query manifests for query files.

Thin CLI layer; the work happens in core.generate.
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer

from pgquerygen.cli.commands._shared import get_app_config, get_client
from pgquerygen.core.config import resolve_gen_settings
from pgquerygen.core.exceptions import InputError, QueryGenError
from pgquerygen.core.exit_codes import ExitCode
from pgquerygen.core.generate import generate
from pgquerygen.core.paths import deduce_output_dir, expand_sort_globs


def gen_command(
    ctx: typer.Context,
    query_glob: Annotated[
        list[str] | None,
        typer.Option(
            "--query-glob",
            "-q",
            help="Query files or globs, like 'queries/**/*.sql' (repeatable)",
        ),
    ] = None,
    schema_glob: Annotated[
        list[str] | None,
        typer.Option(
            "--schema-glob",
            help="Schema files (.sql, .sql.gz) loaded in a rolled-back transaction",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output-dir",
            "-o",
            help="Where to write manifests; defaults to the query files' directory",
        ),
    ] = None,
    keep_going: Annotated[
        bool | None,
        typer.Option(
            "--keep-going/--stop-on-error",
            help="Continue past queries that fail inference",
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Statement timeout in seconds"),
    ] = None,
) -> None:
    """Generate typed query manifests by running queries against PostgreSQL."""
    settings = resolve_gen_settings(
        get_app_config(ctx),
        query_globs=query_glob,
        schema_globs=schema_glob,
        output_dir=output_dir,
        keep_going=keep_going,
    )
    if not settings.query_globs:
        typer.echo("Error: at least one --query-glob is required", err=True)
        raise typer.Exit(ExitCode.USAGE_ERROR)

    try:
        query_files = expand_sort_globs(settings.query_globs)
        if not query_files:
            raise InputError("No query files match --query-glob")
        schema_files = expand_sort_globs(settings.schema_globs)
        out_dir = deduce_output_dir(query_files, settings.output_dir)

        with get_client(ctx, timeout=timeout) as client:
            written, results = generate(
                client,
                query_files,
                out_dir,
                schema_files,
                keep_going=settings.keep_going,
            )
    except QueryGenError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(exc.exit_code) from exc

    typer.echo(f"gen: out_dir={out_dir} manifests={len(written)}")
    for path in written:
        typer.echo(f"  {path}")

    failures = [f for r in results for f in r.failures]
    if failures:
        for failure in failures:
            typer.echo(f"Error: {failure.message}", err=True)
        raise typer.Exit(ExitCode.INFERENCE_ERROR)
