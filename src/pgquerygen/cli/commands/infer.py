"""infer command: print inferred types without writing manifests."""

from __future__ import annotations

from typing import Annotated

import typer

from pgquerygen.cli.commands._shared import get_resolved_config, output_queries
from pgquerygen.core.client import PgClient
from pgquerygen.core.exceptions import InputError, QueryGenError
from pgquerygen.core.exit_codes import ExitCode
from pgquerygen.core.generate import infer_files
from pgquerygen.core.paths import expand_sort_globs


def infer_command(
    ctx: typer.Context,
    files: Annotated[
        list[str],
        typer.Argument(help="Query files or globs to infer"),
    ],
    schema_glob: Annotated[
        list[str] | None,
        typer.Option(
            "--schema-glob",
            help="Schema files (.sql, .sql.gz) loaded in a rolled-back transaction",
        ),
    ] = None,
    keep_going: Annotated[
        bool,
        typer.Option("--keep-going", help="Continue past queries that fail inference"),
    ] = False,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Statement timeout in seconds"),
    ] = None,
) -> None:
    """Infer and print parameter and column types of query files."""
    try:
        query_files = expand_sort_globs(files)
        if not query_files:
            raise InputError("No query files match the given paths")
        schema_files = expand_sort_globs(schema_glob or [])

        resolved = get_resolved_config(ctx, timeout=timeout)
        with PgClient(resolved) as client:
            results = infer_files(
                client, query_files, schema_files, keep_going=keep_going
            )
    except QueryGenError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(exc.exit_code) from exc

    queries = [q for r in results for q in r.queries]
    output_queries(ctx, queries, default_format=resolved.default_format or "table")

    failures = [f for r in results for f in r.failures]
    if failures:
        for failure in failures:
            typer.echo(f"Error: {failure.message}", err=True)
        raise typer.Exit(ExitCode.INFERENCE_ERROR)
