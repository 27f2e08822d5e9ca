"""Query file inference and manifest generation.

Framework-agnostic business logic behind the gen and infer commands.
Each query file is parsed, every query in it inferred on the given
client, and (for gen) the typed queries written as a manifest.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict

from pgquerygen.core.exceptions import InferenceError
from pgquerygen.core.manifest import check_manifest_collisions, write_manifest
from pgquerygen.core.query_file import parse_query_file
from pgquerygen.core.schema import schema_loaded
from pgquerygen.infer.inferrer import Inferrer
from pgquerygen.infer.query import TypedQuery  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from pgquerygen.core.client import PgClient


class FileInference(BaseModel):
    """Outcome of inferring every query in one file."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    query_file: str
    queries: list[TypedQuery] = []
    failures: list[InferenceError] = []

    @property
    def ok(self) -> bool:
        return not self.failures


def infer_file(
    inferrer: Inferrer, query_file: Path, *, keep_going: bool = False
) -> FileInference:
    """Infer all queries of query_file.

    Without keep_going the first InferenceError propagates. With it, each
    failure is logged and collected and the remaining queries still run.
    """
    log = structlog.get_logger().bind(file=str(query_file))
    result = FileInference(query_file=str(query_file))
    for source in parse_query_file(query_file):
        try:
            result.queries.append(inferrer.infer_types(source))
        except InferenceError as e:
            if not keep_going:
                raise
            log.error("inference failed", query=source.name, error=e.message)
            result.failures.append(e)
    log.info("file inferred", queries=len(result.queries), failures=len(result.failures))
    return result


def infer_files(
    client: PgClient,
    query_files: Sequence[Path],
    schema_files: Sequence[Path] = (),
    *,
    keep_going: bool = False,
) -> list[FileInference]:
    """Infer every query file on one client, with schema_files loaded."""
    inferrer = Inferrer(client)
    with schema_loaded(client, schema_files):
        return [infer_file(inferrer, f, keep_going=keep_going) for f in query_files]


def generate(
    client: PgClient,
    query_files: Sequence[Path],
    output_dir: Path,
    schema_files: Sequence[Path] = (),
    *,
    keep_going: bool = False,
) -> tuple[list[Path], list[FileInference]]:
    """Write a manifest for each query file whose queries all inferred.

    Returns the written manifest paths and the per-file results.
    """
    log = structlog.get_logger()
    check_manifest_collisions(query_files, output_dir)
    results = infer_files(client, query_files, schema_files, keep_going=keep_going)
    written: list[Path] = []
    for query_file, result in zip(query_files, results, strict=True):
        if not result.ok:
            log.warning("skipping manifest", file=str(query_file))
            continue
        path = write_manifest(output_dir, query_file, result.queries)
        log.info("manifest written", path=str(path))
        written.append(path)
    return written, results
