"""JSON manifests of typed queries, one per query file."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pgquerygen.core.exceptions import InputError, OutputError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from pgquerygen.infer.query import TypedQuery

MANIFEST_SUFFIX = ".typed.json"


def manifest_path(output_dir: Path, query_file: Path) -> Path:
    return output_dir / f"{query_file.stem}{MANIFEST_SUFFIX}"


def check_manifest_collisions(query_files: Sequence[Path], output_dir: Path) -> None:
    """Raise InputError if two distinct query files share a manifest path."""
    owners: dict[Path, Path] = {}
    for query_file in query_files:
        path = manifest_path(output_dir, query_file)
        owner = owners.setdefault(path, query_file)
        if owner != query_file:
            msg = (
                f"Query files {owner} and {query_file} would both write "
                f"{path}; rename one or generate them into separate output dirs"
            )
            raise InputError(msg)


def render_manifest(query_file: Path, queries: Sequence[TypedQuery]) -> str:
    document = {
        "source": query_file.name,
        "queries": [q.model_dump(mode="json") for q in queries],
    }
    return json.dumps(document, indent=2) + "\n"


def write_manifest(
    output_dir: Path, query_file: Path, queries: Sequence[TypedQuery]
) -> Path:
    path = manifest_path(output_dir, query_file)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(render_manifest(query_file, queries))
    except OSError as e:
        raise OutputError(f"Cannot write manifest {path}: {e}") from e
    return path
