"""Glob expansion and output directory resolution for query files."""

from __future__ import annotations

import glob
from pathlib import Path
from typing import TYPE_CHECKING

from pgquerygen.core.exceptions import InputError

if TYPE_CHECKING:
    from collections.abc import Iterable

_GLOB_CHARS = frozenset("*?[")


def expand_sort_globs(patterns: Iterable[str]) -> list[Path]:
    """Absolute paths of all files matching patterns.

    Files are sorted within each pattern but patterns keep their given
    order, since a schema file may depend on one listed before it. A
    pattern without glob characters must name an existing file.
    """
    files: list[Path] = []
    for pattern in patterns:
        if not _GLOB_CHARS.intersection(pattern):
            path = Path(pattern)
            if not path.exists():
                raise InputError(f"File does not exist: {pattern}")
            files.append(path)
            continue
        matches = sorted(
            Path(m) for m in glob.glob(pattern, recursive=True) if Path(m).is_file()
        )
        files.extend(matches)
    return [f.resolve() for f in files]


def deduce_output_dir(query_files: Iterable[Path], output_dir: Path | None) -> Path:
    """Use output_dir if given, else the single directory all query files share."""
    if output_dir is not None:
        return output_dir

    dirs = {f.parent for f in query_files}
    if not dirs:
        raise InputError("No query files to deduce an output directory from")
    if len(dirs) > 1:
        msg = (
            "Cannot deduce output dir because query files use different dirs; "
            "specify explicitly with --output-dir"
        )
        raise InputError(msg)
    return dirs.pop()
