"""Loading schema files into the catalog session.

Schema files run inside a transaction that is always rolled back, so type
inference sees the schema while the target database is left untouched.
"""

from __future__ import annotations

import gzip
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from pgquerygen.core.exceptions import InputError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path

    from pgquerygen.core.client import PgClient

SCHEMA_SUFFIXES = (".sql", ".sql.gz")


def read_schema_file(path: Path) -> str:
    if path.name.endswith(".sql.gz"):
        with gzip.open(path, "rt") as f:
            return f.read()
    if path.suffix == ".sql":
        return path.read_text()
    msg = f"Unsupported schema file {path}; expected one of {', '.join(SCHEMA_SUFFIXES)}"
    raise InputError(msg)


@contextmanager
def schema_loaded(client: PgClient, schema_files: Sequence[Path]) -> Iterator[None]:
    """Run schema_files in order for the duration of the block, then roll back."""
    if not schema_files:
        yield
        return

    log = structlog.get_logger()
    with client.connection.transaction(force_rollback=True):
        for path in schema_files:
            log.info("loading schema file", path=str(path))
            client.execute_script(read_schema_file(path))
        yield
    log.debug("schema rolled back", files=len(schema_files))
