"""Exception hierarchy for pgquerygen.

All exceptions carry an exit_code for CLI return value mapping.
Inference failures additionally carry the name of the query they belong to.
"""

from __future__ import annotations

from pgquerygen.core.exit_codes import ExitCode


class QueryGenError(Exception):
    """Base exception for all pgquerygen errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(QueryGenError):
    """Connection failures, unreachable host."""

    exit_code: int = ExitCode.NETWORK_ERROR


class TimeoutError(NetworkError):
    """Statement timeout, connection timeout."""

    exit_code: int = ExitCode.TIMEOUT


class InputError(QueryGenError):
    """File not found, malformed query file, bad glob."""

    exit_code: int = ExitCode.INPUT_ERROR


class OutputError(QueryGenError):
    """Manifest could not be written."""

    exit_code: int = ExitCode.OUTPUT_ERROR


class ConfigError(QueryGenError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR


class InferenceError(QueryGenError):
    """Type inference failed for a single query."""

    exit_code: int = ExitCode.INFERENCE_ERROR

    def __init__(self, message: str, query_name: str | None = None) -> None:
        self.query_name = query_name
        super().__init__(message)


class CatalogError(InferenceError):
    """The database rejected the statement (bad SQL, missing relation...)."""


class ResultCardinalityError(InferenceError):
    """Declared :one/:many on a statement that never returns rows."""


class UnknownTypeError(InferenceError):
    """A type OID is absent from the catalog."""

    def __init__(self, type_oid: int, query_name: str | None = None) -> None:
        self.type_oid = type_oid
        if query_name:
            message = f"query {query_name}: unknown type oid {type_oid}"
        else:
            message = f"unknown type oid {type_oid}"
        super().__init__(message, query_name=query_name)
