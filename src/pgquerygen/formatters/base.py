"""Formatter protocol and registry for output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from pgquerygen.infer.query import TypedQuery


@runtime_checkable
class Formatter(Protocol):
    """Protocol for output formatters.

    Each formatter transforms a sequence of TypedQuery values into lines
    of formatted text.
    """

    def format(self, queries: Sequence[TypedQuery]) -> Iterator[str]:
        """Transform typed queries into formatted output lines."""
        ...


class FormatterRegistry:
    """Registry for looking up formatters by name."""

    def __init__(self) -> None:
        self._formatters: dict[str, type[Formatter]] = {}

    def register(self, name: str, formatter_class: type[Formatter]) -> None:
        self._formatters[name] = formatter_class

    def get(self, name: str, **kwargs: object) -> Formatter:
        """Return a formatter instance by name.

        Raises KeyError if the format name is not registered.
        """
        if name not in self._formatters:
            available = ", ".join(sorted(self._formatters))
            msg = f"Unknown format {name!r}. Available: {available}"
            raise KeyError(msg)
        return self._formatters[name](**kwargs)

    @property
    def available(self) -> list[str]:
        return sorted(self._formatters)


# Global registry instance populated by formatter modules.
registry = FormatterRegistry()


def typed_rows(query: TypedQuery) -> list[tuple[str, str, str, str]]:
    """Flatten a query into (role, name, type, nullable) rows.

    Parameters come first as $1..$n, then output columns in order.
    """
    rows: list[tuple[str, str, str, str]] = []
    for i, param in enumerate(query.inputs, start=1):
        rows.append((f"${i}", param.pg_name, param.pg_type.display_name, ""))
    for column in query.outputs:
        nullable = "yes" if column.nullable else "no"
        rows.append(("column", column.pg_name, column.pg_type.display_name, nullable))
    return rows
