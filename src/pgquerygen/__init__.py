"""pgquerygen - typed query descriptors inferred from a live PostgreSQL."""

from pgquerygen.__about__ import __version__

__all__ = ["__version__"]
