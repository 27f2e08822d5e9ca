"""Type inference engine: typed query descriptors from a live database."""

from pgquerygen.infer.inferrer import Inferrer, normalize_doc
from pgquerygen.infer.query import (
    InputParam,
    OutputColumn,
    ResultKind,
    SourceQuery,
    TypedQuery,
)
from pgquerygen.infer.types import TypeDescriptor, TypeKind, TypeResolver

__all__ = [
    "Inferrer",
    "InputParam",
    "OutputColumn",
    "ResultKind",
    "SourceQuery",
    "TypeDescriptor",
    "TypeKind",
    "TypeResolver",
    "TypedQuery",
    "normalize_doc",
]
