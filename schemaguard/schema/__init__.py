"""Schema matching engine.

Type resolution, compiled schema nodes, and the recursive walker.

Usage::

    from schemaguard.schema import SchemaWalker

    outcome = SchemaWalker().validate(data, {"user": {"name": str}})
    if not outcome.passed:
        print(f"{outcome.failure.path}: {outcome.failure.title_key}")
"""

from __future__ import annotations

from schemaguard.schema.context import ValidationContext
from schemaguard.schema.nodes import Constraint, Directive, SchemaNode, compile_schema
from schemaguard.schema.results import FailureDescriptor, FailureKind, ValidationOutcome
from schemaguard.schema.types import (
    ARRAY,
    BOOLEAN,
    MISSING,
    NUMBER,
    OBJECT,
    STRING,
    NamedType,
    TypeTag,
    classify,
    satisfies,
    to_marker,
)
from schemaguard.schema.walker import SchemaWalker

__all__ = [
    "ARRAY",
    "BOOLEAN",
    "Constraint",
    "Directive",
    "FailureDescriptor",
    "FailureKind",
    "MISSING",
    "NUMBER",
    "NamedType",
    "OBJECT",
    "STRING",
    "SchemaNode",
    "SchemaWalker",
    "TypeTag",
    "ValidationContext",
    "ValidationOutcome",
    "classify",
    "compile_schema",
    "satisfies",
    "to_marker",
]
