"""Structural validation of decoded data against declarative schemas.

Usage::

    from schemaguard import validate

    schema = {
        "user": {
            "$type": "object",
            "name": str,
            "emails": {"$type": "array", "$childsDef": {"$type": str, "$pattern": "@"}},
        }
    }
    validate(payload, schema)  # True, or raises SchemaValidationException
"""

from __future__ import annotations

from schemaguard.exceptions import (
    DeferredValueError,
    MissingValueError,
    SchemaDefinitionError,
    SchemaGuardError,
    SchemaValidationException,
)
from schemaguard.schema import FailureDescriptor, FailureKind, SchemaWalker, ValidationOutcome
from schemaguard.validator import SchemaValidator, ValidatorOptions, build_failure, check, validate

__version__ = "0.1.0"

__all__ = [
    "DeferredValueError",
    "FailureDescriptor",
    "FailureKind",
    "MissingValueError",
    "SchemaDefinitionError",
    "SchemaGuardError",
    "SchemaValidationException",
    "SchemaValidator",
    "SchemaWalker",
    "ValidationOutcome",
    "ValidatorOptions",
    "build_failure",
    "check",
    "validate",
]
