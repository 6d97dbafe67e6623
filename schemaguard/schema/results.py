"""Validation outcome and failure descriptor models."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from schemaguard.schema.nodes import Level


class FailureKind(str, Enum):
    """Why a validation run stopped."""

    CONFIGURATION = "configuration"
    MISSING = "missing"
    TYPE_MISMATCH = "type_mismatch"
    STRICT_KEYS = "strict_keys"
    CONSTRAINT = "constraint"
    RECURSION = "recursion"


class FailureDescriptor(BaseModel):
    """The first failure met during a run.

    Attributes:
        kind: Failure category.
        title_key: Short title; ``None`` lets the caller's default apply.
        body_key: Detailed text; ``None`` lets the caller's default apply.
        level: Severity, ``error`` unless a directive overrides it.
        error: Captured fault for configuration/unexpected failures only.
        context: Context at the failing position (``None`` for schema faults).
        builder: Failure builder declared on the failing directive, if any.
        prefix: Control-key prefix used when rendering schemas.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: FailureKind
    title_key: str | None = None
    body_key: str | None = None
    level: Level = "error"
    error: BaseException | None = None
    # ValidationContext, stored as-is
    context: Any = None
    builder: Callable[..., Any] | None = Field(default=None, exclude=True)
    prefix: str = "$"

    @property
    def path(self) -> str:
        return self.context.path if self.context is not None else ""

    @property
    def arguments(self) -> dict[str, Any]:
        """Validation context at the time of failure."""
        if self.context is None:
            return {"actual_path": ""}
        return self.context.to_arguments(self.prefix)

    def is_unexpected(self) -> bool:
        return self.error is not None


class ValidationOutcome(BaseModel):
    """Result of one walk: passed, or the first failure."""

    model_config = ConfigDict(frozen=True)

    passed: bool
    failure: FailureDescriptor | None = None

    @classmethod
    def ok(cls) -> ValidationOutcome:
        return _PASSED

    @classmethod
    def fail(cls, failure: FailureDescriptor) -> ValidationOutcome:
        return cls(passed=False, failure=failure)

    def __bool__(self) -> bool:
        return self.passed


_PASSED = ValidationOutcome(passed=True)
