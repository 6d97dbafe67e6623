"""schemaguard exception hierarchy.

Base exceptions for schema configuration faults, plus the serializable
failure object raised by the caller-facing validator.

Usage:
    from schemaguard import validate
    from schemaguard.exceptions import SchemaValidationException

    try:
        validate(payload, schema)
    except SchemaValidationException as e:
        logger.error("Rejected payload", extra={"failure": e.to_dict()})
"""

import json
import uuid
from typing import Any


class SchemaGuardError(Exception):
    """Base exception for all schemaguard errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class SchemaDefinitionError(SchemaGuardError):
    """The schema itself is malformed (empty, unknown directive, bad value)."""

    def __init__(self, message: str, *, path: str = "", **kwargs):
        self.path = path
        super().__init__(message, **kwargs)


class MissingValueError(SchemaGuardError):
    """No value was handed to the validator."""

    pass


class DeferredValueError(SchemaGuardError):
    """A callable in the schema (deferred constraint or message) raised."""

    def __init__(self, message: str, *, path: str = "", **kwargs):
        self.path = path
        super().__init__(message, **kwargs)


class SchemaValidationException(SchemaGuardError):
    """Failure object produced by the default failure builder.

    Mirrors the failure descriptor in a serializable shape. ``e`` is only
    set when the failure came from an unexpected fault (bad schema, missing
    root value, a raising constraint callable) rather than from data that
    did not match.

    Attributes:
        title_key: Short failure title.
        body_key: Detailed failure text.
        scope: Optional grouping scope for the caller.
        level: One of INFO / DEBUG / ERROR / WARNING.
        arguments: JSON-safe snapshot of the validation context.
        e: Captured underlying fault, if any.
        payload: Object returned by a custom failure builder that is not
            itself an exception.
    """

    INFO = "info"
    DEBUG = "debug"
    ERROR = "error"
    WARNING = "warning"

    LEVELS = (INFO, DEBUG, ERROR, WARNING)

    def __init__(
        self,
        title_key: str,
        body_key: str | None = None,
        arguments: dict[str, Any] | None = None,
        *,
        scope: str | None = None,
        level: str | None = None,
        e: BaseException | None = None,
        payload: Any = None,
        correlation_id: str | None = None,
    ):
        self.title_key = title_key
        self.body_key = body_key
        self.scope = scope
        self.level = level or self.ERROR
        self.arguments = _json_safe(arguments or {})
        self.e = e
        self.payload = payload
        super().__init__(body_key or title_key, correlation_id=correlation_id)

    def is_unexpected(self) -> bool:
        """True when the failure wraps an internal fault, not a data mismatch."""
        return isinstance(self.e, Exception)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "titleKey": self.title_key,
            "bodyKey": self.body_key,
            "scope": self.scope,
            "level": self.level,
            "arguments": self.arguments,
        }
        if self.e is not None:
            data["e"] = f"{type(self.e).__name__}: {self.e}"
        return data

    def __str__(self) -> str:
        return json.dumps(self.to_dict())


def _json_safe(arguments: dict[str, Any]) -> dict[str, Any]:
    """Round-trip each argument through JSON so the failure never aliases caller data.

    Arguments that cannot be encoded (cyclic values, non-string keys) fall
    back to their ``repr``.
    """
    safe: dict[str, Any] = {}
    for key, value in arguments.items():
        try:
            safe[key] = json.loads(json.dumps(value, default=repr))
        except (TypeError, ValueError):
            safe[key] = repr(value)
    return safe
