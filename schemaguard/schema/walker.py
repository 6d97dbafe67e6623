"""Recursive schema walker.

Walks a value and a compiled schema in lockstep, depth-first and
pre-order, and returns the first failure met. Per node the checks run in
a fixed order:

1. presence (``$optional``)
2. declared type
3. ``$strict`` key set
4. constraints, in declaration order
5. descent into array elements (``$childsDef``) or declared attributes

Nothing here raises. Failures and faults met while checking (a failing
schema callable, a value whose ``__len__`` raises) come back as a
``ValidationOutcome``. The caller-facing layer decides whether to raise.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Mapping, Set, Sized
from typing import Any, Literal

from schemaguard.exceptions import (
    DeferredValueError,
    MissingValueError,
    SchemaDefinitionError,
)
from schemaguard.schema.context import ValidationContext
from schemaguard.schema.nodes import (
    Constraint,
    SchemaNode,
    check_constraint_value,
    compile_schema,
)
from schemaguard.schema.results import FailureDescriptor, FailureKind, ValidationOutcome
from schemaguard.schema.types import (
    MISSING,
    classify,
    is_absent,
    is_array,
    is_structured,
    satisfies,
)

logger = logging.getLogger(__name__)

StrictKeyMode = Literal["count", "set"]


class _WalkFault(Exception):
    """Carries an unexpected fault out of the recursion with the context it hit."""

    def __init__(self, error: Exception, context: ValidationContext):
        self.error = error
        self.context = context
        super().__init__(str(error))


class SchemaWalker:
    """Validates values against schemas.

    Holds configuration only; every ``validate()`` call builds its own
    contexts, so one walker may be shared between threads.

    Args:
        prefix: Control-key prefix used when compiling raw schemas.
        strict_key_mode: ``count`` compares key cardinality only,
            ``set`` compares the key sets themselves.
        numeric_strings: Let numeric strings satisfy the number type.
        max_depth: Deepest nesting level walked before failing.
    """

    def __init__(
        self,
        *,
        prefix: str = "$",
        strict_key_mode: StrictKeyMode = "count",
        numeric_strings: bool = True,
        max_depth: int = 64,
    ) -> None:
        self.prefix = prefix
        self.strict_key_mode = strict_key_mode
        self.numeric_strings = numeric_strings
        self.max_depth = max_depth

    def compile(self, schema: Any) -> SchemaNode:
        """Compile a raw schema with this walker's prefix."""
        return compile_schema(schema, prefix=self.prefix)

    def validate(self, value: Any, schema: Any) -> ValidationOutcome:
        """Validate ``value`` against a raw or compiled ``schema``.

        Returns:
            ValidationOutcome, passed or carrying the first failure.
        """
        try:
            root = self.compile(schema)
        except SchemaDefinitionError as exc:
            logger.warning("Rejected schema: %s", exc)
            return self._configuration_failure(exc, None)

        context = ValidationContext(value=value, schema=root)
        if is_absent(value):
            exc = MissingValueError("Should have a value to validate")
            logger.warning("Rejected validation call: %s", exc)
            return self._configuration_failure(exc, context)

        try:
            outcome = self._walk(context)
        except _WalkFault as fault:
            logger.warning(
                "Validation aborted at %r: %s: %s",
                fault.context.path,
                type(fault.error).__name__,
                fault.error,
            )
            return self._configuration_failure(fault.error, fault.context)

        if outcome.failure is not None:
            logger.debug(
                "Validation failed at %r (%s): %s",
                outcome.failure.path,
                outcome.failure.kind.value,
                outcome.failure.title_key,
            )
        return outcome

    # ------------------------------------------------------------------
    # Recursion
    # ------------------------------------------------------------------

    def _walk(self, context: ValidationContext) -> ValidationOutcome:
        try:
            stop = self._check_node(context)
        except Exception as exc:
            raise _WalkFault(exc, context) from exc
        if stop is not None:
            return stop

        node = context.schema
        directive = node.directive
        value = context.value
        if is_array(value):
            if directive.childs_def is None:
                return ValidationOutcome.ok()
            for index, item in enumerate(value):
                outcome = self._walk(context.child(index, item, directive.childs_def))
                if not outcome.passed:
                    return outcome
        elif is_structured(value):
            for key, child_schema in node.properties.items():
                if child_schema is None:
                    continue
                try:
                    item = _lookup(value, key)
                except Exception as exc:
                    raise _WalkFault(exc, context) from exc
                outcome = self._walk(context.child(key, item, child_schema))
                if not outcome.passed:
                    return outcome

        return ValidationOutcome.ok()

    def _check_node(self, context: ValidationContext) -> ValidationOutcome | None:
        """Run this node's own checks; ``None`` means descend."""
        node = context.schema
        directive = node.directive
        value = context.value

        if is_absent(value):
            if directive.optional:
                return ValidationOutcome.ok()
            parent = context.parent_schema.describe(self.prefix) if context.parent_schema else None
            return self._fail(
                context,
                FailureKind.MISSING,
                f'Attribute at "{context.path}" does not exist as it\'s defined on {_dump(parent)}',
                f'Missing required attribute at "{context.path}"',
                overridable=True,
            )

        if context.depth > self.max_depth:
            return self._fail(
                context,
                FailureKind.RECURSION,
                "Maximum validation depth exceeded",
                f'Value at "{context.path}" is nested deeper than {self.max_depth} levels',
            )
        if context.is_cyclic():
            return self._fail(
                context,
                FailureKind.RECURSION,
                "Cyclic value detected",
                f'Value at "{context.path}" contains itself',
            )

        declared = node.declared_type
        if not satisfies(value, declared, numeric_strings=self.numeric_strings):
            return self._fail(
                context,
                FailureKind.TYPE_MISMATCH,
                "Object has invalid type",
                f"Type validation failed between schema's: {declared.label} "
                f"and value's type: {classify(value)} ({value!r})",
                overridable=True,
            )

        if directive.strict and is_structured(value):
            failure = self._check_strict(context)
            if failure is not None:
                return failure

        for constraint in directive.constraints:
            failure = self._check_constraint(context, constraint)
            if failure is not None:
                return failure

        return None

    # ------------------------------------------------------------------
    # Strictness
    # ------------------------------------------------------------------

    def _check_strict(self, context: ValidationContext) -> ValidationOutcome | None:
        declared = list(context.schema.domain_keys)
        actual = _own_keys(context.value)

        if self.strict_key_mode == "set":
            if set(declared) == set(actual):
                return None
            title = "Strict keys validation failed"
        else:
            # Cardinality only: a same-size key substitution passes here
            if len(declared) == len(actual):
                return None
            title = "Strict keys length validation failed"

        return self._fail(
            context,
            FailureKind.STRICT_KEYS,
            title,
            f"{title} between schema's keys: {_dump(declared)} "
            f"and value's keys: {_dump(actual)}",
        )

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def _check_constraint(
        self, context: ValidationContext, constraint: Constraint
    ) -> ValidationOutcome | None:
        expected = constraint.value
        if callable(expected) and not isinstance(expected, type):
            expected = _call_deferred(expected, context)
            try:
                expected = check_constraint_value(
                    constraint.name, expected, self.prefix, context.path
                )
            except SchemaDefinitionError as exc:
                raise DeferredValueError(str(exc), path=context.path) from exc

        if _CONSTRAINT_CHECKS[constraint.name](context.value, expected):
            return None

        shown = expected.pattern if isinstance(expected, re.Pattern) else expected
        failure = FailureDescriptor(
            kind=FailureKind.CONSTRAINT,
            title_key=_render(constraint.title_key, context)
            or f"Constraint '{self.prefix}{constraint.name}' failed",
            body_key=_render(constraint.body_key, context)
            or f'Value at "{context.path}" violates {self.prefix}{constraint.name}={shown!r}: '
            f"{context.value!r}",
            level=constraint.level or "error",
            context=context,
            builder=constraint.failure_builder,
            prefix=self.prefix,
        )
        return ValidationOutcome.fail(failure)

    # ------------------------------------------------------------------
    # Failure construction
    # ------------------------------------------------------------------

    def _fail(
        self,
        context: ValidationContext,
        kind: FailureKind,
        title: str,
        body: str,
        *,
        overridable: bool = False,
    ) -> ValidationOutcome:
        """Build a failure; ``overridable`` applies the node's own title/body/level/builder."""
        directive = context.schema.directive
        level = "error"
        builder = None
        if overridable:
            title = _render(directive.title_key, context) or title
            body = _render(directive.body_key, context) or body
            level = directive.level or level
            builder = directive.failure_builder
        return ValidationOutcome.fail(
            FailureDescriptor(
                kind=kind,
                title_key=title,
                body_key=body,
                level=level,
                context=context,
                builder=builder,
                prefix=self.prefix,
            )
        )

    def _configuration_failure(
        self, exc: Exception, context: ValidationContext | None
    ) -> ValidationOutcome:
        return ValidationOutcome.fail(
            FailureDescriptor(
                kind=FailureKind.CONFIGURATION,
                body_key=str(exc),
                error=exc,
                context=context,
                prefix=self.prefix,
            )
        )


# =============================================================================
# HELPERS
# =============================================================================


def _lookup(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key, MISSING)
    if isinstance(value, Set):
        return MISSING
    return getattr(value, key, MISSING)


def _own_keys(value: Any) -> list[str]:
    if isinstance(value, Mapping):
        return [str(key) for key in value.keys()]
    if is_array(value):
        return [str(index) for index in range(len(value))]
    if isinstance(value, Set):
        return []
    return [key for key in vars(value) if not key.startswith("_")]


def _call_deferred(func: Callable[..., Any], context: ValidationContext) -> Any:
    try:
        return func(context)
    except Exception as exc:
        raise DeferredValueError(
            f"Schema callable {getattr(func, '__name__', func)!r} failed at \"{context.path}\": {exc}",
            path=context.path,
        ) from exc


def _render(spec: Any, context: ValidationContext) -> str | None:
    if spec is None:
        return None
    if callable(spec):
        return str(_call_deferred(spec, context))
    return spec


def _dump(value: Any) -> str:
    return json.dumps(value, default=repr)


def _has_length(value: Any) -> bool:
    return isinstance(value, Sized) and not isinstance(value, bool)


def _max_length(value: Any, limit: Any) -> bool:
    return _has_length(value) and len(value) <= limit


def _min_length(value: Any, limit: Any) -> bool:
    return _has_length(value) and len(value) >= limit


def _is_member(value: Any, collection: Any) -> bool:
    try:
        return value in collection
    except TypeError:
        # Unhashable value against a hashed collection
        return any(value == candidate for candidate in collection)


def _contains(value: Any, expected: Any) -> bool:
    if isinstance(expected, re.Pattern):
        return isinstance(value, str) and expected.search(value) is not None
    if isinstance(value, str):
        return isinstance(expected, str) and expected in value
    if isinstance(value, Mapping) and isinstance(expected, Mapping):
        return all(key in value and value[key] == item for key, item in expected.items())
    if is_array(value):
        return any(item == expected for item in value)
    return False


def _pattern(value: Any, expected: Any) -> bool:
    if not isinstance(expected, re.Pattern):
        return False
    return isinstance(value, str) and expected.search(value) is not None


_CONSTRAINT_CHECKS: dict[str, Callable[[Any, Any], bool]] = {
    "maxLength": _max_length,
    "minLength": _min_length,
    "in": _is_member,
    "contains": _contains,
    "pattern": _pattern,
}
