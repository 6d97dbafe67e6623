"""Caller-facing validator.

Wraps the schema walker with a failure policy: return ``True`` on
success, and on failure either return ``False`` or raise the object
built by the configured failure builder.

Usage::

    from schemaguard import validate

    validate(payload, {"$strict": True, "name": str, "age": {"$type": int, "$optional": True}})

    validator = SchemaValidator(payload, schema, {"throws_exception": False})
    if not validator.validate():
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from schemaguard.exceptions import SchemaValidationException
from schemaguard.schema.results import FailureDescriptor, ValidationOutcome
from schemaguard.schema.walker import SchemaWalker
from schemaguard.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Options that fall back to Settings when left unset
_SETTINGS_DEFAULTS = (
    "throws_exception",
    "custom_attributes_prefix",
    "default_failure_title",
    "default_failure_body",
    "strict_key_mode",
    "numeric_strings",
    "max_depth",
)


class ValidatorOptions(BaseModel):
    """Failure policy and matching options.

    ``None`` means "use the process default" from ``Settings``; call
    ``resolved()`` to fill those in.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    throws_exception: bool | None = None
    custom_attributes_prefix: str | None = Field(default=None, min_length=1)
    default_failure_title: str | None = None
    default_failure_body: str | None = None
    failure_builder: Callable[[FailureDescriptor], Any] | None = None
    strict_key_mode: Literal["count", "set"] | None = None
    numeric_strings: bool | None = None
    max_depth: int | None = Field(default=None, ge=1, le=500)

    def resolved(self, settings: Settings | None = None) -> ValidatorOptions:
        """Return a copy with every unset option taken from settings."""
        settings = settings or get_settings()
        updates = {
            name: getattr(settings, name)
            for name in _SETTINGS_DEFAULTS
            if getattr(self, name) is None
        }
        return self.model_copy(update=updates)


def build_failure(failure: FailureDescriptor) -> SchemaValidationException:
    """Default failure builder."""
    return SchemaValidationException(
        failure.title_key or "Validation Error",
        failure.body_key,
        failure.arguments,
        level=failure.level,
        e=failure.error,
    )


class SchemaValidator:
    """Validates one value against one schema under a failure policy.

    Args:
        value: Decoded value to check.
        schema: Raw schema mapping or compiled ``SchemaNode``.
        options: ``ValidatorOptions`` or a mapping of its fields.
    """

    def __init__(
        self,
        value: Any = None,
        schema: Any = None,
        options: ValidatorOptions | Mapping[str, Any] | None = None,
    ) -> None:
        self.value = value
        self.schema = schema
        if options is None:
            options = ValidatorOptions()
        elif isinstance(options, Mapping):
            options = ValidatorOptions(**options)
        self.options = options.resolved()

    @property
    def walker(self) -> SchemaWalker:
        return SchemaWalker(
            prefix=self.options.custom_attributes_prefix,
            strict_key_mode=self.options.strict_key_mode,
            numeric_strings=self.options.numeric_strings,
            max_depth=self.options.max_depth,
        )

    def check(self) -> ValidationOutcome:
        """Run the walk without applying the failure policy."""
        return self.walker.validate(self.value, self.schema)

    def validate(self) -> bool:
        """Validate and apply the failure policy.

        Returns:
            True on success; False on failure when ``throws_exception`` is off.

        Raises:
            Exception: The built failure object when ``throws_exception`` is on.
        """
        outcome = self.check()
        if outcome.failure is None:
            return True

        if not self.options.throws_exception:
            return False

        raise self.build(outcome.failure)

    def build(self, failure: FailureDescriptor) -> BaseException:
        """Build the raisable failure object for ``failure``.

        Fills in default title/body text, then hands the descriptor to the
        directive's own builder, the configured builder, or ``build_failure``.
        A builder result that is not an exception is wrapped in a
        ``SchemaValidationException`` as its ``payload``.
        """
        failure = failure.model_copy(
            update={
                "title_key": failure.title_key or self.options.default_failure_title,
                "body_key": failure.body_key or self.options.default_failure_body,
            }
        )
        builder = failure.builder or self.options.failure_builder or build_failure
        built = builder(failure)
        logger.debug("Built %s for failure at %r", type(built).__name__, failure.path)

        if isinstance(built, BaseException):
            return built
        return SchemaValidationException(
            failure.title_key,
            failure.body_key,
            failure.arguments,
            level=failure.level,
            e=failure.error,
            payload=built,
        )


def validate(value: Any, schema: Any, **options: Any) -> bool:
    """Validate ``value`` against ``schema``; see ``SchemaValidator.validate``."""
    return SchemaValidator(value, schema, ValidatorOptions(**options)).validate()


def check(value: Any, schema: Any, **options: Any) -> ValidationOutcome:
    """Validate without raising and return the outcome with its failure descriptor."""
    return SchemaValidator(value, schema, ValidatorOptions(**options)).check()
