"""Compiled schema model and the raw-schema compiler.

A raw schema is a plain mapping where reserved control keys carry a
prefix (``$`` by default)::

    {
        "$strict": True,
        "name": {"$type": str, "$maxLength": 40},
        "tags": {"$type": "array", "$childsDef": str, "$optional": True},
        "role": {"$type": str, "$in": {"$value": ["admin", "user"], "$titleKey": "Bad role"}},
    }

``compile_schema()`` splits every node into a ``Directive`` (type,
optionality, strictness, constraints, failure overrides) and a
``PropertyMap`` (domain attributes). Prefix sniffing happens only here;
the walker works on the compiled shapes, so a hand-built ``SchemaNode`` may
declare a domain attribute that itself starts with the prefix.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Container, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from schemaguard.exceptions import SchemaDefinitionError
from schemaguard.schema.types import OBJECT, TypeMarker, to_marker

Level = Literal["info", "debug", "error", "warning"]
ConstraintName = Literal["maxLength", "minLength", "in", "contains", "pattern"]

CONSTRAINT_NAMES: tuple[str, ...] = ("maxLength", "minLength", "in", "contains", "pattern")
_LEVELS: frozenset[str] = frozenset({"info", "debug", "error", "warning"})

# Text may be given literally or as a callable of the validation context
MessageSpec = str | Callable[..., str]


# =============================================================================
# MODELS
# =============================================================================


class Constraint(BaseModel):
    """A named constraint declared on a node.

    Attributes:
        name: Constraint kind (maxLength, minLength, in, contains, pattern).
        value: Literal constraint value, or a callable taking the context
            and returning it (deferred evaluation).
        title_key: Custom failure title (string or callable).
        body_key: Custom failure body (string or callable).
        level: Custom failure severity.
        failure_builder: Custom failure builder for this constraint only.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: ConstraintName
    value: Any = None
    title_key: MessageSpec | None = None
    body_key: MessageSpec | None = None
    level: Level | None = None
    failure_builder: Callable[..., Any] | None = None


class Directive(BaseModel):
    """Validation rules attached to one node."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: TypeMarker | None = None
    optional: bool = False
    strict: bool = False
    childs_def: SchemaNode | None = None
    constraints: tuple[Constraint, ...] = ()
    title_key: MessageSpec | None = None
    body_key: MessageSpec | None = None
    level: Level | None = None
    failure_builder: Callable[..., Any] | None = None


class SchemaNode(BaseModel):
    """One position of the schema tree.

    Attributes:
        directive: Rules for the value at this position.
        properties: Domain attributes; ``None`` entries are declared but skipped.
    """

    model_config = ConfigDict(frozen=True)

    directive: Directive = Field(default_factory=Directive)
    properties: dict[str, SchemaNode | None] = Field(default_factory=dict)

    @property
    def declared_type(self) -> Any:
        """Explicit ``type`` directive, else the node itself as an implicit object."""
        return self.directive.type or OBJECT

    @property
    def domain_keys(self) -> tuple[str, ...]:
        return tuple(self.properties.keys())

    def is_empty(self) -> bool:
        return not self.properties and self.directive == Directive()

    def describe(self, prefix: str = "$") -> dict[str, Any]:
        """Render the node back into raw-schema shape for failure messages."""
        directive = self.directive
        out: dict[str, Any] = {}
        if directive.type is not None:
            out[f"{prefix}type"] = directive.type.label
        if directive.optional:
            out[f"{prefix}optional"] = True
        if directive.strict:
            out[f"{prefix}strict"] = True
        if directive.childs_def is not None:
            out[f"{prefix}childsDef"] = directive.childs_def.describe(prefix)
        for constraint in directive.constraints:
            out[f"{prefix}{constraint.name}"] = _describe_value(constraint.value)
        for key, child in self.properties.items():
            out[key] = child.describe(prefix) if child is not None else None
        return out


Directive.model_rebuild()
SchemaNode.model_rebuild()


def _describe_value(value: Any) -> Any:
    if isinstance(value, re.Pattern):
        return value.pattern
    if callable(value) and not isinstance(value, type):
        return f"<deferred {getattr(value, '__name__', 'callable')}>"
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return value


# =============================================================================
# COMPILER
# =============================================================================


def compile_schema(raw: Any, *, prefix: str = "$") -> SchemaNode:
    """Compile a raw root schema.

    Raises:
        SchemaDefinitionError: If the schema is absent, empty, or malformed.
    """
    if isinstance(raw, SchemaNode):
        if raw.is_empty():
            raise SchemaDefinitionError("Should have validationSchema")
        return raw
    if not isinstance(raw, Mapping) or not raw:
        raise SchemaDefinitionError("Should have validationSchema")
    return _compile_node(raw, prefix, "")


def _compile_child(raw: Any, prefix: str, path: str) -> SchemaNode | None:
    # Falsy entries are skipped; an empty mapping is still an implicit object
    if not raw and not isinstance(raw, Mapping):
        return None
    if isinstance(raw, SchemaNode):
        return raw
    if isinstance(raw, Mapping):
        return _compile_node(raw, prefix, path)
    try:
        marker = to_marker(raw)
    except SchemaDefinitionError as exc:
        raise SchemaDefinitionError(f"{exc} at \"{path}\"", path=path) from exc
    return SchemaNode(directive=Directive(type=marker))


def _compile_node(raw: Mapping[Any, Any], prefix: str, path: str) -> SchemaNode:
    rules: dict[str, Any] = {}
    constraints: list[Constraint] = []
    properties: dict[str, SchemaNode | None] = {}

    for key, value in raw.items():
        if isinstance(key, str) and key.startswith(prefix):
            name = key[len(prefix):]
            if name in CONSTRAINT_NAMES:
                constraints.append(_compile_constraint(name, value, prefix, path))
            else:
                rules.update(_compile_rule(name, value, prefix, path))
        else:
            properties[str(key)] = _compile_child(value, prefix, f"{path}.{key}")

    return SchemaNode(
        directive=Directive(constraints=tuple(constraints), **rules),
        properties=properties,
    )


def _compile_rule(name: str, value: Any, prefix: str, path: str) -> dict[str, Any]:
    """Translate one non-constraint control key into Directive fields."""
    if name == "type":
        try:
            return {"type": to_marker(value)}
        except SchemaDefinitionError as exc:
            raise SchemaDefinitionError(f"{exc} at \"{path}\"", path=path) from exc

    if name in ("optional", "strict"):
        if not isinstance(value, bool):
            raise SchemaDefinitionError(
                f"'{prefix}{name}' must be a boolean at \"{path}\", got {value!r}", path=path
            )
        return {name: value}

    if name == "childsDef":
        return {"childs_def": _compile_child(value, prefix, f"{path}.*")}

    return _compile_overrides({name: value}, prefix, path)


def _compile_overrides(options: Mapping[str, Any], prefix: str, path: str) -> dict[str, Any]:
    """Validate failure overrides (title, body, level, builder)."""
    fields: dict[str, Any] = {}
    for name, value in options.items():
        if name in ("titleKey", "bodyKey"):
            if not (isinstance(value, str) or callable(value)):
                raise SchemaDefinitionError(
                    f"'{prefix}{name}' must be a string or callable at \"{path}\"", path=path
                )
            fields["title_key" if name == "titleKey" else "body_key"] = value
        elif name == "level":
            if value not in _LEVELS:
                raise SchemaDefinitionError(
                    f"'{prefix}level' must be one of {sorted(_LEVELS)} at \"{path}\", got {value!r}",
                    path=path,
                )
            fields["level"] = value
        elif name == "failureBuilder":
            if not callable(value):
                raise SchemaDefinitionError(
                    f"'{prefix}failureBuilder' must be callable at \"{path}\"", path=path
                )
            fields["failure_builder"] = value
        else:
            raise SchemaDefinitionError(f"Unknown directive '{prefix}{name}' at \"{path}\"", path=path)
    return fields


def _compile_constraint(name: str, raw: Any, prefix: str, path: str) -> Constraint:
    value_key = f"{prefix}value"
    if isinstance(raw, Mapping) and value_key in raw:
        value = raw[value_key]
        overrides = {
            key[len(prefix):]: option
            for key, option in raw.items()
            if key != value_key and isinstance(key, str) and key.startswith(prefix)
        }
        fields = _compile_overrides(overrides, prefix, path)
    else:
        value, fields = raw, {}

    if isinstance(value, type) or not callable(value):
        value = check_constraint_value(name, value, prefix, path)

    return Constraint(name=name, value=value, **fields)


def check_constraint_value(name: str, value: Any, prefix: str, path: str) -> Any:
    """Validate a constraint argument, returning it (patterns compiled).

    Raises:
        SchemaDefinitionError: If the argument does not suit the constraint.
    """
    if name in ("maxLength", "minLength"):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise SchemaDefinitionError(
                f"'{prefix}{name}' must be a non-negative integer at \"{path}\", got {value!r}",
                path=path,
            )
    elif name == "in":
        if isinstance(value, (str, bytes)) or not isinstance(value, Container):
            raise SchemaDefinitionError(
                f"'{prefix}in' must be a collection at \"{path}\", got {value!r}", path=path
            )
    elif name == "pattern":
        if isinstance(value, str):
            try:
                return re.compile(value)
            except re.error as exc:
                raise SchemaDefinitionError(
                    f"'{prefix}pattern' is not a valid regex at \"{path}\": {exc}", path=path
                ) from exc
        if not isinstance(value, re.Pattern):
            raise SchemaDefinitionError(
                f"'{prefix}pattern' must be a regex at \"{path}\", got {value!r}", path=path
            )
    if isinstance(value, re.Pattern) and isinstance(value.pattern, bytes):
        raise SchemaDefinitionError(
            f"'{prefix}{name}' needs a str regex at \"{path}\", got {value!r}", path=path
        )
    return value
