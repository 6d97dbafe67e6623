"""Type resolution for schema validation.

Classifies runtime values into canonical type tags and answers whether a
value satisfies a declared type marker. Markers form a closed tagged union
(``StringType | NumberType | BooleanType | ArrayType | ObjectType |
NamedType``); raw schema spellings such as ``str``, ``"number"`` or a user
class are resolved into it by ``to_marker()``.

This module never recurses into children. Structure is the walker's job.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Mapping, Set
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from schemaguard.exceptions import SchemaDefinitionError

# =============================================================================
# TAGS & SENTINELS
# =============================================================================


class TypeTag(str, Enum):
    """Canonical classification of a runtime value."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    ARRAY = "array"
    OBJECT = "object"


UNDEFINED = "undefined"


class _Missing:
    """Marks an attribute that is not present on the value at all."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def is_absent(value: Any) -> bool:
    """Absent means missing from the parent or explicitly None."""
    return value is None or value is MISSING


# =============================================================================
# MARKERS
# =============================================================================


class _Marker(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str:
        return getattr(self, "kind")

    def __str__(self) -> str:
        return self.label


class StringType(_Marker):
    kind: Literal["string"] = "string"


class NumberType(_Marker):
    kind: Literal["number"] = "number"


class BooleanType(_Marker):
    kind: Literal["boolean"] = "boolean"


class ArrayType(_Marker):
    kind: Literal["array"] = "array"


class ObjectType(_Marker):
    kind: Literal["object"] = "object"


class NamedType(_Marker):
    """A class identifier, matched by class name or by ``isinstance``."""

    kind: Literal["named"] = "named"
    name: str
    cls: type[Any] | None = Field(default=None, exclude=True)

    @property
    def label(self) -> str:
        return self.name


TypeMarker = Annotated[
    StringType | NumberType | BooleanType | ArrayType | ObjectType | NamedType,
    Field(discriminator="kind"),
]

STRING = StringType()
NUMBER = NumberType()
BOOLEAN = BooleanType()
ARRAY = ArrayType()
OBJECT = ObjectType()

_TAG_MARKERS: dict[str, _Marker] = {
    TypeTag.STRING.value: STRING,
    TypeTag.NUMBER.value: NUMBER,
    TypeTag.BOOLEAN.value: BOOLEAN,
    TypeTag.ARRAY.value: ARRAY,
    TypeTag.OBJECT.value: OBJECT,
}


def to_marker(raw: Any) -> _Marker:
    """Resolve a raw schema type spelling into a marker.

    Accepts an existing marker, a tag name (``"string"``), a builtin class
    (``str``, ``int``, ``float``, ``bool``, ``list``, ``dict``) or any other
    class / name, which becomes a ``NamedType``.

    Raises:
        SchemaDefinitionError: If ``raw`` is not a usable type spelling.
    """
    if isinstance(raw, _Marker):
        return raw

    if isinstance(raw, str):
        if not raw:
            raise SchemaDefinitionError("Type name cannot be empty")
        return _TAG_MARKERS.get(raw) or NamedType(name=raw)

    if isinstance(raw, type):
        # bool before number: bool is an int subclass
        if issubclass(raw, bool):
            return BOOLEAN
        if issubclass(raw, str):
            return STRING
        if issubclass(raw, (numbers.Real, Decimal)):
            return NUMBER
        if issubclass(raw, (list, tuple)):
            return ARRAY
        if issubclass(raw, Mapping) or raw is object:
            return OBJECT
        return NamedType(name=raw.__name__, cls=raw)

    raise SchemaDefinitionError(f"Unsupported type marker: {raw!r}")


# =============================================================================
# PREDICATES
# =============================================================================


def _is_nan(value: Any) -> bool:
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, Decimal):
        return value.is_nan()
    return False


def is_number(value: Any, *, numeric_strings: bool = False) -> bool:
    """Not-NaN check.

    Booleans are never numbers. With ``numeric_strings`` a string that parses
    to a non-NaN float also passes (``"42"``, ``"1e3"``, ``"inf"``).
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, (numbers.Real, Decimal)):
        return not _is_nan(value)
    if numeric_strings and isinstance(value, str):
        try:
            return not math.isnan(float(value))
        except ValueError:
            return False
    return False


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_structured(value: Any) -> bool:
    """Any structured value, arrays included."""
    if is_absent(value) or isinstance(value, (str, bytes, bool, numbers.Number, Decimal)):
        return False
    return isinstance(value, (Mapping, Set, list, tuple)) or hasattr(value, "__dict__")


def classify(value: Any) -> str:
    """Return exactly one type tag for ``value``.

    Order matters: a value matching several loose predicates gets the first
    one (arrays are structured too, so ``array`` is tested before ``object``).
    Absence classifies as ``"undefined"``; anything else unrecognized falls
    back to its class name.
    """
    if is_absent(value):
        return UNDEFINED
    if isinstance(value, str):
        return TypeTag.STRING.value
    if isinstance(value, bool):
        return TypeTag.BOOLEAN.value
    if is_number(value):
        return TypeTag.NUMBER.value
    if is_array(value):
        return TypeTag.ARRAY.value
    if is_structured(value):
        return TypeTag.OBJECT.value
    return type(value).__name__


def _matches_named(value: Any, marker: NamedType) -> bool:
    if marker.cls is not None:
        return isinstance(value, marker.cls)
    if any(klass.__name__ == marker.name for klass in type(value).__mro__):
        return True
    return classify(value) == marker.name


def satisfies(value: Any, marker: Any, *, numeric_strings: bool = True) -> bool:
    """Judge leaf-type compatibility of ``value`` with a declared type.

    ``marker`` may be a marker, any raw spelling accepted by ``to_marker``,
    or a nested schema node (raw mapping or ``SchemaNode``), which means
    ``object``.
    Absent values never satisfy anything; optionality is decided by the
    caller.
    """
    if is_absent(value):
        return False

    from schemaguard.schema.nodes import SchemaNode

    # A nested schema node declares an object
    if isinstance(marker, (Mapping, SchemaNode)):
        marker = OBJECT

    resolved = to_marker(marker)

    if isinstance(resolved, StringType):
        return isinstance(value, str)
    if isinstance(resolved, BooleanType):
        return isinstance(value, bool)
    if isinstance(resolved, NumberType):
        return is_number(value, numeric_strings=numeric_strings)
    if isinstance(resolved, ArrayType):
        return is_array(value)
    if isinstance(resolved, ObjectType):
        return is_structured(value)
    if isinstance(resolved, NamedType):
        return _matches_named(value, resolved)
    return False
