"""Immutable validation context.

A fresh ``ValidationContext`` is derived for every recursive step, so
sibling branches never see each other's path or parent references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from schemaguard.schema.types import MISSING, is_structured

if TYPE_CHECKING:
    from schemaguard.schema.nodes import SchemaNode


@dataclass(frozen=True)
class ValidationContext:
    """Position of the walk inside the value and schema trees.

    Attributes:
        value: Value at this position (``MISSING`` when the key is absent).
        schema: Schema node applied at this position.
        path: Dot/index path from the root, ``""`` at the root.
        parent_value: Value one level up, ``None`` at the root.
        parent_schema: Schema node one level up, ``None`` at the root.
        depth: Number of descents from the root.
        ancestors: ``id()`` of every structured value on the path above.
    """

    value: Any
    schema: SchemaNode
    path: str = ""
    parent_value: Any = None
    parent_schema: SchemaNode | None = None
    depth: int = 0
    ancestors: frozenset[int] = field(default_factory=frozenset)

    def child(self, segment: str | int, value: Any, schema: SchemaNode) -> ValidationContext:
        """Derive the context for one element or attribute below this one."""
        ancestors = self.ancestors
        if is_structured(self.value):
            ancestors = ancestors | {id(self.value)}
        return ValidationContext(
            value=value,
            schema=schema,
            path=f"{self.path}.{segment}",
            parent_value=self.value,
            parent_schema=self.schema,
            depth=self.depth + 1,
            ancestors=ancestors,
        )

    def is_cyclic(self) -> bool:
        """True when the current value already appears on the path above."""
        return is_structured(self.value) and id(self.value) in self.ancestors

    def to_arguments(self, prefix: str = "$") -> dict[str, Any]:
        """Snapshot for failure descriptors."""
        return {
            "actual_path": self.path,
            "validated_value": None if self.value is MISSING else self.value,
            "validated_schema": self.schema.describe(prefix),
            "parent_value": self.parent_value,
            "parent_schema": self.parent_schema.describe(prefix) if self.parent_schema else None,
        }
