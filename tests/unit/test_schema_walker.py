"""Unit tests for the recursive schema walker.

Tests for schemaguard/schema/walker.py.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any

import pytest

from schemaguard.exceptions import DeferredValueError, MissingValueError, SchemaDefinitionError
from schemaguard.schema.nodes import Directive, SchemaNode
from schemaguard.schema.results import FailureKind
from schemaguard.schema.types import STRING
from schemaguard.schema.walker import SchemaWalker


@pytest.fixture
def walker() -> SchemaWalker:
    return SchemaWalker()


@dataclass
class User:
    name: Any
    email: Any = None


class TestPassing:
    """Conforming values pass."""

    def test_flat_object(self, walker: SchemaWalker) -> None:
        outcome = walker.validate({"data": "some value"}, {"data": str})
        assert outcome.passed is True
        assert outcome.failure is None
        assert bool(outcome) is True

    def test_array_of_objects(self, walker: SchemaWalker, people_schema: dict) -> None:
        assert walker.validate([{"name": "a"}, {"name": "b"}], people_schema).passed

    def test_extra_value_keys_are_invisible_without_strict(self, walker: SchemaWalker) -> None:
        assert walker.validate({"a": "x", "extra": 1}, {"a": str}).passed

    @pytest.mark.parametrize("entry", [None, False, "", 0, []])
    def test_falsy_schema_entries_are_skipped(self, walker: SchemaWalker, entry: Any) -> None:
        assert walker.validate({"b": "x"}, {"a": entry, "b": str}).passed

    def test_empty_mapping_entry_is_an_object(self, walker: SchemaWalker) -> None:
        assert walker.validate({"a": {}, "b": "x"}, {"a": {}, "b": str}).passed
        assert walker.validate({"a": 1, "b": "x"}, {"a": {}, "b": str}).failure.path == ".a"

    def test_object_type_accepts_arrays(self, walker: SchemaWalker) -> None:
        assert walker.validate({"items": [1, 2]}, {"items": {"$type": "object"}}).passed

    def test_array_without_childs_def_leaves_elements_unchecked(self, walker: SchemaWalker) -> None:
        assert walker.validate({"items": [1, "two", None]}, {"items": {"$type": list}}).passed

    def test_plain_python_objects(self, walker: SchemaWalker) -> None:
        assert walker.validate(User(name="ada"), {"name": str}).passed

    def test_compiled_node_with_prefixed_attribute(self, walker: SchemaWalker) -> None:
        node = SchemaNode(properties={"$id": SchemaNode(directive=Directive(type=STRING))})
        assert walker.validate({"$id": "abc"}, node).passed

        outcome = walker.validate({"$id": 1}, node)
        assert outcome.failure.path == ".$id"

    def test_custom_prefix(self) -> None:
        walker = SchemaWalker(prefix="@")
        assert walker.validate({"$id": "x"}, {"@strict": True, "$id": str}).passed


class TestConfigurationFailures:
    """Schema and root-value misuse."""

    @pytest.mark.parametrize("value", [{}, {"a": 1}, [], "x", None])
    def test_empty_schema_always_fails(self, walker: SchemaWalker, value: Any) -> None:
        outcome = walker.validate(value, {})
        assert outcome.failure.kind == FailureKind.CONFIGURATION
        assert isinstance(outcome.failure.error, SchemaDefinitionError)
        assert outcome.failure.is_unexpected()

    def test_missing_root_value(self, walker: SchemaWalker) -> None:
        outcome = walker.validate(None, {"a": str})
        assert outcome.failure.kind == FailureKind.CONFIGURATION
        assert isinstance(outcome.failure.error, MissingValueError)
        assert outcome.failure.path == ""

    def test_malformed_nested_directive(self, walker: SchemaWalker) -> None:
        outcome = walker.validate({"a": "x"}, {"a": {"$type": str, "$optional": 1}})
        assert outcome.failure.kind == FailureKind.CONFIGURATION

    def test_raising_deferred_value(self, walker: SchemaWalker) -> None:
        def broken(context):
            raise RuntimeError("lookup failed")

        outcome = walker.validate({"a": "x"}, {"a": {"$type": str, "$in": {"$value": broken}}})
        failure = outcome.failure
        assert failure.kind == FailureKind.CONFIGURATION
        assert isinstance(failure.error, DeferredValueError)
        assert isinstance(failure.error.__cause__, RuntimeError)
        assert failure.error.path == ".a"
        assert failure.path == ".a"
        assert failure.arguments["validated_value"] == "x"

    def test_raising_value_is_a_configuration_failure(self, walker: SchemaWalker) -> None:
        """Faults raised by the value itself are captured, not propagated."""

        class Broken:
            def __len__(self) -> int:
                raise RuntimeError("no length")

        outcome = walker.validate({"a": Broken()}, {"a": {"$type": "object", "$maxLength": 1}})
        failure = outcome.failure
        assert failure.kind == FailureKind.CONFIGURATION
        assert isinstance(failure.error, RuntimeError)
        assert failure.path == ".a"
        assert failure.is_unexpected()

    def test_raising_attribute_is_a_configuration_failure(self, walker: SchemaWalker) -> None:
        class Record:
            def __init__(self) -> None:
                self.id = 1

            @property
            def name(self) -> str:
                raise KeyError("name")

        failure = walker.validate({"rec": Record()}, {"rec": {"name": str}}).failure
        assert failure.kind == FailureKind.CONFIGURATION
        assert isinstance(failure.error, KeyError)
        assert failure.path == ".rec"

    def test_bytes_pattern_is_rejected(self, walker: SchemaWalker) -> None:
        schema = {"a": {"$type": str, "$pattern": re.compile(b"x")}}
        failure = walker.validate({"a": "x"}, schema).failure
        assert failure.kind == FailureKind.CONFIGURATION
        assert isinstance(failure.error, SchemaDefinitionError)

    def test_deferred_value_of_wrong_shape(self, walker: SchemaWalker) -> None:
        schema = {"a": {"$type": str, "$maxLength": {"$value": lambda context: "3"}}}
        failure = walker.validate({"a": "x"}, schema).failure
        assert failure.kind == FailureKind.CONFIGURATION
        assert isinstance(failure.error.__cause__, SchemaDefinitionError)

    def test_deferred_pattern_string_is_compiled(self, walker: SchemaWalker) -> None:
        schema = {"a": {"$type": str, "$pattern": {"$value": lambda context: "^x"}}}
        assert walker.validate({"a": "xy"}, schema).passed


class TestMissing:
    """Presence checks."""

    def test_missing_attribute(self, walker: SchemaWalker) -> None:
        outcome = walker.validate({}, {"name": str})
        failure = outcome.failure
        assert failure.kind == FailureKind.MISSING
        assert failure.path == ".name"
        assert failure.title_key.startswith('Attribute at ".name" does not exist')
        assert failure.arguments["parent_schema"] == {"name": {"$type": "string"}}

    def test_explicit_none_is_missing(self, walker: SchemaWalker) -> None:
        assert walker.validate({"name": None}, {"name": str}).failure.kind == FailureKind.MISSING

    def test_falsy_values_are_present(self, walker: SchemaWalker) -> None:
        schema = {"n": int, "s": str, "b": bool}
        assert walker.validate({"n": 0, "s": "", "b": False}, schema).passed

    def test_optional_attribute(self, walker: SchemaWalker) -> None:
        schema = {"nick": {"$type": str, "$optional": True}}
        assert walker.validate({}, schema).passed
        assert walker.validate({"nick": None}, schema).passed

        outcome = walker.validate({"nick": 3}, schema)
        assert outcome.failure.kind == FailureKind.TYPE_MISMATCH

    def test_array_element_path(self, walker: SchemaWalker, people_schema: dict) -> None:
        outcome = walker.validate([{"name": "a"}, {}], people_schema)
        assert outcome.failure.kind == FailureKind.MISSING
        assert outcome.failure.path == ".1.name"

    def test_nested_path(self, walker: SchemaWalker, address_schema: dict) -> None:
        outcome = walker.validate({"user": {"address": {}}}, address_schema)
        assert outcome.failure.path == ".user.address.zip"

    def test_node_level_overrides(self, walker: SchemaWalker) -> None:
        schema = {
            "name": {
                "$type": str,
                "$titleKey": "Name required",
                "$bodyKey": lambda context: f"nothing at {context.path}",
                "$level": "warning",
            }
        }
        failure = walker.validate({}, schema).failure
        assert failure.title_key == "Name required"
        assert failure.body_key == "nothing at .name"
        assert failure.level == "warning"


class TestTypeMismatch:
    """Declared type checks."""

    @pytest.mark.parametrize(
        ("value", "declared"),
        [(5, str), ("x", bool), ("abc", int), ({"a": 1}, list), (True, int), ("x", dict)],
    )
    def test_scalar_root_mismatch_names_root_path(
        self, walker: SchemaWalker, value: Any, declared: Any
    ) -> None:
        failure = walker.validate(value, {"$type": declared}).failure
        assert failure.kind == FailureKind.TYPE_MISMATCH
        assert failure.path == ""
        assert failure.title_key == "Object has invalid type"

    def test_message_names_declared_and_actual(self, walker: SchemaWalker) -> None:
        failure = walker.validate({"age": "old"}, {"age": int}).failure
        assert "number" in failure.body_key
        assert "'old'" in failure.body_key

    def test_numeric_string_passes_by_default(self, walker: SchemaWalker) -> None:
        assert walker.validate({"age": "42"}, {"age": int}).passed

    def test_numeric_string_rejected_when_disabled(self) -> None:
        walker = SchemaWalker(numeric_strings=False)
        assert walker.validate({"age": "42"}, {"age": int}).failure.kind == FailureKind.TYPE_MISMATCH

    def test_scalar_against_implicit_object(self, walker: SchemaWalker) -> None:
        failure = walker.validate({"user": "ada"}, {"user": {"name": str}}).failure
        assert failure.kind == FailureKind.TYPE_MISMATCH
        assert failure.path == ".user"

    def test_sibling_paths_do_not_leak(self, walker: SchemaWalker) -> None:
        schema = {"a": {"x": str}, "b": {"y": int}}
        failure = walker.validate({"a": {"x": "1"}, "b": {"y": "nope"}}, schema).failure
        assert failure.path == ".b.y"


class TestStrict:
    """$strict key-set checks."""

    def test_missing_key(self, walker: SchemaWalker) -> None:
        failure = walker.validate({"a": "x"}, {"$strict": True, "a": str, "b": str}).failure
        assert failure.kind == FailureKind.STRICT_KEYS
        assert failure.title_key == "Strict keys length validation failed"
        assert '["a", "b"]' in failure.body_key

    def test_extra_key(self, walker: SchemaWalker) -> None:
        value = {"a": "x", "b": "y", "c": "z"}
        failure = walker.validate(value, {"$strict": True, "a": str, "b": str}).failure
        assert failure.kind == FailureKind.STRICT_KEYS

    def test_control_keys_are_not_counted(self, walker: SchemaWalker) -> None:
        assert walker.validate({"a": "x"}, {"$strict": True, "$type": "object", "a": str}).passed

    def test_substitution_caught_by_presence(self, walker: SchemaWalker) -> None:
        """Same key count passes the strict check, but the required key is missing."""
        failure = walker.validate({"a": "x", "c": "z"}, {"$strict": True, "a": str, "b": str}).failure
        assert failure.kind == FailureKind.MISSING
        assert failure.path == ".b"

    def test_pure_substitution_passes_count_mode(self, walker: SchemaWalker) -> None:
        """Count-only comparison cannot see a same-size substitution."""
        schema = {"$strict": True, "a": str, "b": {"$type": str, "$optional": True}}
        assert walker.validate({"a": "x", "c": "z"}, schema).passed

    def test_pure_substitution_fails_set_mode(self) -> None:
        walker = SchemaWalker(strict_key_mode="set")
        schema = {"$strict": True, "a": str, "b": {"$type": str, "$optional": True}}
        failure = walker.validate({"a": "x", "c": "z"}, schema).failure
        assert failure.kind == FailureKind.STRICT_KEYS
        assert failure.title_key == "Strict keys validation failed"

    def test_strict_on_objects(self, walker: SchemaWalker) -> None:
        schema = {"$strict": True, "name": str}
        failure = walker.validate(User(name="ada", email="a@b.c"), schema).failure
        assert failure.kind == FailureKind.STRICT_KEYS


class TestConstraints:
    """Constraint directives."""

    def test_max_length(self, walker: SchemaWalker) -> None:
        schema = {"name": {"$type": str, "$maxLength": 3}}
        assert walker.validate({"name": "abc"}, schema).passed

        failure = walker.validate({"name": "abcd"}, schema).failure
        assert failure.kind == FailureKind.CONSTRAINT
        assert failure.title_key == "Constraint '$maxLength' failed"
        assert failure.path == ".name"

    def test_min_length_on_array(self, walker: SchemaWalker) -> None:
        schema = {"tags": {"$type": list, "$minLength": 1}}
        assert walker.validate({"tags": ["x"]}, schema).passed
        assert walker.validate({"tags": []}, schema).failure.kind == FailureKind.CONSTRAINT

    def test_membership_with_overrides(self, walker: SchemaWalker) -> None:
        def builder(failure):
            return ValueError(failure.title_key)

        schema = {
            "role": {
                "$type": str,
                "$in": {
                    "$value": ["admin", "user"],
                    "$titleKey": "Bad role",
                    "$level": "warning",
                    "$failureBuilder": builder,
                },
            }
        }
        assert walker.validate({"role": "user"}, schema).passed

        failure = walker.validate({"role": "root"}, schema).failure
        assert failure.title_key == "Bad role"
        assert failure.level == "warning"
        assert failure.builder is builder
        assert not failure.is_unexpected()

    def test_membership_with_unhashable_value(self, walker: SchemaWalker) -> None:
        schema = {"point": {"$type": dict, "$in": [{"x": 1}]}}
        assert walker.validate({"point": {"x": 1}}, schema).passed

    def test_contains(self, walker: SchemaWalker) -> None:
        assert walker.validate({"s": "hello"}, {"s": {"$type": str, "$contains": "ell"}}).passed
        assert walker.validate({"l": [1, 2]}, {"l": {"$type": list, "$contains": 2}}).passed
        schema = {"m": {"$type": dict, "$contains": {"kind": "a"}}}
        assert walker.validate({"m": {"kind": "a", "n": 1}}, schema).passed
        assert walker.validate({"m": {"kind": "b"}}, schema).failure.kind == FailureKind.CONSTRAINT

    def test_pattern(self, walker: SchemaWalker) -> None:
        schema = {"zip": {"$type": str, "$pattern": r"^\d{5}$"}}
        assert walker.validate({"zip": "12345"}, schema).passed
        assert walker.validate({"zip": "1234a"}, schema).failure.kind == FailureKind.CONSTRAINT

    def test_deferred_value_receives_context(self, walker: SchemaWalker) -> None:
        seen = []

        def limit(context):
            seen.append(context.path)
            return 2

        schema = {"name": {"$type": str, "$maxLength": {"$value": limit}}}
        assert walker.validate({"name": "abc"}, schema).failure.kind == FailureKind.CONSTRAINT
        assert seen == [".name"]

    def test_type_checked_before_constraints(self, walker: SchemaWalker) -> None:
        schema = {"name": {"$type": str, "$maxLength": 3}}
        failure = walker.validate({"name": 12345}, schema).failure
        assert failure.kind == FailureKind.TYPE_MISMATCH

    def test_constraints_checked_before_descent(self, walker: SchemaWalker) -> None:
        schema = {"$type": list, "$maxLength": 1, "$childsDef": {"name": str}}
        failure = walker.validate([{}, {}], schema).failure
        assert failure.kind == FailureKind.CONSTRAINT
        assert failure.path == ""


class TestHardening:
    """Depth limit and cycle detection."""

    def test_cyclic_list(self, walker: SchemaWalker) -> None:
        value: list = []
        value.append(value)
        schema = {"$type": "array", "$childsDef": {"$type": "array"}}
        failure = walker.validate(value, schema).failure
        assert failure.kind == FailureKind.RECURSION
        assert failure.path == ".0"

    def test_cyclic_mapping(self, walker: SchemaWalker) -> None:
        value: dict = {}
        value["self"] = value
        failure = walker.validate(value, {"self": {"self": {"$type": dict}}}).failure
        assert failure.kind == FailureKind.RECURSION
        assert failure.path == ".self"
        # Cyclic values still render into arguments
        assert failure.arguments["actual_path"] == ".self"

    def test_shared_subtrees_are_not_cycles(self, walker: SchemaWalker) -> None:
        shared = {"name": "x"}
        assert walker.validate([shared, shared], {"$type": list, "$childsDef": {"name": str}}).passed

    def test_max_depth(self) -> None:
        walker = SchemaWalker(max_depth=2)
        schema = {"a": {"b": {"c": {"$type": dict}}}}
        failure = walker.validate({"a": {"b": {"c": {}}}}, schema).failure
        assert failure.kind == FailureKind.RECURSION
        assert failure.path == ".a.b.c"


class TestPurity:
    """Validation is deterministic and leaves the value untouched."""

    def test_no_mutation_and_deterministic(self, walker: SchemaWalker, address_schema: dict) -> None:
        value = {"user": {"address": {"street": "Main"}}}
        before = copy.deepcopy(value)

        first = walker.validate(value, address_schema)
        second = walker.validate(value, address_schema)

        assert value == before
        assert first.failure.path == second.failure.path == ".user.address.zip"
        assert first.failure.kind == second.failure.kind

    def test_failure_arguments_snapshot(self, walker: SchemaWalker, people_schema: dict) -> None:
        failure = walker.validate([{"name": "a"}, {}], people_schema).failure
        arguments = failure.arguments
        assert arguments["actual_path"] == ".1.name"
        assert arguments["validated_value"] is None
        assert arguments["parent_value"] == {}
        assert arguments["validated_schema"] == {"$type": "string"}
