"""Source SQL type to Rails migration type mapping."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

import yaml

from schemabridge.exceptions import TypeMapError
from schemabridge.migrations.models import TargetType, TypeSpec

__all__ = [
    "TypeRule",
    "TypeMapping",
    "DEFAULT_TYPE_MAPPING",
    "load_type_mapping",
]

VALID_RULE_FIELDS = {"type", "slots"}


@dataclass(frozen=True)
class TypeRule:
    """Target type for one source type, with the option names its parameters fill."""

    target: str
    slots: tuple[str, ...] = ()


class TypeMapping(Mapping[str, TypeRule]):
    """Case-insensitive, read-only lookup of source base types."""

    def __init__(self, rules: Mapping[str, TypeRule]):
        self._rules = MappingProxyType(
            {name.lower(): rule for name, rule in rules.items()}
        )

    def __getitem__(self, key: str) -> TypeRule:
        return self._rules[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._rules

    def merged(self, overrides: Mapping[str, TypeRule]) -> TypeMapping:
        """Return a new mapping with ``overrides`` layered on top."""
        rules = dict(self._rules)
        rules.update({name.lower(): rule for name, rule in overrides.items()})
        return TypeMapping(rules)

    def resolve(self, spec: TypeSpec) -> Optional[TargetType]:
        """Resolve a source type to a Rails type.

        Unknown types without parameters pass through verbatim. Returns None
        when the parameters cannot be carried over unchanged: more parameters
        than the rule has slots, or any parameter on an unknown type.
        """
        rule = self._rules.get(spec.base_type.lower())
        if rule is None:
            if spec.params:
                return None
            return TargetType(name=spec.base_type)

        if len(spec.params) > len(rule.slots):
            return None
        return TargetType(name=rule.target, options=tuple(zip(rule.slots, spec.params)))


DEFAULT_TYPE_MAPPING = TypeMapping(
    {
        "integer": TypeRule("integer"),
        "int": TypeRule("integer"),
        "smallint": TypeRule("integer"),
        "bigint": TypeRule("bigint"),
        "varchar": TypeRule("string", ("limit",)),
        "char": TypeRule("string", ("limit",)),
        "text": TypeRule("text"),
        "boolean": TypeRule("boolean"),
        "bool": TypeRule("boolean"),
        "datetime": TypeRule("datetime", ("precision",)),
        "timestamp": TypeRule("datetime", ("precision",)),
        "date": TypeRule("date"),
        "time": TypeRule("time", ("precision",)),
        "decimal": TypeRule("decimal", ("precision", "scale")),
        "numeric": TypeRule("decimal", ("precision", "scale")),
        "float": TypeRule("float"),
        "double": TypeRule("float"),
        "real": TypeRule("float"),
        "binary": TypeRule("binary", ("limit",)),
        "blob": TypeRule("binary"),
        "json": TypeRule("json"),
        "jsonb": TypeRule("jsonb"),
        "uuid": TypeRule("uuid"),
    }
)


def load_type_mapping(
    path: Path, base: TypeMapping = DEFAULT_TYPE_MAPPING
) -> TypeMapping:
    """Load a type mapping from a YAML file.

    The document looks like::

        extend: true          # optional, false replaces the base mapping
        types:
          citext: {type: string}
          varbinary: {type: binary, slots: [limit]}

    Raises:
        TypeMapError: If the file cannot be read or is malformed.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise TypeMapError(f"Failed to read type map '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise TypeMapError(f"Invalid YAML in type map '{path}': {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("types"), dict):
        raise TypeMapError(f"Type map '{path}' must contain a 'types' mapping")

    rules = {
        str(name): _parse_rule(str(name), rule_data)
        for name, rule_data in data["types"].items()
    }

    if data.get("extend", True):
        return base.merged(rules)
    return TypeMapping(rules)


def _parse_rule(name: str, data: Any) -> TypeRule:
    if isinstance(data, str):
        return TypeRule(target=data)
    if not isinstance(data, dict):
        raise TypeMapError(f"Type rule for '{name}' must be a string or mapping")

    unknown_fields = set(data.keys()) - VALID_RULE_FIELDS
    if unknown_fields:
        raise TypeMapError(
            f"Unknown field(s) in type rule '{name}': {', '.join(sorted(unknown_fields))}"
        )

    target = data.get("type")
    if not target:
        raise TypeMapError(f"Type rule '{name}' missing 'type' field")

    slots = data.get("slots", [])
    if not isinstance(slots, list) or not all(isinstance(s, str) for s in slots):
        raise TypeMapError(f"Type rule '{name}' has invalid 'slots'; expected a list of names")

    return TypeRule(target=str(target), slots=tuple(slots))
