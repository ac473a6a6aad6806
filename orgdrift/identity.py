"""Entity identity and equality: natural key and tracked attributes per kind."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Mapping

from .models import EntityKind

# Kind -> attribute holding the natural key (unique within its category)
KEY_ATTRIBUTES: dict[EntityKind, str] = {
    EntityKind.OBJECTS: "name",
    EntityKind.FIELDS: "qualified_name",
    EntityKind.FLOWS: "developer_name",
    EntityKind.TRIGGERS: "name",
    EntityKind.VALIDATION_RULES: "full_name",
    EntityKind.WORKFLOW_RULES: "full_name",
    EntityKind.APPROVAL_PROCESSES: "full_name",
    EntityKind.APEX_CLASSES: "name",
    EntityKind.APEX_TRIGGERS: "name",
    EntityKind.REPORTS: "name",
    EntityKind.DASHBOARDS: "name",
    EntityKind.EMAIL_TEMPLATES: "name",
    EntityKind.REPORT_TYPES: "name",
    EntityKind.USERS: "name",
    EntityKind.QUEUES: "name",
    EntityKind.PACKAGES: "namespace",
    EntityKind.FINDINGS: "id",
}

# Kind -> attributes compared when the key is present on both sides (order is output order)
TRACKED_ATTRIBUTES: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.OBJECTS: (
        "label",
        "is_custom",
        "record_count",
        "field_count",
        "lookup_count",
        "record_type_count",
        "flow_count",
        "trigger_count",
        "validation_rule_count",
    ),
    EntityKind.FIELDS: ("type", "label", "length", "required", "nillable", "unique", "external_id"),
    EntityKind.FLOWS: ("status", "active_version_id", "process_type", "trigger_type", "object", "api_version"),
    EntityKind.TRIGGERS: ("status", "table", "api_version"),
    EntityKind.VALIDATION_RULES: ("active", "error_condition_formula", "error_message", "error_display_field"),
    EntityKind.WORKFLOW_RULES: ("active",),
    EntityKind.APPROVAL_PROCESSES: ("active",),
    EntityKind.APEX_CLASSES: ("api_version",),
    EntityKind.APEX_TRIGGERS: ("api_version",),
    EntityKind.REPORTS: (),
    EntityKind.DASHBOARDS: (),
    EntityKind.EMAIL_TEMPLATES: (),
    EntityKind.REPORT_TYPES: (),
    EntityKind.USERS: ("license", "active"),
    EntityKind.QUEUES: (),
    EntityKind.PACKAGES: ("name",),
    EntityKind.FINDINGS: ("severity", "category", "title"),
}

# Object attributes derived from the rest of the inventory, not stored on SchemaObject
DERIVED_OBJECT_ATTRIBUTES = ("flow_count", "trigger_count", "validation_rule_count")


def entity_key(kind: EntityKind, entity: Any) -> str:
    """Natural key of an entity within its category."""
    return str(getattr(entity, KEY_ATTRIBUTES[kind]))


def entity_attributes(
    entity: Any,
    attributes: tuple[str, ...],
    extra: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Snapshot tracked attributes; `extra` supplies derived values by name."""
    extra = extra or {}
    out: dict[str, Any] = {}
    for name in attributes:
        if name in extra:
            out[name] = extra[name]
        else:
            out[name] = getattr(entity, name, None)
    return out


def comparable(value: Any) -> Any:
    """
    Normalize a value for deep equality: dataclasses, mappings and sequences by content.
    Each form is tagged, so a mapping never equals a sequence of pairs. Lists and
    tuples share a tag.
    """
    if is_dataclass(value) and not isinstance(value, type):
        items = tuple((f.name, comparable(getattr(value, f.name))) for f in fields(value))
        return ("dataclass", type(value).__qualname__, items)
    if isinstance(value, Mapping):
        pairs = ((comparable(k), comparable(v)) for k, v in value.items())
        return ("map", tuple(sorted(pairs, key=lambda kv: repr(kv[0]))))
    if isinstance(value, (list, tuple)):
        return ("seq", tuple(comparable(v) for v in value))
    if isinstance(value, (set, frozenset)):
        return ("set", tuple(sorted((comparable(v) for v in value), key=repr)))
    if isinstance(value, bool):
        # keep True distinct from 1
        return ("bool", value)
    return value


def values_equal(a: Any, b: Any) -> bool:
    """Deep value equality, never reference identity."""
    return comparable(a) == comparable(b)


def is_known_attribute(kind: EntityKind, name: str, entity_type: type | None = None) -> bool:
    """True if `name` can be tracked for `kind` (stored, derived, or a property)."""
    if name in TRACKED_ATTRIBUTES[kind]:
        return True
    if kind is EntityKind.OBJECTS and name in DERIVED_OBJECT_ATTRIBUTES:
        return True
    if entity_type is None:
        return False
    if is_dataclass(entity_type) and name in {f.name for f in fields(entity_type)}:
        return True
    return isinstance(getattr(entity_type, name, None), property)
