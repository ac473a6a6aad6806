"""Inventory diff: added, removed and modified entities per category."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from .identity import (
    DERIVED_OBJECT_ATTRIBUTES,
    TRACKED_ATTRIBUTES,
    entity_attributes,
    entity_key,
    values_equal,
)
from .models import EntityKind, Inventory


@dataclass(frozen=True)
class Change:
    old: Any
    new: Any

    def to_dict(self) -> dict:
        return {"from": self.old, "to": self.new}


@dataclass(frozen=True)
class Modification:
    """An entity present on both sides with at least one tracked attribute changed."""

    key: str
    changes: Mapping[str, Change] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"key": self.key, "changes": {k: c.to_dict() for k, c in self.changes.items()}}


@dataclass(frozen=True)
class CategoryDiff:
    kind: EntityKind
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    modified: tuple[Modification, ...] = ()

    @property
    def counts(self) -> dict[str, int]:
        return {"added": len(self.added), "removed": len(self.removed), "modified": len(self.modified)}

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)

    def to_dict(self) -> dict:
        return {
            "added": list(self.added),
            "removed": list(self.removed),
            "modified": [m.to_dict() for m in self.modified],
        }


@dataclass(frozen=True)
class DiffSummary:
    by_category: Mapping[str, Mapping[str, int]] = field(default_factory=dict)
    added: int = 0
    removed: int = 0
    modified: int = 0

    @property
    def total(self) -> int:
        return self.added + self.removed + self.modified

    def to_dict(self) -> dict:
        return {
            "by_category": {k: dict(v) for k, v in self.by_category.items()},
            "added": self.added,
            "removed": self.removed,
            "modified": self.modified,
            "total": self.total,
        }


@dataclass(frozen=True)
class DiffResult:
    """Read-only comparison of two inventories, one CategoryDiff per EntityKind."""

    categories: tuple[CategoryDiff, ...] = ()
    summary: DiffSummary = field(default_factory=DiffSummary)

    @property
    def has_changes(self) -> bool:
        return self.summary.total > 0

    def category(self, kind: EntityKind) -> CategoryDiff:
        for c in self.categories:
            if c.kind is kind:
                return c
        return CategoryDiff(kind=kind)

    def __getitem__(self, kind: EntityKind | str) -> CategoryDiff:
        return self.category(EntityKind(kind))

    def to_dict(self) -> dict:
        return {
            "has_changes": self.has_changes,
            "categories": {c.kind.value: c.to_dict() for c in self.categories},
            "summary": self.summary.to_dict(),
        }


def diff(
    source: Inventory,
    target: Inventory,
    tracked: Mapping[EntityKind, Sequence[str]] | None = None,
    categories: Iterable[EntityKind] | None = None,
) -> DiffResult:
    """
    Compare two inventories. `added` follows target order; `removed` and
    `modified` follow source order. Kinds missing from `tracked` keep their
    default attribute list; kinds outside `categories` come back empty.
    """
    tracked = tracked or {}
    selected = set(categories) if categories is not None else set(EntityKind)
    source_derived = _derived_object_attributes(source)
    target_derived = _derived_object_attributes(target)

    results: list[CategoryDiff] = []
    for kind in EntityKind:
        if kind not in selected:
            results.append(CategoryDiff(kind=kind))
            continue
        attributes = tuple(tracked.get(kind, TRACKED_ATTRIBUTES[kind]))
        derived = (source_derived, target_derived) if kind is EntityKind.OBJECTS else None
        results.append(
            diff_category(kind, source.collection(kind), target.collection(kind), attributes, derived)
        )
    return DiffResult(categories=tuple(results), summary=summarize(results))


def diff_category(
    kind: EntityKind,
    source_items: Sequence[Any],
    target_items: Sequence[Any],
    attributes: Sequence[str] | None = None,
    derived: tuple[Mapping[str, Mapping[str, Any]], Mapping[str, Mapping[str, Any]]] | None = None,
) -> CategoryDiff:
    """Diff one category. `derived` holds per-key extra attribute values for (source, target)."""
    if attributes is None:
        attributes = TRACKED_ATTRIBUTES[kind]
    attributes = tuple(attributes)
    src_derived, tgt_derived = derived or ({}, {})

    src = {entity_key(kind, e): e for e in source_items or ()}
    tgt = {entity_key(kind, e): e for e in target_items or ()}

    added = tuple(k for k in tgt if k not in src)
    removed = tuple(k for k in src if k not in tgt)

    modified: list[Modification] = []
    for key, old_entity in src.items():
        new_entity = tgt.get(key)
        if new_entity is None:
            continue
        old = entity_attributes(old_entity, attributes, src_derived.get(key))
        new = entity_attributes(new_entity, attributes, tgt_derived.get(key))
        changes = {a: Change(old[a], new[a]) for a in attributes if not values_equal(old[a], new[a])}
        if changes:
            modified.append(Modification(key=key, changes=changes))

    return CategoryDiff(kind=kind, added=added, removed=removed, modified=tuple(modified))


def summarize(categories: Iterable[CategoryDiff]) -> DiffSummary:
    """Per-category counts plus grand totals."""
    by_category: dict[str, dict[str, int]] = {}
    totals: Counter[str] = Counter()
    for c in categories:
        counts = c.counts
        by_category[c.kind.value] = counts
        totals.update(counts)
    return DiffSummary(
        by_category=by_category,
        added=totals["added"],
        removed=totals["removed"],
        modified=totals["modified"],
    )


def _derived_object_attributes(inventory: Inventory) -> dict[str, dict[str, int]]:
    """Automation counts per object name: flows, triggers, validation rules."""
    flows = Counter(f.object for f in inventory.flows if f.object)
    triggers = Counter(t.table for t in inventory.triggers if t.table)
    rules = Counter(v.object_name for v in inventory.validation_rules if v.object_name)
    counts = (flows, triggers, rules)
    return {
        obj.name: {attr: c[obj.name] for attr, c in zip(DERIVED_OBJECT_ATTRIBUTES, counts)}
        for obj in inventory.objects
    }
