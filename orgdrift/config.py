"""Optional YAML policy: what to compare and which changes fail CI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .identity import TRACKED_ATTRIBUTES, is_known_attribute
from .models import (
    ApexClass,
    ApexTrigger,
    ApprovalProcess,
    Dashboard,
    EmailTemplate,
    EntityKind,
    FieldStat,
    Finding,
    Flow,
    Package,
    Queue,
    Report,
    ReportType,
    SchemaObject,
    Trigger,
    User,
    ValidationRule,
    WorkflowRule,
)

CONFIG_FILENAMES = (".orgdrift.yaml", "orgdrift.yaml")

ENTITY_TYPES: dict[EntityKind, type] = {
    EntityKind.OBJECTS: SchemaObject,
    EntityKind.FIELDS: FieldStat,
    EntityKind.FLOWS: Flow,
    EntityKind.TRIGGERS: Trigger,
    EntityKind.VALIDATION_RULES: ValidationRule,
    EntityKind.WORKFLOW_RULES: WorkflowRule,
    EntityKind.APPROVAL_PROCESSES: ApprovalProcess,
    EntityKind.APEX_CLASSES: ApexClass,
    EntityKind.APEX_TRIGGERS: ApexTrigger,
    EntityKind.REPORTS: Report,
    EntityKind.DASHBOARDS: Dashboard,
    EntityKind.EMAIL_TEMPLATES: EmailTemplate,
    EntityKind.REPORT_TYPES: ReportType,
    EntityKind.USERS: User,
    EntityKind.QUEUES: Queue,
    EntityKind.PACKAGES: Package,
    EntityKind.FINDINGS: Finding,
}


class ConfigError(ValueError):
    """Policy file present but malformed."""


@dataclass(frozen=True)
class DiffConfig:
    tracked: dict[EntityKind, tuple[str, ...]] = field(default_factory=dict)
    ignore: frozenset[EntityKind] = frozenset()
    fail_on: frozenset[EntityKind] = frozenset()  # empty = any change fails
    source: str | None = None  # file the policy came from

    def categories(self) -> list[EntityKind]:
        return [k for k in EntityKind if k not in self.ignore]

    def attributes(self, kind: EntityKind) -> tuple[str, ...]:
        return self.tracked.get(kind, TRACKED_ATTRIBUTES[kind])

    def fails(self, kind: EntityKind) -> bool:
        """Whether a change in `kind` should fail --ci."""
        return not self.fail_on or kind in self.fail_on


def _kind(value: Any, where: str) -> EntityKind:
    try:
        return EntityKind(str(value))
    except ValueError:
        valid = ", ".join(k.value for k in EntityKind)
        raise ConfigError(f"{where}: unknown category '{value}' (expected one of: {valid})") from None


def _kind_list(value: Any, where: str) -> frozenset[EntityKind]:
    if value is None:
        return frozenset()
    if not isinstance(value, list):
        raise ConfigError(f"{where}: expected a list of categories")
    return frozenset(_kind(v, where) for v in value)


def config_from_dict(data: dict, source: str | None = None) -> DiffConfig:
    """Validate a parsed policy mapping. Unknown top-level keys are ignored."""
    if not isinstance(data, dict):
        raise ConfigError("policy: expected a mapping at top level")

    tracked: dict[EntityKind, tuple[str, ...]] = {}
    track = data.get("track") or {}
    if not isinstance(track, dict):
        raise ConfigError("track: expected a mapping of category -> attribute list")
    for cat, attrs in track.items():
        kind = _kind(cat, "track")
        if not isinstance(attrs, list):
            raise ConfigError(f"track.{kind.value}: expected a list of attributes")
        for a in attrs:
            if not is_known_attribute(kind, str(a), ENTITY_TYPES[kind]):
                raise ConfigError(f"track.{kind.value}: unknown attribute '{a}'")
        tracked[kind] = tuple(str(a) for a in attrs)

    return DiffConfig(
        tracked=tracked,
        ignore=_kind_list(data.get("ignore"), "ignore"),
        fail_on=_kind_list(data.get("fail_on"), "fail_on"),
        source=source,
    )


def load_config(path: Path) -> DiffConfig:
    """Load a YAML policy file."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except OSError as e:
        raise ConfigError(f"{path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML ({e})") from e
    return config_from_dict(data, source=str(path))


def find_config(cwd: Path) -> Path | None:
    """First of .orgdrift.yaml / orgdrift.yaml in `cwd`, if any."""
    for name in CONFIG_FILENAMES:
        p = Path(cwd) / name
        if p.exists():
            return p
    return None
