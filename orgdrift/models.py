"""Structured inventory values: entities, provenance, and the inventory itself."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class EntityKind(str, Enum):
    """Closed set of inventory categories. Value is the category name."""

    OBJECTS = "objects"
    FIELDS = "fields"
    FLOWS = "flows"
    TRIGGERS = "triggers"
    VALIDATION_RULES = "validation_rules"
    WORKFLOW_RULES = "workflow_rules"
    APPROVAL_PROCESSES = "approval_processes"
    APEX_CLASSES = "apex_classes"
    APEX_TRIGGERS = "apex_triggers"
    REPORTS = "reports"
    DASHBOARDS = "dashboards"
    EMAIL_TEMPLATES = "email_templates"
    REPORT_TYPES = "report_types"
    USERS = "users"
    QUEUES = "queues"
    PACKAGES = "packages"
    FINDINGS = "findings"


class RelationshipKind(str, Enum):
    LOOKUP = "lookup"
    MASTER_DETAIL = "master-detail"


@dataclass(frozen=True)
class Provenance:
    """Where and when an inventory was captured."""

    instance_url: str = ""
    org_id: str = ""
    api_version: str = ""
    captured_at: str = ""  # ISO-8601, UTC
    edition: Optional[str] = None
    organization_name: Optional[str] = None


@dataclass(frozen=True)
class Lookup:
    """Relationship reference by name. The target need not exist in the inventory."""

    field: str
    target: str
    is_master_detail: bool = False

    @property
    def kind(self) -> RelationshipKind:
        return RelationshipKind.MASTER_DETAIL if self.is_master_detail else RelationshipKind.LOOKUP


@dataclass(frozen=True)
class FieldStat:
    name: str
    type: str = ""
    label: str = ""
    required: bool = False
    unique: bool = False
    nillable: bool = True
    external_id: bool = False
    length: Optional[int] = None
    object_name: str = ""  # owning object, set when flattened

    @property
    def qualified_name(self) -> str:
        return f"{self.object_name}.{self.name}" if self.object_name else self.name


@dataclass(frozen=True)
class RecordType:
    id: str
    name: str
    developer_name: str
    active: bool = True


@dataclass(frozen=True)
class SchemaObject:
    """One sObject with its fields and outgoing relationship references."""

    name: str
    label: str = ""
    is_custom: bool = False
    record_count: Optional[int] = None
    fields: tuple[FieldStat, ...] = ()
    record_types: tuple[RecordType, ...] = ()
    lookups: tuple[Lookup, ...] = ()

    @property
    def field_count(self) -> int:
        return len(self.fields)

    @property
    def lookup_count(self) -> int:
        return len(self.lookups)

    @property
    def record_type_count(self) -> int:
        return len(self.record_types)


@dataclass(frozen=True)
class Flow:
    developer_name: str
    id: str = ""
    master_label: str = ""
    status: str = "Inactive"  # Active | Draft | Obsolete | Inactive | InvalidDraft
    api_version: str = ""
    active_version_id: Optional[str] = None
    process_type: Optional[str] = None
    trigger_type: Optional[str] = None
    object: Optional[str] = None


@dataclass(frozen=True)
class Trigger:
    name: str
    id: str = ""
    table: str = ""  # TableEnumOrId, the object the trigger fires on
    status: str = "Inactive"
    api_version: str = ""


@dataclass(frozen=True)
class ValidationRule:
    full_name: str
    id: str = ""
    active: bool = False
    error_condition_formula: Optional[str] = None
    error_display_field: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def object_name(self) -> str:
        return self.full_name.split(".", 1)[0] if "." in self.full_name else ""


@dataclass(frozen=True)
class WorkflowRule:
    full_name: str
    id: str = ""
    active: bool = False


@dataclass(frozen=True)
class ApprovalProcess:
    full_name: str
    id: str = ""
    active: bool = False


@dataclass(frozen=True)
class ApexClass:
    name: str
    id: str = ""
    api_version: str = ""


@dataclass(frozen=True)
class ApexTrigger:
    name: str
    id: str = ""
    api_version: str = ""


@dataclass(frozen=True)
class Report:
    name: str
    id: str = ""


@dataclass(frozen=True)
class Dashboard:
    name: str
    id: str = ""


@dataclass(frozen=True)
class EmailTemplate:
    name: str
    id: str = ""


@dataclass(frozen=True)
class ReportType:
    name: str
    id: str = ""


@dataclass(frozen=True)
class User:
    name: str
    id: str = ""
    license: str = ""
    active: bool = True


@dataclass(frozen=True)
class Queue:
    name: str
    id: str = ""


@dataclass(frozen=True)
class Package:
    namespace: str
    name: str = ""


@dataclass(frozen=True)
class Finding:
    id: str
    severity: str = "LOW"  # HIGH | MEDIUM | LOW
    category: str = ""
    title: str = ""
    objects: tuple[str, ...] = ()


@dataclass(frozen=True)
class Inventory:
    """One point-in-time capture of an org. Built once, never mutated."""

    provenance: Provenance = field(default_factory=Provenance)
    objects: tuple[SchemaObject, ...] = ()
    flows: tuple[Flow, ...] = ()
    triggers: tuple[Trigger, ...] = ()
    validation_rules: tuple[ValidationRule, ...] = ()
    workflow_rules: tuple[WorkflowRule, ...] = ()
    approval_processes: tuple[ApprovalProcess, ...] = ()
    apex_classes: tuple[ApexClass, ...] = ()
    apex_triggers: tuple[ApexTrigger, ...] = ()
    reports: tuple[Report, ...] = ()
    dashboards: tuple[Dashboard, ...] = ()
    email_templates: tuple[EmailTemplate, ...] = ()
    report_types: tuple[ReportType, ...] = ()
    users: tuple[User, ...] = ()
    queues: tuple[Queue, ...] = ()
    packages: tuple[Package, ...] = ()
    findings: tuple[Finding, ...] = ()

    @property
    def fields(self) -> tuple[FieldStat, ...]:
        """All fields of all objects, in object then field order."""
        return tuple(
            f if f.object_name else replace(f, object_name=obj.name)
            for obj in self.objects
            for f in obj.fields
        )

    def collection(self, kind: EntityKind) -> tuple:
        """Entities of one category; missing categories are empty."""
        return tuple(getattr(self, kind.value, None) or ())
