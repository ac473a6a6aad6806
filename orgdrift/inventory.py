"""Scan JSON <-> Inventory. Loosely-typed records are normalized here, once."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

from .identity import entity_key
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
    Inventory,
    Lookup,
    Package,
    Provenance,
    Queue,
    RecordType,
    Report,
    ReportType,
    SchemaObject,
    Trigger,
    User,
    ValidationRule,
    WorkflowRule,
)


class InventoryError(ValueError):
    """Malformed scan data, or an inventory that breaks key uniqueness."""


def _require(record: Any, key: str, where: str) -> Any:
    if not isinstance(record, dict):
        raise InventoryError(f"{where}: expected an object, got {type(record).__name__}")
    value = record.get(key)
    if value is None or value == "":
        raise InventoryError(f"{where}: missing '{key}'")
    return value


def _items(value: Any, where: str, records: bool = True) -> list:
    """
    List of records, or plain values when `records` is false.
    Count summaries ({"total": n, ...}) carry no entities -> empty.
    """
    if value is None:
        return []
    if isinstance(value, list):
        for i, record in enumerate(value):
            if records and not isinstance(record, dict):
                raise InventoryError(f"{where}[{i}]: expected an object, got {type(record).__name__}")
        return value
    if isinstance(value, dict) and ("total" in value or "available" in value):
        return []
    raise InventoryError(f"{where}: expected a list, got {type(value).__name__}")


def _section(parent: dict, key: str, where: str) -> dict:
    """Nested mapping; absent or null is empty, anything else but a mapping is malformed."""
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InventoryError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _opt_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _field(d: dict, object_name: str) -> FieldStat:
    return FieldStat(
        name=_require(d, "name", f"field of {object_name}"),
        type=d.get("type") or "",
        label=d.get("label") or "",
        required=bool(d.get("required", False)),
        unique=bool(d.get("unique", False)),
        nillable=bool(d.get("nillable", True)),
        external_id=bool(d.get("externalId", False)),
        length=_opt_int(d.get("length")),
        object_name=object_name,
    )


def _object(d: dict) -> SchemaObject:
    name = _require(d, "name", "sourceObjects")
    return SchemaObject(
        name=name,
        label=d.get("label") or name,
        is_custom=bool(d.get("isCustom", False)),
        record_count=_opt_int(d.get("recordCount")),
        fields=tuple(_field(f, name) for f in _items(d.get("fields"), f"{name}.fields")),
        record_types=tuple(
            RecordType(
                id=rt.get("id") or "",
                name=rt.get("name") or "",
                developer_name=rt.get("developerName") or "",
                active=bool(rt.get("active", True)),
            )
            for rt in _items(d.get("recordTypes"), f"{name}.recordTypes")
        ),
        lookups=tuple(
            Lookup(
                target=_require(lk, "target", f"{name}.lookups"),
                field=lk.get("field") or "",
                is_master_detail=bool(lk.get("isMasterDetail", False)),
            )
            for lk in _items(d.get("lookups"), f"{name}.lookups")
        ),
    )


def _flow(d: dict) -> Flow:
    return Flow(
        developer_name=_require(d, "developerName", "flows"),
        id=d.get("id") or "",
        master_label=d.get("masterLabel") or "",
        status=d.get("status") or "Inactive",
        api_version=str(d.get("apiVersion") or ""),
        active_version_id=d.get("activeVersionId"),
        process_type=d.get("processType"),
        trigger_type=d.get("triggerType"),
        object=d.get("object"),
    )


def _trigger(d: dict) -> Trigger:
    return Trigger(
        name=_require(d, "name", "triggers"),
        id=d.get("id") or "",
        table=d.get("tableEnumOrId") or "",
        status=d.get("status") or "Inactive",
        api_version=str(d.get("apiVersion") or ""),
    )


def _validation_rule(d: dict) -> ValidationRule:
    return ValidationRule(
        full_name=_require(d, "fullName", "validationRules"),
        id=d.get("id") or "",
        active=bool(d.get("active", False)),
        error_condition_formula=d.get("errorConditionFormula"),
        error_display_field=d.get("errorDisplayField"),
        error_message=d.get("errorMessage"),
    )


def _named(cls: type, where: str) -> Callable[[dict], Any]:
    def build(d: dict) -> Any:
        return cls(name=_require(d, "name", where), id=d.get("id") or "")
    return build


def _apex(cls: type, where: str) -> Callable[[dict], Any]:
    def build(d: dict) -> Any:
        return cls(name=_require(d, "name", where), id=d.get("id") or "", api_version=str(d.get("apiVersion") or ""))
    return build


def _active_named(cls: type, where: str) -> Callable[[dict], Any]:
    def build(d: dict) -> Any:
        return cls(full_name=_require(d, "fullName", where), id=d.get("id") or "", active=bool(d.get("active", False)))
    return build


def _user(d: dict) -> User:
    return User(
        name=_require(d, "name", "users"),
        id=d.get("id") or "",
        license=d.get("license") or "",
        active=bool(d.get("active", True)),
    )


def _package(d: dict) -> Package:
    return Package(namespace=_require(d, "namespace", "packages"), name=d.get("name") or "")


def _finding(d: dict) -> Finding:
    return Finding(
        id=_require(d, "id", "findings"),
        severity=d.get("severity") or "LOW",
        category=d.get("category") or "",
        title=d.get("title") or "",
        objects=tuple(str(o) for o in _items(d.get("objects"), "findings.objects", records=False)),
    )


def _provenance(d: dict, captured_at: str | None) -> Provenance:
    return Provenance(
        instance_url=d.get("instanceUrl") or "",
        org_id=d.get("orgId") or "",
        api_version=str(d.get("apiVersion") or ""),
        captured_at=captured_at or d.get("capturedAt") or "",
        edition=d.get("edition"),
        organization_name=d.get("organizationName"),
    )


def inventory_from_dict(data: dict) -> Inventory:
    """Build an Inventory from scan output JSON (or a stored scan run wrapping it)."""
    if not isinstance(data, dict):
        raise InventoryError(f"scan: expected an object, got {type(data).__name__}")
    captured_at = data.get("createdAt")
    if "scanOutput" in data:
        data = _section(data, "scanOutput", "scanOutput")
    inv = _section(data, "inventory", "inventory")
    automation = _section(inv, "automation", "inventory.automation")
    code = _section(inv, "code", "inventory.code")
    reporting = _section(inv, "reporting", "inventory.reporting")
    ownership = _section(inv, "ownership", "inventory.ownership")

    def load(builder: Callable[[dict], Any], value: Any, where: str) -> tuple:
        return tuple(builder(d) for d in _items(value, where))

    return Inventory(
        provenance=_provenance(_section(data, "source", "source"), captured_at),
        objects=load(_object, inv.get("sourceObjects"), "sourceObjects"),
        flows=load(_flow, automation.get("flows"), "automation.flows"),
        triggers=load(_trigger, automation.get("triggers"), "automation.triggers"),
        validation_rules=load(_validation_rule, automation.get("validationRules"), "automation.validationRules"),
        workflow_rules=load(
            _active_named(WorkflowRule, "workflowRules"), automation.get("workflowRules"), "automation.workflowRules"
        ),
        approval_processes=load(
            _active_named(ApprovalProcess, "approvalProcesses"),
            automation.get("approvalProcesses"),
            "automation.approvalProcesses",
        ),
        apex_classes=load(_apex(ApexClass, "apexClasses"), code.get("apexClasses"), "code.apexClasses"),
        apex_triggers=load(_apex(ApexTrigger, "apexTriggers"), code.get("apexTriggers"), "code.apexTriggers"),
        reports=load(_named(Report, "reports"), reporting.get("reports"), "reporting.reports"),
        dashboards=load(_named(Dashboard, "dashboards"), reporting.get("dashboards"), "reporting.dashboards"),
        email_templates=load(
            _named(EmailTemplate, "emailTemplates"), reporting.get("emailTemplates"), "reporting.emailTemplates"
        ),
        report_types=load(_named(ReportType, "reportTypes"), reporting.get("reportTypes"), "reporting.reportTypes"),
        users=load(_user, ownership.get("users"), "ownership.users"),
        queues=load(_named(Queue, "queues"), ownership.get("queues"), "ownership.queues"),
        packages=load(_package, inv.get("packages"), "packages"),
        findings=load(_finding, data.get("findings"), "findings"),
    )


def inventory_to_dict(inventory: Inventory) -> dict:
    """
    Scan output JSON shape, so a snapshot store can round-trip an Inventory.
    Only what the model holds is written back: finding description, impact and
    remediation, picklists, autonumber fields, and the security and integrations
    sections of a scan are not kept.
    """
    p = inventory.provenance
    source: dict[str, Any] = {
        "instanceUrl": p.instance_url,
        "orgId": p.org_id,
        "apiVersion": p.api_version,
        "capturedAt": p.captured_at,
    }
    if p.edition is not None:
        source["edition"] = p.edition
    if p.organization_name is not None:
        source["organizationName"] = p.organization_name

    def ident(items: tuple) -> list[dict]:
        return [{"id": e.id, "name": e.name} for e in items]

    return {
        "source": source,
        "inventory": {
            "sourceObjects": [
                {
                    "name": o.name,
                    "label": o.label,
                    "isCustom": o.is_custom,
                    "recordCount": o.record_count,
                    "fields": [
                        {
                            "name": f.name,
                            "type": f.type,
                            "label": f.label,
                            "required": f.required,
                            "unique": f.unique,
                            "nillable": f.nillable,
                            "externalId": f.external_id,
                            "length": f.length,
                        }
                        for f in o.fields
                    ],
                    "recordTypes": [
                        {"id": rt.id, "name": rt.name, "developerName": rt.developer_name, "active": rt.active}
                        for rt in o.record_types
                    ],
                    "lookups": [
                        {"field": lk.field, "target": lk.target, "isMasterDetail": lk.is_master_detail}
                        for lk in o.lookups
                    ],
                }
                for o in inventory.objects
            ],
            "automation": {
                "flows": [
                    {
                        "id": f.id,
                        "developerName": f.developer_name,
                        "masterLabel": f.master_label,
                        "status": f.status,
                        "apiVersion": f.api_version,
                        "activeVersionId": f.active_version_id,
                        "processType": f.process_type,
                        "triggerType": f.trigger_type,
                        "object": f.object,
                    }
                    for f in inventory.flows
                ],
                "triggers": [
                    {"id": t.id, "name": t.name, "tableEnumOrId": t.table, "status": t.status, "apiVersion": t.api_version}
                    for t in inventory.triggers
                ],
                "validationRules": [
                    {
                        "id": v.id,
                        "fullName": v.full_name,
                        "active": v.active,
                        "errorConditionFormula": v.error_condition_formula,
                        "errorDisplayField": v.error_display_field,
                        "errorMessage": v.error_message,
                    }
                    for v in inventory.validation_rules
                ],
                "workflowRules": [
                    {"id": w.id, "fullName": w.full_name, "active": w.active} for w in inventory.workflow_rules
                ],
                "approvalProcesses": [
                    {"id": a.id, "fullName": a.full_name, "active": a.active} for a in inventory.approval_processes
                ],
            },
            "code": {
                "apexClasses": [{"id": c.id, "name": c.name, "apiVersion": c.api_version} for c in inventory.apex_classes],
                "apexTriggers": [
                    {"id": t.id, "name": t.name, "apiVersion": t.api_version} for t in inventory.apex_triggers
                ],
            },
            "reporting": {
                "reports": ident(inventory.reports),
                "dashboards": ident(inventory.dashboards),
                "emailTemplates": ident(inventory.email_templates),
                "reportTypes": ident(inventory.report_types),
            },
            "ownership": {
                "users": [{"id": u.id, "name": u.name, "license": u.license, "active": u.active} for u in inventory.users],
                "queues": ident(inventory.queues),
            },
            "packages": [{"namespace": pk.namespace, "name": pk.name} for pk in inventory.packages],
        },
        "findings": [
            {"id": f.id, "severity": f.severity, "category": f.category, "title": f.title, "objects": list(f.objects)}
            for f in inventory.findings
        ],
    }


def load_inventory(path: Path) -> Inventory:
    """Read a scan JSON file from disk."""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except OSError as e:
        raise InventoryError(f"{path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise InventoryError(f"{path}: invalid JSON ({e.msg}, line {e.lineno})") from e
    return inventory_from_dict(data)


def find_duplicates(inventory: Inventory) -> list[tuple[str, str]]:
    """(category, key) pairs that occur more than once within their category."""
    dupes: list[tuple[str, str]] = []
    for kind in EntityKind:
        seen: set[str] = set()
        reported: set[str] = set()
        for e in inventory.collection(kind):
            key = entity_key(kind, e)
            if key in seen and key not in reported:
                dupes.append((kind.value, key))
                reported.add(key)
            seen.add(key)
    return dupes


def validate_inventory(inventory: Inventory) -> None:
    """Raise InventoryError if any category repeats a key. Opt-in; the engines never call this."""
    dupes = find_duplicates(inventory)
    if dupes:
        listed = ", ".join(f"{cat}:{key}" for cat, key in dupes[:10])
        more = f" (+{len(dupes) - 10} more)" if len(dupes) > 10 else ""
        raise InventoryError(f"Duplicate keys: {listed}{more}")
