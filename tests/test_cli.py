"""Tests for the CLI: graph, diff, check."""

import json

from typer.testing import CliRunner

from orgdrift.cli import app

runner = CliRunner()


def scan(objects, flows=()):
    return {
        "source": {"orgId": "00D1", "apiVersion": "60.0"},
        "inventory": {"sourceObjects": objects, "automation": {"flows": list(flows), "triggers": []}},
        "findings": [],
    }


BEFORE = scan(
    [
        {"name": "Account", "label": "Account", "lookups": []},
        {"name": "Contact", "label": "Contact", "lookups": [{"field": "AccountId", "target": "Account"}]},
    ],
    flows=[{"developerName": "Welcome", "status": "Active"}],
)
AFTER = scan(
    [
        {"name": "Account", "label": "Customer Account", "lookups": []},
        {"name": "Contact", "label": "Contact", "lookups": [{"field": "AccountId", "target": "Account"}]},
        {"name": "Invoice__c", "label": "Invoice", "lookups": [{"target": "Account", "isMasterDetail": True}]},
    ],
    flows=[{"developerName": "Welcome", "status": "Active"}],
)


def write(tmp_path, name, data):
    p = tmp_path / name
    p.write_text(json.dumps(data))
    return str(p)


def test_graph_json(tmp_path):
    """graph --json prints nodes, edges, order."""
    path = write(tmp_path, "after.json", AFTER)
    result = runner.invoke(app, ["graph", path, "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert len(data["nodes"]) == 3
    assert {"from": "Invoice__c", "to": "Account", "type": "master-detail"} in data["edges"]
    assert data["load_order"][0] == "Account"
    assert data["cyclic"] == []


def test_graph_human(tmp_path):
    path = write(tmp_path, "after.json", AFTER)
    result = runner.invoke(app, ["graph", path])
    assert result.exit_code == 0
    assert "LOAD ORDER" in result.output
    assert "3 objects, 2 relationships" in result.output


def test_diff_json(tmp_path):
    """diff --json reports added and modified objects."""
    a = write(tmp_path, "before.json", BEFORE)
    b = write(tmp_path, "after.json", AFTER)
    result = runner.invoke(app, ["diff", a, b, "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    objects = data["categories"]["objects"]
    assert objects["added"] == ["Invoice__c"]
    assert objects["modified"][0]["key"] == "Account"
    assert data["summary"]["added"] == 1
    assert data["source"]["path"] == a


def test_diff_human_no_drift(tmp_path):
    a = write(tmp_path, "before.json", BEFORE)
    result = runner.invoke(app, ["diff", a, a, "--ci"])
    assert result.exit_code == 0
    assert "No drift detected." in result.output


def test_diff_ci_fails_on_drift(tmp_path):
    a = write(tmp_path, "before.json", BEFORE)
    b = write(tmp_path, "after.json", AFTER)
    result = runner.invoke(app, ["diff", a, b, "--ci"])
    assert result.exit_code == 1
    assert "Customer Account" in result.output


def test_diff_ci_respects_fail_on(tmp_path):
    """Only fail_on categories fail CI."""
    a = write(tmp_path, "before.json", BEFORE)
    b = write(tmp_path, "after.json", AFTER)
    policy = tmp_path / "policy.yaml"
    policy.write_text("fail_on: [flows]\n")
    result = runner.invoke(app, ["diff", a, b, "--ci", "--config", str(policy)])
    assert result.exit_code == 0


def test_diff_bad_config(tmp_path):
    a = write(tmp_path, "before.json", BEFORE)
    policy = tmp_path / "policy.yaml"
    policy.write_text("ignore: [widgets]\n")
    result = runner.invoke(app, ["diff", a, a, "--config", str(policy)])
    assert result.exit_code == 2
    assert "unknown category" in result.output


def test_diff_invalid_inventory(tmp_path):
    a = write(tmp_path, "before.json", BEFORE)
    bad = tmp_path / "bad.json"
    bad.write_text("not json")
    result = runner.invoke(app, ["diff", a, str(bad)])
    assert result.exit_code == 2
    assert "invalid" in result.output


def test_check_ok(tmp_path):
    a = write(tmp_path, "before.json", BEFORE)
    result = runner.invoke(app, ["check", a])
    assert result.exit_code == 0
    assert "OK" in result.output


def test_check_duplicates(tmp_path):
    dup = scan([{"name": "Account"}, {"name": "Account"}])
    a = write(tmp_path, "dup.json", dup)
    result = runner.invoke(app, ["check", a])
    assert result.exit_code == 2
    assert "objects: Account" in result.output


def test_diff_malformed_section(tmp_path):
    """Structurally wrong scan JSON is a usage error (exit 2), not a crash."""
    a = write(tmp_path, "before.json", BEFORE)
    b = write(tmp_path, "bad.json", {"inventory": ["x"]})
    result = runner.invoke(app, ["diff", a, b])
    assert result.exit_code == 2
    assert "expected an object" in result.output


def test_graph_lists_objects_blocked_by_cycle(tmp_path):
    """Objects that depend on a cycle are listed as unresolved too."""
    cyclic = scan(
        [
            {"name": "X", "lookups": [{"target": "Y"}]},
            {"name": "Free", "lookups": []},
            {"name": "Y", "lookups": [{"target": "X"}]},
            {"name": "Leaf", "lookups": [{"target": "X"}]},
        ]
    )
    path = write(tmp_path, "cyclic.json", cyclic)
    result = runner.invoke(app, ["graph", path])
    assert result.exit_code == 0, result.output
    assert "UNRESOLVED" in result.output
    assert "X, Y, Leaf" in result.output

    data = json.loads(runner.invoke(app, ["graph", path, "--json"]).output)
    assert data["load_order"] == ["Free", "X", "Y", "Leaf"]
    assert data["load_cyclic"] == ["X", "Y", "Leaf"]
