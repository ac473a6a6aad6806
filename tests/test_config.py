"""Tests for the YAML diff policy."""

import pytest

from orgdrift.config import ConfigError, DiffConfig, config_from_dict, find_config, load_config
from orgdrift.identity import TRACKED_ATTRIBUTES
from orgdrift.models import EntityKind


def test_default_config():
    """No policy: every category compared, any change fails."""
    c = DiffConfig()
    assert c.categories() == list(EntityKind)
    assert c.attributes(EntityKind.FIELDS) == TRACKED_ATTRIBUTES[EntityKind.FIELDS]
    assert c.fails(EntityKind.REPORTS)


def test_load_config(tmp_path):
    """track / ignore / fail_on parse from YAML."""
    p = tmp_path / ".orgdrift.yaml"
    p.write_text(
        "track:\n  fields: [type, length, required]\n"
        "ignore:\n  - findings\n"
        "fail_on: [objects, flows]\n"
    )
    c = load_config(p)
    assert c.tracked[EntityKind.FIELDS] == ("type", "length", "required")
    assert EntityKind.FINDINGS not in c.categories()
    assert c.fails(EntityKind.FLOWS)
    assert not c.fails(EntityKind.REPORTS)
    assert c.source == str(p)


def test_property_attribute_allowed():
    """Properties like field_count can be tracked."""
    c = config_from_dict({"track": {"objects": ["field_count", "flow_count"]}})
    assert c.tracked[EntityKind.OBJECTS] == ("field_count", "flow_count")


def test_unknown_category():
    with pytest.raises(ConfigError, match="unknown category"):
        config_from_dict({"ignore": ["widgets"]})


def test_unknown_attribute():
    with pytest.raises(ConfigError, match="unknown attribute 'colour'"):
        config_from_dict({"track": {"flows": ["colour"]}})


def test_non_list_values():
    with pytest.raises(ConfigError):
        config_from_dict({"track": {"flows": "status"}})
    with pytest.raises(ConfigError):
        config_from_dict({"fail_on": "objects"})


def test_invalid_yaml(tmp_path):
    p = tmp_path / "orgdrift.yaml"
    p.write_text("track: [unclosed\n")
    with pytest.raises(ConfigError, match="invalid YAML"):
        load_config(p)


def test_empty_file(tmp_path):
    """Empty policy file means defaults."""
    p = tmp_path / "orgdrift.yaml"
    p.write_text("")
    assert load_config(p).tracked == {}


def test_find_config(tmp_path):
    assert find_config(tmp_path) is None
    (tmp_path / "orgdrift.yaml").write_text("{}")
    assert find_config(tmp_path).name == "orgdrift.yaml"
    (tmp_path / ".orgdrift.yaml").write_text("{}")
    assert find_config(tmp_path).name == ".orgdrift.yaml"
