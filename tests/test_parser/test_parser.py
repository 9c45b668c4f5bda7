# tests/test_parser/test_parser.py
import pytest

from nacsim_core.parser import CircuitFileParser, ParsingError, SchemaValidationError


@pytest.fixture
def parser():
    return CircuitFileParser()


def test_parse_string_builds_device_entries(parser, circuit_yaml_text):
    parsed = parser.parse_string(circuit_yaml_text, source_name="nac1.yaml")
    assert parsed.circuit_name == "NAC-1"
    assert parsed.project_name == "Test Building"
    assert parsed.project_path == "/projects/test-building"
    assert [d.device_id for d in parsed.devices] == ["d1", "t1", "d2", "d3"]
    assert [d.file_order for d in parsed.devices] == [0, 1, 2, 3]

    d1, t1 = parsed.devices[0], parsed.devices[1]
    assert d1.parent_id is None
    assert d1.is_branch is False
    assert d1.raw_distance == 0
    assert d1.raw_attributes["AlarmCurrent"] == "116 mA"
    assert t1.parent_id == "d1"
    assert t1.is_branch is True
    assert parsed.raw_parameters_dict["wire_gauge"] == "14 AWG"


def test_parse_file(parser, circuit_file):
    parsed = parser.parse_file(circuit_file)
    assert parsed.source_yaml_path == circuit_file.resolve()
    assert len(parsed.devices) == 4


def test_circuit_name_defaults_to_file_stem(parser, tmp_path):
    path = tmp_path / "basement_nac.yaml"
    path.write_text("devices:\n  - id: d1\n")
    parsed = parser.parse_file(path)
    assert parsed.circuit_name == "basement_nac"
    assert parsed.raw_parameters_dict == {}
    assert parsed.devices[0].raw_attributes == {}


def test_explicit_null_parent_is_accepted(parser):
    parsed = parser.parse_string("devices:\n  - {id: d1, parent: null}\n")
    assert parsed.devices[0].parent_id is None


def test_missing_devices_section(parser):
    with pytest.raises(SchemaValidationError) as exc_info:
        parser.parse_string("circuit_name: Empty\n")
    assert "devices" in exc_info.value.errors


def test_duplicate_device_ids(parser):
    text = "devices:\n  - id: d1\n  - id: d2\n  - id: d1\n"
    with pytest.raises(SchemaValidationError) as exc_info:
        parser.parse_string(text)
    assert "Duplicate" in str(exc_info.value)
    assert "d1" in str(exc_info.value)


def test_invalid_identifier_is_reported_by_path(parser):
    with pytest.raises(SchemaValidationError) as exc_info:
        parser.parse_string("devices:\n  - id: 'bad id!'\n")
    assert "devices.0.id" in exc_info.value.errors
    assert "Forbidden character" in str(exc_info.value)


@pytest.mark.parametrize("text", [
    "devices: []\nwiring: true\n",
    "devices:\n  - {id: d1, attributes: {Colour: red}}\n",
    "devices:\n  - {id: d1, branch: maybe}\n",
    "parameters: {voltage: 24}\ndevices: []\n",
])
def test_schema_rejects_unknown_or_mistyped_fields(parser, text):
    with pytest.raises(SchemaValidationError) as exc_info:
        parser.parse_string(text)
    assert "YAML Schema Validation Error" in exc_info.value.get_diagnostic_report()


@pytest.mark.parametrize("text, message", [
    ("devices: [unclosed", "Invalid YAML syntax"),
    ("", "empty"),
    ("- d1\n- d2\n", "must be a dictionary"),
])
def test_unreadable_content(parser, text, message):
    with pytest.raises(ParsingError, match=message):
        parser.parse_string(text)


def test_missing_file(parser, tmp_path):
    with pytest.raises(ParsingError, match="not found"):
        parser.parse_file(tmp_path / "missing.yaml")
