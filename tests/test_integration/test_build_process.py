# tests/test_integration/test_build_process.py

"""
Integration tests for the circuit build process.

These verify that the CircuitBuilder turns the parser's IR into an
evaluation-ready Circuit (parameters resolved, devices created parent-first
with siblings in file order) and that every failure along the way surfaces as
a single CircuitBuildError carrying an actionable diagnostic report.
"""

import pytest

from nacsim_core import CircuitBuildError, CircuitBuilder, ConfigurationError, Settings, constants, load_circuit
from nacsim_core.attributes import MappingAttributeSource
from nacsim_core.parser import CircuitFileParser


def _build(text: str, builder: CircuitBuilder = None):
    parsed = CircuitFileParser().parse_string(text, source_name="test.yaml")
    return (builder or CircuitBuilder()).build(parsed)


def test_build_from_file(circuit_file):
    circuit = CircuitBuilder().build_from_file(circuit_file)
    tree = circuit.tree
    assert circuit.name == "NAC-1"
    assert circuit.project_name == "Test Building"
    assert circuit.source_file_path == circuit_file.resolve()
    assert tree.device_count == 4

    d1 = tree.find_by_id("d1")
    assert d1.name == "Horn Strobe 1"
    assert d1.device_type == "Horn Strobe"
    assert d1.current.alarm == pytest.approx(0.116)
    assert tree.parent(d1) is tree.root
    assert [c.node_id for c in tree.children(d1)] == ["t1", "d2"]
    assert tree.find_by_id("t1").is_branch_device
    assert tree.find_by_id("d2").manufacturer == "Acme"
    assert tree.find_by_id("d2").distance_from_parent == pytest.approx(40.0)

    params = circuit.parameters
    assert params.system_voltage == 24.0
    assert params.resistance == pytest.approx(2.525)
    assert params.routing_overhead == 1.0
    # Not given in the file, so the settings default applies.
    assert params.safety_percent == constants.DEFAULT_SAFETY_PERCENT


def test_missing_attributes_fall_back_to_defaults(circuit_file):
    d3 = load_circuit(circuit_file).tree.find_by_id("d3")
    assert d3.name == "Speaker 3"
    assert d3.device_type == constants.DEFAULT_DEVICE_TYPE
    assert d3.current.standby == 0.0
    assert d3.manufacturer == ""

    circuit = _build("devices:\n  - id: x\n  - {id: y, parent: x, attributes: {Name: '  '}}\n")
    x, y = circuit.tree.find_by_id("x"), circuit.tree.find_by_id("y")
    assert x.name == f"Device {x.sequence_number}"
    assert y.name == f"Device {y.sequence_number}"
    assert x.current.alarm == 0.0


def test_children_may_precede_their_parent_in_the_file():
    text = """
devices:
  - {id: c2, parent: p, branch: true}
  - {id: c1, parent: p}
  - {id: gc, parent: c2}
  - {id: p}
"""
    tree = _build(text).tree
    p = tree.find_by_id("p")
    assert [c.node_id for c in tree.children(p)] == ["c2", "c1"]
    # Parents are created before their children, depth first.
    assert [n.node_id for n in tree.iter_devices()] == ["p", "c2", "gc", "c1"]
    assert [n.sequence_number for n in tree.iter_devices()] == [1, 2, 3, 4]


def test_settings_defaults_and_project_fallback():
    settings = Settings()
    settings.default_parameters["system_voltage"] = 26
    settings.project_name = "Fallback Project"
    circuit = _build("devices:\n  - id: d1\n", CircuitBuilder(settings))
    assert circuit.parameters.system_voltage == 26.0
    assert circuit.project_name == "Fallback Project"


def test_custom_attribute_source():
    catalog = {"d1": {"Name": "From CAD", "AlarmCurrent": "0.2"}}
    builder = CircuitBuilder(attribute_source_factory=lambda device: MappingAttributeSource(catalog.get(device.device_id)))
    circuit = _build("devices:\n  - id: d1\n  - {id: d2, parent: d1}\n", builder)
    assert circuit.tree.find_by_id("d1").name == "From CAD"
    assert circuit.tree.find_by_id("d1").current.alarm == pytest.approx(0.2)
    assert circuit.tree.find_by_id("d2").name == "Device 2"


@pytest.mark.parametrize("text, expected", [
    ("devices:\n  - {id: d1, parent: ghost}\n", "unknown parent 'ghost'"),
    ("devices:\n  - {id: d1, parent: d1}\n", "names itself as its parent"),
    ("devices:\n  - {id: a, parent: b}\n  - {id: b, parent: a}\n  - {id: ok}\n", "form a parent cycle"),
    (
        "devices:\n  - {id: d1}\n  - {id: d2, parent: d1}\n  - {id: d3, parent: d1}\n",
        "main continuations",
    ),
])
def test_malformed_topology_fails_the_build(text, expected):
    with pytest.raises(CircuitBuildError) as exc_info:
        _build(text)
    report = exc_info.value.get_diagnostic_report()
    assert isinstance(exc_info.value, ConfigurationError)
    assert "Circuit Topology Error" in report
    assert expected in report


def test_all_topology_problems_are_reported_together():
    text = "devices:\n  - {id: a, parent: ghost}\n  - {id: b, parent: b}\n"
    with pytest.raises(CircuitBuildError) as exc_info:
        _build(text)
    report = exc_info.value.get_diagnostic_report()
    assert "TOPO_UNKNOWN_PARENT" in report
    assert "TOPO_SELF_PARENT" in report


@pytest.mark.parametrize("text, expected", [
    ("parameters: {resistance: 0}\ndevices:\n  - id: d1\n", "Invalid Circuit Parameter"),
    ("parameters: {wire_gauge: 30 AWG}\ndevices:\n  - id: d1\n", "Unknown Wire Gauge"),
    ("parameters: {system_voltage: lots}\ndevices:\n  - id: d1\n", "Invalid Parameter Definition"),
    ("devices:\n  - {id: d1, attributes: {AlarmCurrent: 5 V}}\n", "Invalid Device Definition"),
    ("devices:\n  - {id: d1, distance: far}\n", "Invalid Device Definition"),
])
def test_invalid_values_fail_the_build(text, expected):
    with pytest.raises(CircuitBuildError) as exc_info:
        _build(text)
    assert expected in exc_info.value.get_diagnostic_report()


def test_parse_errors_surface_as_build_errors(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("devices: [unclosed")
    with pytest.raises(CircuitBuildError) as exc_info:
        CircuitBuilder().build_from_file(path)
    assert "YAML Parsing or File Error" in str(exc_info.value)


def test_unexpected_errors_are_wrapped():
    def exploding_source(device):
        raise RuntimeError("attribute service offline")

    with pytest.raises(CircuitBuildError) as exc_info:
        _build("devices:\n  - id: d1\n", CircuitBuilder(attribute_source_factory=exploding_source))
    report = str(exc_info.value)
    assert "An Unexpected Error Occurred (RuntimeError)" in report
    assert "attribute service offline" in report
