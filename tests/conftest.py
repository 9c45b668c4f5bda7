# tests/conftest.py
import pytest

from nacsim_core import CircuitParameters, CircuitTree, Settings
from nacsim_core.analysis import LAYOUT_COLUMNS

from formula_eval import SheetEvaluator


@pytest.fixture
def params():
    """24 V circuit on 14 AWG, 100 ft supply run, no routing overhead."""
    return CircuitParameters(
        system_voltage=24.0,
        min_voltage=16.0,
        wire_gauge="14 AWG",
        resistance=2.525,
        supply_distance=100.0,
        routing_overhead=1.0,
        safety_percent=0.2,
        max_load=3.0,
    )


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def scenario_tree():
    """
    Panel
     +- D1 (0.10 A)                 first run, fed over the supply distance
     |   +- T1 (0.05 A, 20 ft)      T-tap
     |   |   +- T2 (0.05 A, 15 ft)  continues the T-tap
     |   |       +- T3 (0.02 A, 5 ft, T-tap)
     |   +- D2 (0.10 A, 40 ft)
     |       +- D3 (0.20 A, 30 ft)
     |           +- T4 (0.10 A, 10 ft, T-tap)
     +- E1 (0.10 A, 60 ft)          second run from the panel
    """
    tree = CircuitTree(name="Scenario")
    d1 = tree.add_device(tree.root, name="D1", alarm_current=0.10, standby_current=0.01, node_id="d1")
    t1 = tree.add_device(d1, name="T1", alarm_current=0.05, distance_from_parent=20, is_branch_device=True, node_id="t1")
    t2 = tree.add_device(t1, name="T2", alarm_current=0.05, distance_from_parent=15, node_id="t2")
    tree.add_device(t2, name="T3", alarm_current=0.02, distance_from_parent=5, is_branch_device=True, node_id="t3")
    d2 = tree.add_device(d1, name="D2", alarm_current=0.10, distance_from_parent=40, node_id="d2")
    d3 = tree.add_device(d2, name="D3", alarm_current=0.20, distance_from_parent=30, node_id="d3")
    tree.add_device(d3, name="T4", alarm_current=0.10, distance_from_parent=10, is_branch_device=True, node_id="t4")
    tree.add_device(tree.root, name="E1", alarm_current=0.10, distance_from_parent=60, node_id="e1")
    return tree


@pytest.fixture
def make_branch_tree():
    """
    Factory for a run A -> C -> D where A also feeds a T-tap of `size` devices
    (a T-tap head followed by `size - 1` main continuations).
    """
    def _make(size: int) -> CircuitTree:
        tree = CircuitTree(name=f"Branch{size}")
        a = tree.add_device(tree.root, name="A", alarm_current=0.1, node_id="a")
        parent = a
        for i in range(size):
            parent = tree.add_device(
                parent, name=f"B{i}", alarm_current=0.05, distance_from_parent=10,
                is_branch_device=(i == 0), node_id=f"b{i}",
            )
        c = tree.add_device(a, name="C", alarm_current=0.2, distance_from_parent=50, node_id="c")
        tree.add_device(c, name="D", alarm_current=0.15, distance_from_parent=25, node_id="d")
        return tree
    return _make


@pytest.fixture
def sheet_evaluator():
    """Returns a function evaluating layout rows against a parameter set."""
    def _evaluate(rows, parameters):
        sheet = SheetEvaluator(parameters.named_constants())
        return sheet, sheet.load_layout(rows, LAYOUT_COLUMNS)
    return _evaluate


CIRCUIT_YAML = """
circuit_name: NAC-1
project:
  name: Test Building
  path: /projects/test-building
parameters:
  system_voltage: 24
  min_voltage: 16
  wire_gauge: 14 AWG
  supply_distance: 100 ft
  routing_overhead: 1.0
devices:
  - id: d1
    attributes: {Name: Horn Strobe 1, DeviceType: Horn Strobe, AlarmCurrent: 116 mA, StandbyCurrent: 0}
  - id: t1
    parent: d1
    branch: true
    distance: 20
    attributes: {Name: Strobe T1, DeviceType: Strobe, AlarmCurrent: 0.075}
  - id: d2
    parent: d1
    distance: 40 ft
    attributes: {Name: Horn Strobe 2, DeviceType: Horn Strobe, AlarmCurrent: 0.116, Manufacturer: Acme, Model: HS-24}
  - id: d3
    parent: d2
    distance: 35
    attributes: {Name: Speaker 3, AlarmCurrent: 0.05}
"""


@pytest.fixture
def circuit_yaml_text():
    return CIRCUIT_YAML


@pytest.fixture
def circuit_file(tmp_path):
    path = tmp_path / "nac1.yaml"
    path.write_text(CIRCUIT_YAML, encoding="utf-8")
    return path
