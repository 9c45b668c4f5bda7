# tests/test_analysis/test_traversal.py
import pytest

from nacsim_core import CircuitTree, constants
from nacsim_core.analysis import evaluate_circuit, project_records, subtree_sizes, walk_circuit
from nacsim_core.validation import TopologyValidationError

ARROW = constants.LOCATION_SEPARATOR


class RecordingSink:
    def __init__(self):
        self.root = None
        self.visits = []

    def visit_root(self, visit):
        self.root = visit

    def visit_device(self, visit):
        self.visits.append(visit)


def _walk(tree, **kwargs):
    sink = RecordingSink()
    state = walk_circuit(tree, sink, **kwargs)
    return sink, state


def test_branches_come_before_the_main_continuation(scenario_tree):
    sink, state = _walk(scenario_tree)
    assert [v.node.name for v in sink.visits] == ["D1", "T1", "T2", "T3", "D2", "D3", "T4", "E1"]
    assert [v.position for v in sink.visits] == list(range(1, 9))
    assert state.order == [v.node.index for v in sink.visits]
    assert state.positions_by_node[scenario_tree.find_by_id("d2").index] == 5


def test_location_labels_accumulate_branch_ancestry(scenario_tree):
    sink, _ = _walk(scenario_tree)
    locations = {v.node.name: v.location for v in sink.visits}
    assert locations == {
        "D1": "Main",
        "T1": f"D1{ARROW}T-Tap",
        "T2": f"D1{ARROW}Main",
        "T3": f"D1{ARROW}T2{ARROW}T-Tap",
        "D2": "Main",
        "D3": "Main",
        "T4": f"D3{ARROW}T-Tap",
        "E1": "Main",
    }


def test_every_subtree_is_one_contiguous_block(scenario_tree):
    sink, state = _walk(scenario_tree)
    sizes = {v.node.name: v.subtree_size for v in sink.visits}
    assert sizes == {"D1": 7, "T1": 3, "T2": 2, "T3": 1, "D2": 3, "D3": 2, "T4": 1, "E1": 1}
    for visit in sink.visits:
        block = state.order[visit.position - 1:visit.position - 1 + visit.subtree_size]
        assert block[0] == visit.node.index
        downstream = {
            n.index for n in scenario_tree.iter_devices()
            if visit.node.index in {p.index for p in scenario_tree.path_to_root(n)}
        }
        assert set(block) == downstream


def test_subtree_sizes_of_a_long_run():
    tree = CircuitTree()
    parent = tree.root
    for _ in range(400):
        parent = tree.add_device(parent)
    sizes = subtree_sizes(tree)
    assert sizes[tree.root.child_indices[0]] == 400
    assert sizes[parent.index] == 1


def test_rows_depth_and_supply_segment(scenario_tree):
    sink, state = _walk(scenario_tree, first_row=4, include_root_row=True)
    assert sink.root.row == 4
    assert [v.row for v in sink.visits] == list(range(5, 13))
    by_name = {v.node.name: v for v in sink.visits}
    assert by_name["D1"].parent_row == 4
    assert by_name["T3"].parent_row == by_name["T2"].row
    assert by_name["D2"].parent_row == by_name["D1"].row
    assert by_name["T3"].depth == 4
    assert [v.node.name for v in sink.visits if v.is_supply_segment] == ["D1"]
    assert state.rows_by_node[scenario_tree.root.index] == 4


def test_walk_without_a_root_row(scenario_tree):
    sink, _ = _walk(scenario_tree)
    assert sink.root.row is None
    assert sink.visits[0].row == 1
    assert sink.visits[0].parent_row is None


def test_each_walk_starts_fresh(scenario_tree):
    first, _ = _walk(scenario_tree)
    second, _ = _walk(scenario_tree)
    assert [v.position for v in first.visits] == [v.position for v in second.visits]


def test_walk_rejects_malformed_trees():
    tree = CircuitTree()
    d1 = tree.add_device(tree.root)
    tree.add_device(d1)
    tree.add_device(d1)
    with pytest.raises(TopologyValidationError):
        _walk(tree)


class TestProjector:
    def test_records_follow_the_walk(self, scenario_tree, params):
        results = evaluate_circuit(scenario_tree, params)
        records = project_records(scenario_tree, results)
        assert [r.name for r in records] == ["D1", "T1", "T2", "T3", "D2", "D3", "T4", "E1"]
        assert [r.position for r in records] == [results.result_for(r.node_index).position for r in records]
        assert [r.position for r in records] == list(range(1, 9))

    def test_record_fields(self, scenario_tree, params):
        results = evaluate_circuit(scenario_tree, params)
        records = {r.name: r for r in project_records(scenario_tree, results)}
        t3 = records["T3"]
        node = scenario_tree.find_by_id("t3")
        assert t3.location == f"D1{ARROW}T2{ARROW}T-Tap"
        assert t3.alarm_current == pytest.approx(0.02)
        assert t3.distance_from_parent == 5.0
        assert t3.sequence_number == node.sequence_number
        assert t3.voltage == results.voltage_of(node)
        assert t3.is_branch_device
        assert records["D1"].standby_current == pytest.approx(0.01)
        assert records["D1"].to_dict()["accumulated_load"] == pytest.approx(0.62)

    def test_positions_are_independent_of_sequence_numbers(self, params):
        tree = CircuitTree()
        d1 = tree.add_device(tree.root, name="D1", alarm_current=0.1)
        tree.add_device(d1, name="D2", alarm_current=0.1, distance_from_parent=10)
        tree.add_device(d1, name="Tap", alarm_current=0.1, distance_from_parent=10, is_branch_device=True)
        records = project_records(tree, evaluate_circuit(tree, params))
        assert [(r.name, r.position, r.sequence_number) for r in records] == [
            ("D1", 1, 1), ("Tap", 2, 3), ("D2", 3, 2),
        ]
