# tests/test_analysis/test_evaluator.py
import dataclasses
import random

import pytest

from nacsim_core import CircuitParameters, CircuitTree, ConfigurationError, FrameworkLogicError, constants
from nacsim_core.analysis import TopologyEvaluator, accumulate_loads, evaluate_circuit
from nacsim_core.analysis.evaluator import segment_distance, voltage_drop
from nacsim_core.validation import TopologyValidationError


def _random_tree(seed: int, size: int = 40) -> CircuitTree:
    """Random well-formed tree: a device gets at most one main child, the rest are T-taps."""
    rng = random.Random(seed)
    tree = CircuitTree(name=f"Random{seed}")
    nodes = [tree.root]
    for _ in range(size):
        parent = rng.choice(nodes)
        has_main = bool(tree.main_children(parent)) and not parent.is_root
        nodes.append(tree.add_device(
            parent,
            alarm_current=round(rng.uniform(0.0, 0.2), 3),
            standby_current=round(rng.uniform(0.0, 0.02), 3),
            distance_from_parent=round(rng.uniform(0.0, 120.0), 1),
            is_branch_device=has_main or rng.random() < 0.2,
        ))
    return tree


class TestScenarios:
    def test_single_device_on_the_supply_run(self, params):
        tree = CircuitTree()
        device = tree.add_device(tree.root, alarm_current=0.5, distance_from_parent=100)

        result = evaluate_circuit(tree, params).result_for(device)

        assert result.segment_distance == pytest.approx(100.0)
        assert result.voltage_drop == pytest.approx(0.5 * 2 * 100 * 2.525 / 1000)
        assert result.voltage == pytest.approx(23.75, abs=0.01)
        assert result.status == constants.STATUS_OK
        assert result.position == 1

    def test_branch_child_load_accumulates_into_its_parent(self, params):
        tree = CircuitTree()
        device = tree.add_device(tree.root, alarm_current=0.2)
        tree.add_device(device, alarm_current=0.3, distance_from_parent=25, is_branch_device=True)

        results = evaluate_circuit(tree, params)

        assert results.result_for(device).accumulated_load == pytest.approx(0.2 + 0.3)

    def test_voltage_falls_along_a_run(self, params):
        tree = CircuitTree()
        first = tree.add_device(tree.root, alarm_current=0.1)
        second = tree.add_device(first, alarm_current=0.1, distance_from_parent=50)

        results = evaluate_circuit(tree, params)

        assert results.voltage_of(second) < results.voltage_of(first)

    def test_zero_resistance_fails_before_evaluation(self):
        tree = CircuitTree()
        tree.add_device(tree.root, alarm_current=0.1)
        with pytest.raises(ConfigurationError):
            evaluate_circuit(tree, CircuitParameters(resistance=0.0))


class TestEvaluation:
    def test_scenario_tree_values(self, scenario_tree, params):
        results = evaluate_circuit(scenario_tree, params)
        loads = {scenario_tree.node(i).name: r.accumulated_load for i, r in results.device_results.items()}
        assert loads == pytest.approx({
            "D1": 0.62, "T1": 0.12, "T2": 0.07, "T3": 0.02,
            "D2": 0.40, "D3": 0.30, "T4": 0.10, "E1": 0.10,
        })

        d1 = results.result_for(scenario_tree.find_by_id("d1"))
        d2 = results.result_for(scenario_tree.find_by_id("d2"))
        assert d1.voltage == pytest.approx(24.0 - 0.62 * 2 * 100 * 2.525 / 1000)
        assert d2.voltage == pytest.approx(d1.voltage - 0.40 * 2 * 40 * 2.525 / 1000)
        assert d2.cumulative_distance == pytest.approx(140.0)

    def test_only_the_first_panel_run_uses_the_supply_distance(self, scenario_tree, params):
        results = evaluate_circuit(scenario_tree, params)
        e1 = results.result_for(scenario_tree.find_by_id("e1"))
        assert e1.segment_distance == pytest.approx(60.0)
        assert e1.voltage == pytest.approx(24.0 - 0.1 * 2 * 60 * 2.525 / 1000)

    def test_routing_overhead_lengthens_every_segment(self, scenario_tree, params):
        padded = dataclasses.replace(params, routing_overhead=1.15)
        results = evaluate_circuit(scenario_tree, padded)
        assert results.result_for(scenario_tree.find_by_id("d1")).segment_distance == pytest.approx(115.0)
        assert results.result_for(scenario_tree.find_by_id("d2")).segment_distance == pytest.approx(46.0)

    def test_emission_order_and_positions(self, scenario_tree, params):
        results = evaluate_circuit(scenario_tree, params)
        names = [scenario_tree.node(i).name for i in results.emission_order]
        assert names == ["D1", "T1", "T2", "T3", "D2", "D3", "T4", "E1"]
        assert [r.position for r in results] == list(range(1, 9))
        assert len(results) == 8

    def test_collapsed_voltage_is_reported_not_raised(self, params):
        tree = CircuitTree()
        heavy = tree.add_device(tree.root, alarm_current=100.0)
        results = evaluate_circuit(tree, params)
        assert results.voltage_of(heavy) < 0
        assert results.result_for(heavy).status == constants.STATUS_LOW_VOLTAGE
        assert results.low_voltage_indices == (heavy.index,)

    def test_negative_values_are_not_clamped(self, params):
        tree = CircuitTree()
        device = tree.add_device(tree.root, alarm_current=-0.1)
        result = evaluate_circuit(tree, params).result_for(device)
        assert result.accumulated_load == pytest.approx(-0.1)
        assert result.voltage > params.system_voltage

    def test_empty_tree(self, params):
        results = evaluate_circuit(CircuitTree(), params)
        assert len(results) == 0
        assert results.voltage_of(0) == params.system_voltage

    def test_long_runs_do_not_hit_the_recursion_limit(self, params):
        tree = CircuitTree()
        parent = tree.root
        for _ in range(3000):
            parent = tree.add_device(parent, alarm_current=0.0, distance_from_parent=1)
        results = evaluate_circuit(tree, params)
        assert len(results) == 3000
        assert results.result_for(parent).cumulative_distance == pytest.approx(100.0 + 2999)

    def test_multiple_main_continuations_rejected(self, params):
        tree = CircuitTree()
        d1 = tree.add_device(tree.root, alarm_current=0.1)
        tree.add_device(d1, alarm_current=0.1)
        tree.add_device(d1, alarm_current=0.1)
        with pytest.raises(TopologyValidationError):
            TopologyEvaluator(tree, params).evaluate()

    def test_argument_types_are_checked(self, scenario_tree, params):
        with pytest.raises(TypeError):
            TopologyEvaluator("tree", params)
        with pytest.raises(TypeError):
            TopologyEvaluator(scenario_tree, {"system_voltage": 24})
        with pytest.raises(TypeError):
            evaluate_circuit(scenario_tree)

    def test_missing_result_is_a_framework_error(self, scenario_tree, params):
        results = evaluate_circuit(scenario_tree, params)
        with pytest.raises(FrameworkLogicError):
            results.result_for(99)


class TestProperties:
    def test_evaluation_is_idempotent(self, scenario_tree, params):
        evaluator = TopologyEvaluator(scenario_tree, params)
        assert evaluator.evaluate() == evaluator.evaluate()

    def test_evaluation_does_not_modify_the_tree(self, scenario_tree, params):
        before = [dataclasses.asdict(n) for n in scenario_tree.iter_devices()]
        evaluate_circuit(scenario_tree, params)
        assert [dataclasses.asdict(n) for n in scenario_tree.iter_devices()] == before

    @pytest.mark.parametrize("seed", range(8))
    def test_load_and_voltage_monotonic_along_paths(self, params, seed):
        tree = _random_tree(seed)
        results = evaluate_circuit(tree, params)
        for node in tree.iter_devices():
            result = results.result_for(node)
            assert result.accumulated_load >= node.current.alarm - 1e-12
            parent = tree.parent(node)
            assert result.voltage <= results.voltage_of(parent) + 1e-12
            if not parent.is_root:
                assert result.accumulated_load <= results.result_for(parent).accumulated_load + 1e-12

    @pytest.mark.parametrize("seed", range(4))
    def test_accumulated_load_is_subtree_sum(self, seed):
        tree = _random_tree(seed)
        loads = accumulate_loads(tree)

        def subtree_sum(node):
            return node.current.alarm + sum(subtree_sum(c) for c in tree.children(node))

        for node in tree.iter_devices():
            assert loads[node.index] == pytest.approx(subtree_sum(node))


def test_helpers(params):
    tree = CircuitTree()
    device = tree.add_device(tree.root, distance_from_parent=30)
    assert segment_distance(device, params, is_supply_segment=True) == params.supply_distance
    assert segment_distance(device, params, is_supply_segment=False) == 30.0
    assert voltage_drop(1.0, 1000.0, 2.0) == pytest.approx(4.0)
