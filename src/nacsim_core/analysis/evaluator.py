# src/nacsim_core/analysis/evaluator.py
"""
Computes the voltage profile of a circuit tree.

For every device the evaluator derives the wire segment feeding it, the total
current flowing through that segment (its own alarm current plus everything
downstream), the voltage lost across the two-conductor segment, and the voltage
left at the device. Loads are accumulated bottom-up first; voltages then flow
top-down along the shared walk, so each device is computed after its parent.
"""
import logging
from typing import Dict, Optional

from .. import constants
from ..data_structures import Circuit, CircuitTree, DeviceNode
from ..errors import FrameworkLogicError
from ..parameters import CircuitParameters
from .results import DeviceResult, EvaluationResults
from .traversal import DeviceVisit, RootVisit, walk_circuit

logger = logging.getLogger(__name__)


def accumulate_loads(tree: CircuitTree) -> Dict[int, float]:
    """
    Returns node index -> accumulated alarm load for every device: the device's
    own alarm current plus the accumulated load of all its children.

    Computed post-order with an explicit stack, each node exactly once.
    """
    loads: Dict[int, float] = {}
    stack = [(child_index, False) for child_index in reversed(tree.root.child_indices)]
    while stack:
        index, children_done = stack.pop()
        node = tree.node(index)
        if children_done:
            loads[index] = node.current.alarm + sum(loads[c] for c in node.child_indices)
            continue
        stack.append((index, True))
        stack.extend((c, False) for c in reversed(node.child_indices))
    return loads


def segment_distance(node: DeviceNode, parameters: CircuitParameters, is_supply_segment: bool) -> float:
    """Routed length of the wire feeding `node`."""
    raw = parameters.supply_distance if is_supply_segment else node.distance_from_parent
    return raw * parameters.routing_overhead


def voltage_drop(load: float, distance: float, resistance: float) -> float:
    """Drop across a two-conductor segment carrying `load` amps over `distance`."""
    return load * constants.CONDUCTOR_COUNT * distance * resistance / constants.RESISTANCE_LENGTH_BASIS


def voltage_status(voltage: float, parameters: CircuitParameters) -> str:
    return constants.STATUS_OK if voltage >= parameters.min_voltage else constants.STATUS_LOW_VOLTAGE


class ValueSink:
    """Walk sink that computes the numeric result of every visited device."""

    def __init__(self, parameters: CircuitParameters, loads: Dict[int, float]):
        self.parameters = parameters
        self.loads = loads
        self.results: Dict[int, DeviceResult] = {}
        self._root_index: Optional[int] = None

    def visit_root(self, visit: RootVisit) -> None:
        self._root_index = visit.node.index

    def _parent_values(self, parent: DeviceNode):
        if parent.index == self._root_index:
            return self.parameters.system_voltage, 0.0
        parent_result = self.results.get(parent.index)
        if parent_result is None:
            raise FrameworkLogicError(
                f"Device '{parent.name}' was not evaluated before its child; the walk order is broken."
            )
        return parent_result.voltage, parent_result.cumulative_distance

    def visit_device(self, visit: DeviceVisit) -> None:
        node = visit.node
        parent_voltage, parent_distance = self._parent_values(visit.parent)
        segment = segment_distance(node, self.parameters, visit.is_supply_segment)
        load = self.loads[node.index]
        drop = voltage_drop(load, segment, self.parameters.resistance)
        voltage = parent_voltage - drop

        self.results[node.index] = DeviceResult(
            node_index=node.index,
            position=visit.position,
            segment_distance=segment,
            cumulative_distance=parent_distance + segment,
            accumulated_load=load,
            voltage_drop=drop,
            voltage=voltage,
            status=voltage_status(voltage, self.parameters),
        )
        logger.debug(
            f"#{visit.position} '{node.name}': segment={segment:.2f} ft, load={load:.4f} A, "
            f"drop={drop:.4f} V, voltage={voltage:.3f} V"
        )


class TopologyEvaluator:
    """
    Evaluates one circuit tree against one parameter set.

    The tree is never modified; `evaluate` can be called any number of times and
    always returns an equal `EvaluationResults`.
    """

    def __init__(self, tree: CircuitTree, parameters: CircuitParameters):
        if not isinstance(tree, CircuitTree):
            raise TypeError("TopologyEvaluator requires a CircuitTree.")
        if not isinstance(parameters, CircuitParameters):
            raise TypeError("TopologyEvaluator requires a CircuitParameters instance.")
        self.tree = tree
        self.parameters = parameters

    def evaluate(self) -> EvaluationResults:
        logger.info(f"Evaluating circuit '{self.tree.name}' ({self.tree.device_count} devices)...")

        sink = ValueSink(self.parameters, accumulate_loads(self.tree))
        state = walk_circuit(self.tree, sink)

        results = EvaluationResults(
            circuit_name=self.tree.name,
            parameters=self.parameters,
            root_voltage=self.parameters.system_voltage,
            device_results=sink.results,
            emission_order=tuple(state.order),
        )
        low = len(results.low_voltage_indices)
        if low:
            logger.warning(f"{low} device(s) of '{self.tree.name}' are below {self.parameters.min_voltage} V.")
        logger.info(f"Evaluation of '{self.tree.name}' complete.")
        return results


def evaluate_circuit(circuit_or_tree, parameters: Optional[CircuitParameters] = None) -> EvaluationResults:
    """
    Evaluates a built `Circuit`, or a bare `CircuitTree` together with `parameters`.
    """
    if isinstance(circuit_or_tree, Circuit):
        tree = circuit_or_tree.tree
        parameters = parameters or circuit_or_tree.parameters
    else:
        tree = circuit_or_tree
    if parameters is None:
        raise TypeError("evaluate_circuit requires parameters when given a bare CircuitTree.")
    return TopologyEvaluator(tree, parameters).evaluate()
