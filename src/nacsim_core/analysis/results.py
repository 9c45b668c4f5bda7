# src/nacsim_core/analysis/results.py
"""
Defines the immutable result contracts of a topology evaluation.

The evaluator never writes computed values back onto the device nodes. Each
evaluation instead returns a fresh `EvaluationResults`, keyed by node index,
so evaluating the same tree twice yields two equal, independent results and a
tree can be evaluated against several parameter sets side by side.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, Tuple, Union

from .. import constants
from ..data_structures import DeviceNode
from ..errors import FrameworkLogicError
from ..parameters import CircuitParameters


@dataclass(frozen=True)
class DeviceResult:
    """Computed electrical values of one device for one evaluation."""
    node_index: int
    position: int
    segment_distance: float
    cumulative_distance: float
    accumulated_load: float
    voltage_drop: float
    voltage: float
    status: str

    @property
    def is_low_voltage(self) -> bool:
        return self.status == constants.STATUS_LOW_VOLTAGE


@dataclass(frozen=True)
class EvaluationResults:
    """
    The result of evaluating a circuit tree against one parameter set.

    `emission_order` lists device node indices in flattening order (node, its
    branch children, then its main continuation); `device_results` maps the same
    indices to their computed values.
    """
    circuit_name: str
    parameters: CircuitParameters
    root_voltage: float
    device_results: Dict[int, DeviceResult]
    emission_order: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.emission_order)

    def __iter__(self) -> Iterator[DeviceResult]:
        """Yields device results in emission order."""
        return (self.device_results[i] for i in self.emission_order)

    def result_for(self, node: Union[DeviceNode, int]) -> DeviceResult:
        index = node.index if isinstance(node, DeviceNode) else node
        try:
            return self.device_results[index]
        except KeyError:
            raise FrameworkLogicError(
                f"No evaluation result for node index {index} in circuit '{self.circuit_name}'."
            ) from None

    def voltage_of(self, node: Union[DeviceNode, int]) -> float:
        """Voltage at a node; the Root (index 0) sits at the system voltage."""
        index = node.index if isinstance(node, DeviceNode) else node
        if index == 0:
            return self.root_voltage
        return self.result_for(index).voltage

    @property
    def low_voltage_indices(self) -> Tuple[int, ...]:
        return tuple(i for i in self.emission_order if self.device_results[i].is_low_voltage)
