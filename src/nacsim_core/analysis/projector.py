# src/nacsim_core/analysis/projector.py
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

from ..data_structures import CircuitTree
from .results import EvaluationResults
from .traversal import DeviceVisit, RootVisit, walk_circuit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceRecord:
    """One row of the flat device report shared by every export format."""
    position: int
    name: str
    device_type: str
    location: str
    alarm_current: float
    standby_current: float
    voltage: float
    voltage_drop: float
    distance_from_parent: float
    accumulated_load: float
    status: str
    node_index: int
    sequence_number: int
    depth: int
    segment_distance: float
    cumulative_distance: float
    is_branch_device: bool
    manufacturer: str = ""
    model: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RecordSink:
    """Walk sink collecting a `DeviceRecord` per device in emission order."""

    def __init__(self, results: EvaluationResults):
        self.results = results
        self.records: List[DeviceRecord] = []

    def visit_root(self, visit: RootVisit) -> None:
        pass

    def visit_device(self, visit: DeviceVisit) -> None:
        node = visit.node
        result = self.results.result_for(node)
        self.records.append(DeviceRecord(
            position=visit.position,
            name=node.name,
            device_type=node.device_type,
            location=visit.location,
            alarm_current=node.current.alarm,
            standby_current=node.current.standby,
            voltage=result.voltage,
            voltage_drop=result.voltage_drop,
            distance_from_parent=node.distance_from_parent,
            accumulated_load=result.accumulated_load,
            status=result.status,
            node_index=node.index,
            sequence_number=node.sequence_number,
            depth=visit.depth,
            segment_distance=result.segment_distance,
            cumulative_distance=result.cumulative_distance,
            is_branch_device=node.is_branch_device,
            manufacturer=node.manufacturer,
            model=node.model,
        ))


def project_records(tree: CircuitTree, results: EvaluationResults) -> List[DeviceRecord]:
    """Flattens an evaluated tree into report records, positions numbered from 1."""
    sink = RecordSink(results)
    walk_circuit(tree, sink)
    logger.debug(f"Projected {len(sink.records)} device records for '{tree.name}'.")
    return sink.records
