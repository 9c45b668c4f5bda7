# src/nacsim_core/parser/writer.py
"""
Writes a built `Circuit` back out as a circuit definition file.

The output uses exactly the schema `CircuitFileParser` reads: devices are
listed parents first with siblings in child order, so parsing the file again
rebuilds the same tree. Every parameter is written explicitly as a plain
number in the default units (V, A, ft, ohm per 1000 ft), which also freezes
any values that came from settings defaults or presets.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Set, Union

import yaml

from ..attributes import (
    ATTR_ALARM_CURRENT,
    ATTR_DEVICE_TYPE,
    ATTR_MANUFACTURER,
    ATTR_MODEL,
    ATTR_NAME,
    ATTR_STANDBY_CURRENT,
)
from ..data_structures import Circuit, CircuitTree, DeviceNode
from ..errors import EmissionError
from ..parameters import CircuitParameters
from .parser import ALLOWED_ID_CHARS

logger = logging.getLogger(__name__)

CIRCUIT_FILE_FORMAT = "circuit"


def parameters_document(params: CircuitParameters) -> Dict[str, Any]:
    return {
        "system_voltage": params.system_voltage,
        "min_voltage": params.min_voltage,
        "max_load": params.max_load,
        "safety_percent": params.safety_percent,
        "wire_gauge": params.wire_gauge,
        "resistance": params.resistance,
        "supply_distance": params.supply_distance,
        "routing_overhead": params.routing_overhead,
    }


class CircuitFileWriter:
    """Serializes circuits into circuit definition YAML."""

    def to_document(self, circuit: Circuit) -> Dict[str, Any]:
        document: Dict[str, Any] = {"circuit_name": circuit.name}
        if circuit.project_name:
            project = {"name": circuit.project_name}
            if circuit.project_path:
                project["path"] = circuit.project_path
            document["project"] = project
        document["parameters"] = parameters_document(circuit.parameters)
        document["devices"] = self._device_entries(circuit.tree)
        return document

    def dumps(self, circuit: Circuit) -> str:
        return yaml.safe_dump(self.to_document(circuit), sort_keys=False, allow_unicode=True)

    def write_file(self, circuit: Circuit, yaml_path: Union[str, Path]) -> Path:
        """Writes `circuit` to `yaml_path`, creating parent directories. Returns the path."""
        target = Path(yaml_path)
        try:
            text = self.dumps(circuit)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except (OSError, yaml.YAMLError) as e:
            raise EmissionError(CIRCUIT_FILE_FORMAT, str(e), target) from e
        logger.info(f"Saved circuit '{circuit.name}' ({circuit.tree.device_count} devices) to '{target}'.")
        return target

    def _device_entries(self, tree: CircuitTree) -> List[Dict[str, Any]]:
        ids = self._assign_ids(tree)
        entries: List[Dict[str, Any]] = []
        stack = list(reversed(tree.children(tree.root)))
        while stack:
            node = stack.pop()
            entry: Dict[str, Any] = {"id": ids[node.index]}
            if not tree.parent(node).is_root:
                entry["parent"] = ids[node.parent_index]
            if node.is_branch_device:
                entry["branch"] = True
            entry["distance"] = node.distance_from_parent
            entry["attributes"] = self._attributes(node)
            entries.append(entry)
            stack.extend(reversed(tree.children(node)))
        return entries

    @staticmethod
    def _attributes(node: DeviceNode) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {
            ATTR_NAME: node.name,
            ATTR_DEVICE_TYPE: node.device_type,
            ATTR_ALARM_CURRENT: node.current.alarm,
            ATTR_STANDBY_CURRENT: node.current.standby,
        }
        if node.manufacturer:
            attributes[ATTR_MANUFACTURER] = node.manufacturer
        if node.model:
            attributes[ATTR_MODEL] = node.model
        return attributes

    @staticmethod
    def _assign_ids(tree: CircuitTree) -> Dict[int, str]:
        """Keeps usable file ids; devices without one get 'd<sequence number>'."""
        ids: Dict[int, str] = {}
        taken: Set[str] = set()
        for node in tree.iter_devices():
            if node.node_id and set(node.node_id) <= ALLOWED_ID_CHARS and not node.node_id.startswith("-"):
                ids[node.index] = node.node_id
                taken.add(node.node_id)
        for node in tree.iter_devices():
            if node.index in ids:
                continue
            candidate, suffix = f"d{node.sequence_number}", 1
            while candidate in taken:
                candidate = f"d{node.sequence_number}_{suffix}"
                suffix += 1
            ids[node.index] = candidate
            taken.add(candidate)
        return ids


def save_circuit(circuit: Circuit, yaml_path: Union[str, Path]) -> Path:
    """Writes `circuit` as a circuit definition file."""
    return CircuitFileWriter().write_file(circuit, yaml_path)
