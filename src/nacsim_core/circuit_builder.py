# src/nacsim_core/circuit_builder.py

"""
Defines the CircuitBuilder, which turns a parsed circuit file into a `Circuit`
ready for evaluation.

Build steps:

1.  **Parameter resolution:** the file's `parameters` block is layered over the
    settings defaults and turned into an immutable `CircuitParameters`.

2.  **Topology check:** parent references are loaded into a `networkx` directed
    graph rooted at the panel. Unknown parents, self-references and parent
    cycles are reported together before any node is created.

3.  **Tree synthesis:** devices are created parent-first; the children of each
    parent keep their order in the file. Device attributes are read through a
    `DeviceAttributeSource`, with string defaults for absent values.

4.  **Topology validation:** the finished tree is checked by the
    `TopologyValidator`; error-level issues stop the build.

Any `DiagnosableError` raised along the way is re-raised as a single
`CircuitBuildError` carrying the user-facing diagnostic report.
"""

import logging
from typing import Callable, Dict, List, Optional, Union
from pathlib import Path

import networkx as nx

from . import constants
from .attributes import (
    ATTR_ALARM_CURRENT,
    ATTR_DEVICE_TYPE,
    ATTR_MANUFACTURER,
    ATTR_MODEL,
    ATTR_NAME,
    ATTR_STANDBY_CURRENT,
    DeviceAttributeSource,
    MappingAttributeSource,
)
from .data_structures import Circuit, CircuitTree
from .errors import CircuitBuildError, DiagnosableError, FrameworkLogicError, format_diagnostic_report
from .parameters import CircuitParameters
from .parser import CircuitFileParser, DeviceDefinitionError, ParsedCircuitFile, ParsedDeviceData
from .settings import Settings
from .units import to_magnitude
from .validation import (
    CircuitIssueCode,
    TopologyValidationError,
    TopologyValidator,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

# Graph node standing for the panel; device ids can never collide with it.
PANEL_NODE = "<panel>"

AttributeSourceFactory = Callable[[ParsedDeviceData], DeviceAttributeSource]


def _mapping_source(device: ParsedDeviceData) -> DeviceAttributeSource:
    return MappingAttributeSource(device.raw_attributes)


class CircuitBuilder:
    """
    Synthesizes an evaluation-ready `Circuit` from a parsed circuit file.

    Args:
        settings: Supplies default parameters and the wire resistance table.
        attribute_source_factory: Produces the attribute source of each parsed
            device. Defaults to reading the device's YAML `attributes` mapping.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        attribute_source_factory: Optional[AttributeSourceFactory] = None,
    ):
        self.settings = settings or Settings()
        self.attribute_source_factory = attribute_source_factory or _mapping_source

    def build(self, parsed: ParsedCircuitFile) -> Circuit:
        """The main build-time entry point."""
        logger.info(f"--- Building circuit '{parsed.circuit_name}' ({len(parsed.devices)} devices) ---")
        try:
            parameters = CircuitParameters.from_raw(
                parsed.raw_parameters_dict,
                defaults=self.settings.default_parameters,
                resistance_table=self.settings.wire_resistance,
            )
            ordered_devices = self._check_parent_graph(parsed)
            tree = self._synthesize_tree(parsed, ordered_devices)
            TopologyValidator(tree).raise_for_errors()

            circuit = Circuit(
                name=parsed.circuit_name,
                tree=tree,
                parameters=parameters,
                source_file_path=parsed.source_yaml_path,
                project_name=parsed.project_name or self.settings.project_name,
                project_path=parsed.project_path or self.settings.project_path,
            )
            logger.info(f"--- Circuit '{circuit.name}' built successfully. ---")
            return circuit

        except DiagnosableError as e:
            raise CircuitBuildError(e.get_diagnostic_report()) from e

        except Exception as e:
            report = format_diagnostic_report(
                error_type=f"An Unexpected Error Occurred ({type(e).__name__})",
                details=f"The circuit builder encountered an unexpected internal error: {e}",
                suggestion="This may indicate a bug in NACSim Core. Please review the traceback.",
                context={'source_file': parsed.source_yaml_path}
            )
            raise CircuitBuildError(report) from e

    def build_from_file(self, yaml_path: Union[str, Path]) -> Circuit:
        """Parses and builds a circuit file. Parsing errors are reported like build errors."""
        try:
            parsed = CircuitFileParser().parse_file(yaml_path)
        except DiagnosableError as e:
            raise CircuitBuildError(e.get_diagnostic_report()) from e
        return self.build(parsed)

    def _check_parent_graph(self, parsed: ParsedCircuitFile) -> List[ParsedDeviceData]:
        """
        Verifies that the parent references form a tree rooted at the panel and
        returns the devices in creation order: parents first, siblings in file order.
        """
        by_id: Dict[str, ParsedDeviceData] = {d.device_id: d for d in parsed.devices}
        graph = nx.DiGraph()
        graph.add_node(PANEL_NODE)
        issues: List[ValidationIssue] = []

        for device in parsed.devices:
            graph.add_node(device.device_id, order=device.file_order)
            parent = device.parent_id or PANEL_NODE
            if parent == device.device_id:
                issues.append(self._issue(CircuitIssueCode.TOPO_SELF_PARENT, device.device_id))
                continue
            if parent != PANEL_NODE and parent not in by_id:
                issues.append(self._issue(CircuitIssueCode.TOPO_UNKNOWN_PARENT, device.device_id, parent=parent))
                continue
            graph.add_edge(parent, device.device_id)

        reachable = nx.descendants(graph, PANEL_NODE)
        detached = graph.subgraph(d.device_id for d in parsed.devices if d.device_id not in reachable)
        # Each device has one parent, so cycles are disjoint. Devices hanging below a
        # cycle or below an unknown parent are not reported separately.
        for cycle in nx.simple_cycles(detached):
            members = sorted(cycle, key=lambda d: by_id[d].file_order)
            issues.append(self._issue(
                CircuitIssueCode.TOPO_CYCLE, members[0],
                devices=", ".join(f"'{d}'" for d in members),
            ))

        if issues:
            raise TopologyValidationError(issues, parsed.circuit_name)
        if not nx.is_arborescence(graph):
            raise FrameworkLogicError(f"Parent graph of '{parsed.circuit_name}' passed all checks but is not a tree.")

        ordered: List[ParsedDeviceData] = []
        stack = [PANEL_NODE]
        while stack:
            current = stack.pop()
            if current != PANEL_NODE:
                ordered.append(by_id[current])
            children = sorted(graph.successors(current), key=lambda d: by_id[d].file_order)
            stack.extend(reversed(children))
        return ordered

    @staticmethod
    def _issue(code: CircuitIssueCode, device_id: str, **kwargs) -> ValidationIssue:
        kwargs['device'] = device_id
        return ValidationIssue(
            level=code.level, code=code.code, message=code.format_message(**kwargs),
            device_name=device_id, details=kwargs,
        )

    def _synthesize_tree(self, parsed: ParsedCircuitFile, ordered: List[ParsedDeviceData]) -> CircuitTree:
        tree = CircuitTree(name=parsed.circuit_name)
        for device in ordered:
            source = self.attribute_source_factory(device)
            parent = tree.root if device.parent_id is None else tree.find_by_id(device.parent_id)
            tree.add_device(
                parent,
                name=source.get(ATTR_NAME, ""),
                device_type=source.get(ATTR_DEVICE_TYPE, constants.DEFAULT_DEVICE_TYPE),
                alarm_current=self._read_value(device, ATTR_ALARM_CURRENT, source.get(ATTR_ALARM_CURRENT, constants.DEFAULT_CURRENT_STR), "current"),
                standby_current=self._read_value(device, ATTR_STANDBY_CURRENT, source.get(ATTR_STANDBY_CURRENT, constants.DEFAULT_CURRENT_STR), "current"),
                distance_from_parent=self._read_value(device, "distance", device.raw_distance, "length"),
                is_branch_device=device.is_branch,
                node_id=device.device_id,
                manufacturer=source.get(ATTR_MANUFACTURER, ""),
                model=source.get(ATTR_MODEL, ""),
            )
        logger.debug(f"Synthesized tree '{tree.name}' with {tree.device_count} devices.")
        return tree

    @staticmethod
    def _read_value(device: ParsedDeviceData, attribute: str, raw, kind: str) -> float:
        try:
            return to_magnitude(raw, kind)
        except ValueError as e:
            raise DeviceDefinitionError(device.device_id, attribute, raw, str(e)) from e


def load_circuit(yaml_path: Union[str, Path], settings: Optional[Settings] = None) -> Circuit:
    """Convenience wrapper: parse and build a circuit file with the given settings."""
    return CircuitBuilder(settings).build_from_file(yaml_path)
