# src/nacsim_core/export/json_export.py
import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..data_structures import DeviceNode
from ..errors import EmissionError
from .context import ExportContext, finite_or_none

logger = logging.getLogger(__name__)


def _node_payload(context: ExportContext, node: DeviceNode) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": node.name,
        "node_type": node.node_type.value,
        "device_type": node.device_type,
        "id": node.node_id,
    }
    if node.is_root:
        payload["voltage"] = context.results.root_voltage
    else:
        result = context.results.result_for(node)
        payload.update({
            "position": result.position,
            "sequence_number": node.sequence_number,
            "is_branch_device": node.is_branch_device,
            "alarm_current": node.current.alarm,
            "standby_current": node.current.standby,
            "distance_from_parent": node.distance_from_parent,
            "segment_distance": result.segment_distance,
            "cumulative_distance": result.cumulative_distance,
            "accumulated_load": result.accumulated_load,
            "voltage_drop": result.voltage_drop,
            "voltage": result.voltage,
            "status": result.status,
        })
    return payload


def _tree_payload(context: ExportContext) -> Dict[str, Any]:
    """Nested node payloads from the Root down, built with an explicit stack."""
    root_payload = _node_payload(context, context.tree.root)
    stack = [(context.tree.root, root_payload)]
    while stack:
        node, payload = stack.pop()
        payload["children"] = []
        for child in context.tree.children(node):
            child_payload = _node_payload(context, child)
            payload["children"].append(child_payload)
            stack.append((child, child_payload))
    return root_payload


def build_json_document(context: ExportContext) -> Dict[str, Any]:
    report = context.report
    return {
        "report": {
            "circuit_name": report.circuit_name,
            "total_devices": report.total_devices,
            "main_devices": report.main_devices,
            "branch_devices": report.branch_devices,
            "total_load": report.total_load,
            "total_standby_load": report.total_standby_load,
            "usable_load": report.usable_load,
            "total_wire_length": report.total_wire_length,
            "furthest_distance": report.furthest_distance,
            "max_circuit_distance": finite_or_none(report.max_circuit_distance),
            "worst_case_voltage": report.worst_case_voltage,
            "worst_case_device": report.worst_case_device,
            "max_voltage_drop": report.max_voltage_drop,
            "max_voltage_drop_percent": report.max_voltage_drop_percent,
            "validation_errors": report.validation_errors,
            "warnings": report.warnings,
            "issues": [
                {"level": i.level.value, "code": i.code, "message": i.message, "device": i.device_name}
                for i in report.issues
            ],
            "is_valid": report.is_valid,
        },
        "parameters": context.parameters.to_dict(),
        "circuit_tree": _tree_payload(context),
        "devices": [r.to_dict() for r in context.records],
        "metadata": context.metadata(),
    }


def write_json_report(context: ExportContext, path: Path) -> None:
    try:
        text = json.dumps(build_json_document(context), indent=2, ensure_ascii=False, allow_nan=False)
        Path(path).write_text(text, encoding="utf-8")
    except (OSError, TypeError, ValueError, RecursionError) as e:
        raise EmissionError("json", str(e), path) from e
    logger.debug(f"Wrote JSON report to '{path}'.")
