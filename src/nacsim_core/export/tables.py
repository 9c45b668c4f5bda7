# src/nacsim_core/export/tables.py
"""
Row builders shared by the tabular emitters (delimited text and PDF), so both
list the same parameters, summary lines and device columns in the same order.
"""
import math
from typing import List, Sequence

from ..analysis import CircuitReport, DeviceRecord
from ..parameters import CircuitParameters

DEVICE_TABLE_HEADERS: Sequence[str] = (
    "Pos",
    "Device Name",
    "Device Type",
    "Location",
    "Alarm Current (A)",
    "Standby Current (A)",
    "Distance From Parent (ft)",
    "Accumulated Load (A)",
    "Voltage Drop (V)",
    "Voltage (V)",
    "Status",
)


def parameter_rows(params: CircuitParameters) -> List[List[str]]:
    return [
        ["System Voltage (V)", f"{params.system_voltage:.2f}"],
        ["Minimum Voltage (V)", f"{params.min_voltage:.2f}"],
        ["Wire Gauge", params.wire_gauge],
        ["Wire Resistance (ohm/1000 ft)", f"{params.resistance:.3f}"],
        ["Supply Distance (ft)", f"{params.supply_distance:.1f}"],
        ["Routing Overhead", f"{params.routing_overhead:.2f}"],
        ["Maximum Load (A)", f"{params.max_load:.3f}"],
        ["Safety Margin (%)", f"{params.safety_percent * 100:.0f}"],
        ["Usable Load (A)", f"{params.usable_load:.3f}"],
    ]


def summary_rows(report: CircuitReport) -> List[List[str]]:
    max_distance = report.max_circuit_distance
    return [
        ["Total Devices", str(report.total_devices)],
        ["Main Line Devices", str(report.main_devices)],
        ["T-Tap Devices", str(report.branch_devices)],
        ["Total Alarm Load (A)", f"{report.total_load:.3f}"],
        ["Total Standby Load (A)", f"{report.total_standby_load:.3f}"],
        ["Load Utilization (%)", f"{report.load_utilization * 100:.1f}"],
        ["Total Wire Length (ft)", f"{report.total_wire_length:.1f}"],
        ["Furthest Device Distance (ft)", f"{report.furthest_distance:.1f}"],
        ["Max Circuit Distance For Load (ft)", f"{max_distance:.0f}" if math.isfinite(max_distance) else "unlimited"],
        ["Worst-Case Voltage (V)", f"{report.worst_case_voltage:.2f}"],
        ["Worst-Case Device", report.worst_case_device or "-"],
        ["Max Voltage Drop (V)", f"{report.max_voltage_drop:.2f}"],
        ["Max Voltage Drop (%)", f"{report.max_voltage_drop_percent:.1f}"],
        ["Circuit Status", "PASS" if report.is_valid else "FAIL"],
    ]


def device_row(record: DeviceRecord) -> List[str]:
    return [
        str(record.position),
        record.name,
        record.device_type,
        record.location,
        f"{record.alarm_current:.3f}",
        f"{record.standby_current:.3f}",
        f"{record.distance_from_parent:.1f}",
        f"{record.accumulated_load:.3f}",
        f"{record.voltage_drop:.3f}",
        f"{record.voltage:.2f}",
        record.status,
    ]


def issue_rows(report: CircuitReport) -> List[List[str]]:
    return [[issue.level.value.title(), issue.message] for issue in report.issues]
