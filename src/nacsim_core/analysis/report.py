# src/nacsim_core/analysis/report.py
"""
Summarizes an evaluated circuit and checks it against its design limits.

The report is derived from the flat device records, so its device counts,
worst case and totals always agree with what the export formats list.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .. import constants
from ..data_structures import CircuitTree
from ..parameters import CircuitParameters
from ..settings import Settings
from ..validation import CircuitIssueCode, TopologyValidator, ValidationIssue, ValidationIssueLevel
from .projector import DeviceRecord, project_records
from .results import EvaluationResults

logger = logging.getLogger(__name__)


def max_circuit_distance(load: float, parameters: CircuitParameters) -> float:
    """
    Longest run, beyond the supply distance, over which `load` amps can travel
    before the voltage falls from the system voltage to the minimum voltage.
    Never negative: a load too heavy to reach past the supply run gives 0.
    Infinite when the load or the resistance is not positive.
    """
    if load <= 0 or parameters.resistance <= 0:
        return math.inf
    allowed_drop = parameters.system_voltage - parameters.min_voltage
    reach = allowed_drop / load * constants.RESISTANCE_LENGTH_BASIS / (constants.CONDUCTOR_COUNT * parameters.resistance)
    return max(0.0, reach - parameters.supply_distance)


@dataclass(frozen=True)
class CircuitReport:
    circuit_name: str
    parameters: CircuitParameters
    total_devices: int
    main_devices: int
    branch_devices: int
    total_load: float
    total_standby_load: float
    total_wire_length: float
    furthest_distance: float
    worst_case_voltage: float
    worst_case_device: Optional[str]
    max_voltage_drop: float
    max_voltage_drop_percent: float
    max_circuit_distance: float
    low_voltage_devices: int
    issues: Tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def usable_load(self) -> float:
        return self.parameters.usable_load

    @property
    def load_utilization(self) -> float:
        """Fraction of the usable load drawn by the circuit."""
        return self.total_load / self.usable_load if self.usable_load > 0 else 0.0

    @property
    def validation_errors(self) -> List[str]:
        return [i.message for i in self.issues if i.level is ValidationIssueLevel.ERROR]

    @property
    def warnings(self) -> List[str]:
        return [i.message for i in self.issues if i.level is ValidationIssueLevel.WARNING]

    @property
    def is_valid(self) -> bool:
        return self.low_voltage_devices == 0 and not self.validation_errors

    def summary_lines(self) -> List[str]:
        worst = f"{self.worst_case_voltage:.2f} V" + (f" at {self.worst_case_device}" if self.worst_case_device else "")
        return [
            f"Circuit:            {self.circuit_name}",
            f"Devices:            {self.total_devices} ({self.main_devices} main, {self.branch_devices} T-tap)",
            f"Alarm load:         {self.total_load:.3f} A of {self.usable_load:.3f} A usable",
            f"Standby load:       {self.total_standby_load:.3f} A",
            f"Wire length:        {self.total_wire_length:.1f} ft",
            f"Worst-case voltage: {worst}",
            f"Max voltage drop:   {self.max_voltage_drop:.2f} V ({self.max_voltage_drop_percent:.1f}%)",
            f"Status:             {'PASS' if self.is_valid else 'FAIL'}",
        ]


def _issue(code: CircuitIssueCode, device: Optional[str] = None, **kwargs) -> ValidationIssue:
    if device is not None:
        kwargs['device'] = device
    return ValidationIssue(
        level=code.level, code=code.code, message=code.format_message(**kwargs),
        device_name=device, details=kwargs,
    )


def _design_checks(
    records: List[DeviceRecord],
    params: CircuitParameters,
    settings: Settings,
    total_load: float,
    total_length: float,
    drop_percent: float,
) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if total_load > params.max_load:
        issues.append(_issue(CircuitIssueCode.CHK_LOAD_MAX, total_load=total_load, max_load=params.max_load))
    if total_load > params.usable_load:
        issues.append(_issue(
            CircuitIssueCode.CHK_LOAD_USABLE, total_load=total_load,
            usable_load=params.usable_load, safety=params.safety_percent * 100,
        ))

    for record in records:
        if record.status != constants.STATUS_LOW_VOLTAGE:
            continue
        code = CircuitIssueCode.CHK_VOLT_BRANCH if record.is_branch_device else CircuitIssueCode.CHK_VOLT_MAIN
        issues.append(_issue(code, device=record.name, voltage=record.voltage, min_voltage=params.min_voltage))

    max_length = max_circuit_distance(total_load, params) + params.supply_distance
    if total_length > max_length:
        issues.append(_issue(CircuitIssueCode.CHK_LENGTH_LOAD, total_length=total_length, max_length=max_length))
    if total_length > settings.max_circuit_length:
        issues.append(_issue(CircuitIssueCode.CHK_LENGTH_LIMIT, total_length=total_length, limit=settings.max_circuit_length))
    if drop_percent > settings.max_voltage_drop_percent:
        issues.append(_issue(CircuitIssueCode.CHK_DROP_PERCENT, drop_percent=drop_percent, limit=settings.max_voltage_drop_percent))
    return issues


def build_report(
    tree: CircuitTree,
    results: EvaluationResults,
    settings: Optional[Settings] = None,
    records: Optional[List[DeviceRecord]] = None,
) -> CircuitReport:
    """
    Builds the circuit report of an evaluation.

    Args:
        tree: The evaluated tree.
        results: The evaluation of `tree`.
        settings: Supplies the drop-percent and circuit-length limits; defaults apply if None.
        records: Already projected records of `results`, to avoid projecting twice.
    """
    settings = settings or Settings()
    params = results.parameters
    records = records if records is not None else project_records(tree, results)

    alarm = np.array([r.alarm_current for r in records], dtype=float)
    standby = np.array([r.standby_current for r in records], dtype=float)
    segments = np.array([r.segment_distance for r in records], dtype=float)
    voltages = np.array([r.voltage for r in records], dtype=float)
    cumulative = np.array([r.cumulative_distance for r in records], dtype=float)
    branch_mask = np.array([r.is_branch_device for r in records], dtype=bool)

    total_load = float(alarm.sum())
    total_length = float(segments.sum())
    if records:
        worst_idx = int(np.argmin(voltages))
        worst_voltage = float(voltages[worst_idx])
        worst_device: Optional[str] = records[worst_idx].name
        furthest = float(cumulative.max())
    else:
        worst_voltage, worst_device, furthest = params.system_voltage, None, 0.0
    max_drop = params.system_voltage - worst_voltage
    drop_percent = max_drop / params.system_voltage * 100 if params.system_voltage else 0.0

    issues = [i for i in TopologyValidator(tree).validate() if not i.is_error]
    issues.extend(_design_checks(records, params, settings, total_load, total_length, drop_percent))

    report = CircuitReport(
        circuit_name=tree.name,
        parameters=params,
        total_devices=len(records),
        main_devices=int((~branch_mask).sum()),
        branch_devices=int(branch_mask.sum()),
        total_load=total_load,
        total_standby_load=float(standby.sum()),
        total_wire_length=total_length,
        furthest_distance=furthest,
        worst_case_voltage=worst_voltage,
        worst_case_device=worst_device,
        max_voltage_drop=max_drop,
        max_voltage_drop_percent=drop_percent,
        max_circuit_distance=max_circuit_distance(total_load, params),
        low_voltage_devices=sum(1 for r in records if r.status == constants.STATUS_LOW_VOLTAGE),
        issues=tuple(issues),
    )
    for message in report.validation_errors:
        logger.warning(f"Circuit '{tree.name}': {message}")
    logger.info(f"Report for '{tree.name}': {'valid' if report.is_valid else 'INVALID'}.")
    return report
