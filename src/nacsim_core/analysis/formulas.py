# src/nacsim_core/analysis/formulas.py
"""
Spreadsheet layout of an evaluated circuit, in baked or live form.

Both forms share one column layout (`LAYOUT_COLUMNS`) and one row assignment
(the walk in `traversal`). In the baked form every computed column holds the
evaluator's number. In the live form every computed column holds a formula
that recomputes the same number inside the spreadsheet from the input columns
and the named parameter cells, so editing a distance or a current in the sheet
updates the whole profile.

Live formulas in row r of a device whose parent sits in row p:

    G  segment distance     =F{r}*routingOverhead   (=supplyDistance*routingOverhead for the supply segment)
    H  cumulative distance  =H{p}+G{r}
    I  accumulated load     =SUM(E{r}:E{r+n-1})     (n = rows in the device's subtree)
    J  voltage drop         =I{r}*2*G{r}*wireResistance/1000
    K  voltage              =K{p}-J{r}
    L  status               =IF(K{r}>=minVoltage,"OK","LOW VOLTAGE")

Because the walk lays every subtree out as one contiguous block of rows, the
load through a segment is the alarm current summed over that block. The block
bounds are fixed when the sheet is generated; moving a device to another
parent inside the sheet is not reflected in the sums.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .. import constants
from ..data_structures import CircuitTree, DeviceNode
from ..errors import FrameworkLogicError
from .evaluator import voltage_status
from .results import EvaluationResults
from .traversal import DeviceVisit, RootVisit, walk_circuit

logger = logging.getLogger(__name__)

LAYOUT_SHEET_NAME = "Circuit Layout"
LAYOUT_HEADER_ROW = 3
LAYOUT_FIRST_ROW = 4  # the panel row; devices follow


class ColumnRole(Enum):
    """How a layout column is filled."""
    LABEL = "label"        # descriptive literal in every mode
    INPUT = "input"        # editable literal in every mode
    COMPUTED = "computed"  # number in baked mode, formula in live mode


class LayoutMode(Enum):
    VALUES = "values"
    FORMULAS = "formulas"


@dataclass(frozen=True)
class LayoutColumn:
    letter: str
    key: str
    header: str
    role: ColumnRole
    number_format: Optional[str] = None
    width: int = 14


LAYOUT_COLUMNS: Tuple[LayoutColumn, ...] = (
    LayoutColumn("A", "position", "Pos", ColumnRole.LABEL, width=6),
    LayoutColumn("B", "name", "Device Name", ColumnRole.LABEL, width=28),
    LayoutColumn("C", "device_type", "Device Type", ColumnRole.LABEL, width=22),
    LayoutColumn("D", "location", "Location", ColumnRole.LABEL, width=30),
    LayoutColumn("E", "alarm_current", "Alarm Current (A)", ColumnRole.INPUT, "0.000"),
    LayoutColumn("F", "distance_from_parent", "Distance From Parent (ft)", ColumnRole.INPUT, "0.0"),
    LayoutColumn("G", "segment_distance", "Segment Distance (ft)", ColumnRole.COMPUTED, "0.0"),
    LayoutColumn("H", "cumulative_distance", "Cumulative Distance (ft)", ColumnRole.COMPUTED, "0.0"),
    LayoutColumn("I", "accumulated_load", "Accumulated Load (A)", ColumnRole.COMPUTED, "0.000"),
    LayoutColumn("J", "voltage_drop", "Voltage Drop (V)", ColumnRole.COMPUTED, "0.000"),
    LayoutColumn("K", "voltage", "Voltage (V)", ColumnRole.COMPUTED, "0.00"),
    LayoutColumn("L", "status", "Status", ColumnRole.COMPUTED, width=14),
)

COLUMN_BY_KEY: Dict[str, LayoutColumn] = {c.key: c for c in LAYOUT_COLUMNS}


def col(key: str) -> str:
    """Column letter of a layout column key."""
    return COLUMN_BY_KEY[key].letter


@dataclass(frozen=True)
class Formula:
    """A spreadsheet formula, stored without its leading '='."""
    expression: str

    @property
    def text(self) -> str:
        return f"={self.expression}"

    def __str__(self) -> str:
        return self.text


CellValue = Union[str, int, float, Formula]


@dataclass(frozen=True)
class LayoutRow:
    """One sheet row of the circuit layout: column key -> cell content."""
    row: int
    node_index: int
    is_root: bool
    cells: Dict[str, CellValue]

    def cell(self, key: str) -> CellValue:
        return self.cells[key]

    def by_letter(self) -> Dict[str, CellValue]:
        return {COLUMN_BY_KEY[k].letter: v for k, v in self.cells.items()}


class _LayoutSink:
    """Shared part of both layout sinks: the label and input columns."""

    def __init__(self, tree: CircuitTree, first_device_row: int, last_device_row: int):
        self.tree = tree
        self.first_device_row = first_device_row
        self.last_device_row = last_device_row
        self.rows: List[LayoutRow] = []

    def _literal_cells(self, node: DeviceNode, position: Any, location: str) -> Dict[str, CellValue]:
        return {
            "position": position,
            "name": node.name,
            "device_type": node.device_type,
            "location": location,
            "alarm_current": node.current.alarm,
            "distance_from_parent": node.distance_from_parent,
        }

    def visit_root(self, visit: RootVisit) -> None:
        cells = self._literal_cells(visit.node, "", constants.ROOT_LOCATION)
        cells.update(self._root_computed(visit))
        self.rows.append(LayoutRow(row=visit.row, node_index=visit.node.index, is_root=True, cells=cells))

    def visit_device(self, visit: DeviceVisit) -> None:
        if visit.parent_row is None:
            raise FrameworkLogicError(f"Parent of '{visit.node.name}' has no layout row.")
        cells = self._literal_cells(visit.node, visit.position, visit.location)
        cells.update(self._device_computed(visit))
        self.rows.append(LayoutRow(row=visit.row, node_index=visit.node.index, is_root=False, cells=cells))

    def _root_computed(self, visit: RootVisit) -> Dict[str, CellValue]:
        raise NotImplementedError

    def _device_computed(self, visit: DeviceVisit) -> Dict[str, CellValue]:
        raise NotImplementedError


class ValueLayoutSink(_LayoutSink):
    """Fills computed columns with the evaluator's numbers."""

    def __init__(self, tree: CircuitTree, results: EvaluationResults, first_device_row: int, last_device_row: int):
        super().__init__(tree, first_device_row, last_device_row)
        self.results = results

    def _root_computed(self, visit: RootVisit) -> Dict[str, CellValue]:
        params = self.results.parameters
        return {
            "segment_distance": 0.0,
            "cumulative_distance": 0.0,
            "accumulated_load": 0.0,
            "voltage_drop": 0.0,
            "voltage": self.results.root_voltage,
            "status": voltage_status(self.results.root_voltage, params),
        }

    def _device_computed(self, visit: DeviceVisit) -> Dict[str, CellValue]:
        result = self.results.result_for(visit.node)
        return {
            "segment_distance": result.segment_distance,
            "cumulative_distance": result.cumulative_distance,
            "accumulated_load": result.accumulated_load,
            "voltage_drop": result.voltage_drop,
            "voltage": result.voltage,
            "status": result.status,
        }


class FormulaSink(_LayoutSink):
    """Fills computed columns with formulas over named parameters and sheet cells."""

    def _root_computed(self, visit: RootVisit) -> Dict[str, CellValue]:
        r = visit.row
        return {
            "segment_distance": Formula("0"),
            "cumulative_distance": Formula("0"),
            "accumulated_load": Formula("0"),
            "voltage_drop": Formula("0"),
            "voltage": Formula("systemVoltage"),
            "status": _status_formula(r),
        }

    def _device_computed(self, visit: DeviceVisit) -> Dict[str, CellValue]:
        r, p = visit.row, visit.parent_row
        last = r + visit.subtree_size - 1
        if last > self.last_device_row:
            raise FrameworkLogicError(f"Subtree of '{visit.node.name}' runs past the last layout row.")
        if visit.is_supply_segment:
            segment = Formula("supplyDistance*routingOverhead")
        else:
            segment = Formula(f"{col('distance_from_parent')}{r}*routingOverhead")

        load = col("alarm_current")
        return {
            "segment_distance": segment,
            "cumulative_distance": Formula(f"{col('cumulative_distance')}{p}+{col('segment_distance')}{r}"),
            "accumulated_load": Formula(f"SUM({load}{r}:{load}{last})"),
            "voltage_drop": Formula(
                f"{col('accumulated_load')}{r}*2*{col('segment_distance')}{r}*wireResistance/1000"
            ),
            "voltage": Formula(f"{col('voltage')}{p}-{col('voltage_drop')}{r}"),
            "status": _status_formula(r),
        }


def _status_formula(row: int) -> Formula:
    return Formula(
        f'IF({col("voltage")}{row}>=minVoltage,"{constants.STATUS_OK}","{constants.STATUS_LOW_VOLTAGE}")'
    )


class FormulaSynthesizer:
    """
    Lays a circuit tree out as spreadsheet rows, the panel row first.

    `synthesize` returns the rows in live (formula) form; `bake` returns the same
    rows with the evaluator's numbers. `row_for` gives the sheet row of any node
    after either call.
    """

    def __init__(self, tree: CircuitTree, first_row: int = LAYOUT_FIRST_ROW):
        if first_row < 1:
            raise ValueError("Spreadsheet rows are numbered from 1.")
        self.tree = tree
        self.first_row = first_row
        self._rows_by_node: Optional[Dict[int, int]] = None

    @property
    def first_device_row(self) -> int:
        return self.first_row + 1

    @property
    def last_device_row(self) -> int:
        # Equal to first_row when there are no devices.
        return self.first_row + self.tree.device_count

    def synthesize(self) -> List[LayoutRow]:
        sink = FormulaSink(self.tree, self.first_device_row, self.last_device_row)
        return self._run(sink)

    def bake(self, results: EvaluationResults) -> List[LayoutRow]:
        sink = ValueLayoutSink(self.tree, results, self.first_device_row, self.last_device_row)
        return self._run(sink)

    def layout(self, mode: LayoutMode, results: Optional[EvaluationResults] = None) -> List[LayoutRow]:
        """Returns the rows for one output target: live formulas or baked values."""
        if mode is LayoutMode.FORMULAS:
            return self.synthesize()
        if results is None:
            raise ValueError("A baked layout needs evaluation results.")
        return self.bake(results)

    def row_for(self, node: Union[DeviceNode, int]) -> int:
        if self._rows_by_node is None:
            self.synthesize()
        index = node.index if isinstance(node, DeviceNode) else node
        return self._rows_by_node[index]

    def _run(self, sink: _LayoutSink) -> List[LayoutRow]:
        state = walk_circuit(self.tree, sink, first_row=self.first_row, include_root_row=True)
        self._rows_by_node = dict(state.rows_by_node)
        logger.debug(f"Laid out '{self.tree.name}' on rows {self.first_row}..{self.last_device_row}.")
        return sink.rows

    def summary_formulas(self, sheet_name: str = LAYOUT_SHEET_NAME) -> List[Tuple[str, Formula, Optional[str]]]:
        """
        Aggregate formulas over the layout sheet, as (label, formula, number format).
        With no devices, the ranges cover the panel row only.
        """
        if self.tree.device_count:
            first, last = self.first_device_row, self.last_device_row
        else:
            first = last = self.first_row

        def rng(key: str) -> str:
            letter = col(key)
            return f"'{sheet_name}'!${letter}${first}:${letter}${last}"

        total_load = f"SUM({rng('alarm_current')})"
        min_voltage = f"MIN({rng('voltage')})"
        usable = "maxLoad*(1-safetyPercent)"
        return [
            ("Total Devices", Formula(f"COUNTA({rng('name')})") if self.tree.device_count else Formula("0"), "0"),
            ("Total Alarm Load (A)", Formula(total_load), "0.000"),
            ("Total Wire Length (ft)", Formula(f"SUM({rng('segment_distance')})"), "0.0"),
            ("Furthest Device Distance (ft)", Formula(f"MAX({rng('cumulative_distance')})"), "0.0"),
            ("Worst-Case Voltage (V)", Formula(min_voltage), "0.00"),
            ("Max Voltage Drop (V)", Formula(f"systemVoltage-{min_voltage}"), "0.000"),
            ("Max Voltage Drop (%)", Formula(f"(systemVoltage-{min_voltage})/systemVoltage"), "0.0%"),
            ("Usable Load (A)", Formula(usable), "0.000"),
            ("Load Utilization", Formula(f"IF({usable}>0,{total_load}/({usable}),0)"), "0.0%"),
            ("Low Voltage Devices", Formula(f'COUNTIF({rng("status")},"{constants.STATUS_LOW_VOLTAGE}")'), "0"),
            ("Circuit Status", Formula(
                f'IF(AND({min_voltage}>=minVoltage,{total_load}<={usable}),"PASS","FAIL")'
            ), None),
        ]


def build_layout(
    tree: CircuitTree,
    mode: LayoutMode,
    results: Optional[EvaluationResults] = None,
    first_row: int = LAYOUT_FIRST_ROW,
) -> List[LayoutRow]:
    return FormulaSynthesizer(tree, first_row).layout(mode, results)
