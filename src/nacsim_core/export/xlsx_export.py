# src/nacsim_core/export/xlsx_export.py
"""
Workbook emitter.

Sheets:
    Parameters      input cells, each bound to a workbook-level defined name
    Designer        the circuit layout with baked evaluator values
    Circuit Layout  the same layout with live formulas
    Summary         aggregate formulas over the live layout
    Device Details  device specifications and evaluated values
    Calculations    formula reference and the wire resistance table

Live formulas carry the evaluator's numbers as cached results, so viewers that
do not recalculate still show the evaluated profile.
"""
import logging
from pathlib import Path
from typing import Dict, List

import xlsxwriter
from xlsxwriter.exceptions import XlsxWriterException

from .. import constants
from ..analysis import (
    LAYOUT_COLUMNS,
    LAYOUT_FIRST_ROW,
    LAYOUT_HEADER_ROW,
    LAYOUT_SHEET_NAME,
    ColumnRole,
    Formula,
    FormulaSynthesizer,
    LayoutRow,
)
from ..errors import EmissionError
from .context import ExportContext

logger = logging.getLogger(__name__)

PARAMETERS_SHEET = "Parameters"
DESIGNER_SHEET = "Designer"
SUMMARY_SHEET = "Summary"
DETAILS_SHEET = "Device Details"
CALCULATIONS_SHEET = "Calculations"

#: (defined name, label, unit, attribute of CircuitParameters)
PARAMETER_CELLS = (
    ("systemVoltage", "System Voltage", "V", "system_voltage"),
    ("minVoltage", "Minimum Device Voltage", "V", "min_voltage"),
    ("wireResistance", "Wire Resistance", "ohm/1000 ft", "resistance"),
    ("supplyDistance", "Supply Distance", "ft", "supply_distance"),
    ("routingOverhead", "Routing Overhead", "x", "routing_overhead"),
    ("safetyPercent", "Safety Margin", "fraction", "safety_percent"),
    ("maxLoad", "Maximum Load", "A", "max_load"),
)
PARAMETERS_FIRST_ROW = 4


class _Formats:
    def __init__(self, workbook):
        self.title = workbook.add_format({'bold': True, 'font_size': 14})
        self.subtitle = workbook.add_format({'italic': True, 'font_color': '#555555'})
        self.header = workbook.add_format({
            'bold': True, 'font_color': 'white', 'bg_color': '#B22222', 'border': 1, 'text_wrap': True,
            'valign': 'vcenter',
        })
        self.cell = workbook.add_format({'border': 1})
        self.input = workbook.add_format({'border': 1, 'bg_color': '#FFF2CC'})
        self.panel = workbook.add_format({'border': 1, 'bold': True, 'bg_color': '#F2F2F2'})
        self.low_voltage = workbook.add_format({'bg_color': '#F8D7DA', 'font_color': '#9C0006'})
        self.ok = workbook.add_format({'font_color': '#006100'})
        self._numeric: Dict[str, object] = {}
        self._workbook = workbook

    def number(self, num_format: str, input_cell: bool = False):
        key = f"{num_format}|{input_cell}"
        if key not in self._numeric:
            props = {'border': 1, 'num_format': num_format}
            if input_cell:
                props['bg_color'] = '#FFF2CC'
            self._numeric[key] = self._workbook.add_format(props)
        return self._numeric[key]


def _write_parameters(workbook, fmt: _Formats, context: ExportContext):
    ws = workbook.add_worksheet(PARAMETERS_SHEET)
    ws.write(0, 0, "Circuit Parameters", fmt.title)
    ws.write(1, 0, "Yellow cells are inputs; every formula in this workbook refers to them by name.", fmt.subtitle)
    for col, header in enumerate(("Parameter", "Value", "Unit", "Name")):
        ws.write(PARAMETERS_FIRST_ROW - 2, col, header, fmt.header)

    params = context.parameters
    for offset, (name, label, unit, attr) in enumerate(PARAMETER_CELLS):
        row = PARAMETERS_FIRST_ROW - 1 + offset
        ws.write(row, 0, label, fmt.cell)
        ws.write_number(row, 1, getattr(params, attr), fmt.number("0.000", input_cell=True))
        ws.write(row, 2, unit, fmt.cell)
        ws.write(row, 3, name, fmt.cell)
        workbook.define_name(name, f"='{PARAMETERS_SHEET}'!$B${row + 1}")

    row = PARAMETERS_FIRST_ROW - 1 + len(PARAMETER_CELLS) + 1
    ws.write(row, 0, "Wire Gauge", fmt.cell)
    ws.write(row, 1, params.wire_gauge, fmt.cell)
    ws.set_column(0, 0, 26)
    ws.set_column(1, 1, 12)
    ws.set_column(2, 2, 14)
    ws.set_column(3, 3, 18)


def _write_layout(ws, fmt: _Formats, rows: List[LayoutRow], baked: Dict[int, LayoutRow], title: str, subtitle: str):
    ws.write(0, 0, title, fmt.title)
    ws.write(1, 0, subtitle, fmt.subtitle)
    header_row = LAYOUT_HEADER_ROW - 1
    for col, column in enumerate(LAYOUT_COLUMNS):
        ws.write(header_row, col, column.header, fmt.header)
        ws.set_column(col, col, column.width)
    ws.set_row(header_row, 30)
    ws.freeze_panes(header_row + 1, 2)

    for layout_row in rows:
        r = layout_row.row - 1
        for col, column in enumerate(LAYOUT_COLUMNS):
            value = layout_row.cell(column.key)
            if layout_row.is_root:
                cell_format = fmt.panel
            elif column.number_format:
                cell_format = fmt.number(column.number_format, input_cell=column.role is ColumnRole.INPUT)
            else:
                cell_format = fmt.cell
            if isinstance(value, Formula):
                cached = baked[layout_row.node_index].cell(column.key)
                ws.write_formula(r, col, value.text, cell_format, cached)
            else:
                ws.write(r, col, value, cell_format)

    if rows:
        first, last = rows[0].row - 1, rows[-1].row - 1
        status_col = [c.key for c in LAYOUT_COLUMNS].index("status")
        ws.conditional_format(first, status_col, last, status_col, {
            'type': 'cell', 'criteria': '==', 'value': f'"{constants.STATUS_LOW_VOLTAGE}"',
            'format': fmt.low_voltage,
        })
        ws.conditional_format(first, status_col, last, status_col, {
            'type': 'cell', 'criteria': '==', 'value': f'"{constants.STATUS_OK}"', 'format': fmt.ok,
        })


def _write_summary(workbook, fmt: _Formats, context: ExportContext, synthesizer: FormulaSynthesizer):
    ws = workbook.add_worksheet(SUMMARY_SHEET)
    ws.write(0, 0, f"Circuit Summary: {context.circuit_name}", fmt.title)
    ws.write(1, 0, f"Project: {context.project_name}", fmt.subtitle)
    ws.write(2, 0, "Metric", fmt.header)
    ws.write(2, 1, "Value", fmt.header)
    for offset, (label, formula, num_format) in enumerate(synthesizer.summary_formulas(LAYOUT_SHEET_NAME)):
        row = 3 + offset
        ws.write(row, 0, label, fmt.cell)
        ws.write_formula(row, 1, formula.text, fmt.number(num_format) if num_format else fmt.cell)
    ws.set_column(0, 0, 32)
    ws.set_column(1, 1, 16)


def _write_details(workbook, fmt: _Formats, context: ExportContext):
    ws = workbook.add_worksheet(DETAILS_SHEET)
    headers = [
        "Pos", "Device Name", "Device Type", "Manufacturer", "Model", "Location",
        "Alarm Current (A)", "Standby Current (A)", "Accumulated Load (A)",
        "Cumulative Distance (ft)", "Voltage (V)", "Status",
    ]
    for col, header in enumerate(headers):
        ws.write(0, col, header, fmt.header)
    for row, record in enumerate(context.records, start=1):
        ws.write_number(row, 0, record.position, fmt.cell)
        ws.write(row, 1, record.name, fmt.cell)
        ws.write(row, 2, record.device_type, fmt.cell)
        ws.write(row, 3, record.manufacturer, fmt.cell)
        ws.write(row, 4, record.model, fmt.cell)
        ws.write(row, 5, record.location, fmt.cell)
        ws.write_number(row, 6, record.alarm_current, fmt.number("0.000"))
        ws.write_number(row, 7, record.standby_current, fmt.number("0.000"))
        ws.write_number(row, 8, record.accumulated_load, fmt.number("0.000"))
        ws.write_number(row, 9, record.cumulative_distance, fmt.number("0.0"))
        ws.write_number(row, 10, record.voltage, fmt.number("0.00"))
        ws.write(row, 11, record.status, fmt.cell)
    ws.set_column(0, 0, 6)
    ws.set_column(1, 5, 22)
    ws.set_column(6, 11, 14)


def _write_calculations(workbook, fmt: _Formats, context: ExportContext):
    ws = workbook.add_worksheet(CALCULATIONS_SHEET)
    ws.write(0, 0, "Calculation Reference", fmt.title)
    reference = [
        ("Segment Distance", "Distance From Parent x routingOverhead (supplyDistance x routingOverhead for the first device)"),
        ("Cumulative Distance", "Parent Cumulative Distance + Segment Distance"),
        ("Accumulated Load", "Alarm current of the device and of every device downstream of it"),
        ("Voltage Drop", "Accumulated Load x 2 x Segment Distance x wireResistance / 1000"),
        ("Device Voltage", "Parent Voltage - Voltage Drop"),
        ("Status", f"{constants.STATUS_OK} if Device Voltage >= minVoltage, else {constants.STATUS_LOW_VOLTAGE}"),
        ("Usable Load", "maxLoad x (1 - safetyPercent)"),
    ]
    ws.write(2, 0, "Quantity", fmt.header)
    ws.write(2, 1, "Formula", fmt.header)
    for offset, (name, text) in enumerate(reference):
        ws.write(3 + offset, 0, name, fmt.cell)
        ws.write_string(3 + offset, 1, text, fmt.cell)

    table_row = 3 + len(reference) + 2
    ws.write(table_row, 0, "Wire Gauge", fmt.header)
    ws.write(table_row, 1, "Resistance (ohm/1000 ft)", fmt.header)
    for offset, (gauge, resistance) in enumerate(context.settings.wire_resistance.items(), start=1):
        ws.write(table_row + offset, 0, gauge, fmt.cell)
        ws.write_number(table_row + offset, 1, resistance, fmt.number("0.000"))
    ws.set_column(0, 0, 24)
    ws.set_column(1, 1, 80)


def write_workbook(context: ExportContext, path: Path) -> None:
    """Writes the six-sheet analysis workbook to `path`."""
    synthesizer = FormulaSynthesizer(context.tree, first_row=LAYOUT_FIRST_ROW)
    live_rows = synthesizer.synthesize()
    baked_rows = synthesizer.bake(context.results)
    baked_by_node = {row.node_index: row for row in baked_rows}

    try:
        workbook = xlsxwriter.Workbook(str(path))
        fmt = _Formats(workbook)
        _write_parameters(workbook, fmt, context)
        _write_layout(
            workbook.add_worksheet(DESIGNER_SHEET), fmt, baked_rows, baked_by_node,
            f"Circuit Designer: {context.circuit_name}", "Evaluated values.",
        )
        _write_layout(
            workbook.add_worksheet(LAYOUT_SHEET_NAME), fmt, live_rows, baked_by_node,
            f"Circuit Layout: {context.circuit_name}",
            "Live formulas; edit the yellow input cells or the Parameters sheet to recalculate.",
        )
        _write_summary(workbook, fmt, context, synthesizer)
        _write_details(workbook, fmt, context)
        _write_calculations(workbook, fmt, context)
        workbook.close()
    except (OSError, XlsxWriterException) as e:
        raise EmissionError("excel", str(e), path) from e
    logger.debug(f"Wrote workbook with {len(live_rows)} layout rows to '{path}'.")
