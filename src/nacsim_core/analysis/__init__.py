# src/nacsim_core/analysis/__init__.py
"""
Evaluation of circuit trees and the views derived from an evaluation: the flat
device records, the circuit report and the spreadsheet layout.
"""
from .results import DeviceResult, EvaluationResults
from .traversal import CircuitSink, DeviceVisit, RootVisit, WalkState, subtree_sizes, walk_circuit
from .evaluator import TopologyEvaluator, ValueSink, accumulate_loads, evaluate_circuit
from .formulas import (
    LAYOUT_COLUMNS,
    LAYOUT_FIRST_ROW,
    LAYOUT_HEADER_ROW,
    LAYOUT_SHEET_NAME,
    ColumnRole,
    Formula,
    FormulaSink,
    FormulaSynthesizer,
    LayoutMode,
    LayoutRow,
    build_layout,
)
from .projector import DeviceRecord, RecordSink, project_records
from .report import CircuitReport, build_report, max_circuit_distance

__all__ = [
    # Result Contracts
    "DeviceResult",
    "EvaluationResults",
    # Shared Walk
    "CircuitSink",
    "DeviceVisit",
    "RootVisit",
    "WalkState",
    "subtree_sizes",
    "walk_circuit",
    # Evaluation
    "TopologyEvaluator",
    "ValueSink",
    "accumulate_loads",
    "evaluate_circuit",
    # Spreadsheet Layout
    "LAYOUT_COLUMNS",
    "LAYOUT_FIRST_ROW",
    "LAYOUT_HEADER_ROW",
    "LAYOUT_SHEET_NAME",
    "ColumnRole",
    "Formula",
    "FormulaSink",
    "FormulaSynthesizer",
    "LayoutMode",
    "LayoutRow",
    "build_layout",
    # Report
    "DeviceRecord",
    "RecordSink",
    "project_records",
    "CircuitReport",
    "build_report",
    "max_circuit_distance",
]
