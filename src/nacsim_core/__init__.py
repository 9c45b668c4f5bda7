# src/nacsim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("NACSim Core package initialized.")

__version__ = "0.1.0"

from .units import ureg, Quantity, to_magnitude
from .parameters import CircuitParameters
from .data_structures import Circuit, CircuitTree, CurrentDraw, DeviceNode, NodeType
from .attributes import DeviceAttributeSource, MappingAttributeSource
from .settings import Settings, load_settings
from .parser import CircuitFileParser, CircuitFileWriter, save_circuit
from .circuit_builder import CircuitBuilder, load_circuit
from .analysis import (
    CircuitReport,
    DeviceRecord,
    EvaluationResults,
    FormulaSynthesizer,
    TopologyEvaluator,
    build_report,
    evaluate_circuit,
    project_records,
)
from .export import ExportManager, ExportResult
from .errors import (
    NacSimError,
    ConfigurationError,
    CircuitBuildError,
    EmissionError,
    FrameworkLogicError,
)

__all__ = [
    # Units
    "ureg", "Quantity", "to_magnitude",
    # Data Structures
    "CircuitParameters", "Circuit", "CircuitTree", "CurrentDraw", "DeviceNode", "NodeType",
    "DeviceAttributeSource", "MappingAttributeSource",
    # Configuration
    "Settings", "load_settings",
    # Parser & Builder
    "CircuitFileParser", "CircuitFileWriter", "save_circuit", "CircuitBuilder", "load_circuit",
    # Analysis
    "TopologyEvaluator", "evaluate_circuit", "EvaluationResults",
    "FormulaSynthesizer", "project_records", "DeviceRecord",
    "build_report", "CircuitReport",
    # Export
    "ExportManager", "ExportResult",
    # Top-Level Errors (Actionable Diagnostics)
    "NacSimError", "ConfigurationError", "CircuitBuildError", "EmissionError", "FrameworkLogicError",
]
