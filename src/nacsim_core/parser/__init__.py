# src/nacsim_core/parser/__init__.py
from .raw_data import ParsedCircuitFile, ParsedDeviceData
from .parser import CircuitFileParser
from .writer import CircuitFileWriter, save_circuit
from .exceptions import BaseParsingError, DeviceDefinitionError, ParsingError, SchemaValidationError

__all__ = [
    # IR Data Structures
    "ParsedCircuitFile",
    "ParsedDeviceData",
    # Parser and Exceptions
    "CircuitFileParser",
    "BaseParsingError",
    "DeviceDefinitionError",
    "ParsingError",
    "SchemaValidationError",
    # Writer
    "CircuitFileWriter",
    "save_circuit",
]
