# src/nacsim_core/parameters/__init__.py
from .exceptions import (
    ParameterError,
    ParameterDefinitionError,
    UnknownWireGaugeError,
    InvalidParameterError,
)
from .parameters import CircuitParameters, NAMED_CONSTANTS, lookup_wire_resistance

__all__ = [
    # Exceptions
    "ParameterError",
    "ParameterDefinitionError",
    "UnknownWireGaugeError",
    "InvalidParameterError",
    # Core Classes
    "CircuitParameters",
    "NAMED_CONSTANTS",
    "lookup_wire_resistance",
]
