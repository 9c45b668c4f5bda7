# src/nacsim_core/parameters/exceptions.py
"""
Defines the custom, diagnosable exceptions for the circuit parameter set.

Every exception here derives from `ParameterError`, which is itself a
`ConfigurationError`: an unusable parameter set stops a report run before a
single device is evaluated. Each class carries the offending parameter and the
raw user input so that the diagnostic report can point straight at it.
"""

from dataclasses import dataclass
from typing import Any, List

from ..errors import ConfigurationError, format_diagnostic_report


class ParameterError(ConfigurationError):
    """
    A concrete base class for all parameter-related errors.

    Catch it with a single `except ParameterError:` block; subclasses provide
    the specific diagnostic reports.
    """
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parameter Error",
            details=str(self),
            suggestion="Review the circuit parameters for correctness.",
            context={}
        )


@dataclass()
class ParameterDefinitionError(ParameterError):
    """Raised when a raw parameter value cannot be parsed into a number of the right unit."""
    parameter: str
    user_input: Any
    details: str

    def __str__(self):
        return f"Parameter '{self.parameter}': {self.details} (input: '{self.user_input}')"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Parameter Definition",
            details=self.details,
            suggestion="Give the value as a plain number in the default unit or as a unit string such as '29 V', '50 ft' or '4.016 ohm/kft'.",
            context={'parameter': self.parameter, 'user_input': str(self.user_input)}
        )


@dataclass()
class UnknownWireGaugeError(ParameterError):
    """Raised when a wire gauge label is not present in the resistance table."""
    wire_gauge: str
    available_gauges: List[str]

    def __str__(self):
        return f"Unknown wire gauge '{self.wire_gauge}'. Available gauges: {', '.join(self.available_gauges)}."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unknown Wire Gauge",
            details=str(self),
            suggestion="Select one of the listed gauges, or supply an explicit 'resistance' value.",
            context={'parameter': 'wire_gauge', 'user_input': self.wire_gauge}
        )


@dataclass()
class InvalidParameterError(ParameterError):
    """Raised when a parsed parameter set violates one of its invariants (e.g. zero resistance)."""
    parameter: str
    value: Any
    details: str

    def __str__(self):
        return f"Invalid value {self.value!r} for parameter '{self.parameter}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Circuit Parameter",
            details=self.details,
            suggestion="Correct the parameter value. Wire resistance must be positive and the system voltage must exceed the minimum voltage.",
            context={'parameter': self.parameter, 'user_input': str(self.value)}
        )
