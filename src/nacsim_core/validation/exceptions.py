# src/nacsim_core/validation/exceptions.py
"""
Defines the diagnosable exception raised when a circuit tree is malformed.

A malformed tree (an unknown parent, a parent cycle, a device with more than one
main continuation) is a configuration problem: it is reported before any device
is evaluated and no output is produced.
"""
from typing import List

from .issues import ValidationIssue, ValidationIssueLevel
from ..errors import ConfigurationError, format_diagnostic_report


class TopologyValidationError(ConfigurationError):
    """
    Raised when topology validation finds one or more error-level issues.

    Only the ERROR issues of the list given to the constructor are kept; warnings
    travel with the circuit report instead.
    """
    def __init__(self, issues: List[ValidationIssue], circuit_name: str = "Circuit"):
        self.circuit_name = circuit_name
        self.issues: List[ValidationIssue] = [
            issue for issue in issues if issue.level == ValidationIssueLevel.ERROR
        ]
        if not self.issues:
            summary_message = "TopologyValidationError was raised with no error-level issues."
        else:
            summary_message = (
                f"Topology validation of '{circuit_name}' failed with {len(self.issues)} error(s):\n"
                + "\n".join(f"  - {issue}" for issue in self.issues)
            )
        super().__init__(summary_message)

    def get_diagnostic_report(self) -> str:
        details = (
            f"The device tree of circuit '{self.circuit_name}' is malformed.\n"
            f"Found {len(self.issues)} error(s). See details below:\n\n"
            + "\n".join(f"  - {issue}" for issue in self.issues)
        )
        context = {}
        if self.issues and self.issues[0].device_name:
            context['device'] = self.issues[0].device_name

        return format_diagnostic_report(
            error_type="Circuit Topology Error",
            details=details,
            suggestion="Give every device an existing parent, break any parent cycles, and mark all but one child of each device as a branch (T-tap).",
            context=context
        )
