# src/nacsim_core/errors.py
import logging
from typing import Any, Dict, Protocol, abstractmethod
from typing import runtime_checkable

logger = logging.getLogger(__name__)


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """
    A protocol for exceptions that can generate their own rich diagnostic report.
    Any code can work with a "diagnosable" object without knowing its concrete type.
    """
    def get_diagnostic_report(self) -> str:
        """Generates a complete, user-friendly, multi-line report string."""
        ...


class DiagnosableError(Exception, Diagnosable):
    """
    A common, concrete base class for all exceptions that are diagnosable.

    It inherits from `Exception`, so it can be used in `except` clauses, and
    declares `get_diagnostic_report` abstract so every subclass has to provide
    its own user-facing report.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        """
        Abstract method to generate the diagnostic report.
        Subclasses MUST implement this.
        """
        raise NotImplementedError


# --- User-Facing Exception Hierarchy ---

class NacSimError(Exception):
    """Base class for all custom, user-facing errors in NACSim Core."""
    pass


class ConfigurationError(NacSimError, DiagnosableError):
    """
    Raised when the inputs of a report run are unusable: an invalid parameter set,
    a malformed circuit tree, an unreadable circuit or settings file, or an
    unsupported export format. Nothing is evaluated or emitted once this is raised.
    """
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Configuration Error",
            details=str(self),
            suggestion="Review the circuit parameters and the circuit definition.",
            context={}
        )


class CircuitBuildError(ConfigurationError):
    """
    Raised when the circuit construction process fails for any reason, from parsing
    to parameter resolution. The message is a pre-formatted, user-friendly diagnostic report.
    """
    def get_diagnostic_report(self) -> str:
        return str(self)


class EmissionError(NacSimError, DiagnosableError):
    """
    Raised by a single output emitter when writing its document fails.
    The evaluated circuit is unaffected and stays usable by every other emitter.
    """
    def __init__(self, export_format: str, details: str, file_path: Any = None):
        self.export_format = export_format
        self.details = details
        self.file_path = file_path
        super().__init__(f"{export_format} export failed: {details}")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type=f"Export Failure ({self.export_format})",
            details=self.details,
            suggestion="Check that the output directory is writable and try another export format if the problem persists.",
            context={'source_file': self.file_path}
        )


class FrameworkLogicError(NacSimError):
    """Raised when an internal invariant of the traversal or evaluation is broken. Indicates a bug."""
    pass


# --- Stateless Formatting Utility ---

def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    A stateless helper to format the final multi-line report string, ensuring a
    consistent look and feel for all user-facing diagnostics.

    Args:
        error_type: The high-level category of the error (e.g., "Invalid Parameter").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Actionable advice for the user to resolve the issue.
        context: A dictionary of contextual information (device, file path, user input, etc.).

    Returns:
        A formatted, user-friendly diagnostic report string ready for display.
    """
    lines = [
        "\n",
        "================ NACSim Core: Actionable Diagnostic Report ================",
        f"Error Type:     {error_type}",
    ]
    if device := context.get('device'):
        lines.append(f"Device:         {device}")
    if parameter := context.get('parameter'):
        lines.append(f"Parameter:      {parameter}")
    if source_file := context.get('source_file'):
        lines.append(f"Source File:    {source_file}")
    if user_input := context.get('user_input'):
        lines.append(f"User Input:     '{user_input}'")

    lines.append("\nDetails:")
    for line in details.splitlines():
        lines.append(f"  {line}")

    if suggestion:
        lines.append("\nSuggestion:")
        for line in suggestion.splitlines():
            lines.append(f"  {line}")

    lines.append("=========================================================================")
    return "\n".join(lines)
