# src/nacsim_core/parser/exceptions.py
"""
Diagnosable exceptions of the circuit file parsing stage.

`ParsingError` covers files that cannot be read or are not valid YAML;
`SchemaValidationError` covers valid YAML that does not have the structure of a
circuit definition. Both are configuration errors: nothing is built from a file
that fails here.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from ..errors import ConfigurationError, format_diagnostic_report


class BaseParsingError(ConfigurationError):
    """Common base of all circuit file parsing errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the circuit definition file.",
            context={}
        )


@dataclass()
class ParsingError(BaseParsingError):
    """Raised when a circuit file is missing, unreadable, empty or not valid YAML."""
    details: str
    file_path: Path

    def __str__(self):
        return f"Parsing error in file '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="YAML Parsing or File Error",
            details=self.details,
            suggestion="Ensure the file exists, has the correct read permissions, and contains valid YAML syntax.",
            context={'source_file': self.file_path}
        )


@dataclass()
class SchemaValidationError(BaseParsingError):
    """
    Raised when the YAML is well formed but does not match the circuit file
    schema (missing 'devices', bad identifiers, duplicate device ids, ...).
    """
    errors: Dict[str, Any]
    file_path: Path

    def _error_lines(self):
        return [f"  - Field '{k}': {v[0] if isinstance(v, list) and v else v}" for k, v in sorted(self.errors.items())]

    def __str__(self):
        return f"YAML schema validation failed for file '{self.file_path}':\n" + "\n".join(self._error_lines())

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the YAML file does not conform to the circuit file schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n" + "\n".join(self._error_lines())
        )
        return format_diagnostic_report(
            error_type="YAML Schema Validation Error",
            details=details,
            suggestion="Correct the listed fields. Every device needs a unique 'id'; 'parent' must name another device or be omitted for devices fed directly from the panel.",
            context={'source_file': self.file_path}
        )


@dataclass()
class DeviceDefinitionError(BaseParsingError):
    """Raised when a device attribute or distance cannot be interpreted."""
    device_id: str
    attribute: str
    user_input: Any
    details: str

    def __str__(self):
        return f"Device '{self.device_id}', attribute '{self.attribute}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Device Definition",
            details=self.details,
            suggestion="Give currents as amps ('0.116' or '116 mA') and distances as feet ('50' or '15 m').",
            context={'device': self.device_id, 'parameter': self.attribute, 'user_input': str(self.user_input)}
        )
