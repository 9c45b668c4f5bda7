# src/nacsim_core/settings.py
"""
Project-wide defaults for circuit parameters, the wire resistance table,
validation thresholds and export behavior, optionally overridden from a YAML
settings file.
"""
import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import cerberus
import yaml

from . import constants
from .errors import ConfigurationError, format_diagnostic_report
from .parameters import CircuitParameters

logger = logging.getLogger(__name__)


class SettingsError(ConfigurationError):
    """Raised when a settings file cannot be read or does not match the settings schema."""
    def __init__(self, details: str, file_path: Optional[Path] = None):
        self.details = details
        self.file_path = file_path
        super().__init__(f"Settings error in '{file_path}': {details}" if file_path else details)

    def get_diagnostic_report(self) -> str:
        error_type = "Settings File Error"
        if self.file_path is None:
            error_type = "Unknown Parameter Preset"
            suggestion = "Choose one of the listed presets, or define it under 'voltage_presets' or 'load_presets' in a settings file."
        else:
            suggestion = "Fix the settings file so it only uses the keys 'default_parameters', 'wire_resistance', 'voltage_presets', 'load_presets', 'validation' and 'export'."
        return format_diagnostic_report(
            error_type=error_type,
            details=self.details,
            suggestion=suggestion,
            context={'source_file': self.file_path}
        )


def _default_parameters() -> Dict[str, Any]:
    return {
        "system_voltage": constants.DEFAULT_SYSTEM_VOLTAGE,
        "min_voltage": constants.DEFAULT_MIN_VOLTAGE,
        "max_load": constants.DEFAULT_MAX_LOAD,
        "safety_percent": constants.DEFAULT_SAFETY_PERCENT,
        "wire_gauge": constants.DEFAULT_WIRE_GAUGE,
        "supply_distance": constants.DEFAULT_SUPPLY_DISTANCE,
        "routing_overhead": constants.DEFAULT_ROUTING_OVERHEAD,
    }


@dataclass
class Settings:
    """Centralised configuration values for a report run."""

    # Raw parameter values used when a circuit file leaves a parameter out.
    # Values go through the same unit parsing as circuit-file parameters.
    default_parameters: Dict[str, Any] = field(default_factory=_default_parameters)

    # Gauge label -> ohms per 1000 ft.
    wire_resistance: Dict[str, float] = field(default_factory=lambda: dict(constants.WIRE_RESISTANCE_TABLE))

    # Named (system_voltage, min_voltage) and (max_load, safety_percent) pairs.
    voltage_presets: Dict[str, Tuple[float, float]] = field(default_factory=lambda: dict(constants.DEFAULT_VOLTAGE_PRESETS))
    load_presets: Dict[str, Tuple[float, float]] = field(default_factory=lambda: dict(constants.DEFAULT_LOAD_PRESETS))

    max_voltage_drop_percent: float = constants.DEFAULT_MAX_VOLTAGE_DROP_PERCENT
    max_circuit_length: float = constants.DEFAULT_MAX_CIRCUIT_LENGTH

    export_directory: Path = field(default_factory=lambda: Path("exports"))
    project_name: str = "Circuit"
    project_path: Optional[str] = None

    def apply_presets(
        self,
        parameters: CircuitParameters,
        voltage_preset: Optional[str] = None,
        load_preset: Optional[str] = None,
    ) -> CircuitParameters:
        """
        Returns `parameters` with the named presets applied. A voltage preset sets
        the system and minimum voltages; a load preset sets the maximum load and
        the safety reserve.
        """
        changes: Dict[str, float] = {}
        if voltage_preset is not None:
            system_voltage, min_voltage = self._preset(self.voltage_presets, voltage_preset, "voltage")
            changes.update(system_voltage=system_voltage, min_voltage=min_voltage)
        if load_preset is not None:
            max_load, safety_percent = self._preset(self.load_presets, load_preset, "load")
            changes.update(max_load=max_load, safety_percent=safety_percent)
        if not changes:
            return parameters
        logger.info(f"Applying parameter presets: {changes}")
        return dataclasses.replace(parameters, **changes)

    @staticmethod
    def _preset(table: Dict[str, Tuple[float, float]], name: str, kind: str) -> Tuple[float, float]:
        if name not in table:
            raise SettingsError(f"Unknown {kind} preset '{name}'. Available presets: {sorted(table)}")
        return table[name]


_number = {"type": "number"}
_param_value = {"type": ["string", "number"]}

SETTINGS_SCHEMA = {
    "default_parameters": {
        "type": "dict",
        "required": False,
        "schema": {
            "system_voltage": _param_value,
            "min_voltage": _param_value,
            "max_load": _param_value,
            "safety_percent": _param_value,
            "wire_gauge": {"type": "string", "empty": False},
            "supply_distance": _param_value,
            "routing_overhead": _param_value,
            "resistance": _param_value,
        },
    },
    "wire_resistance": {
        "type": "dict",
        "required": False,
        "keysrules": {"type": "string", "empty": False},
        "valuesrules": {"type": "number", "min": 0},
    },
    "voltage_presets": {
        "type": "dict",
        "required": False,
        "keysrules": {"type": "string", "empty": False},
        "valuesrules": {
            "type": "dict",
            "schema": {
                "system_voltage": dict(_number, required=True, min=0),
                "min_voltage": dict(_number, required=True, min=0),
            },
        },
    },
    "load_presets": {
        "type": "dict",
        "required": False,
        "keysrules": {"type": "string", "empty": False},
        "valuesrules": {
            "type": "dict",
            "schema": {
                "max_load": dict(_number, required=True, min=0),
                "safety_percent": dict(_number, required=True, min=0, max=0.99),
            },
        },
    },
    "validation": {
        "type": "dict",
        "required": False,
        "schema": {
            "max_voltage_drop_percent": dict(_number, min=0),
            "max_circuit_length": dict(_number, min=0),
        },
    },
    "export": {
        "type": "dict",
        "required": False,
        "schema": {
            "directory": {"type": "string", "empty": False},
            "project_name": {"type": "string", "empty": False},
            "project_path": {"type": "string"},
        },
    },
}


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Loads settings from a YAML file, layering its values over the built-in defaults.
    With no path, the built-in defaults are returned unchanged.
    """
    settings = Settings()
    if path is None:
        return settings

    source = Path(path).resolve()
    if not source.is_file():
        raise SettingsError(f"Settings file not found at path: {source}", source)
    try:
        with source.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except PermissionError as e:
        raise SettingsError(f"Permission denied when trying to read file: {e}", source) from e
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML syntax: {e}", source) from e

    if content is None:
        logger.warning(f"Settings file '{source}' is empty; using built-in defaults.")
        return settings
    if not isinstance(content, dict):
        raise SettingsError("The root of the settings file must be a dictionary (mapping).", source)

    validator = cerberus.Validator(SETTINGS_SCHEMA)
    validator.allow_unknown = False
    if not validator.validate(content):
        error_lines = "; ".join(f"{k}: {v}" for k, v in sorted(validator.errors.items()))
        raise SettingsError(f"Schema validation failed: {error_lines}", source)
    document = validator.document

    settings.default_parameters.update(document.get("default_parameters", {}))
    if "wire_resistance" in document:
        settings.wire_resistance = {str(k): float(v) for k, v in document["wire_resistance"].items()}
    for name, preset in document.get("voltage_presets", {}).items():
        settings.voltage_presets[str(name)] = (float(preset["system_voltage"]), float(preset["min_voltage"]))
    for name, preset in document.get("load_presets", {}).items():
        settings.load_presets[str(name)] = (float(preset["max_load"]), float(preset["safety_percent"]))

    validation = document.get("validation", {})
    settings.max_voltage_drop_percent = float(validation.get("max_voltage_drop_percent", settings.max_voltage_drop_percent))
    settings.max_circuit_length = float(validation.get("max_circuit_length", settings.max_circuit_length))

    export = document.get("export", {})
    if "directory" in export:
        settings.export_directory = Path(export["directory"])
    settings.project_name = export.get("project_name", settings.project_name)
    settings.project_path = export.get("project_path", settings.project_path)

    logger.info(f"Loaded settings from '{source}'.")
    return settings
