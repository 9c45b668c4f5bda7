# src/nacsim_core/parser/raw_data.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Intermediate representation handed from the CircuitFileParser to the
# CircuitBuilder. Values are still raw (numbers or unit strings); nothing here
# has been interpreted beyond the schema check.

RawValue = Union[str, int, float]


@dataclass(frozen=True)
class ParsedDeviceData:
    """IR for one entry of the 'devices' list."""
    device_id: str
    parent_id: Optional[str]
    is_branch: bool
    raw_distance: RawValue
    raw_attributes: Dict[str, Any]
    # Index of the entry in the file; children keep this order under their parent.
    file_order: int
    source_yaml_path: Path


@dataclass(frozen=True)
class ParsedCircuitFile:
    """Top-level IR of one circuit definition file."""
    circuit_name: str
    source_yaml_path: Path
    devices: List[ParsedDeviceData]
    raw_parameters_dict: Dict[str, Any] = field(default_factory=dict)
    project_name: Optional[str] = None
    project_path: Optional[str] = None
