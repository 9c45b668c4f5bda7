# src/nacsim_core/validation/issues.py
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class ValidationIssueLevel(Enum):
    """Severity level of a validation issue."""
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"

    def __str__(self):
        return self.value


@dataclass
class ValidationIssue:
    """
    A single finding about a circuit: a malformed topology, a suspicious value,
    or a failed design check of the evaluated circuit.

    `message` is the plain sentence shown to users in reports; `__str__` adds the
    level, code and device for logs.
    """
    level: ValidationIssueLevel
    code: str
    message: str
    device_name: Optional[str] = None
    path_label: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.level is ValidationIssueLevel.ERROR

    def __str__(self) -> str:
        parts = [f"[{self.level.name} - {self.code}]"]
        if self.path_label:
            parts.append(f"Location: {self.path_label}")
        elif self.device_name:
            parts.append(f"Device: {self.device_name}")
        parts.append(f"Message: {self.message}")

        if self.details:
            filtered_details = {
                k: v for k, v in self.details.items()
                if k not in ('device', 'path_label')
            }
            if filtered_details:
                details_str = ", ".join(f"{k}={v}" for k, v in sorted(filtered_details.items()))
                parts.append(f"Details: ({details_str})")

        return " ".join(parts)
