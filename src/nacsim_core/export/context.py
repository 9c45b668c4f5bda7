# src/nacsim_core/export/context.py
import getpass
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..analysis import CircuitReport, DeviceRecord, EvaluationResults
from ..data_structures import CircuitTree
from ..parameters import CircuitParameters
from ..settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportContext:
    """
    Everything an emitter may read: one evaluation and the views derived from it.
    Every format of one export run is written from the same context.
    """
    tree: CircuitTree
    parameters: CircuitParameters
    results: EvaluationResults
    records: List[DeviceRecord]
    report: CircuitReport
    settings: Settings
    project_name: str
    project_path: Optional[str]
    exported_at: datetime
    exported_by: str

    @property
    def circuit_name(self) -> str:
        return self.tree.name

    def metadata(self) -> Dict[str, Any]:
        return {
            "export_date": self.exported_at.isoformat(timespec="seconds"),
            "project_name": self.project_name,
            "project_path": self.project_path,
            "exported_by": self.exported_by,
            "circuit_name": self.circuit_name,
        }


def current_user() -> str:
    """Login name of the exporting user, or 'unknown' where the platform has none."""
    try:
        return getpass.getuser()
    except (KeyError, OSError) as e:
        logger.debug(f"Could not determine the current user: {e}")
        return "unknown"


def finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None
