# src/nacsim_core/validation/__init__.py
import logging
logger = logging.getLogger(__name__)

from .issues import ValidationIssue, ValidationIssueLevel
from .issue_codes import CircuitIssueCode
from .topology_validator import TopologyValidator, check_tree_structure
from .exceptions import TopologyValidationError

__all__ = [
    "ValidationIssue",
    "ValidationIssueLevel",
    "CircuitIssueCode",
    "TopologyValidator",
    "check_tree_structure",
    "TopologyValidationError",
]
