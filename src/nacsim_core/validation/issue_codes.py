# src/nacsim_core/validation/issue_codes.py
import logging
from enum import Enum

from .issues import ValidationIssueLevel

logger = logging.getLogger(__name__)


class CircuitIssueCode(Enum):
    """
    Registry of circuit issue codes, their default severity and message templates.
    Each enum member's value is a tuple: (code_str, level, message_template_str).
    """

    # --- Tree structure (TOPO_...) ---
    TOPO_MULTI_MAIN = ("TOPO_MULTI_MAIN", ValidationIssueLevel.ERROR, "Device '{device}' has {count} main continuations ({children}); a device may continue the run through at most one non-branch child.")
    TOPO_UNKNOWN_PARENT = ("TOPO_UNKNOWN_PARENT", ValidationIssueLevel.ERROR, "Device '{device}' refers to unknown parent '{parent}'.")
    TOPO_SELF_PARENT = ("TOPO_SELF_PARENT", ValidationIssueLevel.ERROR, "Device '{device}' names itself as its parent.")
    TOPO_CYCLE = ("TOPO_CYCLE", ValidationIssueLevel.ERROR, "Devices {devices} form a parent cycle and are not connected to the panel.")

    # --- Suspicious device values (DEV_...) ---
    DEV_NEG_DISTANCE = ("DEV_NEG_DISTANCE", ValidationIssueLevel.WARNING, "Device '{device}' has a negative distance from its parent ({distance} ft).")
    DEV_NEG_CURRENT = ("DEV_NEG_CURRENT", ValidationIssueLevel.WARNING, "Device '{device}' has a negative {condition} current ({current} A).")
    DEV_ZERO_CURRENT = ("DEV_ZERO_CURRENT", ValidationIssueLevel.INFO, "Device '{device}' draws no alarm current.")

    # --- Design checks on the evaluated circuit (CHK_...) ---
    CHK_LOAD_MAX = ("CHK_LOAD_MAX", ValidationIssueLevel.ERROR, "Total load ({total_load:.3f}A) exceeds maximum ({max_load:.3f}A)")
    CHK_LOAD_USABLE = ("CHK_LOAD_USABLE", ValidationIssueLevel.ERROR, "Total load ({total_load:.3f}A) exceeds usable load ({usable_load:.3f}A) with {safety:.0f}% safety margin")
    CHK_VOLT_MAIN = ("CHK_VOLT_MAIN", ValidationIssueLevel.ERROR, "Device '{device}' voltage ({voltage:.1f}V) below minimum ({min_voltage:.1f}V)")
    CHK_VOLT_BRANCH = ("CHK_VOLT_BRANCH", ValidationIssueLevel.ERROR, "Branch device '{device}' voltage ({voltage:.1f}V) below minimum ({min_voltage:.1f}V)")
    CHK_LENGTH_LOAD = ("CHK_LENGTH_LOAD", ValidationIssueLevel.ERROR, "Total wire length ({total_length:.0f}ft) exceeds maximum ({max_length:.0f}ft) for the circuit load")
    CHK_LENGTH_LIMIT = ("CHK_LENGTH_LIMIT", ValidationIssueLevel.WARNING, "Total wire length ({total_length:.0f}ft) exceeds the configured circuit length limit ({limit:.0f}ft)")
    CHK_DROP_PERCENT = ("CHK_DROP_PERCENT", ValidationIssueLevel.WARNING, "Maximum voltage drop ({drop_percent:.1f}%) exceeds the {limit:.1f}% design limit")

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def level(self) -> ValidationIssueLevel:
        return self.value[1]

    @property
    def template(self) -> str:
        return self.value[2]

    def format_message(self, **kwargs) -> str:
        """Formats the message template with provided keyword arguments."""
        try:
            return self.template.format(**kwargs)
        except (KeyError, ValueError) as e:
            logger.error(f"Cannot format message template of {self.name} (code: {self.code}): {e}. Provided args: {kwargs}")
            return f"Error formatting message for {self.code}: {e}. Template: '{self.template}' Args: {kwargs}"
