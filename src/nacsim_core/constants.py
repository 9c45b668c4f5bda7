# --- src/nacsim_core/constants.py ---
import logging
from typing import Dict

logger = logging.getLogger(__name__)

# --- Wire Data ---

#: Copper conductor resistance in ohms per 1000 ft, keyed by gauge label.
WIRE_RESISTANCE_TABLE: Dict[str, float] = {
    "18 AWG": 6.385,
    "16 AWG": 4.016,
    "14 AWG": 2.525,
    "12 AWG": 1.588,
    "10 AWG": 0.999,
    "8 AWG": 0.628,
}

#: Number of conductors carrying the loop current (out and back).
CONDUCTOR_COUNT: float = 2.0

#: Resistance tables are quoted per this many distance units.
RESISTANCE_LENGTH_BASIS: float = 1000.0

# --- Default Circuit Parameters ---

DEFAULT_SYSTEM_VOLTAGE: float = 29.0  # V
DEFAULT_MIN_VOLTAGE: float = 16.0  # V
DEFAULT_MAX_LOAD: float = 3.0  # A
DEFAULT_SAFETY_PERCENT: float = 0.20  # fraction of max load held in reserve
DEFAULT_WIRE_GAUGE: str = "16 AWG"
DEFAULT_SUPPLY_DISTANCE: float = 50.0  # ft
DEFAULT_ROUTING_OVERHEAD: float = 1.15

# --- Parameter Presets ---

#: Preset name -> (system voltage, minimum device voltage) in V.
DEFAULT_VOLTAGE_PRESETS = {
    "Standard 29V": (29.0, 16.0),
    "Nominal 24V": (24.0, 16.0),
    "Battery End Of Life": (20.4, 16.0),
}

#: Preset name -> (maximum load in A, safety reserve fraction).
DEFAULT_LOAD_PRESETS = {
    "Standard 3A": (3.0, 0.20),
    "Booster 8A": (8.0, 0.20),
    "Conservative 2A": (2.0, 0.25),
}

# --- Default Validation Thresholds ---

DEFAULT_MAX_VOLTAGE_DROP_PERCENT: float = 10.0
DEFAULT_MAX_CIRCUIT_LENGTH: float = 3000.0  # ft

# --- Device Attribute Defaults ---

DEFAULT_DEVICE_TYPE: str = "Fire Alarm Device"
DEFAULT_CURRENT_STR: str = "0"
ROOT_NODE_NAME: str = "FIRE ALARM PANEL"
ROOT_DEVICE_TYPE: str = "Panel"

# --- Report Labels ---

STATUS_OK: str = "OK"
STATUS_LOW_VOLTAGE: str = "LOW VOLTAGE"
LOCATION_MAIN: str = "Main"
LOCATION_BRANCH: str = "T-Tap"
LOCATION_SEPARATOR: str = " → "
ROOT_LOCATION: str = "Source"

logger.debug("Defined core constants: WIRE_RESISTANCE_TABLE and report defaults.")
