# --- src/nacsim_core/units.py ---
import pint
import logging
from typing import Union

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.debug("Pint Unit Registry initialized.")


# Wire resistance tables are quoted per 1000 ft.
ureg.define("kilofoot = 1000 * foot = kft")

# --- Canonical dimensionality objects for explicit checks ---
VOLTAGE_DIMENSIONALITY = ureg.parse_expression('volt').dimensionality
CURRENT_DIMENSIONALITY = ureg.parse_expression('ampere').dimensionality
LENGTH_DIMENSIONALITY = ureg.parse_expression('foot').dimensionality
RESISTANCE_PER_LENGTH_DIMENSIONALITY = ureg.parse_expression('ohm / kft').dimensionality

#: Units used when a value is given as a bare number. Every computation in the
#: package runs on magnitudes in these units.
DEFAULT_UNITS = {
    "voltage": "volt",
    "current": "ampere",
    "length": "foot",
    "resistance_per_length": "ohm / kft",
    "dimensionless": "dimensionless",
}


def to_magnitude(raw: Union[str, int, float], kind: str) -> float:
    """
    Converts a raw user value (a bare number or a unit string such as '75 mA')
    into a float magnitude expressed in the default unit of `kind`.

    Raises:
        ValueError: if the value cannot be parsed or has the wrong dimension.
    """
    target_unit = DEFAULT_UNITS[kind]
    if isinstance(raw, bool):
        raise ValueError(f"Boolean value '{raw}' is not a valid {kind}.")
    if isinstance(raw, (int, float)):
        return float(raw)

    text = str(raw).strip()
    if not text:
        raise ValueError(f"Empty string is not a valid {kind}.")
    try:
        qty = ureg.Quantity(text)
    except (pint.errors.PintError, SyntaxError, ValueError, TypeError, AttributeError) as e:
        raise ValueError(f"Cannot interpret '{text}' as a {kind}: {e}") from e

    if qty.dimensionless:
        # A bare number inside a string, e.g. "0.132".
        return float(qty.to("dimensionless").magnitude)
    try:
        return float(qty.to(target_unit).magnitude)
    except pint.DimensionalityError as e:
        raise ValueError(
            f"Value '{text}' has dimensionality '{qty.dimensionality}', which is not compatible with {target_unit}."
        ) from e
