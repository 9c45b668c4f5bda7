# src/nacsim_core/parameters/parameters.py

"""
Defines `CircuitParameters`, the immutable parameter set consumed by every
calculation of a report run.

Raw values coming from a circuit file or the settings defaults are parsed with
`pint` so that users may write either bare numbers in the default units
(V, A, ft, ohm per 1000 ft) or explicit unit strings such as '75 mA' or '15 m'.
All invariants are checked when the object is constructed: an invalid parameter
set can never reach the evaluator.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional

from .. import constants
from ..units import to_magnitude
from .exceptions import (
    InvalidParameterError,
    ParameterDefinitionError,
    UnknownWireGaugeError,
)

logger = logging.getLogger(__name__)


#: Parameter name -> unit kind used by `to_magnitude`.
PARAMETER_KINDS: Dict[str, str] = {
    "system_voltage": "voltage",
    "min_voltage": "voltage",
    "max_load": "current",
    "safety_percent": "dimensionless",
    "supply_distance": "length",
    "routing_overhead": "dimensionless",
    "resistance": "resistance_per_length",
}

#: Spreadsheet defined name -> CircuitParameters attribute. Every live formula
#: refers to the parameter block through these names only.
NAMED_CONSTANTS: Dict[str, str] = {
    "systemVoltage": "system_voltage",
    "minVoltage": "min_voltage",
    "wireResistance": "resistance",
    "supplyDistance": "supply_distance",
    "routingOverhead": "routing_overhead",
    "safetyPercent": "safety_percent",
    "maxLoad": "max_load",
}


@dataclass(frozen=True)
class CircuitParameters:
    """
    The explicit contract object holding one report run's parameter set.

    `resistance` may be left as None, in which case it is looked up from
    `wire_gauge` in `resistance_table` (ohms per 1000 distance units).
    """
    system_voltage: float = constants.DEFAULT_SYSTEM_VOLTAGE
    min_voltage: float = constants.DEFAULT_MIN_VOLTAGE
    wire_gauge: str = constants.DEFAULT_WIRE_GAUGE
    resistance: Optional[float] = None
    supply_distance: float = constants.DEFAULT_SUPPLY_DISTANCE
    routing_overhead: float = constants.DEFAULT_ROUTING_OVERHEAD
    safety_percent: float = constants.DEFAULT_SAFETY_PERCENT
    max_load: float = constants.DEFAULT_MAX_LOAD

    def __post_init__(self):
        if self.resistance is None:
            object.__setattr__(self, "resistance", lookup_wire_resistance(self.wire_gauge))
        self._check_invariants()

    def _check_invariants(self):
        for name in ("system_voltage", "min_voltage", "resistance", "supply_distance",
                     "routing_overhead", "safety_percent", "max_load"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
                raise InvalidParameterError(name, value, "The value must be a finite number.")

        if not self.resistance > 0:
            raise InvalidParameterError(
                "resistance", self.resistance,
                "Wire resistance must be strictly positive; a zero or negative resistance makes every voltage drop meaningless."
            )
        if self.min_voltage < 0:
            raise InvalidParameterError("min_voltage", self.min_voltage, "The minimum voltage cannot be negative.")
        if not self.system_voltage > self.min_voltage:
            raise InvalidParameterError(
                "system_voltage", self.system_voltage,
                f"The system voltage must be greater than the minimum voltage ({self.min_voltage} V)."
            )
        if self.routing_overhead < 1.0:
            raise InvalidParameterError(
                "routing_overhead", self.routing_overhead,
                "The routing overhead is a multiplier on straight-line distances and must be at least 1.0."
            )
        if not 0.0 <= self.safety_percent < 1.0:
            raise InvalidParameterError(
                "safety_percent", self.safety_percent,
                "The safety reserve is a fraction of the maximum load and must lie in [0, 1)."
            )
        if self.max_load < 0:
            raise InvalidParameterError("max_load", self.max_load, "The maximum load cannot be negative.")

    @property
    def usable_load(self) -> float:
        """Load available to devices once the safety reserve is held back."""
        return self.max_load * (1.0 - self.safety_percent)

    @classmethod
    def from_raw(
        cls,
        raw: Optional[Mapping[str, Any]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        resistance_table: Optional[Mapping[str, float]] = None,
    ) -> "CircuitParameters":
        """
        Builds a parameter set from raw user values layered over `defaults`.

        Args:
            raw: Values from a circuit file; each may be a number or a unit string.
            defaults: Fallback raw values (typically `Settings.default_parameters`).
            resistance_table: Gauge table used when no explicit resistance is given.
        """
        merged: Dict[str, Any] = dict(defaults or {})
        merged.update(raw or {})

        kwargs: Dict[str, Any] = {}
        for name, kind in PARAMETER_KINDS.items():
            if name not in merged or merged[name] is None:
                continue
            try:
                kwargs[name] = to_magnitude(merged[name], kind)
            except ValueError as e:
                raise ParameterDefinitionError(name, merged[name], str(e)) from e

        if "wire_gauge" in merged:
            kwargs["wire_gauge"] = str(merged["wire_gauge"]).strip()

        # An explicit resistance always wins over the gauge table.
        if "resistance" not in kwargs:
            gauge = kwargs.get("wire_gauge", constants.DEFAULT_WIRE_GAUGE)
            kwargs["resistance"] = lookup_wire_resistance(gauge, resistance_table)

        params = cls(**kwargs)
        logger.debug(f"Resolved circuit parameters: {params.to_dict()}")
        return params

    def named_constants(self) -> Dict[str, float]:
        """Returns the spreadsheet defined-name -> value mapping for this parameter set."""
        return {name: getattr(self, attr) for name, attr in NAMED_CONSTANTS.items()}

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["usable_load"] = self.usable_load
        return data


def lookup_wire_resistance(wire_gauge: str, table: Optional[Mapping[str, float]] = None) -> float:
    """Looks up the resistance (ohms per 1000 ft) of a gauge label."""
    table = constants.WIRE_RESISTANCE_TABLE if table is None else table
    key = str(wire_gauge).strip()
    if key not in table:
        # Accept '16awg' or '16' as shorthand for '16 AWG'.
        normalized = key.upper().replace("AWG", "").strip()
        key = f"{normalized} AWG"
        if key not in table:
            raise UnknownWireGaugeError(str(wire_gauge), list(table.keys()))
    return float(table[key])
