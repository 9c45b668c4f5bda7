# tests/test_units.py
import pytest

from nacsim_core.units import DEFAULT_UNITS, to_magnitude


@pytest.mark.parametrize("raw, kind, expected", [
    (24, "voltage", 24.0),
    ("24 V", "voltage", 24.0),
    ("116 mA", "current", 0.116),
    ("0.132", "current", 0.132),
    ("15 m", "length", 49.2126),
    ("1.5 kft", "length", 1500.0),
    ("4.016 ohm/kft", "resistance_per_length", 4.016),
    ("1.25", "dimensionless", 1.25),
])
def test_to_magnitude_converts_to_default_units(raw, kind, expected):
    assert to_magnitude(raw, kind) == pytest.approx(expected, rel=1e-4)


@pytest.mark.parametrize("raw, kind", [
    ("5 A", "voltage"),
    ("", "length"),
    ("   ", "current"),
    ("not a number", "current"),
    (True, "current"),
])
def test_to_magnitude_rejects_bad_values(raw, kind):
    with pytest.raises(ValueError):
        to_magnitude(raw, kind)


def test_every_kind_has_a_default_unit():
    assert set(DEFAULT_UNITS) == {"voltage", "current", "length", "resistance_per_length", "dimensionless"}
