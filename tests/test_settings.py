# tests/test_settings.py
import pytest

from nacsim_core import ConfigurationError, constants
from nacsim_core.settings import Settings, SettingsError, load_settings


def test_defaults_without_a_file():
    settings = load_settings(None)
    assert settings.default_parameters["system_voltage"] == constants.DEFAULT_SYSTEM_VOLTAGE
    assert settings.wire_resistance == constants.WIRE_RESISTANCE_TABLE
    assert settings.max_voltage_drop_percent == constants.DEFAULT_MAX_VOLTAGE_DROP_PERCENT


def test_settings_do_not_share_mutable_defaults():
    a, b = Settings(), Settings()
    a.default_parameters["system_voltage"] = 12
    a.wire_resistance["18 AWG"] = 1.0
    assert b.default_parameters["system_voltage"] == constants.DEFAULT_SYSTEM_VOLTAGE
    assert constants.WIRE_RESISTANCE_TABLE["18 AWG"] == 6.385


def test_file_values_layer_over_defaults(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("""
default_parameters:
  system_voltage: 24 V
  wire_gauge: 12 AWG
wire_resistance:
  12 AWG: 1.6
  14 AWG: 2.5
validation:
  max_voltage_drop_percent: 5
  max_circuit_length: 1500
export:
  directory: out
  project_name: Tower B
""")
    settings = load_settings(path)
    assert settings.default_parameters["system_voltage"] == "24 V"
    assert settings.default_parameters["min_voltage"] == constants.DEFAULT_MIN_VOLTAGE
    assert settings.wire_resistance == {"12 AWG": 1.6, "14 AWG": 2.5}
    assert settings.max_voltage_drop_percent == 5.0
    assert settings.max_circuit_length == 1500.0
    assert settings.export_directory.name == "out"
    assert settings.project_name == "Tower B"


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_settings(path).project_name == "Circuit"


@pytest.mark.parametrize("content", [
    "unknown_section: {a: 1}",
    "validation: {max_voltage_drop_percent: -1}",
    "default_parameters: {colour: red}",
    "- just\n- a list\n",
    "validation: [unclosed",
    "voltage_presets: {Low: {system_voltage: 20}}",
    "load_presets: {Big: {max_load: 4, safety_percent: 1.5}}",
])
def test_bad_settings_files(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content)
    with pytest.raises(SettingsError) as exc_info:
        load_settings(path)
    assert isinstance(exc_info.value, ConfigurationError)
    assert "Settings File Error" in exc_info.value.get_diagnostic_report()


def test_missing_settings_file(tmp_path):
    with pytest.raises(SettingsError, match="not found"):
        load_settings(tmp_path / "nope.yaml")


class TestPresets:
    def test_voltage_preset_sets_both_voltages(self, params):
        updated = Settings().apply_presets(params, voltage_preset="Battery End Of Life")
        assert (updated.system_voltage, updated.min_voltage) == (20.4, 16.0)
        assert updated.max_load == params.max_load
        assert updated.resistance == params.resistance

    def test_load_preset_sets_load_and_reserve(self, params):
        updated = Settings().apply_presets(params, load_preset="Conservative 2A")
        assert updated.max_load == 2.0
        assert updated.usable_load == pytest.approx(1.5)
        assert updated.system_voltage == params.system_voltage

    def test_no_presets_returns_the_same_parameters(self, params):
        assert Settings().apply_presets(params) is params

    def test_unknown_preset(self, params):
        with pytest.raises(SettingsError) as exc_info:
            Settings().apply_presets(params, voltage_preset="48V")
        assert isinstance(exc_info.value, ConfigurationError)
        report = exc_info.value.get_diagnostic_report()
        assert "Unknown Parameter Preset" in report
        assert "Nominal 24V" in report

    def test_presets_from_a_settings_file(self, tmp_path, params):
        path = tmp_path / "settings.yaml"
        path.write_text("""
voltage_presets:
  Site 26V: {system_voltage: 26, min_voltage: 17}
load_presets:
  Site 4A: {max_load: 4, safety_percent: 0.1}
""")
        settings = load_settings(path)
        assert "Nominal 24V" in settings.voltage_presets
        updated = settings.apply_presets(params, "Site 26V", "Site 4A")
        assert (updated.system_voltage, updated.min_voltage) == (26.0, 17.0)
        assert updated.usable_load == pytest.approx(3.6)
        assert constants.DEFAULT_VOLTAGE_PRESETS.keys() == Settings().voltage_presets.keys()
