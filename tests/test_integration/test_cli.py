# tests/test_integration/test_cli.py
import logging

import pytest

from nacsim_core.cli import EXIT_CONFIGURATION, EXIT_FAILED, EXIT_OK, main


@pytest.fixture(autouse=True)
def restore_logging():
    """`main` reconfigures the root logger; put pytest's handlers back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _status(lines):
    return next(line.split()[-1] for line in lines if line.startswith("Status:"))


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_analyze_prints_summary_and_table(circuit_file, capsys):
    assert main(["analyze", str(circuit_file)]) == EXIT_OK
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert any(line.startswith("Circuit:") and line.endswith("NAC-1") for line in lines)
    assert _status(lines) == "PASS"
    table = out[out.index("Device Name"):]
    assert table.index("Horn Strobe 1") < table.index("Strobe T1") < table.index("Horn Strobe 2") < table.index("Speaker 3")


def test_analyze_low_voltage_circuit_fails(circuit_yaml_text, tmp_path, capsys):
    text = circuit_yaml_text.replace("min_voltage: 16", "min_voltage: 23.9")
    assert main(["analyze", _write(tmp_path, "strict.yaml", text)]) == EXIT_FAILED
    out = capsys.readouterr().out
    assert "LOW VOLTAGE" in out
    assert _status(out.splitlines()) == "FAIL"


def test_malformed_circuit_reports_diagnostics(tmp_path, capsys):
    path = _write(tmp_path, "bad.yaml", "devices:\n  - {id: d1, parent: ghost}\n")
    assert main(["analyze", path]) == EXIT_CONFIGURATION
    err = capsys.readouterr().err
    assert "Circuit Topology Error" in err
    assert "ghost" in err


def test_export_selected_formats(circuit_file, tmp_path, capsys):
    out_dir = tmp_path / "out"
    code = main(["export", str(circuit_file), "-f", "csv", "--format", "json", "-o", str(out_dir)])
    assert code == EXIT_OK
    assert sorted(p.suffix for p in out_dir.iterdir()) == [".csv", ".json"]
    assert "csv" in capsys.readouterr().out


def test_export_unsupported_format(circuit_file, tmp_path, capsys):
    code = main(["export", str(circuit_file), "-f", "docx", "-o", str(tmp_path / "out")])
    assert code == EXIT_CONFIGURATION
    assert "Unsupported Export Format" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_config_file_is_applied(circuit_yaml_text, tmp_path, capsys):
    text = circuit_yaml_text.replace("  wire_gauge: 14 AWG\n", "")
    circuit = _write(tmp_path, "nogauge.yaml", text)
    config = _write(tmp_path, "settings.yaml", "default_parameters:\n  wire_gauge: 18 AWG\nvalidation:\n  max_voltage_drop_percent: 0.1\n")
    assert main(["--config", config, "analyze", circuit]) == EXIT_OK
    out = capsys.readouterr().out
    assert "exceeds the 0.1% design limit" in out


def test_bad_config_file(circuit_file, tmp_path, capsys):
    config = _write(tmp_path, "settings.yaml", "unknown: 1\n")
    assert main(["--config", config, "analyze", str(circuit_file)]) == EXIT_CONFIGURATION
    assert "Settings File Error" in capsys.readouterr().err


def test_a_command_is_required():
    with pytest.raises(SystemExit):
        main([])


def test_voltage_preset_on_the_command_line(circuit_file, capsys):
    assert main(["analyze", str(circuit_file), "--voltage-preset", "Standard 29V"]) == EXIT_OK
    assert "Worst-case voltage: 28." in capsys.readouterr().out


def test_unknown_preset_is_a_configuration_error(circuit_file, capsys):
    assert main(["analyze", str(circuit_file), "--load-preset", "Huge"]) == EXIT_CONFIGURATION
    assert "Unknown Parameter Preset" in capsys.readouterr().err


def test_save_writes_a_reloadable_circuit(circuit_file, tmp_path, capsys):
    target = tmp_path / "saved" / "nac1.yaml"
    code = main(["save", str(circuit_file), "-o", str(target), "--load-preset", "Booster 8A"])
    assert code == EXIT_OK
    assert "Saved 4 devices" in capsys.readouterr().out

    assert main(["analyze", str(target)]) == EXIT_OK
    assert "of 6.400 A usable" in capsys.readouterr().out


def test_save_to_an_unwritable_location(circuit_file, tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    assert main(["save", str(circuit_file), "-o", str(blocker / "out.yaml")]) == EXIT_FAILED
    assert "Export Failure (circuit)" in capsys.readouterr().err
