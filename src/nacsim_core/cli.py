# src/nacsim_core/cli.py
"""
Command-line entry point.

    nacsim analyze circuit.yaml [--config settings.yaml]
    nacsim export circuit.yaml --format excel --format pdf [--output-dir out/]
    nacsim save circuit.yaml --output resolved.yaml [--voltage-preset "Nominal 24V"]
"""
import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from .analysis import build_report, evaluate_circuit, project_records
from .circuit_builder import CircuitBuilder
from .data_structures import Circuit
from .errors import DiagnosableError, EmissionError
from .export import EXPORT_FORMATS, ExportManager
from .export.tables import DEVICE_TABLE_HEADERS, device_row
from .log_config import setup_logging
from .parser import save_circuit
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIGURATION = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nacsim",
        description="Voltage drop analysis of fire alarm notification appliance circuits.",
    )
    parser.add_argument("--config", help="YAML settings file with defaults and validation limits.")
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    circuit_args = argparse.ArgumentParser(add_help=False)
    circuit_args.add_argument("circuit", help="Circuit definition YAML file.")
    circuit_args.add_argument("--voltage-preset", help="Named system/minimum voltage preset from the settings.")
    circuit_args.add_argument("--load-preset", help="Named maximum load/safety reserve preset from the settings.")

    sub.add_parser("analyze", parents=[circuit_args], help="Evaluate a circuit and print its report.")

    export = sub.add_parser("export", parents=[circuit_args], help="Evaluate a circuit and write report files.")
    export.add_argument(
        "--format", "-f", dest="formats", action="append",
        help=f"Output format, repeatable. One of: {', '.join(EXPORT_FORMATS)}. Default: all.",
    )
    export.add_argument("--output-dir", "-o", help="Directory for the written files.")

    save = sub.add_parser(
        "save", parents=[circuit_args],
        help="Write the circuit back out with every parameter resolved.",
    )
    save.add_argument("--output", "-o", required=True, help="Circuit definition file to write.")
    return parser


def _print_table(rows: List[List[str]], headers) -> None:
    widths = [max(len(str(h)), *(len(r[i]) for r in rows)) if rows else len(str(h)) for i, h in enumerate(headers)]
    print("  ".join(str(h).ljust(w) for h, w in zip(headers, widths)))
    print("  ".join("-" * w for w in widths))
    for row in rows:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))


def _load_circuit(args, settings: Settings) -> Circuit:
    circuit = CircuitBuilder(settings).build_from_file(args.circuit)
    parameters = settings.apply_presets(circuit.parameters, args.voltage_preset, args.load_preset)
    if parameters is circuit.parameters:
        return circuit
    return dataclasses.replace(circuit, parameters=parameters)


def _run_analyze(args, settings) -> int:
    circuit = _load_circuit(args, settings)
    results = evaluate_circuit(circuit)
    records = project_records(circuit.tree, results)
    report = build_report(circuit.tree, results, settings, records=records)

    for line in report.summary_lines():
        print(line)
    print()
    _print_table([device_row(r) for r in records], DEVICE_TABLE_HEADERS)
    if report.issues:
        print()
        for issue in report.issues:
            print(f"{issue.level.value:<7} {issue.message}")
    return EXIT_OK if report.is_valid else EXIT_FAILED


def _run_export(args, settings) -> int:
    circuit = _load_circuit(args, settings)
    manager = ExportManager(circuit, settings)
    formats = args.formats or list(EXPORT_FORMATS)
    results = manager.export_many(formats, args.output_dir)
    for result in results:
        if result.success:
            print(f"{result.export_format:<15} {result.output_path}")
        else:
            print(f"{result.export_format:<15} FAILED: {result.error}", file=sys.stderr)
    return EXIT_OK if all(r.success for r in results) else EXIT_FAILED


def _run_save(args, settings) -> int:
    circuit = _load_circuit(args, settings)
    try:
        path = save_circuit(circuit, args.output)
    except EmissionError as e:
        print(e.get_diagnostic_report(), file=sys.stderr)
        return EXIT_FAILED
    print(f"Saved {circuit.tree.device_count} devices to {path}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level))
    try:
        settings = load_settings(args.config)
        if args.command == "analyze":
            return _run_analyze(args, settings)
        if args.command == "save":
            return _run_save(args, settings)
        return _run_export(args, settings)
    except DiagnosableError as e:
        print(e.get_diagnostic_report(), file=sys.stderr)
        return EXIT_CONFIGURATION


if __name__ == "__main__":
    sys.exit(main())
