from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Sequence, cast

from sgsst_cli.client import SgsstClient
from sgsst_cli.compliance import RISK_CLASSES, select_standards_bracket
from sgsst_cli.config import read_config, write_config
from sgsst_cli.exceptions import ConfigError
from sgsst_cli.exporters.base import BaseExporter
from sgsst_cli.exporters.risks import RiskMatrixExporter
from sgsst_cli.exporters.standards import BRACKET_LABELS, StandardsExporter
from sgsst_cli.gtc45 import (
    CONSEQUENCE_LEVELS,
    DEFICIENCY_LEVELS,
    EXPOSURE_LEVELS,
    compute_risk,
)
from sgsst_cli.models.config import AppConfig
from sgsst_cli.models.risks import HazardFactors, RiskAssessment

_SUBDIRS = ("riesgos", "estandares")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sgsst-cli",
        description="Command-line client for SG-SST risk matrix and standards compliance.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--init",
        metavar="API_URL",
        help="Initialize configuration with the SG-SST deployment URL.",
    )
    group.add_argument(
        "--score", nargs=3, type=int, metavar=("ND", "NE", "NC"),
        help="Evaluate a hazard with the GTC-45 method.",
    )
    group.add_argument(
        "--classify", nargs=2, metavar=("WORKERS", "RISK_CLASS"),
        help="Compute and save the company's minimum standards classification.",
    )
    group.add_argument("--copy-all", action="store_true", help="Export all data.")
    group.add_argument(
        "--copy-risks", "--copy-risk", dest="copy_risks", action="store_true",
        help="Export the GTC-45 risk matrix.",
    )
    group.add_argument(
        "--copy-standards", "--copy-std", dest="copy_standards", action="store_true",
        help="Export minimum standards compliance.",
    )
    parser.add_argument(
        "--force", action="store_true",
        help="Overwrite existing files without confirmation.",
    )
    parser.add_argument(
        "--keep-raw-json", action="store_true",
        help="Also write raw JSON files alongside Markdown.",
    )
    return parser


def _run_init(api_url: str) -> None:
    if not api_url.startswith("https://"):
        raise ConfigError("API URL must start with https://")

    empresa_id = input("Enter the company ID (empresa_id) to work with: ")
    if not empresa_id.strip():
        raise ConfigError("Company ID cannot be empty.")

    config = AppConfig(api_url=api_url.strip(), empresa_id=empresa_id.strip())

    cwd = Path.cwd()
    write_config(cwd, config)

    for subdir in _SUBDIRS:
        (cwd / subdir).mkdir(exist_ok=True)

    print("Configuration saved to .sgsst-cli.ini")
    print("Created directories: " + ", ".join(f"{d}/" for d in _SUBDIRS))


def _check_level(
    parser: argparse.ArgumentParser, name: str, value: int, allowed: Sequence[int],
) -> None:
    if value not in allowed:
        parser.error(
            f"{name} must be one of " + ", ".join(str(v) for v in allowed)
        )


def _run_score(parser: argparse.ArgumentParser, values: List[int]) -> None:
    nd, ne, nc = values
    _check_level(parser, "ND", nd, DEFICIENCY_LEVELS)
    _check_level(parser, "NE", ne, EXPOSURE_LEVELS)
    _check_level(parser, "NC", nc, CONSEQUENCE_LEVELS)

    assessment = cast(RiskAssessment, compute_risk(HazardFactors(
        deficiency_level=nd, exposure_level=ne, consequence_level=nc,
    )))
    print(f"Probability (NP): {assessment.probability_score} ({assessment.probability_tier.value})")
    print(f"Risk (NR): {assessment.risk_score} (Level {assessment.risk_tier.value})")
    print(f"Acceptability: {assessment.acceptability.value}")


def _run_classify(parser: argparse.ArgumentParser, values: List[str]) -> None:
    workers_raw, risk_class = values[0], values[1].strip().upper()
    try:
        workers = int(workers_raw)
    except ValueError:
        parser.error("WORKERS must be a whole number")
    if workers <= 0:
        parser.error("WORKERS must be greater than zero")
    if risk_class not in RISK_CLASSES:
        parser.error("RISK_CLASS must be one of " + ", ".join(RISK_CLASSES))

    config = read_config(Path.cwd())
    bracket = select_standards_bracket(workers, risk_class)

    client = SgsstClient(config)
    client.update_company(config.empresa_id, {
        "numero_trabajadores": workers,
        "nivel_riesgo": risk_class,
        "clasificacion_tipo": bracket.value,
    })

    print(f"Classification: {BRACKET_LABELS[bracket]}")
    print(f"Saved classification {bracket.value} for company {config.empresa_id}")


def _run_export(args: argparse.Namespace) -> None:
    cwd = Path.cwd()
    config = read_config(cwd)
    client = SgsstClient(config)

    export_kwargs = {
        "force": args.force,
        "keep_raw_json": args.keep_raw_json,
    }

    exporters: List[BaseExporter] = []
    if args.copy_all or args.copy_risks:
        exporters.append(
            RiskMatrixExporter(client, cwd / "riesgos", config.empresa_id, **export_kwargs)
        )
    if args.copy_all or args.copy_standards:
        exporters.append(StandardsExporter(
            client, cwd / "estandares", config.empresa_id,
            count_not_applicable=config.count_not_applicable,
            **export_kwargs,
        ))

    for exporter in exporters:
        exporter.export()


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.init:
        _run_init(args.init)
    elif args.score:
        _run_score(parser, args.score)
    elif args.classify:
        _run_classify(parser, args.classify)
    elif args.copy_all or args.copy_risks or args.copy_standards:
        _run_export(args)
    else:
        parser.print_help()
