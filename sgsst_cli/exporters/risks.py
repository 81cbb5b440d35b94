from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sgsst_cli.exporters.base import BaseExporter
from sgsst_cli.formatters.markdown_formatter import MarkdownFormatter
from sgsst_cli.gtc45 import compute_risk
from sgsst_cli.models.risks import (
    ExistingControls,
    HazardFactors,
    IncompleteAssessment,
    RiskAssessment,
    RiskRecord,
    RiskTier,
)

_DEFICIENCY_LABELS: Dict[int, str] = {10: "Very High", 6: "High", 2: "Medium", 0: "Low"}
_EXPOSURE_LABELS: Dict[int, str] = {4: "Continuous", 3: "Frequent", 2: "Occasional", 1: "Sporadic"}
_CONSEQUENCE_LABELS: Dict[int, str] = {
    100: "Fatal/Catastrophic",
    60: "Very Severe",
    25: "Severe",
    10: "Minor",
}

_FACTOR_NAMES: Dict[str, str] = {
    "deficiency_level": "ND",
    "exposure_level": "NE",
    "consequence_level": "NC",
}

Evaluation = Union[RiskAssessment, IncompleteAssessment]


class RiskMatrixExporter(BaseExporter):
    def export(self) -> None:
        self._ensure_output_dir()
        self._log("Exporting risk matrix...")

        rows = self.client.get_risk_matrix(self.empresa_id)

        records: List[RiskRecord] = []
        stems: List[str] = []
        evaluations: List[Evaluation] = []
        for position, raw in enumerate(rows, start=1):
            if not isinstance(raw, dict):
                continue
            record = _parse_record(raw)
            file_stem = _file_stem(record.id, position)
            if file_stem in stems:
                file_stem = f"{file_stem}-{position}"
            evaluation = compute_risk(record.factors)
            self._export_record(file_stem, record, evaluation)
            records.append(record)
            stems.append(file_stem)
            evaluations.append(evaluation)

        self._write_index(records, stems, evaluations)

        if stems:
            self._log(
                "Exporting risk matrix... "
                + ", ".join(stems)
                + f" done ({len(stems)} documents)"
            )
        else:
            self._log("Exporting risk matrix... done (0 documents)")

    def _export_record(self, file_stem: str, record: RiskRecord, evaluation: Evaluation) -> None:
        md_content = MarkdownFormatter.render(
            title=f"{file_stem}: {record.hazard_description or 'Unnamed hazard'}",
            body=_build_body(record, evaluation),
            frontmatter=_build_frontmatter(record, evaluation, file_stem),
        )
        self._write_text(self.output_dir / f"{file_stem}.md", md_content)
        self._write_raw_json(file_stem, {"record": record, "evaluation": evaluation})

    def _write_index(
        self,
        records: List[RiskRecord],
        stems: List[str],
        evaluations: List[Evaluation],
    ) -> None:
        tier_counts: Dict[str, int] = {tier.value: 0 for tier in RiskTier}
        incomplete = 0
        for evaluation in evaluations:
            if isinstance(evaluation, RiskAssessment):
                tier_counts[evaluation.risk_tier.value] += 1
            else:
                incomplete += 1

        frontmatter: Dict[str, Any] = {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "empresa_id": self.empresa_id,
            "document_count": len(records),
            "risk_levels": tier_counts,
            "incomplete": incomplete,
        }
        generated_date = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        body_parts: List[str] = []
        noun = "risk" if len(records) == 1 else "risks"
        body_parts.append(f"{len(records)} {noun} exported on {generated_date}.")
        body_parts.append("")
        body_parts.append(MarkdownFormatter.table(
            ["Risk Level", "Count"],
            [[f"Level {tier}", count] for tier, count in tier_counts.items()]
            + [["Incomplete", incomplete]],
            right_align=(1,),
        ))
        body_parts.append("")

        for record, stem, evaluation in zip(records, stems, evaluations):
            body_parts.append(f"## [{stem}]({stem}.md): {record.hazard_description}")
            body_parts.append("")
            body_parts.append(f"- **Process:** {record.process}")
            body_parts.append(f"- **Activity:** {record.activity}")
            if isinstance(evaluation, RiskAssessment):
                body_parts.append(
                    f"- **Risk (NR):** {evaluation.risk_score} (Level {evaluation.risk_tier.value})"
                )
                body_parts.append(f"- **Acceptability:** {evaluation.acceptability.value}")
            else:
                body_parts.append(f"- **Risk (NR):** incomplete ({_missing_label(evaluation)})")
            body_parts.append("")

        md_content = MarkdownFormatter.render(
            title="Risk Matrix (GTC-45)",
            body="\n".join(body_parts),
            frontmatter=frontmatter,
        )
        self._write_text(self.output_dir / "index.md", md_content)


def _parse_record(raw: Dict[str, Any]) -> RiskRecord:
    factors = HazardFactors(
        deficiency_level=_as_level(raw.get("nivel_deficiencia")),
        exposure_level=_as_level(raw.get("nivel_exposicion")),
        consequence_level=_as_level(raw.get("nivel_consecuencia")),
    )
    # Rows saved from the two dashboard forms use different control column names.
    controls = ExistingControls(
        source=_text(raw, "controles_existentes_fuente", "control_fuente"),
        medium=_text(raw, "controles_existentes_medio", "control_medio"),
        individual=_text(raw, "controles_existentes_individuo", "control_individuo"),
    )
    recorded_tier = _text(raw, "interpretacion_nr")
    if recorded_tier.lower().startswith("nivel "):
        recorded_tier = recorded_tier[6:].strip()

    return RiskRecord(
        id=_text(raw, "riesgo_id"),
        process=_text(raw, "proceso_id"),
        activity=_text(raw, "actividad"),
        zone=_text(raw, "zona_lugar"),
        task=_text(raw, "tarea"),
        hazard_description=_text(raw, "peligro_descripcion"),
        hazard_classification=_text(raw, "peligro_clasificacion"),
        possible_effects=_text(raw, "efectos_posibles"),
        factors=factors,
        recorded_tier=recorded_tier,
        recorded_acceptability=_text(raw, "aceptabilidad"),
        intervention_measures=_text(raw, "medidas_intervencion"),
        controls=controls,
    )


def _build_frontmatter(
    record: RiskRecord, evaluation: Evaluation, file_stem: str,
) -> Dict[str, Any]:
    frontmatter: Dict[str, Any] = {
        "id": record.id or file_stem,
        "process": record.process,
        "activity": record.activity,
        "hazard": record.hazard_description,
        "hazard_classification": record.hazard_classification,
        "factors": {
            "deficiency_level": record.factors.deficiency_level,
            "exposure_level": record.factors.exposure_level,
            "consequence_level": record.factors.consequence_level,
        },
    }
    if isinstance(evaluation, RiskAssessment):
        frontmatter["evaluation"] = {
            "probability_score": evaluation.probability_score,
            "probability_tier": evaluation.probability_tier.value,
            "risk_score": evaluation.risk_score,
            "risk_tier": evaluation.risk_tier.value,
            "acceptability": evaluation.acceptability.value,
        }
    else:
        frontmatter["evaluation"] = {"incomplete": list(evaluation.missing)}
    if record.recorded_tier:
        frontmatter["recorded_risk_tier"] = record.recorded_tier
    return frontmatter


def _build_body(record: RiskRecord, evaluation: Evaluation) -> str:
    parts: List[str] = []

    parts.append("## Identification")
    parts.append("")
    parts.append(f"- **Process:** {record.process}")
    parts.append(f"- **Activity:** {record.activity}")
    if record.zone:
        parts.append(f"- **Zone:** {record.zone}")
    if record.task:
        parts.append(f"- **Task:** {record.task}")
    parts.append(f"- **Hazard Classification:** {record.hazard_classification}")
    if record.possible_effects:
        parts.append(f"- **Possible Effects:** {record.possible_effects}")
    parts.append("")

    parts.append("## Existing Controls")
    parts.append("")
    for heading, value in (
        ("Source", record.controls.source),
        ("Medium", record.controls.medium),
        ("Individual", record.controls.individual),
    ):
        parts.append(f"### {heading}")
        parts.append("")
        parts.append(value if value else f"[//]: # (No {heading.lower()} controls set)")
        parts.append("")

    parts.append("## GTC-45 Evaluation")
    parts.append("")
    parts.append(_build_evaluation(record, evaluation))
    parts.append("")

    parts.append("## Intervention Measures")
    parts.append("")
    if record.intervention_measures:
        parts.append(record.intervention_measures)
    else:
        parts.append("[//]: # (No intervention measures set)")

    return "\n".join(parts)


def _build_evaluation(record: RiskRecord, evaluation: Evaluation) -> str:
    factors = record.factors
    if isinstance(evaluation, IncompleteAssessment):
        return f"Evaluation incomplete: missing {_missing_label(evaluation)}."

    rows = [
        ["Deficiency (ND)", factors.deficiency_level,
         _DEFICIENCY_LABELS.get(factors.deficiency_level or 0, "")],
        ["Exposure (NE)", factors.exposure_level,
         _EXPOSURE_LABELS.get(factors.exposure_level or 0, "")],
        ["Probability (NP)", evaluation.probability_score, evaluation.probability_tier.value],
        ["Consequence (NC)", factors.consequence_level,
         _CONSEQUENCE_LABELS.get(factors.consequence_level or 0, "")],
        ["Risk (NR)", evaluation.risk_score, f"Level {evaluation.risk_tier.value}"],
    ]
    lines = [
        MarkdownFormatter.table(["Factor", "Value", "Interpretation"], rows, right_align=(1,)),
        "",
        f"- **Acceptability:** {evaluation.acceptability.value}",
    ]
    if record.recorded_tier and record.recorded_tier != evaluation.risk_tier.value:
        lines.append(
            f"- **Recorded Level:** {record.recorded_tier} "
            f"(differs from computed Level {evaluation.risk_tier.value})"
        )
    return "\n".join(lines)


def _missing_label(evaluation: IncompleteAssessment) -> str:
    return ", ".join(_FACTOR_NAMES.get(name, name) for name in evaluation.missing)


def _file_stem(record_id: str, position: int) -> str:
    stem = re.sub(r"[^\w.-]+", "-", record_id).strip("-.")
    return stem or f"RIESGO-{position}"


def _text(raw: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _as_level(value: Any) -> Optional[int]:
    """Parse a factor rating; empty or unparsable values mean "not selected"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None
