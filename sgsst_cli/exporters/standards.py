from __future__ import annotations

import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sgsst_cli.client import SgsstClient
from sgsst_cli.compliance import (
    classify_compliance,
    compute_compliance,
    compute_cycle_breakdown,
    needs_classification,
)
from sgsst_cli.exporters.base import BaseExporter
from sgsst_cli.formatters.markdown_formatter import MarkdownFormatter
from sgsst_cli.models.compliance import (
    ComplianceRating,
    ComplianceResult,
    ComplianceStatus,
    CycleBreakdown,
    StandardItem,
    StandardsBracket,
)

_STATUS_MAP: Dict[str, ComplianceStatus] = {
    "CUMPLE": ComplianceStatus.COMPLIANT,
    "NO_CUMPLE": ComplianceStatus.NON_COMPLIANT,
    "NO_APLICA": ComplianceStatus.NOT_APPLICABLE,
}

_STATUS_LABELS: Dict[ComplianceStatus, str] = {
    ComplianceStatus.COMPLIANT: "Compliant",
    ComplianceStatus.NON_COMPLIANT: "Non-compliant",
    ComplianceStatus.NOT_APPLICABLE: "Not applicable",
    ComplianceStatus.PENDING: "Pending",
}

# Res. 0312/2019 follow-up per rating band.
_ACTION_REQUIRED: Dict[ComplianceRating, str] = {
    ComplianceRating.CRITICAL: (
        "Implement an immediate improvement plan and report it to the Ministry of Labour."
    ),
    ComplianceRating.MODERATELY_ACCEPTABLE: (
        "Implement an improvement plan and keep it available for the Ministry of Labour."
    ),
    ComplianceRating.ACCEPTABLE: (
        "Keep the records and include improvements in the annual work plan."
    ),
}

BRACKET_LABELS: Dict[StandardsBracket, str] = {
    StandardsBracket.MINIMAL: "Minimum standards (7 items)",
    StandardsBracket.MEDIUM: "Medium standards (21 items)",
    StandardsBracket.MAXIMAL: "Maximum standards (60 items)",
}

_UNASSIGNED_CYCLE = "Unassigned"


class StandardsExporter(BaseExporter):
    def __init__(
        self,
        client: SgsstClient,
        output_dir: Path,
        empresa_id: str,
        *,
        force: bool = False,
        keep_raw_json: bool = False,
        count_not_applicable: bool = True,
    ) -> None:
        super().__init__(
            client, output_dir, empresa_id, force=force, keep_raw_json=keep_raw_json,
        )
        self.count_not_applicable = count_not_applicable

    def export(self) -> None:
        self._ensure_output_dir()
        self._log("Exporting standards...")

        company = self.client.get_company(self.empresa_id)
        if needs_classification(company):
            self._log(
                f"Warning: company {self.empresa_id} has no standards classification. "
                "Run sgsst-cli --classify WORKERS RISK_CLASS to set it."
            )

        envelope = self.client.get_standards(self.empresa_id)
        raw_list = envelope.get("data")
        standards = [
            _parse_standard(raw) for raw in (raw_list if isinstance(raw_list, list) else [])
            if isinstance(raw, dict)
        ]
        meta = envelope.get("meta")
        bracket = _parse_bracket(meta.get("clasificacion") if isinstance(meta, dict) else None)

        result = compute_compliance(
            (s.as_compliance_item() for s in standards),
            count_not_applicable=self.count_not_applicable,
        )
        rating = classify_compliance(result.percentage)
        breakdown = compute_cycle_breakdown(
            standards, count_not_applicable=self.count_not_applicable,
        )

        self._write_index(standards, bracket, result, rating, breakdown)
        self._write_document(
            "autoevaluacion",
            self._build_snapshot(standards, bracket, result, rating, breakdown),
        )

        self._log(
            f"Exporting standards... {len(standards)} standards, "
            f"{result.percentage}% ({rating.value}) done"
        )

    def _build_snapshot(
        self,
        standards: List[StandardItem],
        bracket: Optional[StandardsBracket],
        result: ComplianceResult,
        rating: ComplianceRating,
        breakdown: List[CycleBreakdown],
    ) -> Dict[str, Any]:
        completed = sum(c.completed_standards for c in breakdown)
        applicable = sum(c.total_standards for c in breakdown)
        return {
            "title": "Self-Assessment Snapshot",
            "empresa_id": self.empresa_id,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "classification": bracket.value if bracket else "",
            "score": result.percentage,
            "rating": rating.value,
            "action_required": _ACTION_REQUIRED[rating],
            "achieved_weight": result.achieved_weight,
            "total_weight": result.total_weight,
            "total_completed": completed,
            "total_applicable": applicable,
            "not_applicable_counted": self.count_not_applicable,
            "breakdown": [
                {
                    "cycle": c.cycle,
                    "percentage": c.result.percentage,
                    "completed_standards": c.completed_standards,
                    "total_standards": c.total_standards,
                }
                for c in breakdown
            ],
            "standard_count": len(standards),
        }

    def _write_index(
        self,
        standards: List[StandardItem],
        bracket: Optional[StandardsBracket],
        result: ComplianceResult,
        rating: ComplianceRating,
        breakdown: List[CycleBreakdown],
    ) -> None:
        frontmatter: Dict[str, Any] = {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "empresa_id": self.empresa_id,
            "classification": bracket.value if bracket else "",
            "standard_count": len(standards),
            "percentage": result.percentage,
            "rating": rating.value,
        }

        body_parts: List[str] = []
        bracket_label = BRACKET_LABELS[bracket] if bracket else "Not classified"
        body_parts.append(f"- **Classification:** {bracket_label}")
        body_parts.append(f"- **Compliance:** {result.percentage}% ({rating.value})")
        body_parts.append(f"- **Action Required:** {_ACTION_REQUIRED[rating]}")
        body_parts.append(
            f"- **Weight Achieved:** {result.achieved_weight:g} of {result.total_weight:g}"
        )
        body_parts.append("")

        body_parts.append("## PHVA Cycles")
        body_parts.append("")
        if breakdown:
            body_parts.append(MarkdownFormatter.table(
                ["Cycle", "Completed", "Compliance"],
                [
                    [c.cycle, f"{c.completed_standards} / {c.total_standards}",
                     f"{c.result.percentage}%"]
                    for c in breakdown
                ],
                right_align=(1, 2),
            ))
        else:
            body_parts.append("[//]: # (No standards assigned)")
        body_parts.append("")

        for cycle in breakdown:
            members = [s for s in standards if s.cycle == cycle.cycle]
            body_parts.append(f"## {cycle.cycle}")
            body_parts.append("")
            body_parts.append(MarkdownFormatter.table(
                ["Code", "Standard", "Weight", "Status"],
                [[s.code, s.name, f"{s.weight:g}", _STATUS_LABELS[s.status]] for s in members],
                right_align=(2,),
            ))
            body_parts.append("")
            observations = [s for s in members if s.observation]
            if observations:
                body_parts.append("### Observations")
                body_parts.append("")
                for s in observations:
                    body_parts.append(f"- **{s.code}:** {s.observation}")
                body_parts.append("")

        md_content = MarkdownFormatter.render(
            title="SG-SST Minimum Standards",
            body="\n".join(body_parts),
            frontmatter=frontmatter,
        )
        self._write_text(self.output_dir / "index.md", md_content)


def _parse_standard(raw: Dict[str, Any]) -> StandardItem:
    status_code = str(raw.get("estado") or "").strip().upper()
    return StandardItem(
        code=str(raw.get("codigo", "") or "").strip(),
        name=str(raw.get("nombre", "") or "").strip(),
        cycle=str(raw.get("ciclo", "") or "").strip() or _UNASSIGNED_CYCLE,
        weight=_as_weight(raw.get("peso")),
        status=_STATUS_MAP.get(status_code, ComplianceStatus.PENDING),
        observation=str(raw.get("observacion", "") or "").strip(),
        evidence_doc_id=str(raw.get("evidencia_doc_id", "") or "").strip(),
    )


def _parse_bracket(value: Any) -> Optional[StandardsBracket]:
    try:
        return StandardsBracket(str(value or "").strip())
    except ValueError:
        return None


def _as_weight(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        weight = float(value)
    elif isinstance(value, str):
        try:
            weight = float(value.strip().replace(",", "."))
        except ValueError:
            return 0.0
    else:
        return 0.0
    return weight if math.isfinite(weight) else 0.0
