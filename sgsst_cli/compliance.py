"""Weighted roll-up of the SG-SST minimum standards."""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sgsst_cli.models.compliance import (
    ComplianceItem,
    ComplianceRating,
    ComplianceResult,
    ComplianceStatus,
    CycleBreakdown,
    StandardItem,
    StandardsBracket,
)

HIGH_RISK_CLASSES = ("IV", "V")
RISK_CLASSES = ("I", "II", "III", "IV", "V")

ACCEPTABLE_ABOVE = 85.0
MODERATELY_ACCEPTABLE_FROM = 60.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_compliance(
    items: Iterable[ComplianceItem],
    *,
    count_not_applicable: bool = True,
) -> ComplianceResult:
    """Return the weighted completion percentage of *items*.

    Compliant items always count as achieved and pending or non-compliant
    ones never do. Not-applicable items count as achieved by default; with
    ``count_not_applicable=False`` they are left out of both sums instead.
    An empty or zero-weight set yields ``0``. Non-finite weights are ignored.
    """
    total_weight = 0.0
    achieved_weight = 0.0
    for item in items:
        if not math.isfinite(item.weight):
            continue
        if item.status is ComplianceStatus.NOT_APPLICABLE and not count_not_applicable:
            continue
        total_weight += item.weight
        if item.status in (ComplianceStatus.COMPLIANT, ComplianceStatus.NOT_APPLICABLE):
            achieved_weight += item.weight

    percentage = 0
    if total_weight:
        percentage = _round_half_up(achieved_weight * 100 / total_weight)

    return ComplianceResult(
        percentage=percentage,
        achieved_weight=achieved_weight,
        total_weight=total_weight,
    )


def classify_compliance(percentage: float) -> ComplianceRating:
    if percentage > ACCEPTABLE_ABOVE:
        return ComplianceRating.ACCEPTABLE
    if percentage >= MODERATELY_ACCEPTABLE_FROM:
        return ComplianceRating.MODERATELY_ACCEPTABLE
    return ComplianceRating.CRITICAL


def compute_cycle_breakdown(
    standards: Iterable[StandardItem],
    *,
    count_not_applicable: bool = True,
) -> List[CycleBreakdown]:
    """Compliance per PHVA cycle, in the order cycles first appear."""
    grouped: Dict[str, List[StandardItem]] = {}
    for std in standards:
        grouped.setdefault(std.cycle, []).append(std)

    breakdown: List[CycleBreakdown] = []
    for cycle, members in grouped.items():
        counted = [
            s for s in members
            if count_not_applicable or s.status is not ComplianceStatus.NOT_APPLICABLE
        ]
        completed = [
            s for s in counted
            if s.status in (ComplianceStatus.COMPLIANT, ComplianceStatus.NOT_APPLICABLE)
        ]
        result = compute_compliance(
            (s.as_compliance_item() for s in members),
            count_not_applicable=count_not_applicable,
        )
        breakdown.append(CycleBreakdown(
            cycle=cycle,
            result=result,
            completed_standards=len(completed),
            total_standards=len(counted),
        ))
    return breakdown


def select_standards_bracket(headcount: int, risk_class: Optional[str]) -> StandardsBracket:
    if risk_class in HIGH_RISK_CLASSES:
        return StandardsBracket.MAXIMAL
    if headcount > 50:
        return StandardsBracket.MAXIMAL
    if headcount > 10:
        return StandardsBracket.MEDIUM
    return StandardsBracket.MINIMAL


def needs_classification(company: Mapping[str, Any]) -> bool:
    """Whether *company* still lacks its standards classification."""
    return not company.get("clasificacion_tipo") or not company.get("nivel_riesgo")
