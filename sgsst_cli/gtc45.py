"""GTC-45 hazard evaluation.

The probability level (NP) is the product of the deficiency level (ND) and the
exposure level (NE); the risk level (NR) is NP times the consequence level
(NC). Both are interpreted with fixed bands from the guideline. Bands are
ordered highest first and the first band whose minimum is reached wins, so a
value sitting exactly on a boundary belongs to the more severe tier.
"""
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple, TypeVar, Union

from sgsst_cli.models.risks import (
    Acceptability,
    HazardFactors,
    IncompleteAssessment,
    ProbabilityTier,
    RiskAssessment,
    RiskTier,
)

DEFICIENCY_LEVELS: Tuple[int, ...] = (10, 6, 2, 0)
EXPOSURE_LEVELS: Tuple[int, ...] = (4, 3, 2, 1)
CONSEQUENCE_LEVELS: Tuple[int, ...] = (100, 60, 25, 10)

PROBABILITY_BANDS: Sequence[Tuple[int, ProbabilityTier]] = (
    (40, ProbabilityTier.VERY_HIGH),
    (24, ProbabilityTier.HIGH),
    (10, ProbabilityTier.MEDIUM),
)

RISK_BANDS: Sequence[Tuple[int, RiskTier]] = (
    (600, RiskTier.I),
    (150, RiskTier.II),
    (40, RiskTier.III),
)

ACCEPTABILITY: Dict[RiskTier, Acceptability] = {
    RiskTier.I: Acceptability.NOT_ACCEPTABLE,
    RiskTier.II: Acceptability.NOT_ACCEPTABLE_OR_ACCEPTABLE_WITH_CONTROL,
    RiskTier.III: Acceptability.IMPROVABLE,
    RiskTier.IV: Acceptability.ACCEPTABLE,
}

_T = TypeVar("_T")


def _lookup(value: int, bands: Sequence[Tuple[int, _T]], default: _T) -> _T:
    for minimum, tier in bands:
        if value >= minimum:
            return tier
    return default


def classify_probability(probability_score: int) -> ProbabilityTier:
    return _lookup(probability_score, PROBABILITY_BANDS, ProbabilityTier.LOW)


def classify_risk(risk_score: int) -> RiskTier:
    return _lookup(risk_score, RISK_BANDS, RiskTier.IV)


def missing_factors(factors: HazardFactors) -> Tuple[str, ...]:
    missing: List[str] = []
    if factors.deficiency_level is None:
        missing.append("deficiency_level")
    if factors.exposure_level is None:
        missing.append("exposure_level")
    if factors.consequence_level is None:
        missing.append("consequence_level")
    return tuple(missing)


def compute_risk(factors: HazardFactors) -> Union[RiskAssessment, IncompleteAssessment]:
    """Evaluate *factors* with the GTC-45 formula.

    Returns an :class:`IncompleteAssessment` naming the unselected ratings
    instead of raising, so callers can render an empty preview while a form
    is still being filled in. A deficiency level of ``0`` is a valid rating.
    """
    nd = factors.deficiency_level
    ne = factors.exposure_level
    nc = factors.consequence_level
    if nd is None or ne is None or nc is None:
        return IncompleteAssessment(missing=missing_factors(factors))

    probability_score = nd * ne
    risk_score = probability_score * nc
    risk_tier = classify_risk(risk_score)

    return RiskAssessment(
        probability_score=probability_score,
        probability_tier=classify_probability(probability_score),
        risk_score=risk_score,
        risk_tier=risk_tier,
        acceptability=ACCEPTABILITY[risk_tier],
    )
