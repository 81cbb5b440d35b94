from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class ProbabilityTier(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


class RiskTier(Enum):
    """GTC-45 risk level interpretation, I is the most severe."""
    I = "I"
    II = "II"
    III = "III"
    IV = "IV"


class Acceptability(Enum):
    NOT_ACCEPTABLE = "Not Acceptable"
    NOT_ACCEPTABLE_OR_ACCEPTABLE_WITH_CONTROL = "Not Acceptable or Acceptable with Control"
    IMPROVABLE = "Improvable"
    ACCEPTABLE = "Acceptable"


@dataclass(frozen=True)
class HazardFactors:
    """ND, NE and NC ratings. ``None`` means the rating was not selected."""
    deficiency_level: Optional[int]
    exposure_level: Optional[int]
    consequence_level: Optional[int]


@dataclass(frozen=True)
class RiskAssessment:
    probability_score: int
    probability_tier: ProbabilityTier
    risk_score: int
    risk_tier: RiskTier
    acceptability: Acceptability

    @property
    def is_complete(self) -> bool:
        return True


@dataclass(frozen=True)
class IncompleteAssessment:
    missing: Tuple[str, ...]

    @property
    def is_complete(self) -> bool:
        return False


@dataclass
class ExistingControls:
    source: str = ""
    medium: str = ""
    individual: str = ""


@dataclass
class RiskRecord:
    id: str
    process: str
    activity: str
    zone: str
    task: str
    hazard_description: str
    hazard_classification: str
    possible_effects: str
    factors: HazardFactors
    recorded_tier: str
    recorded_acceptability: str
    intervention_measures: str
    controls: ExistingControls = field(default_factory=ExistingControls)
