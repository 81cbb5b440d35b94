from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ComplianceStatus(Enum):
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    NOT_APPLICABLE = "not_applicable"
    PENDING = "pending"


class ComplianceRating(Enum):
    CRITICAL = "Critical"
    MODERATELY_ACCEPTABLE = "Moderately Acceptable"
    ACCEPTABLE = "Acceptable"


class StandardsBracket(Enum):
    """Minimum standards set a company is assessed against (Res. 0312/2019)."""
    MINIMAL = "ESTANDARES_7"
    MEDIUM = "ESTANDARES_21"
    MAXIMAL = "ESTANDARES_60"

    @property
    def item_count(self) -> int:
        return _ITEM_COUNTS[self]


_ITEM_COUNTS = {
    StandardsBracket.MINIMAL: 7,
    StandardsBracket.MEDIUM: 21,
    StandardsBracket.MAXIMAL: 60,
}


@dataclass(frozen=True)
class ComplianceItem:
    weight: float
    status: ComplianceStatus


@dataclass(frozen=True)
class ComplianceResult:
    percentage: int
    achieved_weight: float
    total_weight: float


@dataclass
class StandardItem:
    code: str
    name: str
    cycle: str
    weight: float
    status: ComplianceStatus
    observation: str = ""
    evidence_doc_id: str = ""

    def as_compliance_item(self) -> ComplianceItem:
        return ComplianceItem(weight=self.weight, status=self.status)


@dataclass(frozen=True)
class CycleBreakdown:
    cycle: str
    result: ComplianceResult
    completed_standards: int
    total_standards: int
