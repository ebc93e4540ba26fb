"""
Summary panel helpers: hazard ordering, measure ordering and level counts
"""

import re
from typing import List, Sequence

from risk_ai.schemas.assessment import (
    AnalyzedHazard,
    AssessmentRecord,
    RiskLevel,
    RiskSummary,
)

RISK_LEVEL_SORT_ORDER = {
    RiskLevel.HIGH: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.LOW: 3,
    RiskLevel.NOT_ASSESSED: 4,
}

# Elimination > substitution > engineering > administrative > PPE
HIERARCHY_OF_CONTROLS_ORDER = [
    re.compile(r"กำจัด|eliminat", re.IGNORECASE),
    re.compile(r"ทดแทน|substitut", re.IGNORECASE),
    re.compile(r"วิศวกรรม|engineering", re.IGNORECASE),
    re.compile(r"บริหารจัดการ|administrative", re.IGNORECASE),
    re.compile(r"อุปกรณ์ป้องกันส่วนบุคคล|PPE|personal protective", re.IGNORECASE),
]


def sort_hazards(hazards: Sequence[AnalyzedHazard]) -> List[AnalyzedHazard]:
    """Highest risk first, then by label"""
    return sorted(
        hazards,
        key=lambda h: (RISK_LEVEL_SORT_ORDER[h.risk_level], h.region.label.casefold()),
    )


def _control_rank(measure: str) -> int:
    for rank, pattern in enumerate(HIERARCHY_OF_CONTROLS_ORDER):
        if pattern.search(measure):
            return rank
    return len(HIERARCHY_OF_CONTROLS_ORDER)


def order_measures(measures: Sequence[str]) -> List[str]:
    """Order corrective measures along the hierarchy of controls; unmatched ones go last"""
    return sorted(measures, key=_control_rank)


def summarize(record: AssessmentRecord) -> RiskSummary:
    counts = {level.value: 0 for level in RISK_LEVEL_SORT_ORDER}
    for hazard in record.hazards:
        counts[hazard.risk_level.value] += 1

    ordered = sort_hazards(record.hazards)
    assessed = [h for h in ordered if h.risk_level != RiskLevel.NOT_ASSESSED]

    return RiskSummary(
        total=len(record.hazards),
        counts=counts,
        highest_level=assessed[0].risk_level if assessed else None,
        sorted_hazard_ids=[h.region.id for h in ordered],
    )
