from risk_ai.schemas.assessment import (
    AnalyzedHazard,
    AssessmentRecord,
    BoundingBox,
    HazardRegion,
    RiskDetail,
    RiskLevel,
)
from risk_ai.services.reporting import order_measures, sort_hazards, summarize


def hazard(label, level):
    region = HazardRegion(
        id=f"id-{label}",
        mask_points=[(0, 0), (10, 0), (10, 10)],
        bounding_box=BoundingBox(x=0, y=0, width=10, height=10),
        label=label,
    )
    if level == RiskLevel.NOT_ASSESSED:
        return AnalyzedHazard.not_assessed(region)
    return AnalyzedHazard.assessed(region, RiskDetail(severity=3, likelihood=3), level)


def test_hazards_sort_by_level_then_label():
    hazards = [
        hazard("wiring", RiskLevel.LOW),
        hazard("unknown", RiskLevel.NOT_ASSESSED),
        hazard("scaffold", RiskLevel.HIGH),
        hazard("boxes", RiskLevel.MEDIUM),
        hazard("aisle", RiskLevel.HIGH),
    ]
    assert [h.region.label for h in sort_hazards(hazards)] == [
        "aisle",
        "scaffold",
        "boxes",
        "wiring",
        "unknown",
    ]


def test_measures_follow_the_hierarchy_of_controls():
    measures = [
        "สวมอุปกรณ์ป้องกันส่วนบุคคล (PPE)",
        "Review the work permit",
        "ติดตั้งการควบคุมเชิงวิศวกรรม เช่น ราวกันตก",
        "กำจัดแหล่งอันตรายออกจากพื้นที่",
        "Substitute the solvent with a water-based one",
        "Administrative controls: rotate shifts",
    ]
    assert order_measures(measures) == [
        "กำจัดแหล่งอันตรายออกจากพื้นที่",
        "Substitute the solvent with a water-based one",
        "ติดตั้งการควบคุมเชิงวิศวกรรม เช่น ราวกันตก",
        "Administrative controls: rotate shifts",
        "สวมอุปกรณ์ป้องกันส่วนบุคคล (PPE)",
        "Review the work permit",
    ]


def test_summary_counts_levels():
    record = AssessmentRecord(
        id="r1",
        timestamp=0,
        image_name="a.png",
        image_data="data:image/png;base64,",
        title="a",
        hazards=[
            hazard("a", RiskLevel.MEDIUM),
            hazard("b", RiskLevel.NOT_ASSESSED),
            hazard("c", RiskLevel.MEDIUM),
        ],
    )
    summary = summarize(record)

    assert summary.total == 3
    assert summary.counts == {"HIGH": 0, "MEDIUM": 2, "LOW": 0, "NOT_ASSESSED": 1}
    assert summary.highest_level == RiskLevel.MEDIUM
    assert summary.sorted_hazard_ids == ["id-a", "id-c", "id-b"]


def test_summary_of_empty_record():
    record = AssessmentRecord(
        id="r2", timestamp=0, image_name="a.png", image_data="", title="a"
    )
    summary = summarize(record)
    assert summary.total == 0
    assert summary.highest_level is None
