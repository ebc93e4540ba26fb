"""
Risk matrix classification

Severity (rows) x likelihood (columns), both on a 1-5 scale. Bands follow
the severity x likelihood product: 1-4 low, 5-12 medium, 15-25 high.
"""

from risk_ai.schemas.assessment import RiskLevel

L, M, H = RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH

# RISK_MATRIX[severity - 1][likelihood - 1]
RISK_MATRIX = (
    (L, L, L, L, M),  # severity 1
    (L, L, M, M, M),  # severity 2
    (L, M, M, M, H),  # severity 3
    (L, M, M, H, H),  # severity 4
    (M, M, H, H, H),  # severity 5
)

SCORE_RANGE = range(1, 6)


def classify(severity: int, likelihood: int) -> RiskLevel:
    """Map a severity/likelihood pair to LOW, MEDIUM or HIGH"""
    if not all(isinstance(v, int) and v in SCORE_RANGE for v in (severity, likelihood)):
        raise ValueError(
            f"severity and likelihood must be integers 1-5, got ({severity}, {likelihood})"
        )
    return RISK_MATRIX[severity - 1][likelihood - 1]
