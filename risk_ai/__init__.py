"""RiskAIssessment: AI-assisted workplace safety risk assessment service"""

__version__ = "1.0.0"
