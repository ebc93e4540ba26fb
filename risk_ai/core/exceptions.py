"""
Error taxonomy for the assessment service

Each error carries the HTTP status the API answers with.
"""


class AssessmentError(Exception):
    """Base class for all errors raised by the assessment core"""

    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(AssessmentError):
    """Missing credential or unknown model; raised before any network call"""

    status_code = 503


class ServiceError(AssessmentError):
    """The AI service could not be reached, timed out, or answered garbage"""

    status_code = 502


class HazardValidationError(AssessmentError):
    """A single detection entry is malformed (dropped, never run-fatal)"""

    status_code = 422


class InvalidImageError(AssessmentError):
    status_code = 400


class AnalysisInProgressError(AssessmentError):
    status_code = 409


class AnalysisSupersededError(AssessmentError):
    """A run completed after it stopped being the active run"""

    status_code = 409


class RecordNotFoundError(AssessmentError):
    status_code = 404
