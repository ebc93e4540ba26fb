"""
Detail pass: severity, likelihood and references for one hazard
"""

import logging
import math
from typing import Optional

from pydantic import ValidationError

from risk_ai.core.config import Settings
from risk_ai.core.exceptions import ServiceError
from risk_ai.core.prompts import detail_prompt
from risk_ai.schemas.assessment import RawDetailedAssessment, RiskDetail
from risk_ai.services.imaging import inspect_image
from risk_ai.services.llm import (
    ChatModelFactory,
    build_chat_model,
    image_message,
    invoke_text,
    parse_json,
)

log = logging.getLogger(__name__)


def clamp_score(value: float) -> int:
    """Round a score from the service and clamp it into 1-5"""
    if not math.isfinite(value):
        raise ServiceError(f"Score is not a finite number: {value}")
    return max(1, min(5, int(round(value))))


def to_risk_detail(raw: RawDetailedAssessment) -> RiskDetail:
    return RiskDetail(
        severity=clamp_score(raw.severity_score),
        likelihood=clamp_score(raw.likelihood_score),
        description=raw.risk_level_verbal_description,
        corrective_measures=raw.corrective_preventive_measures,
        standards_references=raw.international_standards_references,
        legal_references=raw.relevant_thai_laws,
        organization_references=raw.kubota_standards_references,
    )


class DetailClient:
    """Requests the detailed risk assessment of a single labelled hazard"""

    def __init__(
        self, settings: Settings, chat_model_factory: Optional[ChatModelFactory] = None
    ):
        self.settings = settings
        self.chat_model_factory = chat_model_factory or build_chat_model

    async def fetch_detail(
        self, label: str, image: bytes, model_id: Optional[str] = None
    ) -> RiskDetail:
        model_id = self.settings.resolve_model(model_id)
        self.settings.require_api_key()
        info = inspect_image(image, allowed_types=self.settings.allowed_image_types)

        llm = self.chat_model_factory(self.settings, model_id)
        messages = [
            image_message(
                detail_prompt(label, self.settings.response_language),
                image,
                info.mime_type,
            )
        ]
        text = await invoke_text(llm, messages, self.settings.llm_timeout_seconds)

        payload = parse_json(text)
        if not isinstance(payload, dict):
            raise ServiceError(
                f"Detail answer for '{label}' must be a JSON object, got {type(payload).__name__}"
            )
        try:
            raw = RawDetailedAssessment.model_validate(payload)
        except ValidationError as e:
            raise ServiceError(
                f"Detail answer for '{label}' has an unexpected shape: {e.error_count()} errors"
            ) from e

        detail = to_risk_detail(raw)
        if (detail.severity, detail.likelihood) != (
            raw.severity_score,
            raw.likelihood_score,
        ):
            log.debug(
                "fetch_detail: scores for '%s' normalized from (%s, %s) to (%d, %d)",
                label,
                raw.severity_score,
                raw.likelihood_score,
                detail.severity,
                detail.likelihood,
            )
        return detail
