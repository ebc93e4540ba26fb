"""
Detection pass: hazard regions and labels for a whole image
"""

import logging
import uuid
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from risk_ai.core.config import Settings
from risk_ai.core.exceptions import HazardValidationError, ServiceError
from risk_ai.core.prompts import detection_prompt
from risk_ai.schemas.assessment import BoundingBox, HazardRegion, RawDetection
from risk_ai.services.imaging import inspect_image
from risk_ai.services.llm import (
    ChatModelFactory,
    build_chat_model,
    image_message,
    invoke_text,
    parse_json,
)

log = logging.getLogger(__name__)


def _clamp01(v: float) -> float:
    return max(0.0, min(1.0, float(v)))


def to_pixels(x: float, y: float, width: int, height: int) -> Tuple[int, int]:
    """Convert one normalized point to pixel coordinates inside the image"""
    return round(_clamp01(x) * width), round(_clamp01(y) * height)


def box_from_points(points: Sequence[Tuple[int, int]]) -> BoundingBox:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return BoundingBox(
        x=min(xs), y=min(ys), width=max(xs) - min(xs), height=max(ys) - min(ys)
    )


def box_from_corners(
    box_2d: Sequence[float], width: int, height: int
) -> BoundingBox:
    x1, y1 = to_pixels(box_2d[0], box_2d[1], width, height)
    x2, y2 = to_pixels(box_2d[2], box_2d[3], width, height)
    x_min, x_max = sorted((x1, x2))
    y_min, y_max = sorted((y1, y2))
    return BoundingBox(x=x_min, y=y_min, width=x_max - x_min, height=y_max - y_min)


def normalize_detection(raw: Any, width: int, height: int) -> HazardRegion:
    """
    Turn one raw detection entry into a HazardRegion

    Raises HazardValidationError when the entry has no label or fewer than
    three usable polygon points.
    """
    try:
        det = RawDetection.model_validate(raw)
    except ValidationError as e:
        raise HazardValidationError(f"Malformed detection entry: {e.error_count()} errors")

    points = [to_pixels(x, y, width, height) for x, y in det.mask]
    if len(set(points)) < 3:
        raise HazardValidationError("Detection polygon collapses to fewer than 3 points")

    if det.box_2d is not None:
        box = box_from_corners(det.box_2d, width, height)
    else:
        box = box_from_points(points)

    return HazardRegion(
        id=str(uuid.uuid4()), mask_points=points, bounding_box=box, label=det.label
    )


class DetectionClient:
    """Asks the AI service for hazard polygons, boxes and labels"""

    def __init__(
        self, settings: Settings, chat_model_factory: Optional[ChatModelFactory] = None
    ):
        self.settings = settings
        self.chat_model_factory = chat_model_factory or build_chat_model

    async def detect(self, image: bytes, model_id: Optional[str] = None) -> List[HazardRegion]:
        """
        Detect hazards in an image

        Returns an empty list when the service reports no hazard. Fails with
        ConfigurationError before any request when the credential or model is
        wrong, and with ServiceError when the call or the response is unusable.
        """
        model_id = self.settings.resolve_model(model_id)
        self.settings.require_api_key()
        info = inspect_image(image, allowed_types=self.settings.allowed_image_types)

        llm = self.chat_model_factory(self.settings, model_id)
        messages = [
            image_message(
                detection_prompt(self.settings.response_language),
                image,
                info.mime_type,
            )
        ]
        text = await invoke_text(llm, messages, self.settings.llm_timeout_seconds)

        entries = parse_json(text)
        if not isinstance(entries, list):
            raise ServiceError(
                f"Detection answer must be a JSON array, got {type(entries).__name__}"
            )

        regions = []
        for index, raw in enumerate(entries):
            try:
                regions.append(normalize_detection(raw, info.width, info.height))
            except HazardValidationError as e:
                log.debug("detect: dropped entry %d: %s", index, e)

        log.info(
            "detect: %d hazards kept of %d returned (model=%s)",
            len(regions),
            len(entries),
            model_id,
        )
        return regions
