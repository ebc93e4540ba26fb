"""
Assessment orchestration

Drives one analysis run end to end:

    Idle -> Detecting -> (EmptyResult | DetailFetching) -> Assembling -> Complete
                     \\-> Failed

1. Detection pass finds hazard regions (failure here is fatal to the run)
2. Each region gets its own detail request, all running concurrently; a
   failed request only downgrades that hazard to NOT_ASSESSED
3. Risk levels are classified and the record is written to history once

Only one run is in flight at a time. Triggering the same image again joins
the running analysis, and an image already assessed in this session returns
its existing record unless re-analysis is forced.
"""

import asyncio
import hashlib
import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from risk_ai.core.config import Settings
from risk_ai.core.exceptions import (
    AnalysisInProgressError,
    AnalysisSupersededError,
    RecordNotFoundError,
)
from risk_ai.schemas.assessment import (
    AnalyzedHazard,
    AssessmentOutcome,
    AssessmentRecord,
    HazardRegion,
    OutcomeKind,
    RiskDetail,
    RunState,
    RunStatus,
)
from risk_ai.services.detail_client import DetailClient
from risk_ai.services.detection_client import DetectionClient
from risk_ai.services.history_store import HistoryStore
from risk_ai.services.imaging import ImageInfo, from_data_url, inspect_image, to_data_url
from risk_ai.services.risk_classifier import classify

log = logging.getLogger(__name__)


class AnalysisRun:
    """Mutable progress of a single run"""

    def __init__(self, digest: str, image_name: str, model_id: str):
        self.run_id = str(uuid.uuid4())
        self.digest = digest
        self.image_name = image_name
        self.model_id = model_id
        self.state = RunState.IDLE
        self.message = ""
        self.hazard_count = 0
        self.record_id: Optional[str] = None
        self.error: Optional[str] = None
        self.task: Optional[asyncio.Future] = None

    def transition(self, state: RunState, message: str = "") -> None:
        log.info("run %s: %s -> %s", self.run_id[:8], self.state.value, state.value)
        self.state = state
        self.message = message

    def status(self) -> RunStatus:
        return RunStatus(
            state=self.state,
            run_id=self.run_id,
            image_name=self.image_name,
            message=self.message,
            hazard_count=self.hazard_count,
            record_id=self.record_id,
            error=self.error,
        )


class AssessmentOrchestrator:
    """Runs detection, detail fan-out, classification and persistence"""

    def __init__(
        self,
        settings: Settings,
        detection_client: DetectionClient,
        detail_client: DetailClient,
        history_store: HistoryStore,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.detection_client = detection_client
        self.detail_client = detail_client
        self.history_store = history_store
        self.clock = clock

        self._active: Optional[AnalysisRun] = None
        self._last: Optional[AnalysisRun] = None
        # image digest -> record id, for images assessed in this session
        self._assessed: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(
        self,
        image: bytes,
        image_name: str,
        model_id: Optional[str] = None,
        content_type: Optional[str] = None,
        force: bool = False,
    ) -> AssessmentOutcome:
        """
        Analyze an uploaded image and persist the resulting record

        Args:
            image: Raw image bytes
            image_name: Original file name, used for the record title
            model_id: One of the configured models (default model when None)
            content_type: Declared MIME type of the upload, if known
            force: Re-analyze even when this image already has a record

        Raises:
            ConfigurationError: credential missing or model unknown
            InvalidImageError: upload is not a supported image
            AnalysisInProgressError: another image is being analyzed
            ServiceError: the detection pass failed
        """
        model_id = self.settings.resolve_model(model_id)
        self.settings.require_api_key()
        info = inspect_image(
            image,
            content_type,
            allowed_types=self.settings.allowed_image_types,
            max_size=self.settings.max_file_size,
        )
        digest = hashlib.sha256(image).hexdigest()

        active = self._active
        if active is not None:
            if active.digest != digest:
                raise AnalysisInProgressError(
                    f"Analysis of '{active.image_name}' is still running"
                )
            log.info("analyze: joining in-flight run %s", active.run_id[:8])
            outcome = await asyncio.shield(active.task)
            return outcome.model_copy(update={"reused": True})

        if not force:
            existing = self._existing_record(digest)
            if existing is not None:
                log.info("analyze: '%s' already assessed as %s", image_name, existing.id)
                return AssessmentOutcome(
                    kind=_kind_for(existing), record=existing, reused=True
                )

        run = AnalysisRun(digest, image_name, model_id)
        self._active = run
        self._last = run
        run.task = asyncio.ensure_future(self._execute(run, image, info))
        run.task.add_done_callback(lambda _: self._release(run))
        return await asyncio.shield(run.task)

    async def _execute(
        self, run: AnalysisRun, image: bytes, info: ImageInfo
    ) -> AssessmentOutcome:
        try:
            run.transition(RunState.DETECTING, "Analyzing image for hazards")
            regions = await self.detection_client.detect(image, run.model_id)
            run.hazard_count = len(regions)

            if regions:
                run.transition(
                    RunState.DETAIL_FETCHING,
                    f"Assessing {len(regions)} hazards in detail",
                )
                hazards = await self._assess_all(run, regions, image)
            else:
                run.transition(RunState.EMPTY_RESULT, "No clear hazards found")
                hazards = []

            self._ensure_active(run)
            run.transition(RunState.ASSEMBLING, "Saving assessment")
            record = AssessmentRecord(
                id=str(uuid.uuid4()),
                timestamp=int(self.clock() * 1000),
                image_name=run.image_name,
                image_data=to_data_url(image, info.mime_type),
                title=f"{self.settings.assessment_title_prefix} {run.image_name}".strip(),
                hazards=hazards,
                model_id=run.model_id,
            )
            self.history_store.upsert(record)
        except Exception as e:
            run.error = str(e)
            run.transition(RunState.FAILED, "Analysis failed")
            log.error("run %s failed: %s", run.run_id[:8], e)
            raise

        self._assessed[run.digest] = record.id
        run.record_id = record.id
        run.transition(RunState.COMPLETE, "Assessment complete")
        kind = OutcomeKind.ASSESSED if hazards else OutcomeKind.EMPTY_RESULT
        return AssessmentOutcome(kind=kind, record=record)

    async def _assess_all(
        self, run: AnalysisRun, regions: List[HazardRegion], image: bytes
    ) -> List[AnalyzedHazard]:
        results = await asyncio.gather(
            *(
                self.detail_client.fetch_detail(region.label, image, run.model_id)
                for region in regions
            ),
            return_exceptions=True,
        )

        # gather keeps argument order, so results line up with regions by index
        hazards = []
        for region, result in zip(regions, results):
            if isinstance(result, RiskDetail):
                level = classify(result.severity, result.likelihood)
                hazards.append(AnalyzedHazard.assessed(region, result, level))
            elif isinstance(result, Exception):
                log.warning("detail for '%s' not assessed: %s", region.label, result)
                hazards.append(AnalyzedHazard.not_assessed(region))
            elif isinstance(result, BaseException):
                raise result
            else:
                log.warning(
                    "detail for '%s' returned %s, not assessed",
                    region.label,
                    type(result).__name__,
                )
                hazards.append(AnalyzedHazard.not_assessed(region))
        return hazards

    def _ensure_active(self, run: AnalysisRun) -> None:
        if self._active is not run:
            raise AnalysisSupersededError(
                f"Analysis of '{run.image_name}' was superseded; result discarded"
            )

    def _release(self, run: AnalysisRun) -> None:
        if self._active is run:
            self._active = None

    def reset(self) -> None:
        """Abandon the in-flight run; its late result will not be saved"""
        if self._active is not None:
            log.info("reset: abandoning run %s", self._active.run_id[:8])
        self._active = None
        self._last = None

    def status(self) -> RunStatus:
        run = self._active or self._last
        return run.status() if run else RunStatus()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _existing_record(self, digest: str) -> Optional[AssessmentRecord]:
        record_id = self._assessed.get(digest)
        if record_id is None:
            return None
        record = self.history_store.get(record_id)
        if record is None:
            del self._assessed[digest]
        return record

    def history(self) -> List[AssessmentRecord]:
        return self.history_store.list_all()

    def get_record(self, record_id: str) -> AssessmentRecord:
        record = self.history_store.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Assessment '{record_id}' not found")
        return record

    def load(self, record_id: str) -> AssessmentOutcome:
        return AssessmentOutcome(
            kind=OutcomeKind.LOADED_FROM_HISTORY, record=self.get_record(record_id)
        )

    async def reanalyze(
        self, record_id: str, model_id: Optional[str] = None
    ) -> AssessmentOutcome:
        """Run a fresh analysis on a stored image; the result gets a new id"""
        record = self.get_record(record_id)
        image, mime_type = from_data_url(record.image_data)
        return await self.analyze(
            image, record.image_name, model_id, content_type=mime_type, force=True
        )

    def delete_record(self, record_id: str) -> None:
        if not self.history_store.delete(record_id):
            raise RecordNotFoundError(f"Assessment '{record_id}' not found")
        for digest in [d for d, rid in self._assessed.items() if rid == record_id]:
            del self._assessed[digest]


def _kind_for(record: AssessmentRecord) -> OutcomeKind:
    return OutcomeKind.ASSESSED if record.hazards else OutcomeKind.EMPTY_RESULT
