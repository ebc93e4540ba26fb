"""
API routes for image analysis
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from risk_ai.core.deps import get_orchestrator
from risk_ai.schemas.assessment import AssessmentOutcome, AssessmentResponse, RunStatus
from risk_ai.services.orchestrator import AssessmentOrchestrator
from risk_ai.services.reporting import summarize

router = APIRouter(prefix="/analysis", tags=["analysis"])


def to_response(outcome: AssessmentOutcome) -> AssessmentResponse:
    return AssessmentResponse(
        kind=outcome.kind,
        reused=outcome.reused,
        record=outcome.record,
        summary=summarize(outcome.record),
    )


@router.post("/image", response_model=AssessmentResponse)
async def analyze_image(
    file: Annotated[UploadFile, File(description="Image file to analyze")],
    model_id: Optional[str] = Query(None, description="AI model to use"),
    force: bool = Query(False, description="Re-analyze an image already assessed"),
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """
    Detect safety hazards in an image and assess each one in detail

    - **file**: Image file (JPEG, PNG or WEBP)

    The assessment is saved to history. Hazards whose detailed assessment
    failed are returned with risk level NOT_ASSESSED.
    """
    image_bytes = await file.read()
    outcome = await orchestrator.analyze(
        image_bytes,
        file.filename or "image",
        model_id=model_id,
        content_type=file.content_type,
        force=force,
    )
    return to_response(outcome)


@router.get("/status", response_model=RunStatus)
async def analysis_status(
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """Progress of the current or most recent analysis"""
    return orchestrator.status()


@router.post("/reset")
async def reset_analysis(
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """Abandon the running analysis; its result will be discarded"""
    orchestrator.reset()
    return {"success": True}
