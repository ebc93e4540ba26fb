"""
API routes for assessment history
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from risk_ai.api.routes.analysis import to_response
from risk_ai.core.deps import get_orchestrator
from risk_ai.schemas.assessment import AssessmentResponse, HistoryEntry
from risk_ai.services.orchestrator import AssessmentOrchestrator

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=List[HistoryEntry])
async def list_history(
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """List saved assessments, most recent first"""
    return [
        HistoryEntry(
            id=record.id,
            timestamp=record.timestamp,
            image_name=record.image_name,
            title=record.title,
            hazard_count=len(record.hazards),
            model_id=record.model_id,
        )
        for record in orchestrator.history()
    ]


@router.get("/{record_id}", response_model=AssessmentResponse)
async def load_assessment(
    record_id: str,
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """Load a saved assessment with its image and hazards"""
    return to_response(orchestrator.load(record_id))


@router.delete("/{record_id}")
async def delete_assessment(
    record_id: str,
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """Delete a saved assessment"""
    orchestrator.delete_record(record_id)
    return {"success": True, "id": record_id}


@router.post("/{record_id}/reanalyze", response_model=AssessmentResponse)
async def reanalyze_assessment(
    record_id: str,
    model_id: Optional[str] = Query(None, description="AI model to use"),
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """Analyze a saved image again; the new result is saved under a new id"""
    return to_response(await orchestrator.reanalyze(record_id, model_id))
