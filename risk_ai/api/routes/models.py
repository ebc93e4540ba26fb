"""
API routes for AI model selection
"""

from fastapi import APIRouter, Depends

from risk_ai.core.config import Settings
from risk_ai.core.deps import get_settings_dep
from risk_ai.schemas.assessment import ModelCatalog

router = APIRouter(prefix="/models", tags=["models"])


@router.get("", response_model=ModelCatalog)
async def list_models(settings: Settings = Depends(get_settings_dep)):
    """Models that can be selected for analysis"""
    return ModelCatalog(models=settings.available_models, default=settings.default_model)
