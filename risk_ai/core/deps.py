"""
Dependencies for dependency injection
"""

from typing import Optional

from fastapi import Request

from risk_ai.core.config import Settings
from risk_ai.services.detail_client import DetailClient
from risk_ai.services.detection_client import DetectionClient
from risk_ai.services.history_store import HistoryStore
from risk_ai.services.llm import ChatModelFactory, build_chat_model
from risk_ai.services.orchestrator import AssessmentOrchestrator


def build_orchestrator(
    settings: Settings, chat_model_factory: Optional[ChatModelFactory] = None
) -> AssessmentOrchestrator:
    """Wire the clients and the history store around one settings object"""
    factory = chat_model_factory or build_chat_model
    return AssessmentOrchestrator(
        settings=settings,
        detection_client=DetectionClient(settings, factory),
        detail_client=DetailClient(settings, factory),
        history_store=HistoryStore(settings.history_path, key=settings.history_key),
    )


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> AssessmentOrchestrator:
    return request.app.state.orchestrator
