"""
Application configuration using Pydantic Settings
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from risk_ai.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    app_name: str = "RiskAIssessment"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Credential for the AI service, read from API_KEY
    api_key: Optional[str] = None

    # LLM Settings (any OpenAI-compatible chat completions endpoint)
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    available_models: List[str] = [
        "gemini-2.5-flash",
        "gemini-2.5-pro",
    ]  # First entry is the default model
    llm_temperature: float = 0.2
    llm_max_tokens: int = 8192
    llm_timeout_seconds: float = 90.0  # Per external call

    # Assessment Settings
    response_language: str = "Thai"
    assessment_title_prefix: str = "การประเมินสำหรับ:"

    # File Upload Settings
    max_file_size: int = 20 * 1024 * 1024  # 20MB
    allowed_image_types: List[str] = ["image/jpeg", "image/png", "image/webp"]

    # History Settings
    history_path: str = "data/assessment_history.json"
    history_key: str = "assessment_history"

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    @field_validator("api_key")
    @classmethod
    def blank_key_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if v in ("", "undefined", "null"):
            return None
        return v

    @property
    def default_model(self) -> str:
        if not self.available_models:
            raise ConfigurationError("No AI models are configured")
        return self.available_models[0]

    def resolve_model(self, model_id: Optional[str] = None) -> str:
        """Return the requested model id, or the default one when none is given"""
        if not model_id:
            return self.default_model
        if model_id not in self.available_models:
            raise ConfigurationError(
                f"Unknown model '{model_id}'. Available: {', '.join(self.available_models)}",
                status_code=400,
            )
        return model_id

    def require_api_key(self) -> str:
        if self.api_key is None:
            raise ConfigurationError(
                "API_KEY is not set; the AI service cannot be called"
            )
        return self.api_key


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
