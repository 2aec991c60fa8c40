"""
LLM Configuration Layer (v1.2.0)
Explicit, model-pinned config for the Planner (outfit generation) and the
Advisor (recommendations, wardrobe analysis).

Environment Variables:
  PLANNER (outfit generation):
    - AURA_LLM_PROVIDER: "openai" | "gemini" (default: openai)
    - AURA_LLM_MODEL: Override pinned model (optional)

  ADVISOR (recommendations, wardrobe analysis):
    - AURA_ADVISOR_PROVIDER: "openai" | "gemini" (default: openai)
    - AURA_ADVISOR_MODEL: Override pinned model (optional)

  SHARED:
    - AURA_LLM_TIMEOUT: Per-call timeout in seconds (default: 45)
    - AURA_LLM_MAX_TOKENS: Completion token cap (default: 4000)
    - AURA_LLM_TEMPERATURE: Unset means provider default
"""
import os
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from stylist_service.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# ==================== ENUMS ====================

class LLMProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    GEMINI = "gemini"


class LLMRole(Enum):
    """LLM usage role."""
    PLANNER = "planner"      # Outfit generation
    ADVISOR = "advisor"      # Recommendations and wardrobe analysis


# ==================== PROVIDER CONFIGS ====================

@dataclass
class OpenAIConfig:
    """OpenAI model configuration."""
    # Dated snapshot: pinned so the model never upgrades underneath us
    default_model: str = "gpt-4o-2024-08-06"
    max_tokens: int = 4000
    available_models: tuple = field(default_factory=lambda: (
        "gpt-4o-2024-08-06", "gpt-4o-mini-2024-07-18", "gpt-4o-2024-11-20",
    ))


@dataclass
class GeminiConfig:
    """Gemini model configuration."""
    default_model: str = "gemini-1.5-pro-002"
    max_tokens: int = 4000
    available_models: tuple = field(default_factory=lambda: (
        "gemini-1.5-pro-002", "gemini-1.5-flash-002",
    ))


DEFAULT_TIMEOUT_SECONDS = 45.0


# ==================== ACTIVE CONFIG ====================

@dataclass(frozen=True)
class ActiveLLMConfig:
    """
    Resolved LLM configuration for one role.

    Passed explicitly into the GenerationInvoker; nothing downstream reads
    the environment.
    """
    role: LLMRole
    provider: LLMProvider
    model: str
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: int = 4000
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(
        cls,
        role: LLMRole = LLMRole.PLANNER,
        settings: Optional[Settings] = None
    ) -> "ActiveLLMConfig":
        """Resolve configuration from environment variables."""
        settings = settings or get_settings()

        if role == LLMRole.ADVISOR:
            provider_env = "AURA_ADVISOR_PROVIDER"
            model_env = "AURA_ADVISOR_MODEL"
        else:
            provider_env = "AURA_LLM_PROVIDER"
            model_env = "AURA_LLM_MODEL"

        provider_str = os.getenv(provider_env, "openai").lower()

        if provider_str == "gemini":
            provider = LLMProvider.GEMINI
            defaults = GeminiConfig()
            api_key = settings.gemini_api_key
        else:
            provider = LLMProvider.OPENAI
            defaults = OpenAIConfig()
            api_key = settings.openai_api_key

        model = os.getenv(model_env, defaults.default_model)
        raw_temperature = os.getenv("AURA_LLM_TEMPERATURE")
        temperature = float(raw_temperature) if raw_temperature else None
        max_tokens = int(os.getenv("AURA_LLM_MAX_TOKENS", str(defaults.max_tokens)))
        timeout = float(os.getenv("AURA_LLM_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)))

        config = cls(
            role=role,
            provider=provider,
            model=model,
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout_seconds=timeout,
        )

        logger.info(f"LLM Config [{role.value}]: provider={provider.value}, model={model}")
        return config

    def is_pinned(self) -> bool:
        """Model is one of the known dated snapshots for its provider."""
        defaults = GeminiConfig() if self.provider == LLMProvider.GEMINI else OpenAIConfig()
        return self.model in defaults.available_models

    def to_dict(self) -> dict:
        return {
            "role": self.role.value,
            "provider": self.provider.value,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout_seconds": self.timeout_seconds,
            "api_key_configured": bool(self.api_key),
        }


# ==================== SINGLETON INSTANCES ====================

_planner_config: Optional[ActiveLLMConfig] = None
_advisor_config: Optional[ActiveLLMConfig] = None


def get_llm_config(role: LLMRole = LLMRole.PLANNER) -> ActiveLLMConfig:
    """Get active LLM configuration for a role."""
    global _planner_config, _advisor_config

    if role == LLMRole.ADVISOR:
        if _advisor_config is None:
            _advisor_config = ActiveLLMConfig.from_env(LLMRole.ADVISOR)
        return _advisor_config
    else:
        if _planner_config is None:
            _planner_config = ActiveLLMConfig.from_env(LLMRole.PLANNER)
        return _planner_config


def get_planner_config() -> ActiveLLMConfig:
    """Get planner (outfit generation) config."""
    return get_llm_config(LLMRole.PLANNER)


def get_advisor_config() -> ActiveLLMConfig:
    """Get advisor (recommendations/analysis) config."""
    return get_llm_config(LLMRole.ADVISOR)


def reset_llm_config():
    """Reset all configs (for testing)."""
    global _planner_config, _advisor_config
    _planner_config = None
    _advisor_config = None


def get_all_configs_dict() -> dict:
    """Get all configs as dict for /health endpoint."""
    return {
        "planner": get_planner_config().to_dict(),
        "advisor": get_advisor_config().to_dict()
    }
