# Config module (v1.2.0)
from stylist_service.config.settings import get_settings, reload_settings, Settings
from stylist_service.config.providers import (
    get_provider_status,
    get_provider_availability,
    validate_provider_config,
)
from stylist_service.config.llm_config import (
    LLMProvider,
    LLMRole,
    OpenAIConfig,
    GeminiConfig,
    ActiveLLMConfig,
    get_llm_config,
    get_planner_config,
    get_advisor_config,
    get_all_configs_dict,
    reset_llm_config,
)
