"""
Providers Module (v1.2.0)
LLM provider availability and configuration checks.
"""
import logging
from typing import List, Dict, Any

from stylist_service.config.settings import get_settings
from stylist_service.config.llm_config import get_planner_config, get_advisor_config

logger = logging.getLogger(__name__)


def get_provider_availability() -> Dict[str, bool]:
    """Get availability status for each provider."""
    settings = get_settings()
    return {
        "openai": settings.has_openai(),
        "gemini": settings.has_gemini(),
    }


def get_provider_status() -> Dict[str, Any]:
    """
    Get complete provider status for health endpoint.

    Returns:
        Dict with enabled flag, availability and the provider pinned per role
    """
    settings = get_settings()
    availability = get_provider_availability()

    return {
        "enabled": settings.llm_enabled,
        "availability": availability,
        "planner_provider": get_planner_config().provider.value,
        "advisor_provider": get_advisor_config().provider.value,
    }


def validate_provider_config() -> List[str]:
    """
    Validate provider configuration and return warnings.

    Returns:
        List of warning messages
    """
    settings = get_settings()
    availability = get_provider_availability()
    warnings = []

    if not settings.llm_enabled:
        warnings.append("LLM is disabled - outfit generation will fail")

    if not any(availability.values()):
        warnings.append("No LLM provider configured - set OPENAI_API_KEY or GEMINI_API_KEY")

    for role_config in (get_planner_config(), get_advisor_config()):
        provider = role_config.provider.value
        if not availability.get(provider):
            warnings.append(f"{role_config.role.value} provider '{provider}' not configured")
        if not role_config.is_pinned():
            warnings.append(
                f"{role_config.role.value} model '{role_config.model}' is not a known dated snapshot"
            )

    return warnings
