"""
Generation Invoker (v2.0.0)
Submits a built prompt to the configured provider and returns parsed JSON.

Every call is a fresh request: no caching, no retry, no model fallback.
Callers decide whether a failed call is worth repeating.
"""
import json
import time
import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

from stylist_service.config.llm_config import ActiveLLMConfig, LLMProvider
from stylist_service.core.errors import (
    MalformedResponseError,
    ProviderUnavailableError,
    StylistError,
)
from stylist_service.core.prompts import Prompt
from stylist_service.observability import metrics

logger = logging.getLogger(__name__)

RAW_SUMMARY_CHARS = 500


class CompletionProvider(Protocol):
    """Anything that can run one schema-constrained completion."""

    name: str

    async def complete(
        self,
        prompt: Prompt,
        response_schema: Dict[str, Any],
        model_id: str,
        timeout: float
    ) -> str:
        ...


def build_provider(config: ActiveLLMConfig) -> CompletionProvider:
    """Create the SDK-backed provider named by ``config``."""
    if config.provider == LLMProvider.GEMINI:
        from stylist_service.llm.gemini_client import GeminiProvider
        return GeminiProvider(
            api_key=config.api_key,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    from stylist_service.llm.openai_client import OpenAIProvider
    return OpenAIProvider(
        api_key=config.api_key,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )


def summarize_raw(text: str, limit: int = RAW_SUMMARY_CHARS) -> str:
    """Truncated raw output for logs."""
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."


def parse_structured(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from model output, tolerating markdown fences.

    Raises:
        MalformedResponseError: If the text is not a JSON object
    """
    cleaned = (text or "").strip()

    # Remove a surrounding markdown code block; backticks inside values stay
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]

    try:
        data = json.loads(cleaned.strip())
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}", summarize_raw(text))

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(data).__name__}", summarize_raw(text)
        )

    return data


class GenerationInvoker:
    """
    Runs prompts against one pinned model.

    Usage:
        invoker = GenerationInvoker(get_planner_config())
        raw = await invoker.invoke(prompt)
    """

    def __init__(self, config: ActiveLLMConfig, provider: Optional[CompletionProvider] = None):
        self.config = config
        self.provider = provider or build_provider(config)

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", self.config.provider.value)

    async def invoke(self, prompt: Prompt) -> Dict[str, Any]:
        """
        Submit ``prompt`` and return the parsed top-level JSON object.

        Args:
            prompt: Prompt from the prompt builder

        Returns:
            Parsed JSON object (unvalidated)

        Raises:
            ProviderUnavailableError: Unreachable, timed out or provider-side failure
            MalformedResponseError: Output is not a JSON object
        """
        timeout = self.config.timeout_seconds
        start = time.time()
        error_kind = None

        try:
            text = await asyncio.wait_for(
                self.provider.complete(prompt, prompt.response_schema, self.config.model, timeout),
                timeout=timeout,
            )
            return parse_structured(text)
        except asyncio.TimeoutError:
            error_kind = ProviderUnavailableError.kind
            logger.warning(f"{self.provider_name} timed out after {timeout}s ({prompt.schema_name})")
            raise ProviderUnavailableError(f"timed out after {timeout}s")
        except MalformedResponseError as e:
            error_kind = e.kind
            logger.error(
                f"Malformed {prompt.schema_name} response from {self.provider_name}: "
                f"{e.detail} | raw={e.raw_summary!r}"
            )
            raise
        except StylistError as e:
            error_kind = e.kind
            logger.warning(f"{self.provider_name} unavailable: {getattr(e, 'detail', e.message)}")
            raise
        except Exception as e:
            error_kind = ProviderUnavailableError.kind
            logger.error(f"{self.provider_name} failed ({prompt.schema_name}): {type(e).__name__}: {e}")
            raise ProviderUnavailableError(f"{type(e).__name__}: {e}") from e
        finally:
            latency_ms = int((time.time() - start) * 1000)
            metrics.record_provider_call(self.provider_name, latency_ms, error_kind)
