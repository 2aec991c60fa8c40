"""
OpenAI Client (v1.3.0)
Schema-constrained completions through the OpenAI chat API.
"""
import logging
from typing import Any, Dict, Optional

from stylist_service.core.errors import MalformedResponseError, ProviderUnavailableError
from stylist_service.core.prompts import Prompt

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    Structured-output provider backed by ``AsyncOpenAI``.

    The SDK client is created on first use so a missing key only fails the
    calls that actually need it.
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        max_tokens: int = 4000,
        temperature: Optional[float] = None,
        client: Any = None
    ):
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ProviderUnavailableError("OPENAI_API_KEY not set")
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    async def complete(
        self,
        prompt: Prompt,
        response_schema: Dict[str, Any],
        model_id: str,
        timeout: float
    ) -> str:
        """
        Run one chat completion constrained to ``response_schema``.

        Returns:
            Raw JSON text from the model

        Raises:
            ProviderUnavailableError: Connection, timeout or API-side failure
            MalformedResponseError: Model refused or returned no content
        """
        import openai

        client = self._get_client()

        kwargs = {
            "model": model_id,
            "messages": prompt.to_messages(),
            "max_tokens": self.max_tokens,
            "timeout": timeout,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": prompt.schema_name,
                    "schema": response_schema,
                    # pydantic schemas use $defs/optional fields that strict mode rejects
                    "strict": False,
                },
            },
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature

        logger.info(f"Calling OpenAI ({model_id}) for {prompt.schema_name}...")

        try:
            response = await client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as e:
            raise ProviderUnavailableError(f"OpenAI timeout: {e}")
        except openai.APIConnectionError as e:
            raise ProviderUnavailableError(f"OpenAI connection error: {e}")
        except openai.APIStatusError as e:
            raise ProviderUnavailableError(f"OpenAI API error {e.status_code}: {e}")
        except openai.APIError as e:
            raise ProviderUnavailableError(f"OpenAI error: {e}")

        message = response.choices[0].message
        if getattr(message, "refusal", None):
            raise MalformedResponseError(f"OpenAI refused: {message.refusal}")
        if not message.content:
            raise MalformedResponseError("OpenAI returned empty content")

        return message.content
