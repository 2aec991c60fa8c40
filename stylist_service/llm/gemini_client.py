"""
Gemini Client (v1.3.0)
JSON-mode completions through Google Generative AI.
"""
import logging
from typing import Any, Dict, Optional

from stylist_service.core.errors import MalformedResponseError, ProviderUnavailableError
from stylist_service.core.prompts import Prompt

logger = logging.getLogger(__name__)


class GeminiProvider:
    """Structured-output provider backed by ``google.generativeai``."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        max_tokens: int = 4000,
        temperature: Optional[float] = None
    ):
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._configured = False

    def _configure(self):
        if not self.api_key:
            raise ProviderUnavailableError("GEMINI_API_KEY not set")
        if not self._configured:
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._configured = True

    async def complete(
        self,
        prompt: Prompt,
        response_schema: Dict[str, Any],
        model_id: str,
        timeout: float
    ) -> str:
        """
        Run one JSON-mode generation.

        The schema travels inside the prompt text; Gemini's native schema
        option does not accept JSON-schema references.

        Raises:
            ProviderUnavailableError: Transport or API-side failure
            MalformedResponseError: Response blocked or empty
        """
        import google.generativeai as genai
        from google.api_core import exceptions as google_exceptions

        self._configure()

        generation_config = {
            "response_mime_type": "application/json",
            "max_output_tokens": self.max_tokens,
        }
        if self.temperature is not None:
            generation_config["temperature"] = self.temperature

        model = genai.GenerativeModel(
            model_id,
            system_instruction=prompt.system,
            generation_config=generation_config,
        )

        logger.info(f"Calling Gemini ({model_id}) for {prompt.schema_name}...")

        try:
            response = await model.generate_content_async(
                prompt.user,
                request_options={"timeout": timeout},
            )
        except google_exceptions.GoogleAPIError as e:
            raise ProviderUnavailableError(f"Gemini API error: {e}")

        try:
            text = response.text
        except ValueError as e:
            # Raised when the candidate was blocked or has no parts
            raise MalformedResponseError(f"Gemini returned no text: {e}")

        if not text or not text.strip():
            raise MalformedResponseError("Gemini returned empty content")

        return text
