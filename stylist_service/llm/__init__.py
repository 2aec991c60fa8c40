# LLM module (v2.0.0)
from stylist_service.llm.invoker import (
    CompletionProvider,
    GenerationInvoker,
    build_provider,
    parse_structured,
)
from stylist_service.llm.openai_client import OpenAIProvider
from stylist_service.llm.gemini_client import GeminiProvider
