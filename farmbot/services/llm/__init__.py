from farmbot.services.llm.anthropic_provider import AnthropicProvider
from farmbot.services.llm.base import LLMProvider, LLMResponse
from farmbot.services.llm.openai_provider import OpenAIProvider

__all__ = ["LLMProvider", "LLMResponse", "AnthropicProvider", "OpenAIProvider"]
