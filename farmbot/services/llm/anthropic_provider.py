from typing import List, Optional

import httpx

from farmbot.logging_config import get_logger
from farmbot.services.llm.base import LLMProvider, LLMResponse

logger = get_logger("llm.anthropic")

API_VERSION = "2023-06-01"


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider."""

    def __init__(self, api_key: str, default_model: str = "claude-3-haiku-20240307"):
        self.api_key = api_key
        self.default_model = default_model
        self.base_url = "https://api.anthropic.com/v1/messages"

    def generate(
        self,
        messages: List[dict],
        system: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 1024,
        prefill: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> LLMResponse:
        """Generate response from Anthropic."""

        model = model or self.default_model
        outgoing = list(messages)
        if prefill:
            outgoing.append({"role": "assistant", "content": prefill})

        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": outgoing,
        }
        if system:
            payload["system"] = system

        timeout = timeout_seconds if timeout_seconds is not None else 15.0
        with httpx.Client(timeout=timeout) as client:
            logger.debug(f"Anthropic request: model={model}, messages_count={len(outgoing)}")

            response = client.post(
                self.base_url,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": API_VERSION,
                    "content-type": "application/json",
                },
                json=payload,
            )

        logger.debug(f"Anthropic response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"Anthropic error: {response.text}")
            raise Exception(f"Anthropic API error: {response.status_code} - {response.text}")

        data = response.json()
        blocks = data.get("content") or []
        if not blocks:
            raise Exception("Empty response from Anthropic")

        content = "".join(block.get("text", "") for block in blocks if block.get("type", "text") == "text")
        if prefill and not content.lstrip().startswith(prefill):
            content = prefill + content
        logger.debug(f"Anthropic content: {content[:100] if content else 'EMPTY'}")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
        )
