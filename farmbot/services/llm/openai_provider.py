from typing import List, Optional

import httpx

from farmbot.logging_config import get_logger
from farmbot.services.llm.base import LLMProvider, LLMResponse

logger = get_logger("llm.openai")


class OpenAIProvider(LLMProvider):
    """OpenAI API provider."""

    def __init__(self, api_key: str, default_model: str = "gpt-4o-mini"):
        self.api_key = api_key
        self.default_model = default_model
        self.base_url = "https://api.openai.com/v1/chat/completions"

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
        """Generate response from OpenAI.

        Chat Completions cannot continue a partial assistant turn, so a
        ``prefill`` of ``{`` is honoured by asking for a JSON object instead.
        """

        model = model or self.default_model
        outgoing = []
        if system:
            outgoing.append({"role": "system", "content": system})
        outgoing.extend(messages)

        payload = {
            "model": model,
            "messages": outgoing,
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        }
        if prefill and prefill.lstrip().startswith("{"):
            payload["response_format"] = {"type": "json_object"}

        timeout = timeout_seconds if timeout_seconds is not None else 15.0
        with httpx.Client(timeout=timeout) as client:
            logger.debug(f"OpenAI request: model={model}, messages_count={len(outgoing)}")

            response = client.post(
                self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )

        logger.debug(f"OpenAI response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"OpenAI error: {response.text}")
            raise Exception(f"OpenAI API error: {response.status_code} - {response.text}")

        data = response.json()

        content = ""
        if data.get("choices") and len(data["choices"]) > 0:
            message = data["choices"][0].get("message", {})
            content = message.get("content") or ""
        if prefill and not content.lstrip().startswith(prefill):
            content = prefill + content
        logger.debug(f"OpenAI content: {content[:100] if content else 'EMPTY'}")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
        )
