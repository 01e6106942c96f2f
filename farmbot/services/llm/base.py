from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Optional[dict] = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    default_model: str

    @abstractmethod
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
        """Generate response from LLM.

        When ``prefill`` is given the returned content starts with it, whether
        the provider continued from it or not.
        """
        pass
