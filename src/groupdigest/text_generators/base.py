from __future__ import annotations

from abc import ABC, abstractmethod

from ..summarization.models import GenerationResult


class TextGeneratorAPI(ABC):
    """Abstract base class for text generator providers."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 1.0,
    ) -> GenerationResult:
        """Return generated text and the tokens the call consumed."""
        raise NotImplementedError
