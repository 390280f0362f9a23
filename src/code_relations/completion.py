"""Text generation used to describe graph nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from .config import Settings
from .errors import CompletionError
from .utils.logger import app_logger


@dataclass
class CompletionResult:
    """Text returned by a generator plus its token accounting."""
    content: str
    token_usage: Dict[str, int] = field(default_factory=dict)


class TextGenerator(Protocol):
    """Anything that can turn a prompt into text; must tolerate concurrent calls."""

    async def generate(self, prompt: str, options: Optional[Dict[str, Any]] = None) -> CompletionResult:
        ...


class OpenAICompletionClient:
    """OpenAI chat-completions generator.

    ``timeout`` bounds one attempt; the client retries up to ``max_retries``
    times with its own backoff.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
    ):
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=max_retries)
        self.model = model
        self.logger = app_logger.bind(component="openai_completion")

    async def generate(self, prompt: str, options: Optional[Dict[str, Any]] = None) -> CompletionResult:
        """Generate a completion for a single prompt."""
        options = options or {}
        try:
            response = await self.client.chat.completions.create(
                model=options.get("model", self.model),
                messages=[{"role": "user", "content": prompt}],
                temperature=options.get("temperature", 0.3),
                max_tokens=options.get("max_tokens", 120),
            )
        except OpenAIError as e:
            self.logger.error(f"Error generating OpenAI completion: {e}")
            raise CompletionError(f"OpenAI completion failed: {e}") from e

        content = response.choices[0].message.content or ""
        usage = response.usage
        token_usage = {}
        if usage is not None:
            token_usage = {
                "prompt": usage.prompt_tokens,
                "completion": usage.completion_tokens,
                "total": usage.total_tokens,
            }
        return CompletionResult(content=content, token_usage=token_usage)


def build_text_generator(settings: Settings) -> Optional[TextGenerator]:
    """Return the configured generator, or ``None`` when no API key is set."""
    if not settings.openai_api_key:
        return None
    return OpenAICompletionClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.completion_timeout,
        max_retries=settings.completion_max_retries,
    )
