"""
Text Generation Client

Boundary to the chat-completion service. The engine only needs "messages in,
text out"; this module adds the per-request timeout, bounded retries with
exponential backoff for transient failures, and clean-up of the returned text.
"""

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Protocol

import openai
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .config import EngineConfig
from .errors import LLMServiceError

logger = logging.getLogger(__name__)

Message = Dict[str, str]

# Leading "assistant:" / "Tutor:" style labels some models echo back
_ROLE_PREFIX = re.compile(r"^\s*(?:assistant|tutor|ai|system)\s*:\s*", re.IGNORECASE)


@dataclass(frozen=True)
class GenerationParams:
    """Sampling parameters for one completion."""
    temperature: float = 0.7
    max_tokens: int = 150
    presence_penalty: float = 0.6
    frequency_penalty: float = 0.2
    top_p: float = 1.0

    @classmethod
    def opening(cls) -> "GenerationParams":
        """Opening question: a little more exploratory, room for a longer question."""
        return cls(temperature=0.8, max_tokens=150)

    @classmethod
    def turn(cls) -> "GenerationParams":
        """Regular turn: short output, strong push toward varied phrasing."""
        return cls(temperature=0.75, max_tokens=100, presence_penalty=0.7, frequency_penalty=0.2)


class TextGenerator(Protocol):
    """Anything that turns a message list into one reply."""

    async def generate(self, messages: List[Message], params: GenerationParams) -> str:
        ...


def sanitize(text: str) -> str:
    """Strip whitespace and any echoed role label from a completion."""
    return _ROLE_PREFIX.sub("", text.strip()).strip()


def classify_error(error: Exception) -> LLMServiceError:
    """
    Map an OpenAI SDK exception to an LLMServiceError.

    Timeouts, connection errors, rate limits and 5xx responses are retryable.
    Other HTTP errors (bad request, auth, billing, not found, validation) are not.
    """
    if isinstance(error, LLMServiceError):
        return error
    if isinstance(error, openai.APITimeoutError):
        return LLMServiceError(f"Text generation timed out: {error}", retryable=True)
    if isinstance(error, openai.APIConnectionError):
        return LLMServiceError(f"Could not reach text generation service: {error}", retryable=True)
    if isinstance(error, openai.APIStatusError):
        status = error.status_code
        if status == 429:
            return LLMServiceError(f"Rate limited by text generation service: {error}", retryable=True)
        if status >= 500:
            return LLMServiceError(f"Text generation service error ({status}): {error}", retryable=True)
        return LLMServiceError(f"Text generation request rejected ({status}): {error}", retryable=False)
    return LLMServiceError(f"Unexpected text generation failure: {error}", retryable=True)


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, LLMServiceError) and error.retryable


class OpenAITextGenerator:
    """
    TextGenerator backed by an OpenAI-compatible chat completions API.

    Args:
        config: Engine configuration (model, timeout, retry policy, API key)
        client: Optional pre-built AsyncOpenAI (or compatible) client
    """

    def __init__(self, config: Optional[EngineConfig] = None, client: Optional[Any] = None):
        self.config = config or EngineConfig.from_env()
        self.model = self.config.model
        self.client = client
        if self.client is None and self.config.openai_api_key:
            # Retries are handled here, not by the SDK
            self.client = AsyncOpenAI(
                api_key=self.config.openai_api_key,
                timeout=self.config.timeout_seconds,
                max_retries=0,
            )

    async def generate(self, messages: List[Message], params: GenerationParams) -> str:
        """
        Generate one completion, retrying transient failures.

        Raises:
            LLMServiceError: retryable=False immediately for permanent failures,
                retryable=True once the attempts are exhausted
        """
        if self.client is None:
            raise LLMServiceError("OPENAI_API_KEY is not set", retryable=False)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_exponential(
                multiplier=self.config.backoff_initial_seconds,
                max=self.config.backoff_max_seconds,
            ),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._complete(messages, params)
        raise LLMServiceError("Text generation failed without an attempt", retryable=True)

    async def _complete(self, messages: List[Message], params: GenerationParams) -> str:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                timeout=self.config.timeout_seconds,
                **asdict(params),
            )
        except openai.OpenAIError as e:
            raise classify_error(e) from e

        content = None
        if completion.choices:
            content = completion.choices[0].message.content
        text = sanitize(content or "")
        if not text:
            raise LLMServiceError("Text generation returned an empty completion", retryable=True)
        return text
