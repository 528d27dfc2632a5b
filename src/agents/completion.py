"""Completion client - single-attempt prompt completion via the Anthropic API."""
import logging
from typing import Optional, Protocol

import anthropic
from anthropic import Anthropic

from agents import config
from ingestion.errors import ExtractionUnavailable

logger = logging.getLogger(__name__)


class Completer(Protocol):
    """Anything that turns a prompt into raw response text."""

    def complete(self, prompt: str) -> str:
        ...


class CompletionClient:
    """
    Prompt in, raw text out.

    One attempt per call, no retry. Timeouts are enforced by the SDK client.

    Args:
        api_key: Anthropic API key (default: ANTHROPIC_API_KEY)
        model: Model name (default: DECLARATION_MODEL)
        max_tokens: Response token limit (default: DECLARATION_MAX_TOKENS)
        timeout: Request timeout in seconds (default: DECLARATION_TIMEOUT)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or config.get_api_key()
        self.model = model or config.get_model()
        self.max_tokens = max_tokens or config.get_max_tokens()
        self.timeout = timeout or config.get_timeout()
        self._client: Optional[Anthropic] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> Anthropic:
        if self._client is None:
            self._client = Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def complete(self, prompt: str) -> str:
        """
        Send the prompt and return the concatenated text blocks of the reply.

        Args:
            prompt: Complete prompt text

        Returns:
            Raw response text, possibly empty or fenced

        Raises:
            ExtractionUnavailable: If no API key is configured or the call fails
        """
        if not self.configured:
            raise ExtractionUnavailable("Completion service is not configured (ANTHROPIC_API_KEY unset)")

        try:
            response = self._get_client().messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise ExtractionUnavailable(f"Completion call failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug(f"Completion returned {len(text)} characters (stop_reason={response.stop_reason})")
        return text
