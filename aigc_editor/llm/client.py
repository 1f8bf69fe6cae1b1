from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import json
import logging
import time

import anthropic

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """Configuration for Claude API client."""
    api_key: str
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 2048
    temperature: float = 0.2
    max_concurrent: int = 4  # parallel paragraph requests
    max_retries: int = 3  # retries for rate limit / overload errors
    min_request_interval: float = 0.3  # seconds between requests per worker


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Parse a model reply as a JSON object, tolerating prose around it."""
    text = raw.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        first, last = text.find("{"), text.rfind("}")
        if first == -1 or last <= first:
            raise ValueError("LLM output is not valid JSON")
        data = json.loads(text[first:last + 1])
    if not isinstance(data, dict):
        raise ValueError("LLM output is not a JSON object")
    return data


class ClaudeClient:
    """Thin wrapper around Anthropic's Claude API returning structured JSON replies."""

    def __init__(self, config: LLMConfig, client: Optional[Any] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> Any:
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            self._client = anthropic.Anthropic(api_key=self.config.api_key)
        return self._client

    def _complete(self, system: str, messages: List[Dict[str, str]], temperature: float) -> str:
        message = self.client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=temperature,
            system=system,
            messages=messages,
        )
        out = ""
        for block in message.content:
            if hasattr(block, "text"):
                out += block.text
        return out.strip()

    def chat_json(
        self,
        system: str,
        messages: List[Dict[str, str]],
        *,
        purpose: str,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """One request, retried on rate limits with exponential backoff (2s, 4s, 8s)."""
        temp = self.config.temperature if temperature is None else temperature
        start = time.time()
        for attempt in range(self.config.max_retries + 1):
            try:
                if self.config.min_request_interval:
                    time.sleep(self.config.min_request_interval)
                raw = self._complete(system, messages, temp)
                break
            except (anthropic.RateLimitError, anthropic.InternalServerError) as e:
                if attempt >= self.config.max_retries:
                    raise
                backoff = 2 ** (attempt + 1)
                logger.warning(f"{purpose}: {type(e).__name__}, retry {attempt+1}/{self.config.max_retries} in {backoff}s")
                time.sleep(backoff)

        logger.info(f"{purpose}: reply in {(time.time() - start) * 1000:.0f}ms")
        return parse_json_object(raw)
