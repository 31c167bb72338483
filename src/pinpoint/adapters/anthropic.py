"""Anthropic Claude chat model for element selection.

Implements the ``ChatModel`` protocol used by ``LLMSelector``: one system
prompt plus user content blocks (text and an optional base64 screenshot) in,
the reply text out.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from ..config.settings import settings

logger = logging.getLogger(__name__)


def _get_api_key() -> str | None:
    # Prefer standard env name; fall back for backward compatibility
    return os.getenv("ANTHROPIC_API_KEY") or os.getenv("CLAUDE_API_KEY")


def has_api_key() -> bool:
    return bool(_get_api_key())


def _client():
    from anthropic import AsyncAnthropic

    key = _get_api_key()
    if not key:
        raise RuntimeError("Anthropic API key not found in ANTHROPIC_API_KEY or CLAUDE_API_KEY")
    return AsyncAnthropic(api_key=key)


def _extract_json(text: str) -> dict[str, Any]:
    # Best-effort JSON extraction
    try:
        return json.loads(text)
    except ValueError:
        pass
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except ValueError:
            pass
    raise ValueError("Failed to parse JSON from Claude response")


class AnthropicChatModel:
    """``ChatModel`` backed by the Messages API.

    Args:
        model: Claude model name (default: ``PINPOINT_LLM_MODEL``)
        max_tokens: Max tokens in response
        temperature: Temperature for sampling (0.0 = deterministic)
    """

    def __init__(
        self,
        model: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.0,
        client: Any = None,
    ):
        self.model = model or settings.llm_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._anthropic = client

    @property
    def client(self):
        if self._anthropic is None:
            self._anthropic = _client()
        return self._anthropic

    async def invoke(self, system_prompt: str, content: list[dict[str, Any]]) -> str:
        msg = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": content}],
        )
        # Concatenate text blocks
        parts = []
        for block in msg.content:
            if getattr(block, "type", None) == "text":
                parts.append(getattr(block, "text", ""))
        raw = "".join(parts)

        # Normalise chatty replies to the bare JSON object when one is present
        try:
            return json.dumps(_extract_json(raw))
        except ValueError:
            logger.debug(f"Claude reply carried no JSON object: {raw[:200]}")
            return raw
