"""LLM gateway over the Anthropic Messages API.

One ``aiohttp`` session per gateway, opened lazily on first use and closed
by the application lifespan. No retries: a failed call is reported to the
caller, which decides whether to degrade or surface it.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp

from config.settings import LLMConfig
from observability.logging import get_structured_logger
from observability.prometheus_metrics import record_llm_metrics

from .errors import LLMError, UpstreamUnavailable

logger = logging.getLogger(__name__)
call_logger = get_structured_logger(__name__, component="llm")


class LLMGateway:
    """Sends prompts to the text-generation provider and returns plain text."""

    def __init__(self, config: LLMConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.session = session
        self._owns_session = session is None

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP session if this gateway opened it."""
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()
            logger.info("LLM gateway session closed")
        self.session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self.session

    async def _send(self, operation: str, system_prompt: str,
                    messages: List[Dict[str, str]], max_tokens: Optional[int] = None) -> str:
        if not self.configured:
            raise LLMError("No API key configured, set ANTHROPIC_API_KEY to enable AI features")

        payload = {
            "model": self.config.model,
            "max_tokens": max_tokens or self.config.max_tokens,
            "system": system_prompt,
            "messages": messages,
        }
        headers = {
            "x-api-key": self.config.api_key,
            "anthropic-version": self.config.api_version,
            "content-type": "application/json",
        }
        url = f"{self.config.base_url.rstrip('/')}/v1/messages"
        prompt_chars = len(system_prompt) + sum(len(m["content"]) for m in messages)

        start_time = time.time()
        try:
            async with self._get_session().post(url, json=payload, headers=headers) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    # Proxies answer with HTML error pages
                    data = None
                if response.status != 200:
                    raise LLMError(self._error_message(data, response.status), response.status)
                if not isinstance(data, dict):
                    raise LLMError("Provider returned an unreadable response", response.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            duration = time.time() - start_time
            record_llm_metrics(operation, duration, error=type(e).__name__)
            call_logger.error(f"LLM request failed: {e}", operation=operation,
                              model=self.config.model, latency_ms=round(duration * 1000))
            raise LLMError(str(e) or type(e).__name__) from e
        except LLMError as e:
            duration = time.time() - start_time
            record_llm_metrics(operation, duration, error=f"http_{e.status}")
            call_logger.error(f"LLM provider error: {e.message}", operation=operation,
                              model=self.config.model, status=e.status,
                              latency_ms=round(duration * 1000))
            raise

        duration = time.time() - start_time
        record_llm_metrics(operation, duration)
        blocks = data.get("content") if isinstance(data.get("content"), list) else []
        text = "".join(
            block.get("text", "") for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )
        call_logger.info("LLM request completed", operation=operation, model=self.config.model,
                         prompt_chars=prompt_chars, response_chars=len(text),
                         latency_ms=round(duration * 1000))
        return text

    @staticmethod
    def _error_message(data: Any, status: int) -> str:
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return error["message"]
        return f"Provider returned HTTP {status}"

    async def complete(self, system_prompt: str, user_prompt: str,
                       max_tokens: Optional[int] = None, operation: str = "complete") -> str:
        """Single-turn completion. Raises ``UpstreamUnavailable`` on any failure."""
        try:
            return await self._send(operation, system_prompt,
                                    [{"role": "user", "content": user_prompt}], max_tokens)
        except LLMError as e:
            raise UpstreamUnavailable(e.message) from e

    async def try_complete(self, system_prompt: str, user_prompt: str,
                           max_tokens: Optional[int] = None, operation: str = "complete") -> Optional[str]:
        """Like ``complete`` but returns None when unavailable or failing."""
        if not self.configured:
            return None
        try:
            return await self.complete(system_prompt, user_prompt, max_tokens, operation)
        except UpstreamUnavailable as e:
            logger.warning(f"LLM unavailable for {operation}, using fallback: {e.error}")
            return None

    async def converse(self, system_prompt: str, messages: List[Dict[str, str]],
                       max_tokens: Optional[int] = None) -> str:
        """Multi-turn call for chat. Raises ``LLMError`` with the provider status."""
        return await self._send("chat", system_prompt, messages, max_tokens)
