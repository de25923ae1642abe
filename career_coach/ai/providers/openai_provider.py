from __future__ import annotations

import logging
import os
import time
from typing import Optional

from openai import APITimeoutError, OpenAI, OpenAIError

from career_coach.ai.types import ChatMessage, CompletionError, CompletionTimeout

logger = logging.getLogger(__name__)


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        temperature: float = 0.7,
    ):
        self._model = model
        self._temperature = temperature
        self._timeout_s = timeout_s
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise CompletionError("OPENAI_API_KEY is missing", code="llm_disabled")

        # No retries: a failed call drops straight to the heuristic path.
        self._client = OpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int,
        timeout_s: float | None = None,
    ) -> str:
        messages = [ChatMessage(role="system", content=system_prompt), ChatMessage(role="user", content=user_prompt)]
        payload = [{"role": m.role, "content": m.content} for m in messages]
        started = time.perf_counter()
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=payload,
                temperature=self._temperature,
                max_tokens=max_output_tokens,
                timeout=timeout_s or self._timeout_s,
            )
        except APITimeoutError as exc:
            logger.warning("openai_completion_timeout model=%s prompt_len=%s", self._model, len(user_prompt))
            raise CompletionTimeout() from exc
        except OpenAIError as exc:
            logger.warning("openai_completion_failed model=%s prompt_len=%s: %s", self._model, len(user_prompt), exc)
            raise CompletionError(f"OpenAI API error: {exc}") from exc

        content = response.choices[0].message.content if response.choices else ""
        latency_ms = int((time.perf_counter() - started) * 1000)
        if not content or not content.strip():
            logger.warning("openai_completion_empty model=%s latency_ms=%s", self._model, latency_ms)
            raise CompletionError("OpenAI returned an empty response.", code="empty_response")
        logger.info("openai_completion_ok model=%s latency_ms=%s chars=%s", self._model, latency_ms, len(content))
        return content.strip()
