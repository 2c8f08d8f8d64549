# src/drillboard/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx
import openai
from openai import OpenAI

from ..core.ports import ChatMessage
from ..errors import SummaryServiceError

logger = logging.getLogger(__name__)


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    # APITimeoutError is a subclass of APIConnectionError; raw httpx errors can
    # also escape while iterating the stream.
    return isinstance(exc, (openai.APIConnectionError, httpx.TransportError))


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def _close_stream(stream: Any) -> None:
    close = getattr(stream, "close", None)
    if callable(close):
        try:
            close()
        except Exception:
            logger.debug("LLM: stream close failed.", exc_info=True)


class OpenRouterLLMClient:
    """
    OpenAI-compatible streaming client (OpenRouter by default).

    Behavior:
    - Tries models in the order from settings (DRILLBOARD_LLM_MODELS).
    - If a model doesn't produce a first content token within the first-token
      timeout, we abort and try the next model.
    - 404 (model not available) -> model is parked for an hour, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast (no retries across models).

    Construction raises SummaryServiceError when no API key is configured, so the
    composition root can decide to run without the summary feature.
    """

    BAD_MODEL_COOLDOWN_SECONDS = 3600.0

    def __init__(self, settings: Any, *, client: OpenAI | None = None) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = str(getattr(settings, "openrouter_base_url", "") or "")

        if client is None:
            if not api_key or not str(api_key).strip():
                raise SummaryServiceError(
                    "LLM API key is not set. Set DRILLBOARD_OPENROUTER_API_KEY in your .env."
                )
            if not base_url.strip():
                raise SummaryServiceError(
                    "LLM base URL is not set. Set DRILLBOARD_OPENROUTER_BASE_URL in your .env."
                )

        self._models: List[str] = [m.strip() for m in getattr(settings, "llm_models", []) if m.strip()]
        self._headers: Dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})
        self._first_token_timeout = float(getattr(settings, "llm_first_token_timeout", 20.0))
        self._timeout = httpx.Timeout(
            connect=float(getattr(settings, "llm_connect_timeout", 5.0)),
            read=float(getattr(settings, "llm_read_timeout", 25.0)),
            write=10.0,
            pool=float(getattr(settings, "llm_connect_timeout", 5.0)),
        )
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

        # Retries are disabled so we can fall back across models quickly.
        self._client = client or OpenAI(
            base_url=base_url,
            api_key=str(api_key),
            timeout=self._timeout,
            max_retries=0,
        )

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        if not self._models:
            raise SummaryServiceError("LLM model list is empty. Set DRILLBOARD_LLM_MODELS in your .env.")

        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in self._models:
            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info(
                "LLM: trying model=%s (first_token_timeout=%.1fs)", model, self._first_token_timeout
            )
            t0 = time.monotonic()
            deadline = t0 + self._first_token_timeout

            stream = None
            used_any = False

            try:
                stream = self._client.chat.completions.create(
                    model=model,
                    stream=True,
                    extra_headers=self._headers or None,
                    messages=[{"role": "system", "content": system_prompt}, *messages],
                    timeout=self._timeout,
                )

                for chunk in stream:
                    if not used_any and time.monotonic() > deadline:
                        last_error = TimeoutError(f"First token timeout on model: {model}")
                        logger.info("LLM: first token timeout on model=%s -> trying next", model)
                        break

                    content = None
                    if chunk.choices:
                        delta = getattr(chunk.choices[0], "delta", None)
                        content = getattr(delta, "content", None) if delta is not None else None

                    if content:
                        if not used_any:
                            logger.info(
                                "LLM: first token from model=%s (%.2fs)", model, time.monotonic() - t0
                            )
                        used_any = True
                        yield content

                if used_any:
                    logger.debug("LLM: completed with model=%s", model)
                    return

                if last_error is None:
                    last_error = SummaryServiceError(f"Model returned no content: {model}")

            except (openai.OpenAIError, httpx.HTTPError) as e:
                last_error = e

                if _is_auth_error(e):
                    raise SummaryServiceError(
                        "LLM authentication failed. Check your API key (DRILLBOARD_OPENROUTER_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + self.BAD_MODEL_COOLDOWN_SECONDS
                    logger.info("LLM: model not available (404): %s", model)
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)

            finally:
                if stream is not None:
                    _close_stream(stream)

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise SummaryServiceError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise SummaryServiceError(
                    "LLM network/timeout error. Try again later or change models."
                ) from last_error
            raise SummaryServiceError("All LLM models failed.") from last_error

        raise SummaryServiceError("All LLM models failed.")
