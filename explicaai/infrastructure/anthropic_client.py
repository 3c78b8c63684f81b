"""Resilient Anthropic Client — ModelClient on AsyncAnthropic with retry, backoff and cancellation.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, 529): up to max_retries retries with backoff
    - Timeouts and client errors (4xx except 429): immediate failure, no retry
    - All transport failures mapped to GenerationUnavailableError (core/errors.py)
    - Empty model output is a transport failure, not a format failure
    - A fired CancelToken aborts the in-flight call (or backoff sleep) and
      raises ExplanationCancelled; no call starts after the token fired

Design Decisions:
    - Retries here are the client's own transport policy; the tier ladder above
      never retries a transport failure
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - top_p is opt-in: some model generations reject temperature and top_p together
"""

import asyncio
import logging
import random
import time

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    RateLimitError,
    APITimeoutError,
    InternalServerError,
)

from explicaai.core.cancellation import CancelToken
from explicaai.core.errors import (
    ErrorContext, ExplanationCancelled, ExplicaError, GenerationUnavailableError,
)
from explicaai.core.explanation_types import GenerationOptions, ModelResponse

logger = logging.getLogger(__name__)

# OverloadedError (HTTP 529) is not re-exported by the SDK; detect by status code.
_OVERLOADED_STATUS = 529


def _is_overloaded(e: APIError) -> bool:
    """Check if error is Anthropic 529 Overloaded."""
    return isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS


def _extract_text(response) -> str:
    return "".join(
        block.text for block in response.content
        if getattr(block, "type", None) == "text"
    )


class ResilientAnthropicClient:
    """Generates explanation text through the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-haiku-4-5",
        max_tokens: int = 2000,
        max_retries: int = 2,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 120,
        send_top_p: bool = False,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.send_top_p = send_top_p

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions,
        cancel_token: CancelToken,
    ) -> ModelResponse:
        """Single completion for prompt; raises GenerationUnavailableError or ExplanationCancelled."""
        context = ErrorContext(request_id=cancel_token.request_id)
        started = time.monotonic()
        for attempt in range(self.max_retries + 1):
            cancel_token.raise_if_cancelled()
            try:
                response = await _race(
                    self.client.messages.create(**self._request(prompt, options)),
                    cancel_token,
                )
            except RateLimitError as e:
                await self._handle_rate_limit(e, attempt, cancel_token, context)
                continue
            except APITimeoutError:
                raise GenerationUnavailableError(
                    "API timeout", "timeout", context=context,
                )
            except (APIConnectionError, InternalServerError) as e:
                await self._handle_transient_error(e, attempt, cancel_token, context)
                continue
            except APIError as e:
                if _is_overloaded(e):
                    await self._handle_transient_error(e, attempt, cancel_token, context)
                    continue
                raise GenerationUnavailableError(
                    str(e), "client_error", context=context,
                )
            except ExplicaError:
                raise
            except Exception as e:
                logger.error(
                    f"Unexpected Anthropic error: {e}", exc_info=True,
                )
                raise GenerationUnavailableError(
                    str(e), "unknown", context=context,
                )

            text = _extract_text(response)
            if not text.strip():
                raise GenerationUnavailableError(
                    "Model returned empty output", "empty_response", context=context,
                )
            elapsed_ms = int((time.monotonic() - started) * 1000)
            self._log_success(response, attempt, elapsed_ms, cancel_token)
            return ModelResponse(text=text, elapsed_ms=elapsed_ms)

        # Unreachable: the last attempt either returns or raises
        raise GenerationUnavailableError(
            "Retries exhausted", "connection_error", context=context,
        )

    def _request(self, prompt: str, options: GenerationOptions) -> dict:
        request = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": options.temperature,
            "top_k": options.top_k,
        }
        if self.send_top_p:
            request["top_p"] = options.top_p
        return request

    def _log_success(
        self, response, attempt: int, elapsed_ms: int, cancel_token: CancelToken,
    ) -> None:
        usage = getattr(response, "usage", None)
        logger.info(
            "Anthropic API success",
            extra={
                "request_id": cancel_token.request_id,
                "attempt": attempt + 1,
                "elapsed_ms": elapsed_ms,
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
            },
        )

    async def _handle_rate_limit(
        self,
        e: RateLimitError,
        attempt: int,
        cancel_token: CancelToken,
        context: ErrorContext,
    ) -> None:
        """Handle rate limit error with retry or raise."""
        retry_after_ms = self._extract_retry_after(e)
        if attempt >= self.max_retries:
            raise GenerationUnavailableError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await _sleep(delay, cancel_token)

    async def _handle_transient_error(
        self,
        e: Exception,
        attempt: int,
        cancel_token: CancelToken,
        context: ErrorContext,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise GenerationUnavailableError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient error, retry after {delay}ms: {e}")
        await _sleep(delay, cancel_token)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, error: RateLimitError) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        response = getattr(error, "response", None)
        if response is None:
            return None
        value = response.headers.get("retry-after")
        try:
            return int(value) * 1000 if value else None
        except (TypeError, ValueError):
            return None


# ─── Cancellation ────────────────────────────────────────────────

async def _race(coro, cancel_token: CancelToken):
    """Await coro unless the token fires first; the loser is cancelled."""
    call = asyncio.ensure_future(coro)
    cancelled = asyncio.ensure_future(cancel_token.wait())
    try:
        done, _ = await asyncio.wait(
            {call, cancelled}, return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for task in (call, cancelled):
            if not task.done():
                task.cancel()
    if call in done:
        return call.result()
    logger.info(
        "Model call aborted by cancellation",
        extra={"request_id": cancel_token.request_id},
    )
    raise ExplanationCancelled(ErrorContext(request_id=cancel_token.request_id))


async def _sleep(delay_ms: int, cancel_token: CancelToken) -> None:
    try:
        await asyncio.wait_for(cancel_token.wait(), timeout=delay_ms / 1000)
    except asyncio.TimeoutError:
        return
    raise ExplanationCancelled(ErrorContext(request_id=cancel_token.request_id))
