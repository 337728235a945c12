# src/services/completion_client.py

"""Structured completion client: prompt in, one validated JSON object out."""

import asyncio
import json
import logging
import re
from typing import Any, TypeVar

import anthropic
from pydantic import BaseModel, ValidationError

from src.config.settings import Settings
from src.services.errors import (
    CompletionError,
    CompletionPermanentError,
    CompletionTransientError,
    SchemaValidationError,
)

logger = logging.getLogger("import_scout.completion")

ModelT = TypeVar("ModelT", bound=BaseModel)

# First "{" through the last "}" (greedy, spans newlines)
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_RETRYABLE_STATUS: frozenset[int] = frozenset({429, 529})


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the single JSON object embedded in free-form model output.

    Only the substring from the first ``{`` to the last ``}`` is
    parsed; surrounding prose or code fences are ignored.

    Raises:
        CompletionPermanentError: No candidate substring, or the
            candidate is not valid JSON.
    """
    raw = text.strip()
    match = _JSON_OBJECT_RE.search(raw)
    if match is None:
        raise CompletionPermanentError(
            f"No JSON object found in completion response: {raw[:200]}"
        )
    try:
        parsed: dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise CompletionPermanentError(
            f"Malformed JSON in completion response: {exc}"
        ) from exc
    return parsed


def _caused_by_reset(exc: BaseException) -> bool:
    """True when a ``ConnectionResetError`` sits in *exc*'s chain."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ConnectionResetError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def is_retryable(exc: BaseException) -> bool:
    """Return True for rate-limit, overload, 5xx and connection resets.

    SDK connection errors only count when the underlying socket error
    was a reset; DNS failures, refused connections and timeouts are
    permanent.
    """
    if isinstance(exc, anthropic.APIStatusError):
        status = exc.status_code
        return status in _RETRYABLE_STATUS or status >= 500
    if isinstance(exc, anthropic.APITimeoutError):
        return False
    if isinstance(exc, anthropic.APIConnectionError):
        return _caused_by_reset(exc)
    return isinstance(exc, ConnectionResetError)


def _status_of(exc: BaseException) -> int | None:
    if isinstance(exc, anthropic.APIStatusError):
        return exc.status_code
    return None


class CompletionClient:
    """Calls the completion provider and extracts structured output.

    The underlying ``AsyncAnthropic`` handle is created once (or
    injected) and shared read-only; SDK-level retries are disabled so
    the backoff policy below is the only one in effect.
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self.settings = Settings()
        self._client = client or anthropic.AsyncAnthropic(
            api_key=self.settings.ANTHROPIC_API_KEY,
            max_retries=0,
        )
        self.model = model or self.settings.ANTHROPIC_MODEL
        self.max_tokens = (
            max_tokens or self.settings.COMPLETION_MAX_TOKENS
        )
        self.max_attempts = max(
            1, self.settings.COMPLETION_MAX_ATTEMPTS
        )
        self.initial_delay = self.settings.COMPLETION_INITIAL_DELAY

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before *attempt* (1-based): 0, 1, 2, 4, ..."""
        if attempt <= 1:
            return 0.0
        return self.initial_delay * 2 ** (attempt - 2)

    async def _request_text(
        self, system: str, user: str, max_tokens: int,
    ) -> str:
        """Issue one completion request and return its text content."""
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": user}],
        )
        text = next(
            (
                block.text
                for block in response.content
                if getattr(block, "type", None) == "text"
            ),
            None,
        )
        if not text:
            raise CompletionPermanentError(
                "No text block in completion response"
            )
        return text

    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Run a completion and return the JSON object it contains.

        Transient provider failures are retried up to
        ``max_attempts`` times with full exponential backoff; any
        other failure is raised immediately.
        """
        budget = max_tokens or self.max_tokens
        last_error: CompletionError | None = None

        for attempt in range(1, self.max_attempts + 1):
            delay = self.backoff_delay(attempt)
            if delay:
                logger.warning(
                    "Retrying completion in %.1fs (attempt %d/%d): %s",
                    delay,
                    attempt,
                    self.max_attempts,
                    last_error,
                )
                await asyncio.sleep(delay)
            try:
                text = await self._request_text(system, user, budget)
                return extract_json_object(text)
            except (anthropic.APIError, ConnectionResetError) as exc:
                if not is_retryable(exc):
                    raise CompletionPermanentError(
                        f"Completion provider error: {exc}"
                    ) from exc
                last_error = CompletionTransientError(
                    f"Transient completion failure: {exc}",
                    status_code=_status_of(exc),
                )
                last_error.__cause__ = exc

        if last_error is None:
            raise CompletionPermanentError("No completion attempts made")
        logger.error(
            "Completion failed after %d attempts: %s",
            self.max_attempts,
            last_error,
        )
        raise last_error

    async def structured_complete(
        self,
        system: str,
        user: str,
        schema: type[ModelT],
        max_tokens: int | None = None,
    ) -> ModelT:
        """Like :meth:`complete`, then validate against *schema*."""
        raw = await self.complete(system, user, max_tokens)
        try:
            return schema.model_validate(raw)
        except ValidationError as exc:
            raise SchemaValidationError(schema.__name__, exc) from exc
