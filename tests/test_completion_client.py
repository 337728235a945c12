# tests/test_completion_client.py

"""Tests for JSON extraction, retry policy and schema validation."""

import unittest
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock, call, patch

import anthropic
import httpx
from pydantic import BaseModel

from src.services.completion_client import (
    CompletionClient,
    extract_json_object,
    is_retryable,
)
from src.services.errors import (
    CompletionPermanentError,
    CompletionTransientError,
    SchemaValidationError,
)

SLEEP_PATH = "src.services.completion_client.asyncio.sleep"

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(status: int) -> anthropic.APIStatusError:
    """Build the SDK error the client raises for an HTTP status."""
    response = httpx.Response(status, request=_REQUEST)
    return anthropic.APIStatusError(
        f"status {status}", response=response, body=None
    )


def _connection_error(cause: BaseException) -> anthropic.APIConnectionError:
    """An SDK connection error wrapping a transport failure."""
    transport = httpx.ReadError(str(cause), request=_REQUEST)
    transport.__cause__ = cause
    error = anthropic.APIConnectionError(request=_REQUEST)
    error.__cause__ = transport
    return error


def _text_response(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def _fake_client(*outcomes: Any) -> MagicMock:
    """An AsyncAnthropic stand-in whose create() yields *outcomes*."""
    client = MagicMock()
    client.messages.create = AsyncMock(side_effect=list(outcomes))
    return client


class _Verdict(BaseModel):
    verdict: str
    score: float


class TestExtractJsonObject(unittest.TestCase):
    """Verify JSON extraction from free-form completion text."""

    def test_plain_object(self) -> None:
        """A bare object parses as-is."""
        self.assertEqual(extract_json_object('{"a": 1}'), {"a": 1})

    def test_object_wrapped_in_prose_and_fences(self) -> None:
        """Surrounding prose and code fences are ignored."""
        text = 'Here you go:\n```json\n{"a": {"b": [1, 2]}}\n```\nThanks!'
        self.assertEqual(extract_json_object(text), {"a": {"b": [1, 2]}})

    def test_no_brace_is_permanent(self) -> None:
        """Text with no '{' cannot be parsed."""
        with self.assertRaises(CompletionPermanentError):
            extract_json_object("I cannot help with that.")

    def test_malformed_json_is_permanent(self) -> None:
        """A brace-delimited but invalid candidate is rejected."""
        with self.assertRaises(CompletionPermanentError):
            extract_json_object("{not: json}")

    def test_two_objects_span_is_rejected(self) -> None:
        """First '{' to last '}' across two objects is not valid JSON."""
        with self.assertRaises(CompletionPermanentError):
            extract_json_object('{"a": 1} and {"b": 2}')


class TestIsRetryable(unittest.TestCase):
    """Verify transient/permanent classification."""

    def test_retryable_statuses(self) -> None:
        """429, 529 and 5xx are transient."""
        for status in (429, 500, 502, 503, 529):
            with self.subTest(status=status):
                self.assertTrue(is_retryable(_status_error(status)))

    def test_client_errors_not_retryable(self) -> None:
        """Other 4xx statuses are permanent."""
        for status in (400, 401, 403, 404, 422):
            with self.subTest(status=status):
                self.assertFalse(is_retryable(_status_error(status)))

    def test_connection_errors(self) -> None:
        """Connection resets retry; request timeouts do not."""
        self.assertTrue(
            is_retryable(_connection_error(ConnectionResetError(104, "reset")))
        )
        self.assertTrue(is_retryable(ConnectionResetError()))
        self.assertFalse(
            is_retryable(anthropic.APITimeoutError(request=_REQUEST))
        )

    def test_other_connection_failures_not_retryable(self) -> None:
        """Refused connections and DNS failures are permanent."""
        for cause in (
            ConnectionRefusedError(111, "refused"),
            OSError("Name or service not known"),
        ):
            with self.subTest(cause=type(cause).__name__):
                self.assertFalse(is_retryable(_connection_error(cause)))
        self.assertFalse(
            is_retryable(anthropic.APIConnectionError(request=_REQUEST))
        )

    def test_unrelated_errors(self) -> None:
        """Arbitrary exceptions are not retried."""
        self.assertFalse(is_retryable(ValueError("nope")))


class TestBackoff(unittest.TestCase):
    """Verify the exponential delay schedule."""

    def test_delays(self) -> None:
        """0 before the first attempt, then 1s, 2s, 4s."""
        client = CompletionClient(client=_fake_client())
        self.assertEqual(
            [client.backoff_delay(n) for n in (1, 2, 3, 4)],
            [0.0, 1.0, 2.0, 4.0],
        )


class TestComplete(unittest.IsolatedAsyncioTestCase):
    """Verify request issuing, retries and failure classes."""

    async def test_success_first_try(self) -> None:
        """A good response returns its object without sleeping."""
        fake = _fake_client(_text_response('{"ok": true}'))
        client = CompletionClient(client=fake, model="test-model")
        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            result = await client.complete("sys", "user", max_tokens=99)

        self.assertEqual(result, {"ok": True})
        sleep.assert_not_called()
        kwargs = fake.messages.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertEqual(kwargs["max_tokens"], 99)
        self.assertEqual(kwargs["system"], "sys")
        self.assertEqual(
            kwargs["messages"], [{"role": "user", "content": "user"}]
        )

    async def test_default_token_budget(self) -> None:
        """Without an override the client's budget is used."""
        fake = _fake_client(_text_response("{}"))
        client = CompletionClient(client=fake, max_tokens=321)
        await client.complete("sys", "user")
        self.assertEqual(
            fake.messages.create.call_args.kwargs["max_tokens"], 321
        )

    async def test_rate_limit_then_success(self) -> None:
        """Two 429s, then success: three calls with 1s and 2s waits."""
        fake = _fake_client(
            _status_error(429),
            _status_error(429),
            _text_response('Result: {"score": 7}'),
        )
        client = CompletionClient(client=fake)
        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            result = await client.complete("sys", "user")

        self.assertEqual(result, {"score": 7})
        self.assertEqual(fake.messages.create.await_count, 3)
        self.assertEqual(sleep.await_args_list, [call(1.0), call(2.0)])

    async def test_retries_exhausted(self) -> None:
        """Persistent overload fails after three attempts."""
        fake = _fake_client(*(_status_error(529) for _ in range(3)))
        client = CompletionClient(client=fake)
        with patch(SLEEP_PATH, new_callable=AsyncMock):
            with self.assertRaises(CompletionTransientError) as ctx:
                await client.complete("sys", "user")

        self.assertEqual(fake.messages.create.await_count, 3)
        self.assertEqual(ctx.exception.status_code, 529)
        self.assertIsInstance(ctx.exception.__cause__, anthropic.APIStatusError)

    async def test_connection_reset_retried(self) -> None:
        """Connection resets are retried like overloads."""
        fake = _fake_client(
            _connection_error(ConnectionResetError(104, "reset")),
            _text_response('{"ok": 1}'),
        )
        client = CompletionClient(client=fake)
        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            result = await client.complete("sys", "user")
        self.assertEqual(result, {"ok": 1})
        self.assertEqual(sleep.await_args_list, [call(1.0)])

    async def test_refused_connection_not_retried(self) -> None:
        """A refused connection fails after one call."""
        fake = _fake_client(
            _connection_error(ConnectionRefusedError(111, "refused")),
            _text_response("{}"),
        )
        client = CompletionClient(client=fake)
        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            with self.assertRaises(CompletionPermanentError):
                await client.complete("sys", "user")
        self.assertEqual(fake.messages.create.await_count, 1)
        sleep.assert_not_called()

    async def test_bad_request_not_retried(self) -> None:
        """A 400 fails immediately as permanent."""
        fake = _fake_client(_status_error(400), _text_response("{}"))
        client = CompletionClient(client=fake)
        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            with self.assertRaises(CompletionPermanentError):
                await client.complete("sys", "user")
        self.assertEqual(fake.messages.create.await_count, 1)
        sleep.assert_not_called()

    async def test_timeout_not_retried(self) -> None:
        """A request timeout is treated as permanent."""
        fake = _fake_client(
            anthropic.APITimeoutError(request=_REQUEST), _text_response("{}")
        )
        client = CompletionClient(client=fake)
        with self.assertRaises(CompletionPermanentError):
            await client.complete("sys", "user")
        self.assertEqual(fake.messages.create.await_count, 1)

    async def test_no_json_not_retried(self) -> None:
        """A reply without any object fails after one call."""
        fake = _fake_client(
            _text_response("Sorry, no JSON here."), _text_response("{}")
        )
        client = CompletionClient(client=fake)
        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            with self.assertRaises(CompletionPermanentError):
                await client.complete("sys", "user")
        self.assertEqual(fake.messages.create.await_count, 1)
        sleep.assert_not_called()

    async def test_no_text_block(self) -> None:
        """A response with only non-text blocks is permanent."""
        fake = _fake_client(
            SimpleNamespace(content=[SimpleNamespace(type="tool_use")])
        )
        client = CompletionClient(client=fake)
        with self.assertRaises(CompletionPermanentError):
            await client.complete("sys", "user")


class TestStructuredComplete(unittest.IsolatedAsyncioTestCase):
    """Verify validation of parsed output against a model."""

    async def test_valid_object(self) -> None:
        """A conforming object is returned as the model."""
        fake = _fake_client(
            _text_response('{"verdict": "go", "score": 81}')
        )
        client = CompletionClient(client=fake)
        result = await client.structured_complete("sys", "user", _Verdict)
        self.assertEqual(result, _Verdict(verdict="go", score=81))

    async def test_schema_mismatch(self) -> None:
        """A missing field raises SchemaValidationError, not retried."""
        fake = _fake_client(
            _text_response('{"verdict": "go"}'), _text_response("{}")
        )
        client = CompletionClient(client=fake)
        with self.assertRaises(SchemaValidationError) as ctx:
            await client.structured_complete("sys", "user", _Verdict)
        self.assertEqual(ctx.exception.model_name, "_Verdict")
        self.assertEqual(fake.messages.create.await_count, 1)


if __name__ == "__main__":
    unittest.main()
