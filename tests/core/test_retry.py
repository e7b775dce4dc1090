"""Tests for retry_with_backoff and transient error classification."""

import asyncio

import pytest

from resume_tailor.core import retry as retry_module
from resume_tailor.core.retry import (
    MaxRetriesExceeded,
    PermanentError,
    RetryConfig,
    TransientError,
    is_transient_error,
    retry_with_backoff,
)


class StatusError(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"Error code: {status_code}")
        self.status_code = status_code


class CodeError(Exception):
    def __init__(self, code: int):
        super().__init__("api error")
        self.code = code


@pytest.fixture
def recorded_sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)
    return delays


class TestRetryConfig:
    def test_delays_double_per_attempt(self):
        config = RetryConfig(max_retries=3, base_delay=1.0)
        assert [config.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]
        assert config.max_attempts == 4

    def test_delay_capped(self):
        config = RetryConfig(base_delay=10.0, max_delay=15.0)
        assert config.delay_for(3) == 15.0

    def test_jitter_stays_within_band(self):
        config = RetryConfig(base_delay=1.0, jitter_factor=0.2)
        for _ in range(50):
            assert 0.8 <= config.delay_for(1) <= 1.2

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryConfig(max_retries=-1)


class TestRetryWithBackoff:
    @pytest.mark.asyncio
    async def test_success_first_try(self, recorded_sleeps):
        async def ok():
            return "done"

        assert await retry_with_backoff(ok, RetryConfig()) == "done"
        assert recorded_sleeps == []

    @pytest.mark.asyncio
    async def test_two_rate_limits_then_success(self, recorded_sleeps):
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls < 3:
                raise StatusError(429)
            return "ok"

        result = await retry_with_backoff(flaky, RetryConfig(max_retries=3, base_delay=1.0))
        assert result == "ok"
        assert calls == 3
        assert recorded_sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_after_max_retries_plus_one(self, recorded_sleeps):
        calls = 0

        async def always_busy():
            nonlocal calls
            calls += 1
            raise TransientError("service overloaded")

        with pytest.raises(MaxRetriesExceeded) as exc_info:
            await retry_with_backoff(always_busy, RetryConfig(max_retries=3))

        assert calls == 4
        assert exc_info.value.attempts == 4
        assert isinstance(exc_info.value.last_error, TransientError)
        assert recorded_sleeps == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self, recorded_sleeps):
        calls = 0

        async def busy():
            nonlocal calls
            calls += 1
            raise ConnectionError("reset")

        with pytest.raises(MaxRetriesExceeded):
            await retry_with_backoff(busy, RetryConfig(max_retries=0))
        assert calls == 1
        assert recorded_sleeps == []

    @pytest.mark.asyncio
    async def test_non_transient_error_not_retried(self, recorded_sleeps):
        calls = 0

        async def bad_request():
            nonlocal calls
            calls += 1
            raise StatusError(400)

        with pytest.raises(PermanentError) as exc_info:
            await retry_with_backoff(bad_request, RetryConfig(max_retries=3))

        assert calls == 1
        assert isinstance(exc_info.value.__cause__, StatusError)
        assert recorded_sleeps == []

    @pytest.mark.asyncio
    async def test_sync_callable_supported(self):
        assert await retry_with_backoff(lambda x: x * 2, RetryConfig(), 21) == 42

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff_stops_retrying(self):
        calls = 0

        async def busy():
            nonlocal calls
            calls += 1
            raise TransientError("rate limit")

        task = asyncio.create_task(retry_with_backoff(busy, RetryConfig(max_retries=3, base_delay=10.0)))
        while calls == 0:
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert calls == 1


class TestIsTransientError:
    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_transient_status_codes(self, status):
        assert is_transient_error(StatusError(status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_client_errors_are_permanent(self, status):
        assert not is_transient_error(StatusError(status))

    def test_code_attribute_checked(self):
        assert is_transient_error(CodeError(503))
        assert not is_transient_error(CodeError(400))

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("reset by peer"),
            TimeoutError(),
            asyncio.TimeoutError(),
            RuntimeError("Request timed out"),
            RuntimeError("Rate limit reached for model"),
            RuntimeError("Too Many Requests"),
        ],
    )
    def test_transient_messages_and_types(self, error):
        assert is_transient_error(error)

    def test_plain_value_error_is_permanent(self):
        assert not is_transient_error(ValueError("bad input"))
