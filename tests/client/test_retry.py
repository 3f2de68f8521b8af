"""Tests for upload retry with exponential backoff."""

from unittest.mock import MagicMock, patch

import pytest

from curiosync.client.sync.retry import RetryPolicy, retry_with_backoff, upload_with_retry
from curiosync.core.types import RemoteWriteError


class TestRetryPolicy:
    """Tests for RetryPolicy validation."""

    def test_defaults(self) -> None:
        policy = RetryPolicy()

        assert policy.max_retries >= 1
        assert policy.initial_backoff <= policy.max_backoff

    def test_rejects_zero_retries(self) -> None:
        """A policy must allow at least one retry."""
        with pytest.raises(ValueError, match="max_retries"):
            RetryPolicy(max_retries=0)

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(initial_backoff=-1.0)


class TestRetryWithBackoff:
    """Tests for retry_with_backoff."""

    def test_returns_on_first_success(self) -> None:
        func = MagicMock(return_value="ok")

        assert retry_with_backoff(func) == "ok"
        func.assert_called_once()

    def test_retries_then_succeeds(self) -> None:
        """Should retry a failing call and return the later result."""
        func = MagicMock(side_effect=[ConnectionError("down"), "ok"])

        with patch("curiosync.client.sync.retry.time.sleep"):
            result = retry_with_backoff(func, max_retries=3)

        assert result == "ok"
        assert func.call_count == 2

    def test_raises_last_error_when_exhausted(self) -> None:
        func = MagicMock(side_effect=TimeoutError("slow"))

        with patch("curiosync.client.sync.retry.time.sleep"), pytest.raises(TimeoutError):
            retry_with_backoff(func, max_retries=2)

        assert func.call_count == 3

    def test_does_not_retry_other_exceptions(self) -> None:
        func = MagicMock(side_effect=ValueError("bad"))

        with pytest.raises(ValueError):
            retry_with_backoff(func, retryable_exceptions=(ConnectionError,))

        func.assert_called_once()

    def test_backoff_is_exponential_and_capped(self) -> None:
        """Delays double each time and stop at max_backoff."""
        func = MagicMock(side_effect=[OSError(), OSError(), OSError(), OSError(), "ok"])

        with patch("curiosync.client.sync.retry.time.sleep") as mock_sleep:
            retry_with_backoff(
                func,
                max_retries=4,
                initial_backoff=1.0,
                max_backoff=3.0,
                backoff_multiplier=2.0,
            )

        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0, 3.0, 3.0]

    def test_on_failure_receives_attempt_numbers(self) -> None:
        func = MagicMock(side_effect=[OSError("a"), OSError("b"), "ok"])
        failures: list[int] = []

        with patch("curiosync.client.sync.retry.time.sleep"):
            retry_with_backoff(func, max_retries=2, on_failure=lambda n, e: failures.append(n))

        assert failures == [1, 2]


class TestUploadWithRetry:
    """Tests for upload_with_retry."""

    def test_fails_once_then_succeeds(self) -> None:
        """A transient failure costs exactly one extra call."""
        upload = MagicMock(side_effect=[ConnectionError("reset"), {"path": "a/b.jpg"}])

        with patch("curiosync.client.sync.retry.time.sleep") as mock_sleep:
            result = upload_with_retry(upload, RetryPolicy(max_retries=2), label="a/b.jpg")

        assert result == {"path": "a/b.jpg"}
        assert upload.call_count == 2
        mock_sleep.assert_called_once()

    def test_exhaustion_raises_remote_write_error(self) -> None:
        cause = ConnectionError("offline")
        upload = MagicMock(side_effect=cause)

        with patch("curiosync.client.sync.retry.time.sleep"), pytest.raises(
            RemoteWriteError, match="3 attempts"
        ) as exc_info:
            upload_with_retry(upload, RetryPolicy(max_retries=2))

        assert upload.call_count == 3
        assert exc_info.value.__cause__ is cause

    def test_default_policy(self) -> None:
        upload = MagicMock(return_value=None)

        assert upload_with_retry(upload) is None
        upload.assert_called_once()
