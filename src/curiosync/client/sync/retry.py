"""Retry logic with exponential backoff for asset uploads.

This module provides:
- RetryPolicy: Bound and delay configuration
- retry_with_backoff: Simple exponential backoff retry
- upload_with_retry: Retry one upload, promoting exhaustion to RemoteWriteError
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from curiosync.core.types import RemoteWriteError, TransientUploadError

logger = logging.getLogger(__name__)

# Default retry configuration
DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_BACKOFF = 0.5  # seconds
DEFAULT_MAX_BACKOFF = 8.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry configuration.

    Attributes:
        max_retries: Retries after the first attempt (at least 1).
        initial_backoff: Delay before the first retry, in seconds.
        max_backoff: Upper bound of the delay, in seconds.
        backoff_multiplier: Factor applied to the delay after each retry.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF
    max_backoff: float = DEFAULT_MAX_BACKOFF
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.initial_backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff delays must not be negative")


def retry_with_backoff(
    func: Callable[[], Any],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    on_failure: Callable[[int, Exception], None] | None = None,
) -> Any:
    """Execute a function with exponential backoff retry.

    Args:
        func: Function to execute.
        max_retries: Maximum number of retry attempts.
        initial_backoff: Initial backoff time in seconds.
        max_backoff: Maximum backoff time in seconds.
        backoff_multiplier: Multiplier for each retry.
        retryable_exceptions: Tuple of exception types to retry on.
        on_failure: Optional callback (attempt number, error) after each failure.

    Returns:
        Result of the function.

    Raises:
        The last exception if all retries fail.
    """
    backoff = initial_backoff

    for attempt in range(max_retries + 1):
        try:
            return func()
        except retryable_exceptions as e:
            if on_failure:
                on_failure(attempt + 1, e)
            if attempt == max_retries:
                logger.error(f"All {max_retries} retries failed: {e}")
                raise

            logger.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {backoff:.1f}s..."
            )
            time.sleep(backoff)
            backoff = min(backoff * backoff_multiplier, max_backoff)

    raise RuntimeError("Unexpected retry loop exit")


def upload_with_retry(
    upload: Callable[[], Any],
    policy: RetryPolicy | None = None,
    label: str = "asset",
) -> Any:
    """Run one upload, retrying transient failures.

    Args:
        upload: Zero-argument callable performing a single upload.
        policy: Retry bound and delays (defaults to RetryPolicy()).
        label: Name of the upload for log messages (e.g. the storage path).

    Returns:
        Whatever ``upload`` returned on the successful attempt.

    Raises:
        RemoteWriteError: All attempts failed; chained from the last error.
    """
    policy = policy or RetryPolicy()

    def _record(attempt: int, error: Exception) -> None:
        logger.debug(str(TransientUploadError(label, attempt, error)))

    try:
        return retry_with_backoff(
            upload,
            max_retries=policy.max_retries,
            initial_backoff=policy.initial_backoff,
            max_backoff=policy.max_backoff,
            backoff_multiplier=policy.backoff_multiplier,
            on_failure=_record,
        )
    except Exception as e:
        raise RemoteWriteError(
            f"Upload of {label} failed after {policy.max_retries + 1} attempts: {e}"
        ) from e
