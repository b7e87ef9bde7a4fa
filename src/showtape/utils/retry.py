"""Retry utilities for storage and webhook calls.

Every network or storage call in the pipeline goes through a
RetryExecutor: a bounded number of retries with a linearly growing
delay. The last failure is re-raised unchanged.
"""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Configuration for retry behavior."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=5, ge=0, description="Retries after the first attempt")
    initial_delay_seconds: float = Field(default=3.0, ge=0)
    backoff_increment_seconds: float = Field(default=0.0, ge=0, le=60)

    @property
    def max_attempts(self) -> int:
        """Total number of attempts, including the first one."""
        return self.max_retries + 1

    def delays(self) -> list[float]:
        """Sleep durations between consecutive attempts."""
        return [
            self.initial_delay_seconds + i * self.backoff_increment_seconds
            for i in range(self.max_retries)
        ]


# Default retry policy: 5 retries, 3 seconds apart
DEFAULT_RETRY_POLICY = RetryPolicy()

# Fast policy for testing (no delays)
TEST_RETRY_POLICY = RetryPolicy(max_retries=3, initial_delay_seconds=0, backoff_increment_seconds=0)


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging.

    Args:
        retry_state: Tenacity retry state
    """
    if retry_state.outcome and retry_state.outcome.failed:
        exception = retry_state.outcome.exception()
        wait = retry_state.next_action.sleep if retry_state.next_action else 0

        logger.warning(
            f"Attempt {retry_state.attempt_number} failed: "
            f"{type(exception).__name__}: {exception}; retrying in {wait:g}s"
        )


class RetryExecutor:
    """Run a fallible action with bounded retries and linear backoff.

    The action is invoked once; on failure the executor sleeps for the
    current delay, grows the delay by the backoff increment, and tries
    again until ``max_retries`` retries have been spent. The final
    failure propagates with its original type and message.

    Example:
        >>> executor = RetryExecutor(RetryPolicy(max_retries=2))
        >>> executor.execute(store.put, "episodes", "show.mp3", path)
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize retry executor.

        Args:
            policy: Retry policy (uses DEFAULT_RETRY_POLICY if None)
            retry_on: Exception types that trigger a retry
            sleep: Sleep function, replaceable in tests
        """
        self.policy = policy or DEFAULT_RETRY_POLICY
        self.retry_on = retry_on
        self.sleep = sleep

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=wait_incrementing(
                start=self.policy.initial_delay_seconds,
                increment=self.policy.backoff_increment_seconds,
            ),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=log_retry_attempt,
            sleep=self.sleep,
            reraise=True,
        )

    def execute(self, action: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke ``action(*args, **kwargs)`` under the retry policy.

        Returns:
            Whatever the action returns on its first successful attempt

        Raises:
            Exception: The last failure, once all retries are exhausted
        """
        name = getattr(action, "__name__", repr(action))
        try:
            return self._retrying()(action, *args, **kwargs)
        except Exception as e:
            logger.error(
                f"{name} failed after {self.policy.max_attempts} attempt(s): "
                f"{type(e).__name__}: {e}"
            )
            raise


def with_retry(policy: RetryPolicy | None = None) -> Callable:
    """Decorator form of RetryExecutor.

    Usage:
        @with_retry(RetryPolicy(max_retries=2, initial_delay_seconds=1))
        def post_event():
            ...

    Args:
        policy: Retry policy (uses DEFAULT_RETRY_POLICY if None)

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs):
            return RetryExecutor(policy).execute(func, *args, **kwargs)

        return wrapper

    return decorator
