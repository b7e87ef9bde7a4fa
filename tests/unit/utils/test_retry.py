"""Tests for retry utilities."""

from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from showtape.utils.errors import StorageError
from showtape.utils.retry import (
    DEFAULT_RETRY_POLICY,
    TEST_RETRY_POLICY,
    RetryExecutor,
    RetryPolicy,
    with_retry,
)


@pytest.fixture(autouse=True)
def fast_retry_policy(monkeypatch):
    """Use the fast retry policy wherever the default would apply."""
    monkeypatch.setattr("showtape.utils.retry.DEFAULT_RETRY_POLICY", TEST_RETRY_POLICY)


def flaky(failures: int, error: Exception | None = None) -> Mock:
    """Mock action failing ``failures`` times, then returning "ok"."""
    error = error or StorageError("transient")
    return Mock(side_effect=[error] * failures + ["ok"], __name__="flaky")


class TestRetryPolicy:
    """Test retry policy validation."""

    def test_defaults(self):
        """Test default policy is 5 retries, 3s apart, no backoff."""
        assert DEFAULT_RETRY_POLICY.max_retries == 5
        assert DEFAULT_RETRY_POLICY.initial_delay_seconds == 3
        assert DEFAULT_RETRY_POLICY.backoff_increment_seconds == 0
        assert DEFAULT_RETRY_POLICY.max_attempts == 6

    def test_delay_sequence(self):
        """Test linear delay sequence."""
        policy = RetryPolicy(max_retries=4, initial_delay_seconds=3, backoff_increment_seconds=1)
        assert policy.delays() == [3, 4, 5, 6]

    def test_rejects_negative_retries(self):
        with pytest.raises(ValidationError):
            RetryPolicy(max_retries=-1)

    def test_rejects_backoff_over_sixty(self):
        with pytest.raises(ValidationError):
            RetryPolicy(backoff_increment_seconds=61)

    def test_zero_retries_allowed(self):
        assert RetryPolicy(max_retries=0).max_attempts == 1


class TestRetryExecutor:
    """Test RetryExecutor behavior."""

    def test_success_no_retry(self):
        """Test successful call runs once."""
        sleeps = []
        action = Mock(return_value="done", __name__="action")
        executor = RetryExecutor(RetryPolicy(max_retries=3), sleep=sleeps.append)

        assert executor.execute(action, 1, key="v") == "done"
        action.assert_called_once_with(1, key="v")
        assert sleeps == []

    @pytest.mark.parametrize("failures,max_retries", [(1, 1), (2, 5), (3, 3)])
    def test_recovers_when_failures_within_budget(self, failures, max_retries):
        """Test k failures with max_retries >= k succeeds after k+1 calls."""
        action = flaky(failures)
        executor = RetryExecutor(RetryPolicy(max_retries=max_retries), sleep=lambda s: None)

        assert executor.execute(action) == "ok"
        assert action.call_count == failures + 1

    @pytest.mark.parametrize("failures,max_retries", [(1, 0), (3, 2), (6, 5)])
    def test_gives_up_when_failures_exceed_budget(self, failures, max_retries):
        """Test max_retries < k propagates after max_retries+1 calls."""
        action = flaky(failures)
        executor = RetryExecutor(RetryPolicy(max_retries=max_retries), sleep=lambda s: None)

        with pytest.raises(StorageError):
            executor.execute(action)
        assert action.call_count == max_retries + 1

    def test_last_failure_surfaces_verbatim(self):
        """Test the final exception keeps its type and message."""
        errors = [StorageError("first"), StorageError("second"), KeyError("last one")]
        action = Mock(side_effect=errors, __name__="action")
        executor = RetryExecutor(RetryPolicy(max_retries=2), sleep=lambda s: None)

        with pytest.raises(KeyError) as exc_info:
            executor.execute(action)
        assert exc_info.value is errors[-1]

    def test_linear_backoff_delays(self):
        """Test delays grow by the backoff increment: 3, 4, 5, ..."""
        sleeps = []
        action = flaky(4)
        policy = RetryPolicy(max_retries=4, initial_delay_seconds=3, backoff_increment_seconds=1)

        RetryExecutor(policy, sleep=sleeps.append).execute(action)

        assert sleeps == [3, 4, 5, 6]

    def test_constant_delay_without_backoff(self):
        """Test default policy sleeps the same delay every time."""
        sleeps = []
        action = flaky(3)

        RetryExecutor(RetryPolicy(), sleep=sleeps.append).execute(action)

        assert sleeps == [3, 3, 3]

    def test_retry_on_restricts_exception_types(self):
        """Test exceptions outside retry_on are not retried."""
        action = Mock(side_effect=ValueError("bad input"), __name__="action")
        executor = RetryExecutor(
            RetryPolicy(max_retries=3), retry_on=(StorageError,), sleep=lambda s: None
        )

        with pytest.raises(ValueError):
            executor.execute(action)
        assert action.call_count == 1

    def test_logs_each_failed_attempt(self, caplog):
        """Test a warning is logged for every retried failure."""
        action = flaky(2)

        with caplog.at_level("WARNING", logger="showtape.utils.retry"):
            RetryExecutor(RetryPolicy(max_retries=2), sleep=lambda s: None).execute(action)

        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert len(warnings) == 2
        assert "StorageError" in warnings[0].getMessage()


class TestWithRetryDecorator:
    """Test with_retry decorator."""

    def test_decorated_function_retries(self):
        call_count = 0

        @with_retry()
        def sometimes_fails():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise StorageError("busy")
            return "stored"

        assert sometimes_fails() == "stored"
        assert call_count == 3

    def test_preserves_function_name(self):
        @with_retry()
        def upload_episode():
            return None

        assert upload_episode.__name__ == "upload_episode"
