"""
Retry Scheduler Tests

Attempt counts, wait placement, deadline handling and YAML defaults.
"""

import asyncio

import pytest

from runtime.retry_scheduler import (
    RetryPolicy,
    RetryScheduler,
    load_config_from_yaml,
    policy_from_config,
)


class AttemptRecorder:
    """Returns queued results in order and records attempt indexes"""

    def __init__(self, *results):
        self.results = list(results)
        self.indexes = []

    async def __call__(self, i):
        self.indexes.append(i)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestRetryPolicy:

    def test_total_attempts_includes_first_try(self):
        assert RetryPolicy(max_attempts=0).total_attempts == 1
        assert RetryPolicy(max_attempts=3).total_attempts == 4

    @pytest.mark.parametrize("kwargs", [
        {"max_attempts": -1},
        {"wait_seconds": -0.5},
        {"deadline_seconds": 0},
    ])
    def test_rejects_invalid_budgets(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestRetryScheduler:

    def test_first_success_short_circuits(self, recording_sleep):
        attempt = AttemptRecorder("123456", "654321")
        scheduler = RetryScheduler(RetryPolicy(max_attempts=3, wait_seconds=5), sleep=recording_sleep)

        assert asyncio.run(scheduler.run(attempt)) == "123456"
        assert attempt.indexes == [0]
        assert recording_sleep.calls == []

    def test_waits_only_between_attempts(self, recording_sleep):
        attempt = AttemptRecorder(None, "123456")
        scheduler = RetryScheduler(RetryPolicy(max_attempts=1, wait_seconds=2.5), sleep=recording_sleep)

        assert asyncio.run(scheduler.run(attempt)) == "123456"
        assert attempt.indexes == [0, 1]
        assert recording_sleep.calls == [2.5]

    def test_exhaustion_returns_none_without_trailing_wait(self, recording_sleep):
        attempt = AttemptRecorder(None, None, None)
        scheduler = RetryScheduler(RetryPolicy(max_attempts=2, wait_seconds=1), sleep=recording_sleep)

        assert asyncio.run(scheduler.run(attempt)) is None
        assert attempt.indexes == [0, 1, 2]
        assert recording_sleep.calls == [1, 1]

    def test_empty_string_counts_as_not_found(self, recording_sleep):
        attempt = AttemptRecorder("", "123456")
        scheduler = RetryScheduler(RetryPolicy(max_attempts=1, wait_seconds=0), sleep=recording_sleep)

        assert asyncio.run(scheduler.run(attempt)) == "123456"

    def test_errors_propagate_without_further_attempts(self, recording_sleep):
        attempt = AttemptRecorder(RuntimeError("boom"), "123456")
        scheduler = RetryScheduler(RetryPolicy(max_attempts=3, wait_seconds=1), sleep=recording_sleep)

        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(scheduler.run(attempt))
        assert attempt.indexes == [0]
        assert recording_sleep.calls == []

    def test_deadline_stops_before_a_wait_that_would_overrun(self):
        clock = FakeClock()
        waits = []

        async def sleep(seconds):
            waits.append(seconds)
            clock.now += seconds

        attempt = AttemptRecorder(None, None, None, None)
        policy = RetryPolicy(max_attempts=3, wait_seconds=10, deadline_seconds=25)
        scheduler = RetryScheduler(policy, sleep=sleep, clock=clock)

        assert asyncio.run(scheduler.run(attempt)) is None
        assert attempt.indexes == [0, 1, 2]
        assert waits == [10, 10]

    def test_pending_wait_is_cancellable(self):
        policy = RetryPolicy(max_attempts=1, wait_seconds=60)
        scheduler = RetryScheduler(policy)

        async def empty_attempt(i):
            return None

        async def scenario():
            task = asyncio.create_task(scheduler.run(empty_attempt))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(asyncio.wait_for(scenario(), timeout=5))


class TestYamlConfig:

    def test_profile_overrides_default(self, tmp_path):
        path = tmp_path / "slack2fa.yaml"
        path.write_text(
            "default:\n"
            "  max_attempts: 3\n"
            "  wait_seconds: 20.0\n"
            "profiles:\n"
            "  ci:\n"
            "    max_attempts: 5\n"
            "    deadline_seconds: 120\n"
        )

        loaded = load_config_from_yaml("ci", config_path=str(path))
        policy = policy_from_config(loaded)

        assert policy == RetryPolicy(max_attempts=5, wait_seconds=20.0, deadline_seconds=120.0)

    def test_unknown_profile_keeps_default(self, tmp_path):
        path = tmp_path / "slack2fa.yaml"
        path.write_text("default:\n  max_attempts: 2\n")

        assert load_config_from_yaml("nope", config_path=str(path)) == {"max_attempts": 2}

    def test_missing_file_falls_back_to_defaults(self, tmp_path):
        loaded = load_config_from_yaml(config_path=str(tmp_path / "absent.yaml"))

        assert loaded == {}
        assert policy_from_config(loaded) == RetryPolicy()

    def test_shipped_config_loads(self):
        loaded = load_config_from_yaml("ci")
        assert loaded["max_attempts"] == 5
