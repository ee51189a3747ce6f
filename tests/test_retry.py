from __future__ import annotations

import threading

import pytest

from device_agent.core.exceptions import (
    ConfigurationError,
    LifecycleCancelled,
    LoginError,
    FailureKind,
)
from device_agent.core.patterns.retry import RetryLoop, RetryPolicy


class Flaky:
    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.calls = 0
        self.error = error or LoginError("login api down", FailureKind.TRANSPORT)

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "done"


def test_disabled_loop_makes_one_attempt_without_sleeping(sleeper) -> None:
    op = Flaky(failures=1)
    loop = RetryLoop("login", False, 5.0, sleep=sleeper)

    with pytest.raises(LoginError):
        loop(op)

    assert op.calls == 1
    assert sleeper.calls == []


def test_enabled_loop_sleeps_once_per_failure(sleeper) -> None:
    op = Flaky(failures=2)
    loop = RetryLoop("login", True, 0.25, sleep=sleeper)

    assert loop(op) == "done"
    assert op.calls == 3
    assert loop.attempts == 3
    assert sleeper.calls == [0.25, 0.25]


def test_unexpected_errors_are_not_retried(sleeper) -> None:
    op = Flaky(failures=1, error=RuntimeError("bug"))
    loop = RetryLoop("session", True, 1.0, sleep=sleeper)

    with pytest.raises(RuntimeError):
        loop(op)
    assert sleeper.calls == []


def test_set_cancel_event_stops_before_the_first_attempt() -> None:
    cancel = threading.Event()
    cancel.set()
    op = Flaky(failures=0)

    with pytest.raises(LifecycleCancelled):
        RetryLoop("register", True, 1.0, cancel_event=cancel)(op)
    assert op.calls == 0


def test_cancel_during_backoff_ends_the_loop() -> None:
    cancel = threading.Event()
    op = Flaky(failures=10)

    def cancelling_sleep(seconds: float) -> None:
        cancel.set()

    with pytest.raises(LifecycleCancelled):
        RetryLoop("login", True, 1.0, cancel_event=cancel, sleep=cancelling_sleep)(op)
    assert op.calls == 1


def test_nested_cancellation_is_never_retried(sleeper) -> None:
    op = Flaky(failures=5, error=LifecycleCancelled("inner loop cancelled"))

    with pytest.raises(LifecycleCancelled):
        RetryLoop("login", True, 1.0, sleep=sleeper)(op)
    assert op.calls == 1
    assert sleeper.calls == []


def test_policy_builds_loops_from_its_flags() -> None:
    policy = RetryPolicy(auto_relogin=True, relogin_interval=2.5, reinit_session_interval=7)

    login = policy.login()
    session = policy.session()
    registration = policy.registration()

    assert (login.phase, login.enabled, login.interval) == ("login", True, 2.5)
    assert (session.enabled, session.interval) == (False, 7)
    assert (registration.enabled, registration.interval) == (False, 5.0)


def test_policy_defaults_disable_every_retry() -> None:
    policy = RetryPolicy()
    assert not (policy.auto_reregister or policy.auto_relogin or policy.auto_reinit_session)


def test_negative_interval_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        RetryPolicy(relogin_interval=-1)
