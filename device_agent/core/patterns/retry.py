from __future__ import annotations
import logging, threading
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from ..exceptions import ConfigurationError, DeviceAgentError, LifecycleCancelled

T = TypeVar("T")

@dataclass(frozen=True)
class RetryPolicy:
    auto_reregister: bool = False
    auto_relogin: bool = False
    auto_reinit_session: bool = False
    reregister_interval: float = 5.0          # seconds
    relogin_interval: float = 5.0
    reinit_session_interval: float = 5.0

    def __post_init__(self):
        for name in ("reregister_interval", "relogin_interval", "reinit_session_interval"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative")

    def registration(self, **kw) -> "RetryLoop":
        return RetryLoop("register", self.auto_reregister, self.reregister_interval, **kw)

    def login(self, **kw) -> "RetryLoop":
        return RetryLoop("login", self.auto_relogin, self.relogin_interval, **kw)

    def session(self, **kw) -> "RetryLoop":
        return RetryLoop("session", self.auto_reinit_session, self.reinit_session_interval, **kw)


class RetryLoop:
    """
    Run an operation until it succeeds.

    A disabled loop makes exactly one attempt and re-raises its failure. An
    enabled loop has no attempt limit: it sleeps ``interval`` seconds before
    every retry and only stops on success or when ``cancel_event`` is set.
    Only DeviceAgentError failures are retried.
    """

    def __init__(self, phase: str, enabled: bool, interval: float, *,
                 cancel_event: Optional[threading.Event] = None,
                 sleep: Optional[Callable[[float], object]] = None):
        self.phase    = phase
        self.enabled  = enabled
        self.interval = interval
        self.cancel_event = cancel_event or threading.Event()
        self._sleep   = sleep or self.cancel_event.wait
        self.log      = logging.getLogger(self.__class__.__name__)
        self.attempts = 0

    def __call__(self, fn: Callable[..., T], *a, **kw) -> T:
        self.attempts = 0
        while True:
            self._check_cancelled()
            self.attempts += 1
            try:
                return fn(*a, **kw)
            except LifecycleCancelled:
                raise
            except DeviceAgentError as e:
                if not self.enabled:
                    raise
                self.log.warning("%s attempt %d failed: %s. Retrying in %.2fs...",
                                 self.phase, self.attempts, e, self.interval)
            self._sleep(self.interval)

    def _check_cancelled(self):
        if self.cancel_event.is_set():
            raise LifecycleCancelled(f"{self.phase} retry cancelled after {self.attempts} attempts")
