"""
Application lifecycle: ordered start and stop hooks.

Components append hooks while they are constructed. The composition root
runs every ``on_start`` in registration order once the graph is built and
every ``on_stop`` in reverse order when the process is told to exit, so a
component is always started after, and stopped before, the components it
depends on.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from lifecycle_http.core.constants import DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
from lifecycle_http.logger import log_fields
from lifecycle_http.server.domain.exceptions import LifecycleStateError


@dataclass(frozen=True)
class Deadline:
    """Absolute point in (monotonic) time by which an operation must finish."""

    timeout: float
    expires_at: float = field(default=0.0)

    def __post_init__(self):
        if self.timeout < 0:
            raise ValueError(f"Timeout must not be negative, got {self.timeout}")
        if self.expires_at == 0.0:
            object.__setattr__(self, "expires_at", time.monotonic() + self.timeout)

    @classmethod
    def after(cls, timeout: float) -> "Deadline":
        return cls(timeout=timeout)

    def remaining(self) -> float:
        """Seconds left, never below zero."""
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() == 0.0


HookFunc = Callable[[Deadline], None]


@dataclass
class Hook:
    """A pair of callbacks run at process start and process stop."""

    on_start: Optional[HookFunc] = None
    on_stop: Optional[HookFunc] = None
    name: str = ""

    @property
    def callee(self) -> str:
        if self.name:
            return self.name
        func = self.on_start or self.on_stop
        return getattr(func, "__qualname__", repr(func))


class Lifecycle:
    """Runs registered hooks in dependency order."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._hooks: List[Hook] = []
        self._started: List[Hook] = []
        self._running = False

    def append(self, hook: Hook) -> None:
        if self._running:
            raise LifecycleStateError("append a hook", "running")
        self._hooks.append(hook)

    @property
    def hooks(self) -> List[Hook]:
        return list(self._hooks)

    @property
    def running(self) -> bool:
        return self._running

    def start(
        self,
        timeout: float,
        rollback_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    ) -> None:
        """
        Run every ``on_start`` hook in registration order.

        When a hook fails, hooks that already started are stopped in reverse
        order (bounded by ``rollback_timeout``) before the original error is
        re-raised.
        """
        if self._running:
            raise LifecycleStateError("start", "running")

        deadline = Deadline.after(timeout)
        self._running = True
        for hook in self._hooks:
            if hook.on_start is not None:
                try:
                    self._run("OnStart", hook, hook.on_start, deadline)
                except Exception:
                    self._rollback(rollback_timeout)
                    raise
            self._started.append(hook)

    def stop(self, timeout: float) -> None:
        """
        Run ``on_stop`` for every started hook in reverse order.

        All hooks run even when one fails; the first failure is re-raised.
        """
        deadline = Deadline.after(timeout)
        errors = self._stop_started(deadline)
        self._running = False
        if errors:
            raise errors[0]

    def _rollback(self, timeout: float) -> None:
        errors = self._stop_started(Deadline.after(timeout))
        for error in errors:
            self.logger.error(
                "Rollback hook failed", extra=log_fields(error=str(error))
            )
        self._running = False

    def _stop_started(self, deadline: Deadline) -> List[Exception]:
        errors: List[Exception] = []
        while self._started:
            hook = self._started.pop()
            if hook.on_stop is None:
                continue
            try:
                self._run("OnStop", hook, hook.on_stop, deadline)
            except Exception as e:
                errors.append(e)
        return errors

    def _run(self, event: str, hook: Hook, func: HookFunc, deadline: Deadline) -> None:
        self.logger.info(
            f"{event} hook executing", extra=log_fields(callee=hook.callee)
        )
        began = time.monotonic()
        try:
            func(deadline)
        except Exception as e:
            self.logger.error(
                f"{event} hook failed",
                extra=log_fields(callee=hook.callee, error=str(e)),
            )
            raise
        self.logger.info(
            f"{event} hook executed",
            extra=log_fields(
                callee=hook.callee,
                runtime=f"{(time.monotonic() - began) * 1000:.3f}ms",
            ),
        )
