# Overview: Detached (fire-and-forget) task runner for best-effort side effects.

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

logger = logging.getLogger(__name__)


class DetachedTaskRunner:
    """
    Launches side effects without awaiting them.

    Semantics are at-most-once and best-effort: a failure is logged and
    dropped, never raised to whoever launched the task. Tasks must not touch
    the database session; they receive plain data built before launch.

    inline=True runs the task on the calling thread (still swallowing errors).
    """

    def __init__(self, max_workers: int = 4, inline: bool = False):
        self.inline = inline
        self._executor = None if inline else ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="shiftplan-detached",
        )

    def launch(self, func: Callable, *args, description: str | None = None, **kwargs) -> Future | None:
        label = description or getattr(func, "__qualname__", repr(func))

        def _run():
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception("Detached task failed: %s", label)
                return None

        if self._executor is None:
            _run()
            return None

        try:
            return self._executor.submit(_run)
        except RuntimeError:
            # Executor already shut down (interpreter exit)
            logger.exception("Could not launch detached task: %s", label)
            return None

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
