"""Timing for gateway pipeline stages.

``@profile_operation(name)`` wraps a sync or async callable, measures it
with ``time.perf_counter_ns()``, logs the duration at DEBUG level and
records it in the process-wide :class:`ProfileCollector`.

Usage::

    from safesql_engine.telemetry.profiling import profile_operation

    @profile_operation("sql.validate")
    def validate_statement(sql, dialect):
        ...
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class ProfileCollector:
    """Thread-safe store of recent durations (in ms) per operation name.

    Parameters
    ----------
    max_samples:
        Number of most recent samples kept for each operation.
    """

    _instance: ProfileCollector | None = None
    _instance_lock = threading.Lock()

    def __init__(self, max_samples: int = 256) -> None:
        self._max_samples = max_samples
        self._samples: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = ProfileCollector()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton.  For tests."""
        with cls._instance_lock:
            cls._instance = None

    def record(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            bucket = self._samples.setdefault(operation, deque(maxlen=self._max_samples))
            bucket.append(duration_ms)

    def get_stats(self, operation: str) -> dict[str, Any] | None:
        """Return ``count``, ``mean_ms`` and ``max_ms`` for *operation*, or ``None``."""
        with self._lock:
            samples = list(self._samples.get(operation, ()))
        if not samples:
            return None
        return {
            "operation": operation,
            "count": len(samples),
            "mean_ms": round(sum(samples) / len(samples), 3),
            "max_ms": round(max(samples), 3),
        }

    def operations(self) -> list[str]:
        with self._lock:
            return sorted(self._samples)


def _finish(name: str, start_ns: int) -> None:
    duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
    ProfileCollector.get_instance().record(name, duration_ms)
    logger.debug("PROFILE %s: %.3f ms", name, duration_ms)


def profile_operation(name: str) -> Callable[[F], F]:
    """Decorator that times a sync or async function under *name*.

    Failed calls are timed too; the exception propagates unchanged.
    """

    def decorator(func: F) -> F:
        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start_ns = time.perf_counter_ns()
                try:
                    return await func(*args, **kwargs)
                finally:
                    _finish(name, start_ns)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_ns = time.perf_counter_ns()
            try:
                return func(*args, **kwargs)
            finally:
                _finish(name, start_ns)

        return sync_wrapper  # type: ignore[return-value]

    return decorator
