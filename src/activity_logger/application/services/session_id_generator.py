# src/activity_logger/application/services/session_id_generator.py
"""
Generates ids that tie together all events of one build or one run.
"""
import itertools
import threading
import time
from typing import Callable, Optional

BUILD_PREFIX = "build"
RUN_PREFIX = "run"


def _millis() -> int:
    return int(time.time() * 1000)


class SessionIdGenerator:
    """
    Produces ids of the form '<kind>-<epoch_millis>-<counter>'.

    Build and run ids share one counter, so the suffix alone is unique within
    the process even when the clock stalls or jumps backwards. The counter is
    advanced under a lock, so concurrent callers never share a suffix.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._counter = itertools.count(1)
        self._clock = clock or _millis
        self._lock = threading.Lock()

    def _new_id(self, kind: str) -> str:
        with self._lock:
            sequence = next(self._counter)
        return f"{kind}-{self._clock()}-{sequence}"

    def new_build_id(self) -> str:
        """Returns a fresh id for a compilation; call when a build starts."""
        return self._new_id(BUILD_PREFIX)

    def new_run_id(self) -> str:
        """Returns a fresh id for a program run."""
        return self._new_id(RUN_PREFIX)


# Process-wide generator; lives as long as the interpreter.
_default_generator = SessionIdGenerator()


def default_generator() -> SessionIdGenerator:
    return _default_generator


def new_build_id() -> str:
    return _default_generator.new_build_id()


def new_run_id() -> str:
    return _default_generator.new_run_id()
