"""Cooperative cancellation for test runs.

The runner polls the token between test cases and between combinations;
a request that is already in flight always completes.
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe stop flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()


@contextmanager
def stop_on_signals(token: CancellationToken) -> Iterator[CancellationToken]:
    """Turn SIGINT / SIGTERM into a cooperative stop request while active."""

    def _handler(signum: int, frame: Any) -> None:
        if token.cancelled:
            return
        logger.warning("Received signal %s -- stopping after the current request", signum)
        token.cancel()

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield token
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
