"""Fire-and-forget delivery of query diagnostics to a log hook."""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Optional
from urllib.parse import urlencode
import logging
import threading

logger = logging.getLogger(__name__)
query_logger = logging.getLogger("datatables_query.queries")

LogHook = Callable[[str], None]


def default_log_hook(message: str) -> None:
    """Write the message to the ``datatables_query.queries`` logger."""
    query_logger.debug(message)


def describe_request(original_request: Dict[str, str], query_description: str) -> str:
    return f"Request: {urlencode(original_request)}\nQuery: {query_description}"


class LogDispatcher:
    """Runs log hooks on a small worker pool.

    At most ``max_pending`` messages wait or run at once; further messages
    are dropped with a warning until the backlog drains.
    """

    def __init__(self, max_workers: int = 2, max_pending: int = 1000):
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="datatables-log"
        )
        self._slots = threading.BoundedSemaphore(max_pending)
        self._dropped = 0

    @property
    def dropped(self) -> int:
        return self._dropped

    def emit(self, hook: LogHook, build_message: Callable[[], str]) -> Optional[Future]:
        """Build the message and call the hook on a worker thread.

        Failures of either step are logged and never reach the caller.
        Returns None when the message was dropped.
        """
        if not self._slots.acquire(blocking=False):
            self._dropped += 1
            logger.warning(
                f"Query log backlog full, dropped message ({self._dropped} so far)"
            )
            return None
        future = self._pool.submit(_deliver, hook, build_message)
        future.add_done_callback(self._finish)
        return future

    def _finish(self, future: Future) -> None:
        self._slots.release()
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(f"Query log hook failed: {error!r}")

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


def _deliver(hook: LogHook, build_message: Callable[[], str]) -> None:
    hook(build_message())


_dispatcher = LogDispatcher()


def emit(hook: LogHook, build_message: Callable[[], str]) -> Optional[Future]:
    """Deliver through the process-wide dispatcher."""
    return _dispatcher.emit(hook, build_message)
