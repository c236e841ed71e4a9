"""
Background handle for one form's suggestion request
"""
import logging
import threading
import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Mapping, Optional

from config.settings import Config
from src.scheduler.errors import SuggestionPendingError
from src.scheduler.suggestion_models import GENERIC_FAILURE_MESSAGE, SuggestionResponse

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "The AI suggestion timed out. Please try again."


def _noop():
    pass


class SuggestionTask:
    """
    Runs SuggestionService.suggest on an executor.

    States: idle -> pending -> succeeded | failed. Only one request may be
    pending at a time. After `cancel()` or a timeout, a late result is
    discarded.
    """

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    def __init__(self, executor: ThreadPoolExecutor, service, timeout: Optional[float] = None):
        self.executor = executor
        self.service = service
        self.timeout = timeout if timeout is not None else Config.SUGGESTION_TIMEOUT
        self.response: Optional[SuggestionResponse] = None
        self._state = self.IDLE
        self._future: Optional[Future] = None
        self._on_done: Optional[Callable[[SuggestionResponse], None]] = None
        self._deadline: Optional[float] = None
        self._notified = threading.Event()  # set once on_done has returned
        self._notified.set()
        self._lock = threading.RLock()

    @property
    def state(self) -> str:
        with self._lock:
            notify = self._check_deadline()
            state = self._state
        notify()
        return state

    def start(self, raw_input: Mapping[str, Any],
              on_done: Optional[Callable[[SuggestionResponse], None]] = None) -> Future:
        with self._lock:
            notify = self._check_deadline()
            if self._state == self.PENDING:
                raise SuggestionPendingError("A suggestion is already being generated")

            self._state = self.PENDING
            self.response = None
            self._on_done = on_done
            self._notified = threading.Event()
            self._deadline = time.monotonic() + self.timeout
            future = self.executor.submit(self.service.suggest, dict(raw_input))
            self._future = future

        notify()
        future.add_done_callback(self._finish)
        return future

    def wait(self, timeout: Optional[float] = None) -> Optional[SuggestionResponse]:
        """Block until the task settles; a timeout marks it failed"""
        with self._lock:
            future = self._future
            notified = self._notified
            if future is None or self._state != self.PENDING:
                future = None
            else:
                remaining = max(0.0, self._deadline - time.monotonic())

        if future is not None:
            until_deadline = timeout is None or timeout >= remaining
            self._wait_for(future, remaining if until_deadline else timeout, until_deadline)

        if self.state != self.PENDING:
            # the worker may still be running on_done
            notified.wait(self.timeout)
        with self._lock:
            return self.response

    def _wait_for(self, future: Future, timeout: float, until_deadline: bool):
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError:
            notify = _noop
            with self._lock:
                if self._future is future and (until_deadline or time.monotonic() >= self._deadline):
                    notify = self._expire()
            notify()
        except CancelledError:
            logger.debug("Suggestion task was cancelled while waiting")
        except Exception:
            pass  # recorded as a failure by _finish

        # result() can return before the done-callback has run
        if future.done() and not future.cancelled():
            self._finish(future)

    def cancel(self):
        """Tear down: whatever arrives later is thrown away"""
        with self._lock:
            if self._future is not None:
                self._future.cancel()
                logger.debug("Suggestion task cancelled")
            self._future = None
            self._on_done = None
            self._notified.set()
            if self._state == self.PENDING:
                self._state = self.IDLE

    def _finish(self, future: Future):
        with self._lock:
            if future is not self._future:
                if not future.cancelled():
                    logger.info("Discarding stale suggestion result")
                return
            # a result landing after the deadline expires the task instead
            notify = self._check_deadline()
            if self._state == self.PENDING:
                try:
                    response = future.result()
                except Exception as e:
                    logger.error(f"Suggestion task raised: {e}")
                    response = SuggestionResponse.fail(GENERIC_FAILURE_MESSAGE)
                notify = self._settle(response)
        notify()

    def _check_deadline(self) -> Callable[[], None]:
        if self._state == self.PENDING and self._deadline is not None \
                and time.monotonic() >= self._deadline:
            return self._expire()
        return _noop

    def _expire(self) -> Callable[[], None]:
        logger.warning(f"⏰ Suggestion timed out after {self.timeout:.0f}s")
        if self._future is not None:
            self._future.cancel()
        self._future = None
        return self._settle(SuggestionResponse.fail(TIMEOUT_MESSAGE))

    def _settle(self, response: SuggestionResponse) -> Callable[[], None]:
        """Record the outcome; the returned notifier must run outside the lock"""
        self.response = response
        self._state = self.SUCCEEDED if response.success else self.FAILED
        callback, self._on_done = self._on_done, None
        notified = self._notified
        if callback is None:
            notified.set()
            return _noop

        def notify():
            try:
                callback(response)
            finally:
                notified.set()
        return notify
