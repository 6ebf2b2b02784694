"""
Countdown coordination for quiz sessions.
Drives the once-per-interval tick of an active session and its timeout.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

# Set up logger for countdown operations
logger = logging.getLogger(__name__)


class CountdownLifecycleLogger:
    """Structured logging for countdown lifecycle events."""

    @staticmethod
    def log_countdown_start(session_id: str, tick_interval: float) -> None:
        """Log countdown start."""
        logger.info(
            f"Countdown lifecycle: START - Session {session_id}, Interval {tick_interval}s",
            extra={
                'event_type': 'countdown_start',
                'session_id': session_id,
                'tick_interval': tick_interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_countdown_tick(session_id: str, tick_count: int) -> None:
        """Log tick events (throttled to avoid spam)."""
        if tick_count % 10 == 0:
            logger.debug(
                f"Countdown lifecycle: TICK - Session {session_id}, Tick {tick_count}",
                extra={
                    'event_type': 'countdown_tick',
                    'session_id': session_id,
                    'tick_count': tick_count,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_countdown_expired(session_id: str, tick_count: int) -> None:
        """Log natural expiry of a countdown."""
        logger.info(
            f"Countdown lifecycle: EXPIRED - Session {session_id} after {tick_count} ticks",
            extra={
                'event_type': 'countdown_expired',
                'session_id': session_id,
                'tick_count': tick_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_countdown_stopped(session_id: str, reason: str, tick_count: int) -> None:
        """Log countdown stop (manual finish, teardown, restart or task cancellation)."""
        logger.info(
            f"Countdown lifecycle: STOPPED - Session {session_id}, Reason {reason}, Ticks {tick_count}",
            extra={
                'event_type': 'countdown_stopped',
                'session_id': session_id,
                'reason': reason,
                'tick_count': tick_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_countdown_error(session_id: str, error_type: str, error_message: str, operation: str) -> None:
        """Log countdown errors with context."""
        logger.error(
            f"Countdown lifecycle: ERROR - Session {session_id}, Operation {operation}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'countdown_error',
                'session_id': session_id,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_countdown_replaced(session_id: str, previous_session_id: str) -> None:
        """Log a running countdown being replaced by a new one."""
        logger.warning(
            f"Countdown lifecycle: REPLACED - Session {previous_session_id} countdown still running "
            f"when session {session_id} started a new one",
            extra={
                'event_type': 'countdown_replaced',
                'session_id': session_id,
                'previous_session_id': previous_session_id,
                'timestamp': time.time()
            }
        )


class CountdownHandle:
    """Reference to one running countdown. Pass it back to CountdownTimer.stop()."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.task: Optional[asyncio.Task] = None
        self.tick_count = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self.task is None or self.task.done()


class CountdownTimer:
    """
    Periodic tick source bound to a single session.

    Runs as an asyncio task on the caller's event loop. At most one countdown
    is running per timer; starting a new one stops the previous one first.
    """

    def __init__(self, tick_interval: float = 1.0):
        """
        Initialize the countdown timer.

        Args:
            tick_interval: Seconds between ticks
        """
        if tick_interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.tick_interval = tick_interval
        self._handle: Optional[CountdownHandle] = None

    @property
    def active_handle(self) -> Optional[CountdownHandle]:
        return self._handle

    @property
    def is_running(self) -> bool:
        return self._handle is not None and not self._handle.cancelled and not self._handle.done

    def start(
        self,
        session_id: str,
        on_tick: Callable[[], bool],
        on_expire: Callable[[], Awaitable[Any]]
    ) -> CountdownHandle:
        """
        Start ticking for a session.

        Must be called from inside a running event loop.

        Args:
            session_id: Identifier used in log records
            on_tick: Called once per interval; returns True when time has run out
            on_expire: Awaited once after on_tick reports expiry

        Returns:
            Handle identifying the new countdown

        Raises:
            RuntimeError: If no event loop is running
        """
        loop = asyncio.get_running_loop()

        if self._handle is not None and not self._handle.cancelled:
            CountdownLifecycleLogger.log_countdown_replaced(session_id, self._handle.session_id)
            self.stop(self._handle, reason="replaced")

        handle = CountdownHandle(session_id)
        handle.task = loop.create_task(self._run(handle, on_tick, on_expire))
        self._handle = handle

        CountdownLifecycleLogger.log_countdown_start(session_id, self.tick_interval)
        return handle

    def stop(self, handle: Optional[CountdownHandle], reason: str = "stop requested") -> bool:
        """
        Stop a countdown.

        When called from inside the countdown's own task (the timeout path),
        the handle is only marked cancelled so the running expiry callback
        is not interrupted.

        Args:
            handle: Handle returned by start()
            reason: Short description for the log record

        Returns:
            True if the countdown was stopped, False if it was already stopped
        """
        if handle is None or handle.cancelled:
            return False

        handle._cancelled = True

        try:
            current_task = asyncio.current_task()
        except RuntimeError:
            current_task = None

        if handle.task is not None and not handle.task.done() and handle.task is not current_task:
            handle.task.cancel()

        if self._handle is handle:
            self._handle = None

        CountdownLifecycleLogger.log_countdown_stopped(handle.session_id, reason, handle.tick_count)
        return True

    async def _run(
        self,
        handle: CountdownHandle,
        on_tick: Callable[[], bool],
        on_expire: Callable[[], Awaitable[Any]]
    ) -> None:
        try:
            while not handle.cancelled:
                await asyncio.sleep(self.tick_interval)
                if handle.cancelled:
                    break

                handle.tick_count += 1
                CountdownLifecycleLogger.log_countdown_tick(handle.session_id, handle.tick_count)

                if on_tick():
                    CountdownLifecycleLogger.log_countdown_expired(handle.session_id, handle.tick_count)
                    await on_expire()
                    break

        except asyncio.CancelledError:
            CountdownLifecycleLogger.log_countdown_stopped(
                handle.session_id, "asyncio_cancelled", handle.tick_count
            )
            raise
        except Exception as e:
            CountdownLifecycleLogger.log_countdown_error(
                handle.session_id, type(e).__name__, str(e), "countdown_loop"
            )
        finally:
            handle._cancelled = True
            if self._handle is handle:
                self._handle = None
