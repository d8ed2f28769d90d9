import datetime
import enum
import logging
import threading
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext

from .constants import APP_NAME, REMOTE_NAME
from .git_wrapper import GitRepo
from .notify import Notifier

logger = logging.getLogger(APP_NAME)


class CycleError(Exception):
    """Raised when a sync cycle fails at status, add, commit or push."""


class CycleOutcome(enum.Enum):
    CLEAN = "clean"
    PUSHED = "pushed"
    FAILED = "failed"


def commit_message(now: datetime.datetime | None = None) -> str:
    """Builds the auto-push commit message for a point in time.

    The timestamp is UTC ISO-8601 with millisecond precision and a 'Z' suffix,
    so messages sort lexically in chronological order.

    Args:
        now (datetime.datetime | None): The commit time. Defaults to now.

    Returns:
        str: e.g. 'Auto-push: 2024-05-01T12:00:00.000Z'.
    """
    now = now or datetime.datetime.now(datetime.timezone.utc)
    stamp = now.astimezone(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    return f"Auto-push: {stamp}.{now.microsecond // 1000:03d}Z"


class SyncCycle:
    """One detect-commit-push pass over a working tree.

    Instances are callables suitable as a scheduler's cycle function. A
    failure never escapes `__call__`; it is reported and the next tick
    proceeds normally.
    """

    def __init__(
        self,
        repo: GitRepo,
        branch: str,
        notifier: Notifier,
        remote: str = REMOTE_NAME,
    ):
        self.repo = repo
        self.branch = branch
        self.notifier = notifier
        self.remote = remote

    def run(self) -> CycleOutcome:
        """Commits and pushes pending changes.

        Returns:
            CycleOutcome: CLEAN if there was nothing to do, PUSHED otherwise.

        Raises:
            CycleError: If any git step fails.
        """
        try:
            status = self.repo.status()
            if status.is_clean:
                logger.debug(f"CLEAN {self.repo.path.name}: Nothing to push.")
                return CycleOutcome.CLEAN

            self.repo.add(["."])
            self.repo.commit(commit_message())
            self.repo.push(self.remote, self.branch)
        except Exception as e:
            raise CycleError(str(e)) from e

        logger.info(
            f"SUCCESS {self.repo.path.name}: Pushed "
            f"{len(status.modified)} modified, {len(status.untracked)} untracked "
            f"to {self.remote}/{self.branch}."
        )
        return CycleOutcome.PUSHED

    def __call__(self) -> CycleOutcome:
        try:
            outcome = self.run()
        except CycleError as e:
            logger.error(f"PUSH ERROR {self.repo.path.name}: {e}")
            self.notifier.notify_error(f"Auto-push failed: {e}")
            return CycleOutcome.FAILED

        if outcome is CycleOutcome.PUSHED:
            self.notifier.notify_info("Successfully pushed changes to repository")
        return outcome


class ScheduleHandle:
    """A running recurring schedule. Opaque to callers beyond `active`."""

    def __init__(self, period: float, cycle_fn: Callable[[], object]):
        self.period = period
        self._cycle_fn = cycle_fn
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        """Waits for the worker thread to exit. Only meaningful after cancel()."""
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _loop(self, lock: AbstractContextManager) -> None:
        # wait() returns True only once cancelled.
        while not self._cancelled.wait(self.period):
            with lock:
                if self._cancelled.is_set():
                    break
                try:
                    self._cycle_fn()
                except Exception:
                    logger.exception("LOOP ERROR: Sync cycle raised unexpectedly")


class SyncCycleScheduler:
    """Fires a cycle function every N minutes on a dedicated worker thread.

    Ticks of one handle run sequentially on that handle's thread, so a tick
    always completes before the next one can start. The first tick happens one
    full interval after `start`.

    Args:
        lock: Optional lock held while a tick runs. Owners use the same lock
              to serialize reconfiguration against in-flight ticks.
        seconds_per_minute (float): Length of one interval minute in seconds.
    """

    def __init__(
        self,
        lock: AbstractContextManager | None = None,
        seconds_per_minute: float = 60.0,
    ):
        self._lock = lock if lock is not None else nullcontext()
        self.seconds_per_minute = seconds_per_minute

    def start(
        self, interval_minutes: int, cycle_fn: Callable[[], object]
    ) -> ScheduleHandle:
        """Begins firing `cycle_fn` every `interval_minutes`.

        Raises:
            ValueError: If the interval is not a positive integer, or its
                period exceeds `threading.TIMEOUT_MAX`.
        """
        valid = isinstance(interval_minutes, int) and not isinstance(
            interval_minutes, bool
        )
        if not valid or interval_minutes <= 0:
            raise ValueError(f"Invalid interval '{interval_minutes}'")

        period = interval_minutes * self.seconds_per_minute
        if period > threading.TIMEOUT_MAX:
            raise ValueError(f"Interval '{interval_minutes}' is too long")

        handle = ScheduleHandle(period, cycle_fn)
        handle._thread = threading.Thread(
            target=handle._loop,
            args=(self._lock,),
            name=f"{APP_NAME}-cycle",
            daemon=True,
        )
        handle._thread.start()
        logger.debug(f"SCHEDULE: Started, period {handle.period:.0f}s")
        return handle

    def stop(self, handle: ScheduleHandle | None) -> None:
        """Cancels future ticks of a handle. Safe to call repeatedly or with None."""
        if handle is None or not handle.active:
            return
        handle.cancel()
        logger.debug("SCHEDULE: Stopped")
