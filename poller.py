# poller.py
"""Periodic discovery, conditional fetching and merging of interface snapshots.

Each cycle first revalidates every listed file with its remembered
Last-Modified token. Only when something changed is every file fetched again
and merged, so a published view is always built from one complete pass.
"""
import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from data import merge_snapshots, validate_snapshot
from errors import PartialFetchWarning, TransportError, ValidationError
from neighbour import MergedView
from sources import BaseSource

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_SUFFIX = ".json"


@dataclass(frozen=True)
class PollerState:
    view: MergedView = field(default_factory=MergedView)
    loading: bool = True
    error: Optional[str] = None
    warnings: Tuple[PartialFetchWarning, ...] = ()
    updated_at: Optional[datetime] = None


@dataclass
class _CycleResult:
    view: Optional[MergedView]  # None keeps the previous view
    tokens: Dict[str, str]
    merged_files: FrozenSet[str]
    warnings: List[PartialFetchWarning]


def _is_safe_name(name: str) -> bool:
    return "/" not in name and ".." not in name


class Poller:
    """Keeps the latest MergedView of a source up to date on a fixed interval.

    The token table and the view are written only by run_cycle(), which is
    serialized; readers get the immutable PollerState.
    """

    def __init__(self, source: BaseSource, interval: float = DEFAULT_POLL_INTERVAL, suffix: str = DEFAULT_SUFFIX):
        self.source = source
        self.interval = interval
        self.suffix = suffix
        self._tokens: Dict[str, str] = {}
        self._merged_files: Optional[FrozenSet[str]] = None
        self._state = PollerState()
        self._generation = 0
        self._stopped = False
        self._subscribers: List[Callable[[PollerState], None]] = []
        self._cycle_lock = threading.Lock()
        self._state_lock = threading.Condition()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> PollerState:
        with self._state_lock:
            return self._state

    def subscribe(self, callback: Callable[[PollerState], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[PollerState], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def start(self) -> None:
        """Runs a cycle now and then every `interval` seconds on a background thread."""
        if self._thread and self._thread.is_alive():
            return
        with self._state_lock:
            self._stopped = False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="neighwatch-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancels the timer; a cycle still in flight will not publish its result."""
        with self._state_lock:
            self._stopped = True
            self._state_lock.notify_all()
        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def wait_for_update(self, timeout: Optional[float] = None) -> bool:
        """Blocks until the next state is published. Returns False on timeout or stop."""
        with self._state_lock:
            generation = self._generation
            self._state_lock.wait_for(
                lambda: self._generation != generation or self._stopped, timeout
            )
            return self._generation != generation

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.run_cycle()
            self._stop_event.wait(self.interval)

    def run_cycle(self) -> PollerState:
        """Runs one synchronization cycle and returns the resulting state."""
        with self._cycle_lock:
            try:
                result = self._sync()
            except TransportError as e:
                logger.error(f"Sync cycle failed: {e}")
                self._publish_error(str(e))
            except Exception as e:  # pylint: disable=broad-except
                logger.exception("Unexpected error during sync cycle")
                self._publish_error(f"Unexpected error: {e}")
            else:
                self._apply(result)
            return self.state

    def _list_snapshot_files(self, warnings: List[PartialFetchWarning]) -> List[str]:
        names = []
        for entry in self.source.list_files():
            name = entry["name"]
            if not name.endswith(self.suffix):
                continue
            if not _is_safe_name(name):
                warnings.append(self._warn(name, "refusing unsafe file name"))
                continue
            names.append(name)
        return names

    def _warn(self, name: str, reason: str) -> PartialFetchWarning:
        warning = PartialFetchWarning(name, reason)
        logger.warning(str(warning))
        return warning

    def _sync(self) -> _CycleResult:
        warnings: List[PartialFetchWarning] = []
        names = self._list_snapshot_files(warnings)
        if not names:
            logger.debug("No snapshot files listed")
            return _CycleResult(MergedView(), {}, frozenset(), warnings)

        # Tokens of files that are no longer listed are dropped here.
        tokens = {name: self._tokens[name] for name in names if name in self._tokens}
        changed = self._merged_files is None or frozenset(names) != self._merged_files

        for name in names:
            result = self.source.fetch(name, if_modified_since=self._tokens.get(name))
            if result.not_modified:
                continue
            if not result.ok:
                warnings.append(self._warn(name, f"HTTP {result.status}"))
                continue
            if result.last_modified:
                tokens[name] = result.last_modified
            changed = True

        if not changed:
            logger.debug("No changes detected.")
            return _CycleResult(None, tokens, self._merged_files, warnings)

        # Files already reported in the revalidation pass are not reported twice.
        warned = {w.name for w in warnings}
        snapshots = []
        merged = []
        for name in names:
            result = self.source.fetch(name)
            if not result.ok:
                if name not in warned:
                    warnings.append(self._warn(name, f"HTTP {result.status}"))
                tokens.pop(name, None)
                continue
            try:
                raw = json.loads(result.body)
                validate_snapshot(raw, name)
            except ValidationError as e:
                warnings.append(self._warn(name, str(e)))
                tokens.pop(name, None)
                continue
            except ValueError as e:
                warnings.append(self._warn(name, f"invalid JSON: {e}"))
                tokens.pop(name, None)
                continue
            if result.last_modified:
                tokens[name] = result.last_modified
            snapshots.append(raw)
            merged.append(name)

        view = merge_snapshots(snapshots)
        logger.info(f"Merged {len(view.neighbours)} neighbours from {len(merged)} of {len(names)} files")
        return _CycleResult(view, tokens, frozenset(merged), warnings)

    def _apply(self, result: _CycleResult) -> None:
        with self._state_lock:
            if self._stopped:
                logger.debug("Poller stopped; discarding cycle result")
                return
            self._tokens = result.tokens
            self._merged_files = result.merged_files
            self._state = PollerState(
                view=result.view if result.view is not None else self._state.view,
                loading=False,
                error=None,
                warnings=tuple(result.warnings),
                updated_at=datetime.now(timezone.utc),
            )
        self._notify()

    def _publish_error(self, message: str) -> None:
        with self._state_lock:
            if self._stopped:
                return
            self._state = PollerState(
                view=self._state.view,
                loading=False,
                error=message,
                warnings=(),
                updated_at=self._state.updated_at,
            )
        self._notify()

    def _notify(self) -> None:
        with self._state_lock:
            self._generation += 1
            state = self._state
            self._state_lock.notify_all()
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:  # pylint: disable=broad-except
                logger.exception("State subscriber failed")
