"""Snapshot cache for the classified lane table and the views derived from it."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Callable, Hashable, Optional, Sequence, TypeVar

from ..data.shipments_repository import DatasetFingerprint, ShipmentSource
from ..errors import RecomputationError
from ..models.domain import ClassifiedLane, Shipment

logger = logging.getLogger(__name__)

T = TypeVar("T")
LaneBuilder = Callable[[Sequence[Shipment]], Sequence[ClassifiedLane]]


class LaneSnapshot:
    """Immutable lane table for one dataset fingerprint.

    Keeps the shipments it was built from for carrier-scoped views. Derived
    views are memoized per snapshot; each view key is computed at most once
    even under concurrent access, so callers must keep the key space bounded.
    """

    def __init__(
        self,
        fingerprint: DatasetFingerprint,
        lanes: Sequence[ClassifiedLane],
        shipments: Sequence[Shipment] = (),
    ) -> None:
        self.fingerprint = fingerprint
        self.lanes: tuple[ClassifiedLane, ...] = tuple(lanes)
        self.shipments: tuple[Shipment, ...] = tuple(shipments)
        self.built_at = datetime.now(timezone.utc)
        self._by_key = {lane.key: lane for lane in self.lanes}
        self._views: dict[Hashable, Future] = {}
        self._views_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.lanes)

    def lane(self, origin: str, destination: str) -> Optional[ClassifiedLane]:
        lane = self._by_key.get((origin, destination))
        if lane is not None:
            return lane
        wanted = (origin.lower(), destination.lower())
        for candidate in self.lanes:
            if (candidate.origin.lower(), candidate.destination.lower()) == wanted:
                return candidate
        return None

    def view(self, key: Hashable, compute: Callable[[tuple[ClassifiedLane, ...]], T]) -> T:
        with self._views_lock:
            future = self._views.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._views[key] = future

        if owner:
            try:
                future.set_result(compute(self.lanes))
            except BaseException as exc:
                try:
                    with self._views_lock:
                        self._views.pop(key, None)
                finally:
                    future.set_exception(exc)
                raise
        return future.result()

    @property
    def view_count(self) -> int:
        with self._views_lock:
            return len(self._views)


class LaneSnapshotCache:
    """Owns the current snapshot and rebuilds it when the dataset fingerprint moves.

    Concurrent callers that observe the same stale fingerprint share a single
    rebuild. A failed rebuild raises ``RecomputationError`` for the caller that
    ran it and leaves the previous snapshot in place. Callers passing
    ``allow_stale=True`` are served that snapshot instead: the ones that were
    waiting on the failed rebuild, and later ones for ``retry_interval``
    seconds after the failure, or while the source cannot be fingerprinted.
    """

    def __init__(self, source: ShipmentSource, builder: LaneBuilder, *, retry_interval: float = 0.0) -> None:
        self.source = source
        self.builder = builder
        self.retry_interval = retry_interval
        self.rebuild_count = 0
        self._snapshot: Optional[LaneSnapshot] = None
        self._inflight: dict[DatasetFingerprint, Future] = {}
        self._last_failure: Optional[tuple[DatasetFingerprint, float]] = None
        self._lock = threading.Lock()

    def get(self, *, allow_stale: bool = False) -> LaneSnapshot:
        try:
            fingerprint = self.source.fingerprint()
        except Exception as exc:
            return self._stale_or_raise(
                RecomputationError(f"Unable to fingerprint shipment dataset: {exc}", stage="fingerprint"),
                exc,
                allow_stale,
            )

        with self._lock:
            snapshot = self._snapshot
            if snapshot is not None and snapshot.fingerprint == fingerprint:
                logger.debug(f"Lane snapshot cache hit ({fingerprint.marker})")
                return snapshot
            if allow_stale and snapshot is not None and self._recently_failed(fingerprint):
                logger.debug(f"Serving stale lane snapshot {snapshot.fingerprint.marker} until retry")
                return snapshot
            future = self._inflight.get(fingerprint)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[fingerprint] = future

        if owner:
            self._rebuild(fingerprint, future)
            return future.result()
        try:
            return future.result()
        except RecomputationError as exc:
            return self._stale_or_raise(exc, exc.__cause__, allow_stale)

    def peek(self) -> Optional[LaneSnapshot]:
        """Return the last good snapshot without checking the fingerprint."""

        with self._lock:
            return self._snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None
            self._last_failure = None

    def _recently_failed(self, fingerprint: DatasetFingerprint) -> bool:
        if self._last_failure is None:
            return False
        failed, failed_at = self._last_failure
        return failed == fingerprint and time.monotonic() - failed_at < self.retry_interval

    def _rebuild(self, fingerprint: DatasetFingerprint, future: Future) -> None:
        started = time.perf_counter()
        try:
            shipments = self.source.load()
            snapshot = LaneSnapshot(fingerprint, self.builder(shipments), shipments)
        except Exception as exc:
            error = RecomputationError(
                f"Failed to rebuild lane snapshot for dataset {fingerprint.marker}: {exc}",
                fingerprint=fingerprint.marker,
            )
            error.__cause__ = exc
            logger.warning(f"Lane snapshot rebuild failed ({fingerprint.marker}): {exc}")
            self._finish(fingerprint, future, error=error)
            return
        except BaseException as exc:
            self._finish(fingerprint, future, error=exc)
            raise

        with self._lock:
            self._snapshot = snapshot
            self._last_failure = None
            self.rebuild_count += 1
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Rebuilt lane snapshot {fingerprint.marker}: {len(shipments)} shipments, "
            f"{len(snapshot)} lanes in {elapsed_ms:.1f} ms"
        )
        self._finish(fingerprint, future, result=snapshot)

    def _finish(
        self,
        fingerprint: DatasetFingerprint,
        future: Future,
        *,
        result: Optional[LaneSnapshot] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        try:
            with self._lock:
                self._inflight.pop(fingerprint, None)
                if isinstance(error, RecomputationError):
                    self._last_failure = (fingerprint, time.monotonic())
        finally:
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

    def _stale_or_raise(
        self, error: RecomputationError, cause: Optional[BaseException], allow_stale: bool
    ) -> LaneSnapshot:
        stale = self.peek()
        if allow_stale and stale is not None:
            logger.warning(f"Serving stale lane snapshot {stale.fingerprint.marker}: {error.message}")
            return stale
        raise error from cause
