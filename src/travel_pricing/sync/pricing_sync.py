"""
Pricing Sync - persists pricing snapshots per enquiry and notifies subscribers.

- save(): debounced per enquiry; the latest snapshot in a burst is written
  once the quiet period ends, then subscribers are called.
- Sequence gate: callers take a number from next_sequence() before computing;
  a save whose number is not higher than the highest one already accepted is
  dropped, so a slow stale computation can never overwrite a newer result.
- Version counter: every committed write bumps the slot version. A save with
  expected_version is checked against it and committed immediately; without
  it, last write wins.
"""
import logging
import threading
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from ..engine.models import PricingSnapshot
from ..exceptions import StaleSnapshotError
from .debounce import Debouncer
from .storage import StorageBackend, load_json_slot, save_json_slot

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[PricingSnapshot], None]


class PricingSync:
    """Save / load / subscribe for pricing snapshots keyed by enquiry id."""

    KEY_PREFIX = 'pricing_'

    def __init__(self, storage: StorageBackend, debounce_seconds: float = 0.5):
        self.storage = storage
        self.debounce_seconds = debounce_seconds
        self._lock = threading.RLock()
        self._subscribers: dict[str, list[SnapshotCallback]] = defaultdict(list)
        self._issued: dict[str, int] = defaultdict(int)
        self._accepted: dict[str, int] = defaultdict(int)
        self._pending: dict[str, PricingSnapshot] = {}
        self._debouncers: dict[str, Debouncer] = {}

    def key_for(self, enquiry_id: str) -> str:
        return f"{self.KEY_PREFIX}{enquiry_id}"

    # ------------------------------------------------------------------
    # Sequencing
    # ------------------------------------------------------------------
    def next_sequence(self, enquiry_id: str) -> int:
        """Reserve the next request number for an enquiry."""
        with self._lock:
            self._issued[enquiry_id] += 1
            return self._issued[enquiry_id]

    # ------------------------------------------------------------------
    # Save / load
    # ------------------------------------------------------------------
    def save(
        self,
        enquiry_id: str,
        snapshot: PricingSnapshot,
        sequence: Optional[int] = None,
        expected_version: Optional[int] = None,
    ) -> bool:
        """
        Queue a snapshot for persistence.

        Returns False when the save was dropped because a newer sequence was
        already accepted. Raises StaleSnapshotError on a version mismatch.
        """
        with self._lock:
            if sequence is not None:
                if sequence <= self._accepted[enquiry_id]:
                    logger.debug(
                        f"Dropping stale pricing for {enquiry_id}: sequence {sequence} "
                        f"<= {self._accepted[enquiry_id]}"
                    )
                    return False
                self._accepted[enquiry_id] = sequence
                self._issued[enquiry_id] = max(self._issued[enquiry_id], sequence)

            if expected_version is not None:
                current = self.current_version(enquiry_id)
                if current != expected_version:
                    raise StaleSnapshotError(enquiry_id, expected_version, current)
                self._cancel_pending(enquiry_id)
                commit_now = True
            else:
                commit_now = self.debounce_seconds <= 0

            if not commit_now:
                self._pending[enquiry_id] = snapshot
                self._debouncer_for(enquiry_id).trigger()
                return True

        self._commit(enquiry_id, snapshot)
        return True

    def load(self, enquiry_id: str) -> Optional[PricingSnapshot]:
        """Load the persisted snapshot. Corrupt slots are cleared and read as None."""
        envelope = self._load_envelope(enquiry_id)
        if envelope is None:
            return None
        return envelope[1]

    def latest(self, enquiry_id: str) -> Optional[PricingSnapshot]:
        """The pending snapshot if a write is queued, else the persisted one."""
        with self._lock:
            pending = self._pending.get(enquiry_id)
        if pending is not None:
            return pending
        return self.load(enquiry_id)

    def current_version(self, enquiry_id: str) -> int:
        """Version of the persisted snapshot (0 when absent)."""
        envelope = self._load_envelope(enquiry_id)
        return 0 if envelope is None else envelope[0]

    def flush(self, enquiry_id: Optional[str] = None):
        """Write pending snapshots immediately."""
        with self._lock:
            ids = [enquiry_id] if enquiry_id is not None else list(self._debouncers)
            debouncers = [self._debouncers[i] for i in ids if i in self._debouncers]
        for debouncer in debouncers:
            debouncer.flush()

    def has_pending(self, enquiry_id: str) -> bool:
        with self._lock:
            return enquiry_id in self._pending

    def close(self):
        """Write everything still pending and stop timers."""
        self.flush()
        with self._lock:
            for debouncer in self._debouncers.values():
                debouncer.cancel()
            self._debouncers.clear()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, enquiry_id: str, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a callback for committed snapshots. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers[enquiry_id].append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(enquiry_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def subscriber_count(self, enquiry_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(enquiry_id, []))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _debouncer_for(self, enquiry_id: str) -> Debouncer:
        debouncer = self._debouncers.get(enquiry_id)
        if debouncer is None:
            debouncer = Debouncer(self.debounce_seconds, lambda: self._commit_pending(enquiry_id))
            self._debouncers[enquiry_id] = debouncer
        return debouncer

    def _cancel_pending(self, enquiry_id: str):
        self._pending.pop(enquiry_id, None)
        debouncer = self._debouncers.get(enquiry_id)
        if debouncer is not None:
            debouncer.cancel()

    def _commit_pending(self, enquiry_id: str):
        with self._lock:
            snapshot = self._pending.pop(enquiry_id, None)
        if snapshot is not None:
            self._commit(enquiry_id, snapshot)

    def _commit(self, enquiry_id: str, snapshot: PricingSnapshot):
        with self._lock:
            version = self.current_version(enquiry_id) + 1
            save_json_slot(self.storage, self.key_for(enquiry_id), {
                'version': version,
                'saved_at': datetime.now().isoformat(),
                'snapshot': snapshot.to_dict(),
            })
            callbacks = list(self._subscribers.get(enquiry_id, []))

        logger.debug(f"Committed pricing v{version} for enquiry {enquiry_id}")
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"Pricing subscriber failed for enquiry {enquiry_id}")

    def _load_envelope(self, enquiry_id: str) -> Optional[tuple[int, PricingSnapshot]]:
        key = self.key_for(enquiry_id)
        data = load_json_slot(self.storage, key)
        if data is None:
            return None
        try:
            return int(data.get('version', 1)), PricingSnapshot.from_dict(data['snapshot'])
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable pricing snapshot for enquiry {enquiry_id}: {e}")
            self.storage.remove_item(key)
            return None
