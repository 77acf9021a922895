"""Per-entity locks for form and respondent mapping writers.

Readers never lock. Writers to one form (or one mapping) run one at a time
within the process; across processes the row lock taken with
SELECT ... FOR UPDATE does the same job on databases that support it.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Generator, Hashable, Tuple

EntityKey = Tuple[str, Hashable]


class EntityLockRegistry:
    """
    Process-local registry of exclusive locks keyed by (kind, id).

    - Locks are created on first use and never removed; entities are
      never destroyed, so the registry only grows with the number of
      entities written to.
    - Locks are re-entrant so a writer can call another operation on the
      same entity while holding its lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: Dict[EntityKey, threading.RLock] = {}

    def get(self, kind: str, entity_id: Hashable) -> threading.RLock:
        """Return the lock for an entity, creating it if needed."""
        key = (kind, entity_id)
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, kind: str, entity_id: Hashable) -> Generator[None, None, None]:
        """Hold the entity's lock for the duration of the block."""
        lock = self.get(kind, entity_id)
        with lock:
            yield

    def __len__(self) -> int:
        with self._lock:
            return len(self._locks)


# Global, process-local singleton
ENTITY_LOCKS = EntityLockRegistry()
