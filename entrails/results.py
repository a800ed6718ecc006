"""Thread-safe accumulation of scan results."""
import threading
from typing import Dict, List, Set, Tuple


class ResultLedger:
    """Latest successful timestamp per operation plus every secret id seen.

    Workers only go through :meth:`record_action` and :meth:`record_secret`;
    both hold a single lock for the in-memory update and nothing else.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._actions: Dict[str, str] = {}
        self._secrets: Set[str] = set()

    def record_action(self, operation: str, event_time: str) -> bool:
        """Store ``event_time`` if it is later than the known one. Returns True if stored."""
        with self._lock:
            previous = self._actions.get(operation)
            # ISO-8601 timestamps in the same format compare correctly as strings
            if previous is None or event_time > previous:
                self._actions[operation] = event_time
                return True
            return False

    def record_secret(self, secret_id: str):
        with self._lock:
            self._secrets.add(secret_id)

    def actions(self) -> List[Tuple[str, str]]:
        with self._lock:
            return sorted(self._actions.items())

    def secrets(self) -> List[str]:
        with self._lock:
            return sorted(self._secrets)

    def __len__(self):
        with self._lock:
            return len(self._actions)


class ScanStats:
    """Counters for progress display and the final summary."""

    FIELDS = ('shards', 'discovered', 'processed', 'failed', 'skipped', 'matched')

    def __init__(self):
        self._lock = threading.Lock()
        for field in self.FIELDS:
            setattr(self, field, 0)

    def add(self, field: str, amount: int = 1) -> int:
        if field not in self.FIELDS:
            raise KeyError(field)
        with self._lock:
            value = getattr(self, field) + amount
            setattr(self, field, value)
            return value

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return {field: getattr(self, field) for field in self.FIELDS}
