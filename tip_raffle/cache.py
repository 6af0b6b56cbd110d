"""
Record Cache
In-memory view of a collection, reconciled from confirmed writes and feed events
"""

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"
ACTIONS = (INSERT, UPDATE, DELETE)


class RecordCache:
    """
    Records indexed by id, iterated in timestamp order

    Events are applied idempotently: a repeated insert is ignored, an update
    of an unknown id inserts it, and a delete of an unknown id is a no-op.
    """

    def __init__(self, name: str, from_dict: Optional[Callable] = None):
        self.name = name
        self._from_dict = from_dict
        self._records: Dict[str, object] = {}
        self._lock = threading.RLock()

    def load(self, records: Iterable):
        with self._lock:
            self._records = {r.id: r for r in records}
        logger.debug(f"[{self.name}] loaded {len(self._records)} records")

    def apply(self, action: str, record) -> bool:
        """
        Apply one event

        Args:
            action: insert, update or delete
            record: model instance, a dict (converted with from_dict), or an id for delete

        Returns:
            bool: True if the cache changed
        """
        if action not in ACTIONS:
            raise ValueError(f"Unknown cache action: {action}")

        if isinstance(record, dict) and self._from_dict and action != DELETE:
            record = self._from_dict(record)

        if action == DELETE:
            record_id = record if isinstance(record, str) else (
                record.get("id") if isinstance(record, dict) else record.id
            )
            with self._lock:
                return self._records.pop(record_id, None) is not None

        with self._lock:
            if action == INSERT and record.id in self._records:
                return False
            self._records[record.id] = record
            return True

    def get(self, record_id):
        with self._lock:
            return self._records.get(record_id)

    def values(self) -> List:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.timestamp)

    def clear(self):
        with self._lock:
            self._records.clear()

    def __contains__(self, record_id):
        with self._lock:
            return record_id in self._records

    def __len__(self):
        with self._lock:
            return len(self._records)
