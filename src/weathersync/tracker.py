# failed cities of one batch, written concurrently by the pool workers

from __future__ import annotations
import threading
from typing import List


class FailureTracker:
    def __init__(self):
        self._lock = threading.Lock()
        self._names: List[str] = []

    def record(self, city_name: str) -> None:
        # duplicates are kept, the batch reports exactly what failed
        with self._lock:
            self._names.append(city_name)

    def drain(self) -> List[str]:
        # hand back everything in insertion order and start over empty
        with self._lock:
            names, self._names = self._names, []
        return names

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)
