"""Process-wide guard that lets each translation unit through at most once."""

import threading


class ProcessedSet:
    """Set of translation-unit identities already handed to the unit processor.

    A file may be discovered more than once (explicitly, and again as a
    recovery candidate) before its project is known. Entries are never
    removed.
    """

    def __init__(self):
        self._processed: set[str] = set()
        self._lock = threading.Lock()

    def try_admit(self, unit_id: str) -> bool:
        """True iff this is the first admission of ``unit_id``."""
        with self._lock:
            if unit_id in self._processed:
                return False
            self._processed.add(unit_id)
            return True

    def __contains__(self, unit_id: str) -> bool:
        with self._lock:
            return unit_id in self._processed

    def __len__(self) -> int:
        with self._lock:
            return len(self._processed)
