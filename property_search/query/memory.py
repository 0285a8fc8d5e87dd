"""Rolling memory of the searches made in one session."""

from collections import deque

from .models import SessionMemoryEntry

DEFAULT_MEMORY_SIZE = 10


class SessionMemory:
    """Bounded, ordered log of completed searches.

    Appending is the only mutation; once the log is full the oldest entry
    is evicted.
    """

    def __init__(self, max_entries: int = DEFAULT_MEMORY_SIZE):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: deque[SessionMemoryEntry] = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[SessionMemoryEntry, ...]:
        """Snapshot of the entries, oldest first."""
        return tuple(self._entries)

    def record(self, query: str, result_count: int, filter_used: str | None) -> SessionMemoryEntry:
        """Append a completed search.

        Args:
            query: Search text as submitted
            result_count: Number of records returned
            filter_used: Filter that produced the results, None for spatial lookups

        Returns:
            The appended entry
        """
        entry = SessionMemoryEntry(query=query, result_count=result_count, filter_used=filter_used)
        self._entries.append(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def summary(self) -> str:
        """Describe recent searches for inclusion in a prompt."""
        if not self._entries:
            return ""

        lines = []
        for i, entry in enumerate(self._entries, 1):
            noun = "result" if entry.result_count == 1 else "results"
            line = f'{i}. "{entry.query}" -> {entry.result_count} {noun}'
            if entry.filter_used:
                line += f" (filter: {entry.filter_used})"
            lines.append(line)
        return "\n".join(lines)
