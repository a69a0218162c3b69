"""
Pattern History

Fixed-capacity ledger of (record number, pattern) pairs. The learner uses it
to recover the input that was active exactly N records before the current one,
so that a step-N weight matrix is trained on the pattern that actually
preceded the target by N records.

Record numbers must not decrease. Gaps are allowed and simply mean that some
records were never seen; a lookup that lands in a gap returns None.
"""

from collections import deque
from typing import Deque, Iterator, List, Optional, Sequence, Tuple

HistoryEntry = Tuple[int, Tuple[int, ...]]


class PatternHistory:
    """
    Bounded, time-ordered ring of (record_num, pattern) entries.

    Args:
        capacity: Maximum number of entries kept (max(steps) + 1 for the
            classifier). The oldest entry is evicted when a new one arrives
            at full capacity.

    Example:
        >>> history = PatternHistory(capacity=2)
        >>> history.record(0, [1, 3])
        >>> history.record(1, [2, 4])
        >>> history.lookup(step=1, record_num=1)
        (1, 3)
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self._entries: Deque[HistoryEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    @property
    def last_record_num(self) -> Optional[int]:
        """Record number of the newest entry, or None when empty."""
        if not self._entries:
            return None
        return self._entries[-1][0]

    def record(self, record_num: int, pattern: Sequence[int]) -> bool:
        """
        Append a record, evicting the oldest entry when full.

        Repeating the newest record number is a no-op, so at most one entry is
        appended per distinct record.

        Args:
            record_num: Record number of the current input
            pattern: Active bit indices of the current input

        Returns:
            True if an entry was appended, False for a repeated record number

        Raises:
            ValueError: If record_num is lower than the newest recorded one
        """
        last = self.last_record_num
        if last is not None:
            if record_num < last:
                raise ValueError(
                    f"Record numbers must not decrease: got {record_num} after {last}. "
                    "Reordered records are not supported."
                )
            if record_num == last:
                return False
        self._entries.append((int(record_num), tuple(int(bit) for bit in pattern)))
        return True

    def lookup(self, step: int, record_num: int) -> Optional[Tuple[int, ...]]:
        """
        Pattern recorded exactly `step` records before `record_num`.

        Matching is by record number, never by position, so a gap in record
        numbers yields None instead of crediting the wrong input.
        """
        wanted = record_num - step
        for entry_num, pattern in reversed(self._entries):
            if entry_num == wanted:
                return pattern
            if entry_num < wanted:
                break
        return None

    def entries(self) -> List[HistoryEntry]:
        """Copy of the entries, oldest first."""
        return list(self._entries)

    def restore(self, entries: Sequence[HistoryEntry]) -> None:
        """Replace the contents with `entries` (oldest first)."""
        if len(entries) > self.capacity:
            raise ValueError(
                f"Cannot restore {len(entries)} entries into a history of capacity {self.capacity}"
            )
        self._entries.clear()
        for record_num, pattern in entries:
            self._entries.append((int(record_num), tuple(int(bit) for bit in pattern)))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternHistory):
            return NotImplemented
        return self.capacity == other.capacity and list(self._entries) == list(other._entries)

    def __repr__(self) -> str:
        return f"PatternHistory(capacity={self.capacity}, size={len(self)})"
