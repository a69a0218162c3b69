"""
Sparse Weight Matrix

One sparse (input bit, bucket) -> weight matrix per prediction step, stored as
a dict of row dicts. Missing coordinates read as 0.0.

Reads and writes are deliberately separate entry points:
    - read() / scores() never create rows or entries
    - accumulate() always materializes the entry it touches
Using dict.setdefault or a defaultdict on the read path would silently grow
the matrix on every inference, so neither is used there.
"""

from typing import Dict, Iterable, Optional

import numpy as np


class SparseWeightMatrix:
    """
    Sparse 2D weight store addressed by (bit, bucket).

    Attributes:
        max_input_idx: Highest bit index ever written (None before any write)
        max_bucket_idx: Highest bucket index ever written (None before any write)
    """

    def __init__(self):
        self._rows: Dict[int, Dict[int, float]] = {}
        self.max_input_idx: Optional[int] = None
        self.max_bucket_idx: Optional[int] = None

    def read(self, bit: int, bucket: int) -> float:
        """Stored weight for (bit, bucket), or 0.0 if never written."""
        row = self._rows.get(bit)
        if row is None:
            return 0.0
        return row.get(bucket, 0.0)

    def accumulate(self, bit: int, bucket: int, delta: float) -> None:
        """
        Add `delta` to the weight at (bit, bucket), creating it at 0.0 first.

        Also extends max_input_idx / max_bucket_idx when the coordinate lies
        beyond everything written so far.
        """
        row = self._rows.get(bit)
        if row is None:
            row = {}
            self._rows[bit] = row
        row[bucket] = row.get(bucket, 0.0) + delta

        if self.max_input_idx is None or bit > self.max_input_idx:
            self.max_input_idx = bit
        if self.max_bucket_idx is None or bucket > self.max_bucket_idx:
            self.max_bucket_idx = bucket

    def scores(self, pattern: Iterable[int], n_buckets: int) -> np.ndarray:
        """
        Per-bucket sum of weights over the active bits of `pattern`.

        Args:
            pattern: Active bit indices
            n_buckets: Length of the score vector (buckets 0..n_buckets-1)

        Returns:
            Float array of shape (n_buckets,); unseen coordinates contribute 0.0
        """
        out = np.zeros(n_buckets, dtype=np.float64)
        for bit in pattern:
            row = self._rows.get(bit)
            if row is None:
                continue
            for bucket, weight in row.items():
                if bucket < n_buckets:
                    out[bucket] += weight
        return out

    @property
    def nnz(self) -> int:
        """Number of materialized entries."""
        return sum(len(row) for row in self._rows.values())

    def to_dict(self) -> Dict[int, Dict[int, float]]:
        """Deep copy of the rows, for persistence."""
        return {bit: dict(row) for bit, row in self._rows.items()}

    @classmethod
    def from_dict(
        cls,
        rows: Dict[int, Dict[int, float]],
        max_input_idx: Optional[int] = None,
        max_bucket_idx: Optional[int] = None,
    ) -> "SparseWeightMatrix":
        """Rebuild a matrix from to_dict() output."""
        matrix = cls()
        matrix._rows = {int(bit): {int(b): float(w) for b, w in row.items()}
                        for bit, row in rows.items()}
        matrix.max_input_idx = max_input_idx
        matrix.max_bucket_idx = max_bucket_idx
        return matrix

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseWeightMatrix):
            return NotImplemented
        return (
            self._rows == other._rows
            and self.max_input_idx == other.max_input_idx
            and self.max_bucket_idx == other.max_bucket_idx
        )

    def __repr__(self) -> str:
        return (
            f"SparseWeightMatrix(rows={len(self._rows)}, nnz={self.nnz}, "
            f"max_input_idx={self.max_input_idx}, max_bucket_idx={self.max_bucket_idx})"
        )
