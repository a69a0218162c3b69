"""
Actual-Value Tracker

Keeps, per bucket, an exponential moving average of the raw values that fell
into that bucket. Decoders use it to turn a predicted bucket back into a value.

Update rule:
    first observation:  value[b] = x
    afterwards:         value[b] = (1 - act_value_alpha) * value[b] + act_value_alpha * x

The first observation is stored as-is so the estimate is not dragged toward
the 0.0 placeholder of unseen buckets.
"""

from typing import List, Optional

import numpy as np


class ActualValueTracker:
    """
    Per-bucket decayed actual values with "has been set" flags.

    Args:
        act_value_alpha: Decay rate applied after the first observation

    Example:
        >>> tracker = ActualValueTracker(act_value_alpha=0.3)
        >>> tracker.observe(0, 10.0)
        >>> tracker.observe(0, 20.0)
        >>> float(tracker.snapshot()[0])
        13.0
    """

    def __init__(self, act_value_alpha: float):
        self.act_value_alpha = float(act_value_alpha)
        self._values: List[float] = []
        self._is_set: List[bool] = []

    @property
    def max_bucket_idx(self) -> Optional[int]:
        if not self._values:
            return None
        return len(self._values) - 1

    def grow(self, bucket: int) -> None:
        """Extend both arrays (0.0 / False) so that `bucket` is addressable."""
        while len(self._values) <= bucket:
            self._values.append(0.0)
            self._is_set.append(False)

    def observe(self, bucket: int, value: float) -> None:
        """Fold `value` into the estimate for `bucket`."""
        self.grow(bucket)
        if not self._is_set[bucket]:
            self._values[bucket] = float(value)
            self._is_set[bucket] = True
        else:
            self._values[bucket] = (
                (1.0 - self.act_value_alpha) * self._values[bucket]
                + self.act_value_alpha * float(value)
            )

    def is_set(self, bucket: int) -> bool:
        return bucket < len(self._is_set) and self._is_set[bucket]

    def snapshot(self, size: Optional[int] = None) -> np.ndarray:
        """
        Current values as an array.

        Args:
            size: Output length; defaults to max_bucket_idx + 1. Buckets the
                tracker has not grown to yet read as 0.0.

        Returns:
            Float array of per-bucket estimates (unset buckets are 0.0)
        """
        if size is None:
            size = len(self._values)
        out = np.zeros(size, dtype=np.float64)
        n = min(size, len(self._values))
        out[:n] = self._values[:n]
        return out

    def flags(self) -> List[bool]:
        return list(self._is_set)

    def restore(self, values: List[float], is_set: List[bool]) -> None:
        """Replace values and flags, e.g. when loading a snapshot."""
        if len(values) != len(is_set):
            raise ValueError(
                f"values ({len(values)}) and is_set ({len(is_set)}) must have the same length"
            )
        self._values = [float(v) for v in values]
        self._is_set = [bool(f) for f in is_set]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ActualValueTracker):
            return NotImplemented
        return (
            self.act_value_alpha == other.act_value_alpha
            and self._values == other._values
            and self._is_set == other._is_set
        )

    def __repr__(self) -> str:
        return f"ActualValueTracker(act_value_alpha={self.act_value_alpha}, buckets={len(self._values)})"
