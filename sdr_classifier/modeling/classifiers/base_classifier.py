"""
Base Online Classifier

Abstract base class for online classifiers that consume one record at a time.
Subclasses implement compute(), which may learn from the record, infer from
it, or both, and shares input validation through the helpers below.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence, Tuple

from .results import ClassifierResult


class BaseOnlineClassifier(ABC):
    """
    Abstract base class for record-at-a-time classifiers.

    Usage Pattern:
        >>> classifier = SomeClassifier(...)
        >>> for record_num, pattern, bucket, value in stream:
        ...     result = classifier.compute(record_num, pattern, [bucket], [value])
    """

    @abstractmethod
    def compute(
        self,
        record_num: int,
        pattern: Iterable[int],
        bucket_idx_list: Sequence[int] = (),
        act_value_list: Sequence[float] = (),
        category: bool = False,
        learn: bool = True,
        infer: bool = True,
    ) -> ClassifierResult:
        """
        Process one record.

        Args:
            record_num: Non-decreasing record identifier; gaps mean missing records
            pattern: Active input bit indices
            bucket_idx_list: Target bucket(s) of this record
            act_value_list: Actual value for each target bucket
            category: Whether the actual values are category labels
            learn: Whether to update the model from this record
            infer: Whether to return predictions for this record

        Returns:
            result: ClassifierResult (empty when infer is False)

        Raises:
            ValueError: On malformed input (see _validate_pattern, _validate_targets)
        """
        pass

    def get_name(self) -> str:
        """Return classifier name for logging and identification."""
        return self.__class__.__name__

    @staticmethod
    def _as_index(value, kind: str) -> int:
        """
        Convert one index to int, rejecting non-integral values.

        Raises:
            ValueError: If value is a bool or has a fractional part
        """
        if isinstance(value, bool) or int(value) != value:
            raise ValueError(
                f"{kind} indices must be integers, got {value!r}. "
                "Indices are never rounded or truncated."
            )
        return int(value)

    @classmethod
    def _validate_pattern(cls, pattern: Iterable[int]) -> List[int]:
        """
        Convert a pattern to a sorted list of unique ints.

        A pattern is a set of active bits, so a repeated index counts once.

        Raises:
            ValueError: If any active bit index is negative or non-integral
        """
        bits = sorted({cls._as_index(bit, "Pattern") for bit in pattern})
        if bits and bits[0] < 0:
            raise ValueError(
                f"Pattern indices must be non-negative, got {min(bits)}. "
                "Patterns hold the indices of active input bits."
            )
        return bits

    @classmethod
    def _validate_targets(
        cls,
        bucket_idx_list: Sequence[int],
        act_value_list: Sequence[float],
    ) -> Tuple[List[int], List[float]]:
        """
        Check that buckets and actual values are parallel sequences.

        Repeated buckets are kept here so each (bucket, value) pair stays
        aligned; the learner collapses them when building its target.

        Raises:
            ValueError: If lengths differ or a bucket index is negative or
                non-integral
        """
        buckets = [cls._as_index(b, "Bucket") for b in bucket_idx_list]
        values = [float(v) for v in act_value_list]
        if len(buckets) != len(values):
            raise ValueError(
                f"bucket_idx_list ({len(buckets)}) and act_value_list ({len(values)}) "
                "must have the same length. Each target bucket needs its actual value."
            )
        if buckets and min(buckets) < 0:
            raise ValueError(f"Bucket indices must be non-negative, got {min(buckets)}")
        return buckets, values

    def __repr__(self) -> str:
        return f"{self.get_name()}()"
