"""
Classifier memory: the state a classifier instance owns between calls.

- PatternHistory (history.py): bounded (record_num, pattern) ring
- SparseWeightMatrix (weights.py): per-step sparse weights
- ActualValueTracker (actual_values.py): per-bucket decayed actual values
"""

from .actual_values import ActualValueTracker
from .history import PatternHistory
from .weights import SparseWeightMatrix

__all__ = [
    "ActualValueTracker",
    "PatternHistory",
    "SparseWeightMatrix",
]
