"""
Classifier Results

A ClassifierResult maps tagged keys to float vectors:
    - Prediction(step): PDF over buckets for the record `step` records ahead
    - ACTUAL_VALUES: current per-bucket actual-value estimates (not a PDF)

Older consumers expect a plain dict keyed by step number with the reserved
key -1 for actual values; to_legacy() produces that form.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Union

import numpy as np
import pandas as pd

# Reserved integer key for actual values in the legacy dict form
ACTUAL_VALUES_KEY = -1


@dataclass(frozen=True)
class Prediction:
    """Key of the PDF predicted `step` records ahead."""

    step: int


@dataclass(frozen=True)
class ActualValues:
    """Key of the per-bucket actual-value estimates."""

    def __repr__(self) -> str:
        return "ACTUAL_VALUES"


ACTUAL_VALUES = ActualValues()

ResultKey = Union[Prediction, ActualValues]


class ClassifierResult(dict):
    """
    Output of SDRClassifier.compute().

    Example:
        >>> result = classifier.compute(1, [2, 4], [1], [1.0], infer=True)
        >>> result.pdf(1)
        array([0.5, 0.5])
        >>> result.actual_values
        array([0., 1.])
    """

    @property
    def steps(self) -> List[int]:
        """Steps present in the result, ascending."""
        return sorted(key.step for key in self if isinstance(key, Prediction))

    def pdf(self, step: int) -> np.ndarray:
        """
        PDF for one step.

        Raises:
            KeyError: If the result holds no prediction for `step`
        """
        key = Prediction(step)
        if key not in self:
            raise KeyError(
                f"No prediction for step {step}. Available steps: {self.steps}"
            )
        return self[key]

    @property
    def actual_values(self) -> np.ndarray:
        return self.get(ACTUAL_VALUES, np.zeros(0, dtype=np.float64))

    def to_legacy(self) -> Dict[int, List[float]]:
        """Integer-keyed form: {step: pdf, ACTUAL_VALUES_KEY: actual values}."""
        out: Dict[int, List[float]] = {}
        for key, vector in self.items():
            if isinstance(key, Prediction):
                out[key.step] = vector.tolist()
            else:
                out[ACTUAL_VALUES_KEY] = vector.tolist()
        return out

    def to_frame(self) -> pd.DataFrame:
        """
        Tabular view: one row per bucket, one column per step ("step_N") plus
        "actual_value". Shorter vectors are padded with NaN.
        """
        columns = {f"step_{step}": self.pdf(step) for step in self.steps}
        if ACTUAL_VALUES in self:
            columns["actual_value"] = self[ACTUAL_VALUES]
        n_rows = max((len(v) for v in columns.values()), default=0)
        frame = pd.DataFrame(index=pd.RangeIndex(n_rows, name="bucket"))
        for name, vector in columns.items():
            padded = np.full(n_rows, np.nan)
            padded[: len(vector)] = vector
            frame[name] = padded
        return frame
