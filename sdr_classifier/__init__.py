"""
sdr_classifier: online multi-step classification of sparse distributed
representations (SDRs).

Quick start:
    >>> from sdr_classifier import SDRClassifier
    >>> clf = SDRClassifier(steps=[1, 5], alpha=0.1, act_value_alpha=0.3)
    >>> result = clf.compute(0, [3, 17, 42], [4], [12.5])
    >>> result.pdf(1)
"""

from sdr_classifier.modeling.classifiers import (
    ACTUAL_VALUES,
    ClassifierFormatError,
    ClassifierResult,
    Prediction,
    SDRClassifier,
)
from sdr_classifier.modeling.config import SDRClassifierConfig
from sdr_classifier.modeling.meta import argmax, softmax

__version__ = "0.1.0"

__all__ = [
    "ACTUAL_VALUES",
    "ClassifierFormatError",
    "ClassifierResult",
    "Prediction",
    "SDRClassifier",
    "SDRClassifierConfig",
    "argmax",
    "softmax",
]
