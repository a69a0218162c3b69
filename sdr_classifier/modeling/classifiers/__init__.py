"""
Classifier Sub-Module

Online classifiers that map sparse input patterns to bucket probabilities.

Models:
1. BaseOnlineClassifier (base_classifier.py)
   - Abstract base class and shared input validation

2. SDRClassifier (sdr_classifier.py)
   - Multi-step softmax classifier with delta-rule learning

Supporting modules:
- results.py: ClassifierResult and its tagged keys
- persistence.py: versioned snapshots and model files
"""

from .base_classifier import BaseOnlineClassifier
from .persistence import SDR_CLASSIFIER_VERSION, ClassifierFormatError
from .results import (
    ACTUAL_VALUES,
    ACTUAL_VALUES_KEY,
    ActualValues,
    ClassifierResult,
    Prediction,
)
from .sdr_classifier import SDRClassifier

__all__ = [
    "ACTUAL_VALUES",
    "ACTUAL_VALUES_KEY",
    "ActualValues",
    "BaseOnlineClassifier",
    "ClassifierFormatError",
    "ClassifierResult",
    "Prediction",
    "SDRClassifier",
    "SDR_CLASSIFIER_VERSION",
]
