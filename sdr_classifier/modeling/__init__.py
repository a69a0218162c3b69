"""
Modeling package: configuration, classifier state, PDF transforms and the
classifiers built on them.
"""

from .classifiers import SDRClassifier
from .config import DEFAULT_CLASSIFIER_PARAMS, SDRClassifierConfig

__all__ = ["DEFAULT_CLASSIFIER_PARAMS", "SDRClassifier", "SDRClassifierConfig"]
