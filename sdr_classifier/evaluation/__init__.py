"""
Evaluation Module

Tools for scoring an SDR classifier on recorded streams:

1. Metrics (metrics.py):
   - Per-step argmax accuracy with a formatted summary
   - Top-k accuracy and log loss over variable-width PDFs

2. Replay Runner (replay.py):
   - Stream a records frame through a classifier
   - Align each step-N prediction with the bucket observed N records later
   - CLI: python -m sdr_classifier.evaluation.replay --records data.csv
"""

from .metrics import (
    StepAccuracyMetric,
    compute_log_loss,
    compute_top_k_accuracy,
    summarize_predictions,
)
from .replay import ReplayRunner, load_records

__all__ = [
    'StepAccuracyMetric',
    'compute_log_loss',
    'compute_top_k_accuracy',
    'summarize_predictions',
    'ReplayRunner',
    'load_records',
]
