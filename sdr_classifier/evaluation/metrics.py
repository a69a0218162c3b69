"""
Evaluation Metrics Module

Metrics for scoring the classifier's per-step predictions against the buckets
that were actually observed `step` records later.

Key Metric: "Step Accuracy"
- For each step, the fraction of scored records whose argmax bucket equals
  the bucket observed `step` records later
- Records without a known outcome (end of stream, gaps) or without a
  prediction (no bucket seen yet) are not scored

Additional metrics:
- Top-k accuracy: whether the actual bucket is among the k most likely ones
- Log loss: cross-entropy of the PDFs against the actual buckets
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, log_loss

from sdr_classifier.modeling.meta.pdf_ops import argmax, top_k_buckets

logger = logging.getLogger(__name__)


class StepAccuracyMetric:
    """
    Computes per-step argmax accuracy from a predictions frame.

    The predictions frame is the output of ReplayRunner.run(): one row per
    (record, step) with columns 'step', 'predicted_bucket' and
    'actual_bucket' (NaN when the outcome is unknown).

    Attributes:
        step_column (str): Column holding the prediction step
        predicted_column (str): Column holding the argmax bucket (-1 if none)
        actual_column (str): Column holding the observed bucket

    Example:
        >>> metric = StepAccuracyMetric()
        >>> metric.compute_single(pdf=[0.2, 0.7, 0.1], actual_bucket=1)
        True
    """

    def __init__(
        self,
        step_column: str = 'step',
        predicted_column: str = 'predicted_bucket',
        actual_column: str = 'actual_bucket',
    ):
        self.step_column = step_column
        self.predicted_column = predicted_column
        self.actual_column = actual_column

        logger.debug(f"Initialized StepAccuracyMetric on columns "
                     f"{step_column}/{predicted_column}/{actual_column}")

    def compute_single(self, pdf: Sequence[float], actual_bucket: int) -> bool:
        """
        Whether the most likely bucket of `pdf` is `actual_bucket`.

        An empty PDF never counts as a hit.
        """
        if len(pdf) == 0:
            return False
        return argmax(pdf) == actual_bucket

    def scored_rows(self, predictions: pd.DataFrame) -> pd.DataFrame:
        """Rows that have both a prediction and a known outcome."""
        missing_cols = [
            col for col in (self.step_column, self.predicted_column, self.actual_column)
            if col not in predictions.columns
        ]
        if missing_cols:
            raise ValueError(
                f"Missing required columns: {missing_cols}. "
                f"Available columns: {predictions.columns.tolist()}"
            )
        mask = predictions[self.actual_column].notna() & (predictions[self.predicted_column] >= 0)
        return predictions[mask]

    def compute_batch(self, predictions: pd.DataFrame) -> Dict[int, Dict[str, float]]:
        """
        Accuracy per step.

        Returns:
            Dictionary mapping step to {'count', 'correct', 'accuracy'}
        """
        scored = self.scored_rows(predictions)
        if scored.empty:
            logger.warning("No scored predictions to compute accuracy")
            return {}

        summary = {}
        for step, group in scored.groupby(self.step_column):
            y_true = group[self.actual_column].astype(int).to_numpy()
            y_pred = group[self.predicted_column].astype(int).to_numpy()
            summary[int(step)] = {
                'count': int(len(group)),
                'correct': int(np.sum(y_true == y_pred)),
                'accuracy': float(accuracy_score(y_true, y_pred)),
            }
        return summary

    def format_summary(
        self,
        summary: Dict[int, Dict[str, float]],
        test_name: str = "Replay",
    ) -> str:
        """
        Format per-step accuracy as a summary block.

        Expected format:
        REPLAY SUMMARY - 2 Steps
        "Replay"
          ------------------------------------
          step 1: 812/1000 correct (81.20%)
          step 5: 403/996 correct (40.46%)
        """
        lines = [
            f"REPLAY SUMMARY - {len(summary)} Steps",
            f'"{test_name}"',
            "  ------------------------------------",
        ]
        for step in sorted(summary):
            entry = summary[step]
            lines.append(
                f"  step {step}: {entry['correct']}/{entry['count']} correct "
                f"({entry['accuracy'] * 100.0:.2f}%)"
            )
        return '\n'.join(lines)


def compute_top_k_accuracy(pdfs: Sequence[Sequence[float]], actual_buckets: Sequence[int], k: int) -> float:
    """
    Fraction of records whose actual bucket is among the k most likely buckets.

    Args:
        pdfs: One PDF per record (may differ in length as buckets grow)
        actual_buckets: Observed bucket per record
        k: Number of top buckets to consider

    Returns:
        Accuracy between 0.0 and 1.0 (0.0 for no records)
    """
    if len(pdfs) != len(actual_buckets):
        raise ValueError(
            f"Number of PDFs ({len(pdfs)}) must match number of actual buckets ({len(actual_buckets)})"
        )
    if len(pdfs) == 0:
        return 0.0
    hits = [int(actual) in set(top_k_buckets(pdf, k).tolist())
            for pdf, actual in zip(pdfs, actual_buckets)]
    return float(np.mean(hits))


def pad_pdfs(pdfs: Sequence[Sequence[float]], width: Optional[int] = None) -> np.ndarray:
    """
    Stack PDFs of different lengths into a matrix, zero-padding on the right.

    Buckets that did not exist when a PDF was produced had zero probability.
    """
    if width is None:
        width = max((len(p) for p in pdfs), default=0)
    out = np.zeros((len(pdfs), width), dtype=np.float64)
    for i, pdf in enumerate(pdfs):
        out[i, : len(pdf)] = pdf
    return out


def compute_log_loss(pdfs: Sequence[Sequence[float]], actual_buckets: Sequence[int]) -> float:
    """
    Cross-entropy of the PDFs against the observed buckets.

    PDFs are zero-padded to a common width that also covers every actual
    bucket, so an outcome in a bucket unknown at prediction time is scored
    as (clipped) zero probability.

    Returns:
        Mean log loss (nats)

    Raises:
        ValueError: If there are no records or lengths differ
    """
    if len(pdfs) != len(actual_buckets):
        raise ValueError(
            f"Number of PDFs ({len(pdfs)}) must match number of actual buckets ({len(actual_buckets)})"
        )
    if len(pdfs) == 0:
        raise ValueError("Cannot compute log loss of zero records")

    y_true = np.asarray(actual_buckets, dtype=int)
    width = max(max(len(p) for p in pdfs), int(y_true.max()) + 1, 2)
    y_prob = pad_pdfs(pdfs, width)
    return float(log_loss(y_true, y_prob, labels=list(range(width))))


def summarize_predictions(predictions: pd.DataFrame, k: int = 3) -> Dict[int, Dict[str, float]]:
    """
    Per-step accuracy, top-k accuracy and log loss for a predictions frame
    that carries a 'pdf' column.
    """
    metric = StepAccuracyMetric()
    summary = metric.compute_batch(predictions)
    scored = metric.scored_rows(predictions)
    for step, group in scored.groupby('step'):
        pdfs: List[np.ndarray] = list(group['pdf'])
        actual = group['actual_bucket'].astype(int).tolist()
        summary[int(step)][f'top_{k}_accuracy'] = compute_top_k_accuracy(pdfs, actual, k)
        summary[int(step)]['log_loss'] = compute_log_loss(pdfs, actual)
    return summary
