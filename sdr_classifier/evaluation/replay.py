"""
Record Replay (Repo-Style Runner)
=================================
Path: sdr_classifier/evaluation/replay.py

Provides:
    - `ReplayRunner`: streams a records frame through a classifier and
      aligns each step-N prediction with the bucket observed N records later
    - CLI to replay a CSV/parquet file, print per-step metrics, write the
      predictions and optionally save the trained classifier

Expected data:
    - Records frame with columns ["record_num", "pattern", "bucket", "value"]
      * pattern: list of active bits, or a string like "3 17 42" / "3,17,42"
      * bucket: int, list of ints (multi-label), or a string as above
      * value: float, or a list parallel to bucket

Outputs:
    - Predictions frame: one row per (record, step) with columns
      record_num, step, target_record_num, predicted_bucket, confidence,
      entropy, pdf, actual_bucket
"""
from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from sdr_classifier.modeling.classifiers import SDRClassifier
from sdr_classifier.modeling.config import DEFAULT_CLASSIFIER_PARAMS, SDRClassifierConfig
from sdr_classifier.modeling.meta.pdf_ops import entropy
from sdr_classifier.evaluation.metrics import StepAccuracyMetric, summarize_predictions

logger = logging.getLogger(__name__)


def parse_indices(value: Any) -> List[int]:
    """
    Normalize a pattern/bucket cell into a list of ints.

    Accepts scalars, sequences, numpy arrays and whitespace/comma separated
    strings. NaN and empty strings give an empty list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        tokens = value.replace(',', ' ').split()
        return [int(float(tok)) for tok in tokens]
    if isinstance(value, (list, tuple, np.ndarray)):
        return [int(v) for v in value]
    if isinstance(value, float) and np.isnan(value):
        return []
    return [int(value)]


def parse_values(value: Any, n: int) -> List[float]:
    """Normalize a value cell into `n` floats (a scalar is repeated)."""
    if isinstance(value, str):
        values = [float(tok) for tok in value.replace(',', ' ').split()]
    elif isinstance(value, (list, tuple, np.ndarray)):
        values = [float(v) for v in value]
    elif value is None or (isinstance(value, float) and np.isnan(value)):
        values = []
    else:
        values = [float(value)]
    if len(values) == 1 and n > 1:
        values = values * n
    return values


class ReplayRunner:
    """
    Feed recorded inputs through a classifier and collect aligned predictions.

    Args:
        classifier: Classifier to train/evaluate (modified in place)
        category: Passed through to compute() for every record
        record_column, pattern_column, bucket_column, value_column: Column names

    Attributes:
        replay_time_: Wall-clock seconds of the last run() (None before)

    Example:
        >>> runner = ReplayRunner(SDRClassifier(steps=[1], alpha=0.1))
        >>> predictions = runner.run(records)
        >>> runner.evaluate(predictions)[1]['accuracy']
    """

    def __init__(
        self,
        classifier: SDRClassifier,
        category: bool = False,
        record_column: str = 'record_num',
        pattern_column: str = 'pattern',
        bucket_column: str = 'bucket',
        value_column: str = 'value',
    ):
        self.classifier = classifier
        self.category = category
        self.record_column = record_column
        self.pattern_column = pattern_column
        self.bucket_column = bucket_column
        self.value_column = value_column
        self.replay_time_: Optional[float] = None

    def _validate_records(self, records: pd.DataFrame) -> None:
        required = [self.record_column, self.pattern_column, self.bucket_column, self.value_column]
        missing_cols = [col for col in required if col not in records.columns]
        if missing_cols:
            raise ValueError(
                f"Missing required columns: {missing_cols}. "
                f"Available columns: {records.columns.tolist()}"
            )

    def run(self, records: pd.DataFrame, learn: bool = True, infer: bool = True) -> pd.DataFrame:
        """
        Replay every record in order.

        Args:
            records: Records frame (see module docstring), sorted by record number
            learn: Whether the classifier learns while replaying
            infer: Whether predictions are collected (False returns an empty frame)

        Returns:
            Predictions frame; 'actual_bucket' is the first bucket of the
            record `step` records later, NaN when that record is absent
        """
        self._validate_records(records)
        start_time = time.time()

        rows: List[Dict[str, Any]] = []
        first_bucket: Dict[int, int] = {}

        for record in records.itertuples(index=False):
            record_num = int(getattr(record, self.record_column))
            pattern = parse_indices(getattr(record, self.pattern_column))
            buckets = parse_indices(getattr(record, self.bucket_column))
            values = parse_values(getattr(record, self.value_column), len(buckets))
            if buckets:
                first_bucket.setdefault(record_num, buckets[0])

            result = self.classifier.compute(
                record_num, pattern, buckets, values,
                category=self.category, learn=learn, infer=infer,
            )
            if not infer:
                continue

            for step in result.steps:
                pdf = result.pdf(step)
                has_pdf = len(pdf) > 0
                rows.append({
                    'record_num': record_num,
                    'step': step,
                    'target_record_num': record_num + step,
                    'predicted_bucket': self.classifier.get_classification(pdf) if has_pdf else -1,
                    'confidence': float(pdf.max()) if has_pdf else np.nan,
                    'entropy': entropy(pdf) if has_pdf else np.nan,
                    'pdf': pdf,
                })

        self.replay_time_ = time.time() - start_time
        logger.info(f"Replayed {len(records)} records in {self.replay_time_:.2f}s")

        columns = ['record_num', 'step', 'target_record_num', 'predicted_bucket',
                   'confidence', 'entropy', 'pdf', 'actual_bucket']
        if not rows:
            return pd.DataFrame(columns=columns)

        predictions = pd.DataFrame(rows)
        predictions['actual_bucket'] = predictions['target_record_num'].map(first_bucket)
        return predictions[columns]

    def evaluate(self, predictions: pd.DataFrame, k: int = 3) -> Dict[int, Dict[str, float]]:
        """Per-step accuracy, top-k accuracy and log loss of a run() frame."""
        return summarize_predictions(predictions, k=k)


def load_records(path: Path) -> pd.DataFrame:
    """Read a records file (.parquet or .csv), sorted by record number."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Records file not found: {path}")
    if path.suffix == '.parquet':
        df = pd.read_parquet(path)
    else:
        df = pd.read_csv(path)
    return df.sort_values('record_num', kind='stable').reset_index(drop=True)


# ---
# CLI
# ---


def _cli() -> None:
    """
    Command-line interface.

    Replays a records file through a new (or loaded) classifier, prints
    per-step metrics, and writes predictions and/or the trained model.
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description="Replay records through an SDR classifier")
    parser.add_argument("--records", required=True, type=str, help="Path to records .csv/.parquet")
    parser.add_argument("--steps", type=int, nargs="+",
                        default=list(DEFAULT_CLASSIFIER_PARAMS['steps']), help="Prediction steps")
    parser.add_argument("--alpha", type=float, default=DEFAULT_CLASSIFIER_PARAMS['alpha'],
                        help="Learning rate")
    parser.add_argument("--act-value-alpha", type=float,
                        default=DEFAULT_CLASSIFIER_PARAMS['act_value_alpha'],
                        help="Actual-value decay rate")
    parser.add_argument("--verbosity", type=int, default=DEFAULT_CLASSIFIER_PARAMS['verbosity'])
    parser.add_argument("--category", action="store_true", help="Values are category labels")
    parser.add_argument("--no-learn", action="store_true", help="Replay without learning")
    parser.add_argument("--load-model", type=str, help="Start from a saved classifier")
    parser.add_argument("--save-model", type=str, help="Output .joblib path for the classifier")
    parser.add_argument("--out-predictions", type=str, help="Output predictions .csv/.parquet")
    parser.add_argument("--top-k", type=int, default=3, help="k for top-k accuracy")

    args = parser.parse_args()

    if args.load_model:
        classifier = SDRClassifier.load_model(Path(args.load_model))
    else:
        config = SDRClassifierConfig(
            steps=tuple(args.steps),
            alpha=args.alpha,
            act_value_alpha=args.act_value_alpha,
            verbosity=args.verbosity,
        )
        classifier = SDRClassifier.from_config(config)

    records = load_records(Path(args.records))
    runner = ReplayRunner(classifier, category=args.category)
    predictions = runner.run(records, learn=not args.no_learn)

    summary = runner.evaluate(predictions, k=args.top_k)
    print(StepAccuracyMetric().format_summary(summary, test_name=Path(args.records).name))
    for step in sorted(summary):
        entry = summary[step]
        print(f"  step {step}: top-{args.top_k} {entry[f'top_{args.top_k}_accuracy'] * 100.0:.2f}%, "
              f"log loss {entry['log_loss']:.4f}")

    if args.out_predictions:
        out_path = Path(args.out_predictions)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        if out_path.suffix == '.parquet':
            out = predictions.copy()
            out['pdf'] = out['pdf'].apply(lambda p: p.tolist())
            out.to_parquet(out_path, index=False)
        else:
            predictions.drop(columns=['pdf']).to_csv(out_path, index=False)
        logger.info(f"Predictions written to {out_path}")

    if args.save_model:
        classifier.save_model(Path(args.save_model))


if __name__ == "__main__":
    _cli()
