"""
SDR Classifier

Online, multi-horizon classifier over sparse binary patterns (SDRs). For every
configured step N it learns a single-layer softmax model mapping the pattern
seen N records ago to the bucket observed now, and at inference time predicts,
for each N, a probability distribution over buckets for the record N ahead.

The approach:
1. Each compute() call appends the current pattern to a bounded history
2. Learning: for each step N, fetch the pattern from record (now - N),
   compute the softmax prediction the step-N weights give it, and move every
   active-bit row toward the target distribution:
       w[bit][b] += alpha * (target[b] - predicted[b])
   With binary inputs this is exactly the cross-entropy gradient.
3. Per-bucket actual values are tracked with an exponential moving average
4. Inference: sum the step-N weights over the current pattern, softmax the
   per-bucket scores, and report them alongside the actual values

Key Features:
    - Sparse weights that only grow on write, never on read
    - Exact record-number matching for delayed credit; gaps skip the step
    - Multi-label targets (several buckets per record share the target mass)
    - Versioned snapshots via save()/load() and model files via save_model()
"""

import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..config import SDRClassifierConfig, normalize_steps
from ..memory import ActualValueTracker, PatternHistory, SparseWeightMatrix
from ..meta.pdf_ops import argmax, softmax
from .base_classifier import BaseOnlineClassifier
from .persistence import (
    SDR_CLASSIFIER_VERSION,
    ClassifierFormatError,
    dump_state,
    load_model_file,
    load_state,
    save_model_file,
)
from .results import ACTUAL_VALUES, ClassifierResult, Prediction

logger = logging.getLogger(__name__)


class SDRClassifier(BaseOnlineClassifier):
    """
    Multi-step SDR classifier with delta-rule learning and softmax inference.

    Args:
        steps: Prediction horizons (records ahead); positive, non-empty
        alpha: Learning rate of the weight update (default: 0.001)
        act_value_alpha: Decay rate of the per-bucket actual values (default: 0.3)
        verbosity: 0 is quiet; >=1 logs skipped steps and growth at DEBUG;
            >=2 also logs a summary per compute() call

    Attributes:
        max_input_idx: Highest input bit seen so far (None before any input)
        max_bucket_idx: Highest bucket seen so far (None before any target)

    Example:
        >>> clf = SDRClassifier(steps=[1], alpha=0.1, act_value_alpha=0.3)
        >>> clf.compute(0, [1, 3], [0], [0.0], learn=True, infer=False)
        {}
        >>> result = clf.compute(1, [2, 4], [1], [1.0], learn=True, infer=True)
        >>> result.pdf(1)
        array([0.5, 0.5])
        >>> clf.get_classification(result.pdf(1))
        0
    """

    def __init__(
        self,
        steps: Sequence[int] = (1,),
        alpha: float = 0.001,
        act_value_alpha: float = 0.3,
        verbosity: int = 0,
    ):
        config = SDRClassifierConfig(
            steps=tuple(steps),
            alpha=alpha,
            act_value_alpha=act_value_alpha,
            verbosity=verbosity,
        )
        self._initialize(config)

    def _initialize(self, config: SDRClassifierConfig) -> None:
        self._steps: Tuple[int, ...] = config.steps
        self._alpha = config.alpha
        self._act_value_alpha = config.act_value_alpha
        self._verbosity = config.verbosity

        self._max_steps = max(self._steps) + 1
        self._history = PatternHistory(capacity=self._max_steps)
        self._weights: Dict[int, SparseWeightMatrix] = {
            step: SparseWeightMatrix() for step in self._steps
        }
        self._actual_values = ActualValueTracker(self._act_value_alpha)
        self.max_input_idx: Optional[int] = None
        self.max_bucket_idx: Optional[int] = None

    @classmethod
    def from_config(cls, config: SDRClassifierConfig) -> "SDRClassifier":
        """Build a classifier from a validated config."""
        return cls(
            steps=config.steps,
            alpha=config.alpha,
            act_value_alpha=config.act_value_alpha,
            verbosity=config.verbosity,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def steps(self) -> Tuple[int, ...]:
        return self._steps

    @property
    def history(self) -> PatternHistory:
        return self._history

    def weight_matrix(self, step: int) -> SparseWeightMatrix:
        """Weight matrix of one configured step."""
        if step not in self._weights:
            raise KeyError(f"Step {step} is not configured. Configured steps: {list(self._steps)}")
        return self._weights[step]

    @property
    def actual_value_tracker(self) -> ActualValueTracker:
        return self._actual_values

    def get_alpha(self) -> float:
        return self._alpha

    def get_act_value_alpha(self) -> float:
        return self._act_value_alpha

    def get_verbosity(self) -> int:
        return self._verbosity

    def set_verbosity(self, verbosity: int) -> None:
        if int(verbosity) < 0:
            raise ValueError(f"verbosity must be >= 0, got {verbosity}")
        self._verbosity = int(verbosity)

    def version(self) -> int:
        """Snapshot format version written by save()."""
        return SDR_CLASSIFIER_VERSION

    def get_config(self) -> SDRClassifierConfig:
        return SDRClassifierConfig(
            steps=self._steps,
            alpha=self._alpha,
            act_value_alpha=self._act_value_alpha,
            verbosity=self._verbosity,
        )

    def get_classification(self, pdf: Sequence[float]) -> int:
        """Bucket with the greatest probability; ties go to the lowest index."""
        return argmax(pdf)

    # ------------------------------------------------------------------
    # Compute
    # ------------------------------------------------------------------

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
        Learn from and/or infer on one record.

        Order of operations: history update, then learning (if `learn`), then
        inference (if `infer`). Inference therefore already sees the buckets
        introduced by this record's targets.

        Args:
            record_num: Non-decreasing record identifier; gaps mean missing records
            pattern: Active input bit indices of this record
            bucket_idx_list: Target bucket(s) of this record (several = multi-label)
            act_value_list: Actual value for each entry of bucket_idx_list
            category: Whether actual values are category labels. Advisory only:
                values are tracked with the same decay either way.
            learn: Whether to update weights and actual values
            infer: Whether to compute predictions

        Returns:
            result: ClassifierResult with Prediction(step) PDFs and ACTUAL_VALUES,
                or an empty result when infer is False

        Raises:
            ValueError: If the targets are not parallel, an index is negative,
                or record_num is lower than the previous one
        """
        bits = self._validate_pattern(pattern)
        buckets, values = self._validate_targets(bucket_idx_list, act_value_list)
        record_num = int(record_num)

        self._history.record(record_num, bits)

        if bits:
            top_bit = max(bits)
            if self.max_input_idx is None or top_bit > self.max_input_idx:
                if self._verbosity >= 1:
                    logger.debug(f"max_input_idx grows {self.max_input_idx} -> {top_bit}")
                self.max_input_idx = top_bit

        if learn:
            self._learn(record_num, buckets, values, category)

        result = ClassifierResult()
        if infer:
            result = self._infer(bits)

        if self._verbosity >= 2:
            logger.debug(
                f"compute(record_num={record_num}, n_bits={len(bits)}, buckets={buckets}, "
                f"learn={learn}, infer={infer}) -> max_bucket_idx={self.max_bucket_idx}"
            )
        return result

    def _learn(
        self,
        record_num: int,
        buckets: List[int],
        values: List[float],
        category: bool,
    ) -> None:
        if not buckets:
            return

        top_bucket = max(buckets)
        if self.max_bucket_idx is None or top_bucket > self.max_bucket_idx:
            if self._verbosity >= 1:
                logger.debug(f"max_bucket_idx grows {self.max_bucket_idx} -> {top_bucket}")
            self.max_bucket_idx = top_bucket
        self._actual_values.grow(self.max_bucket_idx)

        n_buckets = self.max_bucket_idx + 1
        for step in self._steps:
            learn_pattern = self._history.lookup(step, record_num)
            if learn_pattern is None:
                if self._verbosity >= 1:
                    logger.debug(
                        f"No pattern for record {record_num - step}; skipping step {step}"
                    )
                continue

            error = self._calculate_error(buckets, learn_pattern, step, n_buckets)
            deltas = (self._alpha * error).tolist()
            matrix = self._weights[step]
            for bit in learn_pattern:
                for bucket, delta in enumerate(deltas):
                    matrix.accumulate(bit, bucket, delta)

        # category only changes how callers read the values back
        for bucket, value in zip(buckets, values):
            self._actual_values.observe(bucket, value)

    def _calculate_error(
        self,
        buckets: List[int],
        pattern: Sequence[int],
        step: int,
        n_buckets: int,
    ) -> np.ndarray:
        """Target distribution minus the step's current prediction for `pattern`."""
        predicted = softmax(self._weights[step].scores(pattern, n_buckets))
        target = np.zeros(n_buckets, dtype=np.float64)
        # a repeated bucket counts once; the target always sums to 1
        unique_buckets = sorted(set(buckets))
        target[unique_buckets] = 1.0 / len(unique_buckets)
        return target - predicted

    def _infer(self, pattern: Sequence[int]) -> ClassifierResult:
        result = ClassifierResult()
        n_buckets = 0 if self.max_bucket_idx is None else self.max_bucket_idx + 1

        result[ACTUAL_VALUES] = self._actual_values.snapshot(n_buckets)
        for step in self._steps:
            if n_buckets == 0:
                result[Prediction(step)] = np.zeros(0, dtype=np.float64)
                continue
            scores = self._weights[step].scores(pattern, n_buckets)
            result[Prediction(step)] = softmax(scores)
        return result

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _get_state(self) -> Dict[str, Any]:
        entries = self._history.entries()
        return {
            'alpha': self._alpha,
            'act_value_alpha': self._act_value_alpha,
            'steps': list(self._steps),
            'max_steps': self._max_steps,
            'max_bucket_idx': self.max_bucket_idx,
            'max_input_idx': self.max_input_idx,
            'verbosity': self._verbosity,
            'record_num_history': [record_num for record_num, _ in entries],
            'pattern_history': [list(pattern) for _, pattern in entries],
            'weight_matrix': {step: m.to_dict() for step, m in self._weights.items()},
            'weight_limits': {
                step: (m.max_input_idx, m.max_bucket_idx) for step, m in self._weights.items()
            },
            'actual_values': self._actual_values.snapshot().tolist(),
            'actual_values_set': self._actual_values.flags(),
        }

    def _set_state(self, state: Dict[str, Any]) -> None:
        """Replace the whole state; nothing is assigned unless every part decodes."""
        try:
            config = SDRClassifierConfig(
                steps=normalize_steps(state['steps']),
                alpha=state['alpha'],
                act_value_alpha=state['act_value_alpha'],
                verbosity=state['verbosity'],
            )
            max_steps = int(state['max_steps'])
            if max_steps != max(config.steps) + 1:
                raise ValueError(f"max_steps {max_steps} does not match steps {config.steps}")

            history = PatternHistory(capacity=max_steps)
            record_nums = state['record_num_history']
            patterns = state['pattern_history']
            if len(record_nums) != len(patterns):
                raise ValueError("record and pattern histories differ in length")
            history.restore(list(zip(record_nums, patterns)))

            weights = {}
            for step in config.steps:
                max_in, max_b = state['weight_limits'][step]
                weights[step] = SparseWeightMatrix.from_dict(
                    state['weight_matrix'][step], max_input_idx=max_in, max_bucket_idx=max_b
                )

            tracker = ActualValueTracker(config.act_value_alpha)
            tracker.restore(state['actual_values'], state['actual_values_set'])
        except (KeyError, TypeError, ValueError) as e:
            raise ClassifierFormatError(f"Snapshot state is inconsistent: {e}") from e

        self._initialize(config)
        self._history = history
        self._weights = weights
        self._actual_values = tracker
        self.max_bucket_idx = state['max_bucket_idx']
        self.max_input_idx = state['max_input_idx']

    def save(self, stream: BinaryIO) -> None:
        """Write a versioned snapshot of the full state to a binary stream."""
        dump_state(self._get_state(), stream)

    def load(self, stream: BinaryIO) -> None:
        """
        Replace this instance's state with a snapshot read from `stream`.

        Raises:
            ClassifierFormatError: If the snapshot is corrupted or of another
                version; the instance is left unchanged in that case
        """
        self._set_state(load_state(stream))

    @classmethod
    def from_stream(cls, stream: BinaryIO) -> "SDRClassifier":
        """Fresh classifier restored from a snapshot stream."""
        instance = cls()
        instance.load(stream)
        return instance

    def save_model(self, model_path: Path, save_metadata: bool = True) -> Path:
        """
        Save the classifier to a model file.

        Args:
            model_path: Destination path (e.g. 'models/sdr_classifier.joblib')
            save_metadata: Also write '<model_path>.meta.json' with the config
                and model sizes

        Returns:
            The path written
        """
        metadata = None
        if save_metadata:
            metadata = {
                'classifier_type': self.get_name(),
                'config': self.get_config().to_dict(),
                'max_input_idx': self.max_input_idx,
                'max_bucket_idx': self.max_bucket_idx,
                'weights_nnz': {str(step): m.nnz for step, m in self._weights.items()},
                'history_length': len(self._history),
            }
        return save_model_file(self._get_state(), model_path, metadata=metadata)

    @classmethod
    def load_model(cls, model_path: Path) -> "SDRClassifier":
        """
        Load a classifier saved with save_model().

        Raises:
            FileNotFoundError: If the model file does not exist
            ClassifierFormatError: If the file is not a compatible snapshot
        """
        instance = cls()
        instance._set_state(load_model_file(model_path))
        return instance

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SDRClassifier):
            return NotImplemented
        return (
            self._alpha == other._alpha
            and self._act_value_alpha == other._act_value_alpha
            and self._steps == other._steps
            and self._max_steps == other._max_steps
            and self.max_bucket_idx == other.max_bucket_idx
            and self.max_input_idx == other.max_input_idx
            and self._verbosity == other._verbosity
            and self._history == other._history
            and self._weights == other._weights
            and self._actual_values == other._actual_values
        )

    def __repr__(self) -> str:
        return (
            f"{self.get_name()}(steps={list(self._steps)}, alpha={self._alpha}, "
            f"act_value_alpha={self._act_value_alpha}, verbosity={self._verbosity})"
        )
