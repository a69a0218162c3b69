"""
Classifier Configuration

Construction-time parameters for the SDR classifier. The classifier itself only
needs four primitive values (steps, alpha, act_value_alpha, verbosity); this
module gathers them into a validated dataclass so callers, the replay CLI and
saved model metadata all share one description.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Sequence, Tuple


# Default hyperparameters (mirrors the classic NuPIC classifier defaults)
DEFAULT_CLASSIFIER_PARAMS: Dict[str, Any] = {
    'steps': (1,),
    'alpha': 0.001,  # Learning rate of the delta rule
    'act_value_alpha': 0.3,  # Decay rate of the per-bucket actual values
    'verbosity': 0,
}


def normalize_steps(steps: Sequence[int]) -> Tuple[int, ...]:
    """
    Validate and canonicalize a step list.

    Steps are de-duplicated and sorted ascending so two classifiers built from
    the same set of steps compare equal regardless of the order given.

    Args:
        steps: Prediction horizons, each a positive integer

    Returns:
        Sorted tuple of unique steps

    Raises:
        ValueError: If steps is empty or contains a non-positive value
    """
    steps = list(steps)
    if len(steps) == 0:
        raise ValueError(
            "steps cannot be empty. "
            "Configure at least one prediction horizon, e.g. steps=[1]."
        )
    for step in steps:
        if isinstance(step, bool) or int(step) != step or step < 1:
            raise ValueError(
                f"Every step must be a positive integer, got {step!r}. "
                "A step of N predicts the bucket N records ahead."
            )
    return tuple(sorted({int(s) for s in steps}))


@dataclass
class SDRClassifierConfig:
    """
    Configuration for an SDRClassifier instance.

    Args:
        steps: Prediction horizons (records ahead) to learn and infer.
        alpha: Learning rate used by the weight update, in (0, 1].
        act_value_alpha: Decay rate of the per-bucket actual values, in (0, 1].
        verbosity: 0 is quiet; 1 logs skipped steps and growth; 2 adds a
            summary line per compute() call.
    """

    steps: Tuple[int, ...] = field(default_factory=lambda: tuple(DEFAULT_CLASSIFIER_PARAMS['steps']))
    alpha: float = DEFAULT_CLASSIFIER_PARAMS['alpha']
    act_value_alpha: float = DEFAULT_CLASSIFIER_PARAMS['act_value_alpha']
    verbosity: int = DEFAULT_CLASSIFIER_PARAMS['verbosity']

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> "SDRClassifierConfig":
        """
        Check every field, canonicalizing steps in place.

        Returns:
            Self.

        Raises:
            ValueError: If any field is out of range
        """
        self.steps = normalize_steps(self.steps)
        if not (0.0 < float(self.alpha) <= 1.0):
            raise ValueError(f"alpha must be in (0, 1], got {self.alpha}")
        if not (0.0 < float(self.act_value_alpha) <= 1.0):
            raise ValueError(
                f"act_value_alpha must be in (0, 1], got {self.act_value_alpha}"
            )
        if int(self.verbosity) < 0:
            raise ValueError(f"verbosity must be >= 0, got {self.verbosity}")
        self.alpha = float(self.alpha)
        self.act_value_alpha = float(self.act_value_alpha)
        self.verbosity = int(self.verbosity)
        return self

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "SDRClassifierConfig":
        """
        Build a config from a (possibly partial) parameter dict.

        Missing keys fall back to DEFAULT_CLASSIFIER_PARAMS.

        Raises:
            ValueError: If params contains unknown keys
        """
        unknown = set(params) - set(DEFAULT_CLASSIFIER_PARAMS)
        if unknown:
            raise ValueError(
                f"Unknown classifier parameters: {sorted(unknown)}. "
                f"Valid keys: {sorted(DEFAULT_CLASSIFIER_PARAMS)}"
            )
        merged = DEFAULT_CLASSIFIER_PARAMS.copy()
        merged.update(params)
        return cls(**merged)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly dict (steps as a list)."""
        out = asdict(self)
        out['steps'] = list(self.steps)
        return out
