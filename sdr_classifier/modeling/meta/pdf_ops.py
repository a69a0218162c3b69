"""
PDF Operations
--------------
Numerically stable transforms and diagnostics for the per-step probability
vectors produced by the classifier.

Features:
    - Max-subtracted softmax (never overflows, uniform on equal inputs)
    - argmax with an explicit lowest-index tie-break
    - Shannon entropy and Top-k selection for confidence diagnostics
"""
from __future__ import annotations

from typing import Sequence

import numpy as np


def softmax(x: Sequence[float]) -> np.ndarray:
    """
    Compute a numerically stable softmax.

    The maximum is subtracted before exponentiating, so large scores cannot
    overflow and equal scores (including the all-zero cold start) map to the
    uniform distribution.

    Args:
        x: 1-D sequence of finite scores.

    Returns:
        Probabilities with the same length as x; empty input gives an empty array.
    """
    z = np.asarray(x, dtype=np.float64)
    if z.size == 0:
        return z
    z = z - np.max(z)
    ez = np.exp(z)
    return ez / np.sum(ez)


def argmax(pdf: Sequence[float]) -> int:
    """
    Index of the most likely bucket.

    Ties resolve to the lowest index, e.g. argmax([0.5, 0.5, 0.0]) == 0.

    Raises:
        ValueError: If pdf is empty
    """
    p = np.asarray(pdf, dtype=np.float64)
    if p.size == 0:
        raise ValueError(
            "Cannot classify an empty PDF. "
            "No bucket has been observed yet for this step."
        )
    # np.argmax returns the first occurrence of the maximum
    return int(np.argmax(p))


def entropy(p: Sequence[float], eps: float = 1e-12) -> float:
    """
    Shannon entropy (nats) of a probability vector.

    Args:
        p: Probability vector that sums to 1.
        eps: Numerical stability constant.
    """
    p_clip = np.clip(np.asarray(p, dtype=np.float64), eps, 1.0)
    if p_clip.size == 0:
        return 0.0
    return float(-np.sum(p_clip * np.log(p_clip)))


def top_k_buckets(pdf: Sequence[float], k: int) -> np.ndarray:
    """
    Bucket indices of the k largest probabilities, most likely first.

    A stable sort keeps equal probabilities in ascending bucket order,
    consistent with argmax().
    """
    p = np.asarray(pdf, dtype=np.float64)
    k = min(k, p.size)
    return np.argsort(-p, kind="stable")[:k]
