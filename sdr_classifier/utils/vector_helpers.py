"""
Vector Helpers

Small conversions between the dense (binary) and sparse (active index)
representations of bit patterns. Encoders and upstream pipelines often hand
over dense 0/1 vectors, while the classifier consumes sorted active indices.

Functions:
    - binary_to_sparse: dense 0/1 vector -> active indices
    - sparse_to_binary: active indices -> dense 0/1 vector of a given width
    - union_of_vectors: OR of two sorted sparse patterns
    - cells_to_columns: dense cell activity -> dense column activity
    - sparse_cells_to_columns: sorted active cells -> active columns
"""

from typing import Iterable, List, Sequence

import numpy as np


def binary_to_sparse(binary_vector: Sequence[float]) -> List[int]:
    """
    Convert a dense binary vector into the list of its active indices.

    Only entries equal to 1 count as active; any other value is ignored.

    Args:
        binary_vector: Dense vector (list or array) of 0/1 values

    Returns:
        Sorted list of indices whose value is 1

    Example:
        >>> binary_to_sparse([0.0, 0.0, 1.0, 1.0, 0.0])
        [2, 3]
    """
    arr = np.asarray(binary_vector)
    return np.flatnonzero(arr == 1).tolist()


def sparse_to_binary(sparse_vector: Iterable[int], width: int, dtype=np.uint8) -> np.ndarray:
    """
    Convert active indices into a dense binary vector.

    Args:
        sparse_vector: Active bit indices
        width: Length of the dense output
        dtype: Output dtype (default: uint8)

    Returns:
        Dense array of shape (width,) with ones at the active indices

    Raises:
        ValueError: If an index falls outside [0, width)
    """
    indices = np.asarray(list(sparse_vector), dtype=np.int64)
    if indices.size and (indices.min() < 0 or indices.max() >= width):
        raise ValueError(
            f"Sparse indices must lie in [0, {width}), "
            f"got range [{indices.min()}, {indices.max()}]"
        )
    binary = np.zeros(width, dtype=dtype)
    binary[indices] = 1
    return binary


def union_of_vectors(v1: Sequence[int], v2: Sequence[int]) -> List[int]:
    """
    Union (OR) of two sorted sparse patterns, returned sorted and unique.

    Example:
        >>> union_of_vectors([1, 3, 5], [2, 3, 7])
        [1, 2, 3, 5, 7]
    """
    return np.union1d(np.asarray(v1, dtype=np.int64), np.asarray(v2, dtype=np.int64)).tolist()


def cells_to_columns(cells_binary: Sequence[int], cells_per_column: int) -> List[int]:
    """
    Collapse dense cell activity into dense column activity.

    A column is active (1) when any of its cells is active.

    Args:
        cells_binary: Dense 0/1 cell vector, length a multiple of cells_per_column
        cells_per_column: Number of cells in each column

    Returns:
        Dense 0/1 column vector
    """
    if cells_per_column <= 0:
        raise ValueError(f"cells_per_column must be positive, got {cells_per_column}")
    cells = np.asarray(cells_binary, dtype=np.int64)
    if cells.size % cells_per_column != 0:
        raise ValueError(
            f"Cell vector of length {cells.size} is not a multiple of "
            f"cells_per_column={cells_per_column}"
        )
    return cells.reshape(-1, cells_per_column).any(axis=1).astype(np.int64).tolist()


def sparse_cells_to_columns(cells_sparse: Sequence[int], cells_per_column: int) -> List[int]:
    """
    Sparse version of cells_to_columns().

    Args:
        cells_sparse: Sorted active cell indices
        cells_per_column: Number of cells in each column

    Returns:
        Sorted, unique active column indices

    Raises:
        ValueError: If cells_per_column is not positive or cells are unsorted
    """
    if cells_per_column <= 0:
        raise ValueError(f"cells_per_column must be positive, got {cells_per_column}")

    columns: List[int] = []
    prev = None
    for cell in cells_sparse:
        col = int(cell) // cells_per_column
        if col != prev:
            if prev is not None and col < prev:
                raise ValueError("Cell indexes not sorted")
            columns.append(col)
            prev = col
    return columns
