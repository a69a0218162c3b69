"""
Utility modules for the SDR classifier.

This package contains helpers shared by callers and evaluation tools, such as
conversions between dense and sparse bit patterns.
"""

from sdr_classifier.utils.vector_helpers import (
    binary_to_sparse,
    cells_to_columns,
    sparse_cells_to_columns,
    sparse_to_binary,
    union_of_vectors,
)

__all__ = [
    'binary_to_sparse',
    'cells_to_columns',
    'sparse_cells_to_columns',
    'sparse_to_binary',
    'union_of_vectors',
]
