"""PDF transforms shared by the classifier and the evaluation tools."""

from .pdf_ops import argmax, entropy, softmax, top_k_buckets

__all__ = ["argmax", "entropy", "softmax", "top_k_buckets"]
