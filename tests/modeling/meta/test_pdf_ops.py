"""Tests for PDF operations (softmax, argmax, entropy, top-k)."""
import numpy as np
import numpy.testing as npt
import pytest

from sdr_classifier.modeling.meta.pdf_ops import argmax, entropy, softmax, top_k_buckets


class TestSoftmax:
    """Tests for softmax."""

    def test_sums_to_one(self):
        """Test output is a probability distribution."""
        np.random.seed(42)
        p = softmax(np.random.randn(20) * 5)
        npt.assert_allclose(p.sum(), 1.0, atol=1e-12)
        assert np.all(p >= 0.0)

    def test_equal_inputs_give_uniform(self):
        """Test the cold-start (all zero) case is uniform."""
        npt.assert_allclose(softmax([0.0, 0.0, 0.0, 0.0]), [0.25] * 4)
        npt.assert_allclose(softmax([7.5, 7.5]), [0.5, 0.5])

    def test_large_scores_do_not_overflow(self):
        """Test max subtraction keeps exp() finite."""
        p = softmax([1000.0, 1001.0, 999.0])
        assert np.all(np.isfinite(p))
        npt.assert_allclose(p.sum(), 1.0)
        assert p[1] > p[0] > p[2]

    def test_shift_invariance(self):
        """Test adding a constant does not change the output."""
        x = np.array([0.1, -2.0, 3.3])
        npt.assert_allclose(softmax(x), softmax(x + 100.0))

    def test_empty_input(self):
        """Test empty input gives empty output."""
        assert softmax([]).size == 0

    def test_known_values(self):
        """Test against exp(x) / sum(exp(x)) on small scores."""
        x = np.array([1.0, 2.0, 3.0])
        npt.assert_allclose(softmax(x), np.exp(x) / np.exp(x).sum())


class TestArgmax:
    """Tests for argmax."""

    def test_tie_resolves_to_lowest_index(self):
        """Test [0.5, 0.5, 0.0] classifies as bucket 0."""
        assert argmax([0.5, 0.5, 0.0]) == 0

    def test_uniform_resolves_to_zero(self):
        """Test the cold-start uniform PDF classifies as bucket 0."""
        assert argmax(softmax(np.zeros(6))) == 0

    def test_returns_python_int(self):
        """Test the result is a plain int."""
        result = argmax([0.1, 0.7, 0.2])
        assert result == 1
        assert isinstance(result, int)

    def test_empty_raises(self):
        """Test an empty PDF cannot be classified."""
        with pytest.raises(ValueError, match="empty PDF"):
            argmax([])


class TestDiagnostics:
    """Tests for entropy and top-k helpers."""

    def test_entropy_uniform(self):
        """Test entropy of a uniform PDF is log(n)."""
        assert entropy([0.25] * 4) == pytest.approx(np.log(4))

    def test_entropy_one_hot_is_zero(self):
        """Test entropy of a certain outcome is ~0."""
        assert entropy([0.0, 1.0, 0.0]) == pytest.approx(0.0, abs=1e-9)

    def test_top_k_order_and_ties(self):
        """Test top-k is descending with ties in ascending bucket order."""
        npt.assert_array_equal(top_k_buckets([0.1, 0.3, 0.3, 0.3], k=3), [1, 2, 3])
        npt.assert_array_equal(top_k_buckets([0.6, 0.1, 0.3], k=5), [0, 2, 1])
