"""Tests for the classifier memory components (history, weights, actual values)."""
import numpy as np
import numpy.testing as npt
import pytest

from sdr_classifier.modeling.memory import (
    ActualValueTracker,
    PatternHistory,
    SparseWeightMatrix,
)


class TestPatternHistory:
    """Tests for PatternHistory."""

    def test_record_and_lookup(self):
        """Test exact record-number lookup."""
        history = PatternHistory(capacity=3)
        history.record(0, [1, 3])
        history.record(1, [2, 4])
        history.record(2, [5])

        assert history.lookup(step=1, record_num=2) == (2, 4)
        assert history.lookup(step=2, record_num=2) == (1, 3)
        assert history.lookup(step=0, record_num=2) == (5,)

    def test_lookup_in_gap_returns_none(self):
        """Test that a missing record number yields no match."""
        history = PatternHistory(capacity=3)
        history.record(0, [1])
        history.record(2, [2])
        assert history.lookup(step=1, record_num=2) is None
        assert history.lookup(step=2, record_num=2) == (1,)

    def test_eviction_keeps_newest(self):
        """Test capacity bound and oldest-first eviction."""
        history = PatternHistory(capacity=2)
        for record_num in range(5):
            history.record(record_num, [record_num])

        assert len(history) == 2
        assert history.entries() == [(3, (3,)), (4, (4,))]
        assert history.lookup(step=2, record_num=4) is None

    def test_repeated_record_is_not_appended(self):
        """Test one entry per distinct record number."""
        history = PatternHistory(capacity=3)
        assert history.record(4, [1]) is True
        assert history.record(4, [2]) is False
        assert history.entries() == [(4, (1,))]

    def test_decreasing_record_raises(self):
        """Test that record numbers must not decrease."""
        history = PatternHistory(capacity=3)
        history.record(5, [1])
        with pytest.raises(ValueError, match="must not decrease"):
            history.record(3, [1])

    def test_invalid_capacity_raises(self):
        """Test capacity must be positive."""
        with pytest.raises(ValueError):
            PatternHistory(capacity=0)

    def test_restore_and_equality(self):
        """Test restore() rebuilds an equal history."""
        history = PatternHistory(capacity=3)
        history.record(0, [1, 2])
        history.record(1, [3])

        copy = PatternHistory(capacity=3)
        copy.restore(history.entries())
        assert copy == history
        assert copy.last_record_num == 1

    def test_restore_over_capacity_raises(self):
        """Test restore() refuses more entries than fit."""
        history = PatternHistory(capacity=1)
        with pytest.raises(ValueError):
            history.restore([(0, (1,)), (1, (2,))])


class TestSparseWeightMatrix:
    """Tests for SparseWeightMatrix."""

    def test_read_missing_is_zero_and_does_not_allocate(self):
        """Test that reads of unseen coordinates never grow the matrix."""
        matrix = SparseWeightMatrix()
        assert matrix.read(10, 3) == 0.0
        assert matrix.nnz == 0
        assert matrix.max_input_idx is None
        assert matrix.max_bucket_idx is None

    def test_accumulate_materializes_and_extends(self):
        """Test writes create entries and extend the index maxima."""
        matrix = SparseWeightMatrix()
        matrix.accumulate(4, 2, 0.5)
        matrix.accumulate(4, 2, 0.25)
        matrix.accumulate(1, 7, -0.1)

        assert matrix.read(4, 2) == pytest.approx(0.75)
        assert matrix.read(1, 7) == pytest.approx(-0.1)
        assert matrix.nnz == 2
        assert matrix.max_input_idx == 4
        assert matrix.max_bucket_idx == 7

    def test_accumulate_zero_delta_still_materializes(self):
        """Test a zero update still creates the entry."""
        matrix = SparseWeightMatrix()
        matrix.accumulate(0, 0, 0.0)
        assert matrix.nnz == 1

    def test_scores(self):
        """Test per-bucket sums over the active bits."""
        matrix = SparseWeightMatrix()
        matrix.accumulate(1, 0, 1.0)
        matrix.accumulate(1, 1, 2.0)
        matrix.accumulate(3, 1, 0.5)
        matrix.accumulate(3, 5, 9.0)

        scores = matrix.scores([1, 3, 99], n_buckets=3)
        npt.assert_allclose(scores, [1.0, 2.5, 0.0])
        assert matrix.nnz == 4

    def test_to_dict_from_dict_roundtrip(self):
        """Test the persistence helpers preserve equality."""
        matrix = SparseWeightMatrix()
        matrix.accumulate(2, 1, 0.3)
        matrix.accumulate(5, 0, -0.2)

        rebuilt = SparseWeightMatrix.from_dict(
            matrix.to_dict(), matrix.max_input_idx, matrix.max_bucket_idx
        )
        assert rebuilt == matrix


class TestActualValueTracker:
    """Tests for ActualValueTracker."""

    def test_first_observation_bootstraps(self):
        """Test the first value is stored as-is."""
        tracker = ActualValueTracker(act_value_alpha=0.3)
        tracker.observe(2, 10.0)

        npt.assert_array_equal(tracker.snapshot(), [0.0, 0.0, 10.0])
        assert tracker.is_set(2)
        assert not tracker.is_set(0)
        assert tracker.max_bucket_idx == 2

    def test_decay(self):
        """Test 0.7 * 10 + 0.3 * 20 = 13."""
        tracker = ActualValueTracker(act_value_alpha=0.3)
        tracker.observe(0, 10.0)
        tracker.observe(0, 20.0)
        assert tracker.snapshot()[0] == pytest.approx(13.0)

    def test_snapshot_padding(self):
        """Test snapshot() pads to the requested size."""
        tracker = ActualValueTracker(act_value_alpha=0.5)
        tracker.observe(0, 1.0)
        npt.assert_array_equal(tracker.snapshot(3), [1.0, 0.0, 0.0])
        assert len(tracker.snapshot(0)) == 0

    def test_grow_defaults(self):
        """Test growth adds unset zero entries."""
        tracker = ActualValueTracker(act_value_alpha=0.5)
        tracker.grow(4)
        assert tracker.flags() == [False] * 5
        npt.assert_array_equal(tracker.snapshot(), np.zeros(5))

    def test_restore_length_mismatch_raises(self):
        """Test values and flags must be parallel."""
        tracker = ActualValueTracker(act_value_alpha=0.5)
        with pytest.raises(ValueError):
            tracker.restore([1.0, 2.0], [True])
