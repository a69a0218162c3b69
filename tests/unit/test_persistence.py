"""
Unit Tests for classifier persistence

Tests versioned stream snapshots, model files with metadata sidecars,
equality after round-trips, and rejection of incompatible or corrupted data.
"""

import io
import json
import tempfile
from pathlib import Path

import joblib
import numpy as np
import numpy.testing as npt
import pytest

from sdr_classifier.modeling.classifiers import (
    SDR_CLASSIFIER_VERSION,
    ClassifierFormatError,
    SDRClassifier,
)
from sdr_classifier.modeling.classifiers.persistence import read_metadata


@pytest.fixture
def trained_classifier():
    """Classifier with weights, history and actual values populated."""
    clf = SDRClassifier(steps=[1, 4], alpha=0.05, act_value_alpha=0.25, verbosity=1)
    rng = np.random.RandomState(42)
    for record_num in range(60):
        if record_num == 30:
            continue  # leave a gap in the record numbers
        pattern = sorted(rng.choice(64, size=5, replace=False).tolist())
        bucket = int(rng.randint(0, 6))
        clf.compute(record_num, pattern, [bucket], [bucket * 1.5 + rng.rand()])
    return clf


def roundtrip(clf):
    """Save to an in-memory stream and load into a fresh instance."""
    stream = io.BytesIO()
    clf.save(stream)
    stream.seek(0)
    return SDRClassifier.from_stream(stream)


class TestStreamRoundtrip:
    """Tests for save()/load() on binary streams."""

    def test_fresh_classifier_roundtrip(self):
        """Test an untrained classifier survives a round-trip."""
        clf = SDRClassifier(steps=[2, 3], alpha=0.2)
        assert roundtrip(clf) == clf

    def test_trained_classifier_roundtrip(self, trained_classifier):
        """Test a trained classifier is equal after a round-trip."""
        loaded = roundtrip(trained_classifier)

        assert loaded == trained_classifier
        assert loaded.steps == (1, 4)
        assert loaded.get_alpha() == 0.05
        assert loaded.get_verbosity() == 1
        assert loaded.max_bucket_idx == trained_classifier.max_bucket_idx
        assert loaded.max_input_idx == trained_classifier.max_input_idx
        assert loaded.history.entries() == trained_classifier.history.entries()

    def test_loaded_classifier_predicts_identically(self, trained_classifier):
        """Test predictions and further learning match after loading."""
        loaded = roundtrip(trained_classifier)

        for record_num in range(60, 70):
            pattern = [record_num % 64, (record_num * 7) % 64]
            ra = trained_classifier.compute(record_num, pattern, [1], [1.0])
            rb = loaded.compute(record_num, pattern, [1], [1.0])
            for step in (1, 4):
                npt.assert_array_equal(ra.pdf(step), rb.pdf(step))

        assert loaded == trained_classifier

    def test_load_replaces_existing_state(self, trained_classifier):
        """Test load() overwrites a differently configured instance."""
        stream = io.BytesIO()
        trained_classifier.save(stream)
        stream.seek(0)

        other = SDRClassifier(steps=[9], alpha=0.5)
        other.compute(0, [1], [0], [0.0])
        other.load(stream)

        assert other == trained_classifier

    def test_inequality_detects_any_field(self, trained_classifier):
        """Test equality is field-wise."""
        loaded = roundtrip(trained_classifier)
        loaded.set_verbosity(0)
        assert loaded != trained_classifier

        loaded = roundtrip(trained_classifier)
        loaded.weight_matrix(1).accumulate(0, 0, 1e-9)
        assert loaded != trained_classifier


class TestFormatErrors:
    """Tests for rejected snapshots."""

    def test_version_mismatch_raises(self, trained_classifier):
        """Test a snapshot from another format version is rejected."""
        stream = io.BytesIO()
        trained_classifier.save(stream)
        stream.seek(0)
        payload = joblib.load(stream)
        payload['version'] = SDR_CLASSIFIER_VERSION + 1

        bad = io.BytesIO()
        joblib.dump(payload, bad)
        bad.seek(0)
        with pytest.raises(ClassifierFormatError, match="Incompatible snapshot version"):
            SDRClassifier.from_stream(bad)

    def test_corrupted_stream_raises(self):
        """Test garbage bytes are rejected."""
        with pytest.raises(ClassifierFormatError):
            SDRClassifier.from_stream(io.BytesIO(b"not a snapshot at all"))

    def test_foreign_payload_raises(self):
        """Test a joblib file holding something else is rejected."""
        stream = io.BytesIO()
        joblib.dump({'hello': 'world'}, stream)
        stream.seek(0)
        with pytest.raises(ClassifierFormatError, match="does not contain"):
            SDRClassifier.from_stream(stream)

    def test_failed_load_leaves_instance_unchanged(self, trained_classifier):
        """Test a rejected snapshot does not partially overwrite state."""
        before = roundtrip(trained_classifier)
        with pytest.raises(ClassifierFormatError):
            trained_classifier.load(io.BytesIO(b"\x00\x01\x02"))
        assert trained_classifier == before

    def test_format_error_is_value_error(self):
        """Test callers catching ValueError also catch format errors."""
        assert issubclass(ClassifierFormatError, ValueError)


class TestModelFiles:
    """Tests for save_model()/load_model()."""

    def test_save_and_load_model(self, trained_classifier):
        """Test a model file round-trip with metadata sidecar."""
        with tempfile.TemporaryDirectory() as tmpdir:
            model_path = Path(tmpdir) / "models" / "sdr.joblib"
            trained_classifier.save_model(model_path)

            assert model_path.exists()
            meta_path = Path(str(model_path) + '.meta.json')
            assert meta_path.exists()

            with open(meta_path) as f:
                metadata = json.load(f)
            assert metadata['classifier_type'] == 'SDRClassifier'
            assert metadata['config']['steps'] == [1, 4]
            assert metadata['format_version'] == SDR_CLASSIFIER_VERSION
            assert read_metadata(model_path) == metadata

            loaded = SDRClassifier.load_model(model_path)
            assert loaded == trained_classifier

    def test_save_without_metadata(self, trained_classifier):
        """Test the sidecar can be skipped."""
        with tempfile.TemporaryDirectory() as tmpdir:
            model_path = Path(tmpdir) / "sdr.joblib"
            trained_classifier.save_model(model_path, save_metadata=False)
            assert read_metadata(model_path) is None

    def test_load_missing_model_raises(self):
        """Test loading from a path that does not exist."""
        with pytest.raises(FileNotFoundError, match="Model file not found"):
            SDRClassifier.load_model(Path("/nonexistent/sdr.joblib"))
