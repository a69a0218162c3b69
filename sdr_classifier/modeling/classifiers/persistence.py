"""
Versioned Classifier Snapshots

Wraps a classifier state dict in a versioned envelope and (de)serializes it
with joblib, either to an open binary stream or to a model file with a JSON
metadata sidecar.

Envelope layout:
    {'format': 'sdr_classifier', 'version': SDR_CLASSIFIER_VERSION, 'state': {...}}

A payload carrying any other version is rejected outright; there is no
migration between formats.
"""

import json
import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional

import joblib
import pandas as pd

logger = logging.getLogger(__name__)

SDR_CLASSIFIER_VERSION = 2
FORMAT_NAME = 'sdr_classifier'

# Keys every state dict must carry
STATE_KEYS = (
    'alpha',
    'act_value_alpha',
    'steps',
    'max_steps',
    'max_bucket_idx',
    'max_input_idx',
    'verbosity',
    'record_num_history',
    'pattern_history',
    'weight_matrix',
    'weight_limits',
    'actual_values',
    'actual_values_set',
)


class ClassifierFormatError(ValueError):
    """Raised when a snapshot cannot be decoded or has an incompatible version."""


def dump_state(state: Dict[str, Any], stream: BinaryIO) -> None:
    """
    Write a versioned snapshot of `state` to an open binary stream.

    Args:
        state: Classifier state dict (see STATE_KEYS)
        stream: Writable binary file object
    """
    missing = [key for key in STATE_KEYS if key not in state]
    if missing:
        raise ValueError(f"State is missing required keys: {missing}")
    joblib.dump({'format': FORMAT_NAME, 'version': SDR_CLASSIFIER_VERSION, 'state': state}, stream)


def load_state(stream: BinaryIO) -> Dict[str, Any]:
    """
    Read and validate a versioned snapshot from an open binary stream.

    Returns:
        The decoded state dict

    Raises:
        ClassifierFormatError: If the stream is not a snapshot, is corrupted,
            or was written with another format version
    """
    try:
        payload = joblib.load(stream)
    except Exception as e:
        raise ClassifierFormatError(
            f"Could not decode classifier snapshot: {e}. "
            "The stream is corrupted or was not written by SDRClassifier.save()."
        ) from e

    if not isinstance(payload, dict) or payload.get('format') != FORMAT_NAME:
        raise ClassifierFormatError(
            "Stream does not contain an SDR classifier snapshot."
        )

    version = payload.get('version')
    if version != SDR_CLASSIFIER_VERSION:
        raise ClassifierFormatError(
            f"Incompatible snapshot version {version!r}; "
            f"this build reads version {SDR_CLASSIFIER_VERSION} only."
        )

    state = payload.get('state')
    if not isinstance(state, dict):
        raise ClassifierFormatError("Snapshot has no state section.")
    missing = [key for key in STATE_KEYS if key not in state]
    if missing:
        raise ClassifierFormatError(f"Snapshot state is missing keys: {missing}")
    return state


def save_model_file(
    state: Dict[str, Any],
    model_path: Path,
    metadata: Optional[Dict[str, Any]] = None,
) -> Path:
    """
    Save a snapshot to `model_path`, plus `<model_path>.meta.json` if
    metadata is given.

    Returns:
        The model path written
    """
    model_path = Path(model_path)
    model_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Saving classifier to {model_path}")
    with open(model_path, 'wb') as f:
        dump_state(state, f)

    if metadata is not None:
        metadata_path = Path(str(model_path) + '.meta.json')
        metadata = dict(metadata)
        metadata.setdefault('format_version', SDR_CLASSIFIER_VERSION)
        metadata.setdefault('timestamp', pd.Timestamp.now().isoformat())
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)
        logger.info(f"Metadata saved to {metadata_path}")

    return model_path


def load_model_file(model_path: Path) -> Dict[str, Any]:
    """
    Load a snapshot written by save_model_file().

    Raises:
        FileNotFoundError: If the model file does not exist
        ClassifierFormatError: If the file is not a compatible snapshot
    """
    model_path = Path(model_path)
    if not model_path.exists():
        raise FileNotFoundError(
            f"Model file not found: {model_path}. "
            "Please train and save a classifier first using save_model()."
        )

    logger.info(f"Loading classifier from {model_path}")
    with open(model_path, 'rb') as f:
        return load_state(f)


def read_metadata(model_path: Path) -> Optional[Dict[str, Any]]:
    """Sidecar metadata for `model_path`, or None if there is none."""
    metadata_path = Path(str(model_path) + '.meta.json')
    if not metadata_path.exists():
        return None
    with open(metadata_path, 'r') as f:
        return json.load(f)
