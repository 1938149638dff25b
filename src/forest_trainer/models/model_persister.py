"""
Model persistence for trained forests.

Writes the bytes a model handle serializes itself to, verbatim, to the
destination file. Writes go through a temporary file in the same directory
that is renamed over the destination, so a failed write never leaves a
truncated model behind: the previous file (if any) stays intact and the
error is raised.

A JSON metadata sidecar (``<model file>.meta.json``) describes the model for
humans and tooling without unpickling it.

Usage:
    path = save_model(model, './models/top10_rf_alm_model.pkl')
    meta_path = save_metadata(model, path)
    model = load_model(path)
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from ..errors import PersistenceError
from ..training.train_model import ForestModel

logger = logging.getLogger(__name__)

METADATA_SUFFIX = '.meta.json'


@dataclass
class ModelArtifact:
    """Model artifact metadata."""
    model_version: str
    model_type: str
    trained_at: str
    feature_names: List[str]
    target_name: str
    hyperparameters: Dict[str, Any]
    metrics: Dict[str, Any] = field(default_factory=dict)
    training_data_hash: str = ''
    model_path: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_model(cls, model: ForestModel, model_path: str = '') -> 'ModelArtifact':
        return cls(
            model_version=model.model_version,
            model_type=model.model_type,
            trained_at=model.trained_at,
            feature_names=list(model.feature_names),
            target_name=model.target_name,
            hyperparameters=model.hyperparameters.to_dict(),
            metrics=model.metrics.to_dict(),
            training_data_hash=model.training_data_hash,
            model_path=model_path,
        )


def _default_file_mode() -> int:
    """Mode a plain open() would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write(path: Union[str, Path], data: bytes) -> Path:
    """
    Write ``data`` to ``path`` all at once.

    The parent directory must already exist.

    Raises:
        PersistenceError: The file could not be written completely
    """
    path = Path(path)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            mode='wb', dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp', delete=False,
        ) as f:
            tmp_name = f.name
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        # NamedTemporaryFile creates 0600 files
        os.chmod(tmp_name, _default_file_mode())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceError(f"Cannot write {path}: {e}") from e
    return path


def save_model(model: Any, destination: Union[str, Path]) -> Path:
    """
    Persist a trained model handle.

    Args:
        model: Anything with a ``serialize() -> bytes`` method
        destination: Target file; replaced if it exists

    Returns:
        Path of the written file
    """
    logger.info(f"Saving model to: {destination}")
    data = model.serialize()
    path = atomic_write(destination, data)
    logger.info(f"Saved model ({len(data)} bytes)")
    return path


def metadata_path_for(model_path: Union[str, Path]) -> Path:
    model_path = Path(model_path)
    return model_path.with_name(model_path.name + METADATA_SUFFIX)


def save_metadata(model: ForestModel, model_path: Union[str, Path]) -> Path:
    """Write the JSON metadata sidecar next to a saved model."""
    artifact = ModelArtifact.from_model(model, model_path=str(model_path))
    meta_path = metadata_path_for(model_path)
    atomic_write(meta_path, json.dumps(artifact.to_dict(), indent=2).encode('utf-8'))
    logger.info(f"Saved model metadata to: {meta_path}")
    return meta_path


def remove_metadata(model_path: Union[str, Path]) -> None:
    """Delete a sidecar left over from an earlier model at the same path."""
    meta_path = metadata_path_for(model_path)
    if not meta_path.exists():
        return
    try:
        meta_path.unlink()
    except OSError as e:
        logger.warning(f"Could not remove stale model metadata {meta_path}: {e}")
        return
    logger.info(f"Removed stale model metadata: {meta_path}")


def load_model(path: Union[str, Path]) -> ForestModel:
    """
    Load a model written by ``save_model``.

    Raises:
        PersistenceError: The file cannot be read
        FormatError: The file is not a serialized forest model
    """
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise PersistenceError(f"Cannot read model file {path}: {e}") from e

    model = ForestModel.deserialize(data)
    logger.info(f"Loaded model {model.model_version} from: {path}")
    return model
