"""
End-to-end training pipeline.

    load_dataset -> extract_features -> train_model -> save_model

Stages run strictly in order; the first failure ends the run. Failures are
returned as a ``PipelineResult`` instead of raised so callers can decide
whether to log, retry or exit.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .config import TrainingConfig
from .data.features import extract_features
from .data.loader import load_dataset
from .errors import PersistenceError, PipelineError
from .models.model_persister import remove_metadata, save_metadata, save_model
from .training.train_model import ForestModel, Trainer, train_model

logger = logging.getLogger(__name__)

STAGE_LOAD = 'load'
STAGE_EXTRACT = 'extract'
STAGE_TRAIN = 'train'
STAGE_PERSIST = 'persist'


@dataclass
class PipelineResult:
    """Outcome of one pipeline run: either a saved model or a tagged error."""
    ok: bool
    stage: Optional[str] = None
    error: Optional[PipelineError] = None
    model: Any = None
    model_path: Optional[Path] = None
    metadata_path: Optional[Path] = None
    feature_names: Tuple[str, ...] = ()
    n_samples: int = 0
    dropped_rows: int = 0
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    def describe(self) -> str:
        if self.ok:
            return f"Model trained on {self.n_samples} samples and saved to {self.model_path}"
        return f"{self.error_kind} during {self.stage} stage: {self.error}"


def _write_metadata(model: Any, model_path: Path, enabled: bool) -> Optional[Path]:
    """
    Write or clear the metadata sidecar once the model file is in place.

    The model is already saved at this point, so a sidecar failure is only
    logged; it does not turn a finished run into a failed one.
    """
    if not (enabled and isinstance(model, ForestModel)):
        remove_metadata(model_path)
        return None
    try:
        return save_metadata(model, model_path)
    except PersistenceError as e:
        logger.warning(f"Model saved but metadata was not written: {e}")
        remove_metadata(model_path)
        return None


def run_pipeline(config: TrainingConfig, trainer: Optional[Trainer] = None) -> PipelineResult:
    """
    Load, extract, train and persist according to ``config``.

    Args:
        config: Complete training configuration
        trainer: Optional trainer replacing the default random forest

    Returns:
        PipelineResult; ``ok`` is False when a stage raised a PipelineError
    """
    stage = STAGE_LOAD
    try:
        dataset = load_dataset(config.source)

        stage = STAGE_EXTRACT
        feature_set = extract_features(
            dataset,
            config.start_feature_column,
            config.end_feature_column,
            config.target_column,
        )

        stage = STAGE_TRAIN
        model = train_model(feature_set, config.hyperparameters, trainer=trainer)

        stage = STAGE_PERSIST
        model_path = save_model(model, config.destination)

    except PipelineError as e:
        logger.error(f"Pipeline failed during {stage} stage: {e}")
        return PipelineResult(ok=False, stage=stage, error=e)

    metadata_path = _write_metadata(model, model_path, config.write_metadata)

    metrics = model.metrics.to_dict() if isinstance(model, ForestModel) else {}
    logger.info("Pipeline complete")
    return PipelineResult(
        ok=True,
        model=model,
        model_path=model_path,
        metadata_path=metadata_path,
        feature_names=feature_set.feature_names,
        n_samples=feature_set.n_samples,
        dropped_rows=feature_set.dropped_rows,
        metrics=metrics,
    )
