# stream_scoring/model/artifact.py
from __future__ import annotations

"""
Model artifacts

Two on-disk forms are accepted:

1. single joblib file (compression picked by joblib from the extension: .gz, .xz, ...)
       {"model": estimator, "header": {...}, "ignored_attributes": [...],
        "batch_size": int | None, "batch_capable": bool, "task": str | None,
        "imputer": fitted transformer | None}

2. published artifact directory
       <dir>/artifact.json   header + spec + scoring hints
       <dir>/model.joblib    the fitted estimator
       <dir>/imputer.joblib  optional, fills missing inputs for estimators that reject NaN

Either form resolves to a ScoringModel.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import joblib
from sklearn.base import ClusterMixin, is_classifier, is_regressor
from sklearn.mixture import BayesianGaussianMixture, GaussianMixture

from stream_scoring import logs
from stream_scoring.model.clusterer import ClustererModel
from stream_scoring.model.scoring_model import ModelKind, ScoringModel, final_estimator
from stream_scoring.model.supervised import SupervisedModel
from stream_scoring.schema.types import AttributeSchema
from stream_scoring.utils.errors import ArtifactLoadError

ARTIFACT_META = "artifact.json"
ARTIFACT_MODEL = "model.joblib"
ARTIFACT_IMPUTER = "imputer.joblib"

_TASK_KINDS = {
    "classification": ModelKind.SUPERVISED,
    "regression": ModelKind.SUPERVISED,
    "clustering": ModelKind.UNSUPERVISED,
}


# ============================================================
# variant dispatch
# ============================================================
def estimator_kind(estimator: Any, task: Optional[str] = None) -> ModelKind:
    if task is not None:
        if task not in _TASK_KINDS:
            raise ArtifactLoadError(f"Unknown model task: {task}")
        return _TASK_KINDS[task]

    if is_classifier(estimator) or is_regressor(estimator):
        return ModelKind.SUPERVISED
    if isinstance(final_estimator(estimator), (ClusterMixin, GaussianMixture, BayesianGaussianMixture)):
        return ModelKind.UNSUPERVISED

    raise ArtifactLoadError(
        f"{type(final_estimator(estimator)).__name__} is neither a classifier, "
        f"a regressor nor a clusterer"
    )


def create_scoring_model(
    estimator: Any,
    header: AttributeSchema,
    *,
    task: Optional[str] = None,
    ignored_attributes: Optional[Sequence[int]] = None,
    batch_capable: bool = True,
    preferred_batch_size: Optional[int] = None,
    imputer: Any = None,
) -> ScoringModel:
    kind = estimator_kind(estimator, task)
    if imputer is not None and not callable(getattr(imputer, "transform", None)):
        raise ArtifactLoadError(f"Imputer {type(imputer).__name__} has no transform()")
    try:
        if kind == ModelKind.SUPERVISED:
            return SupervisedModel(
                estimator,
                header,
                batch_capable=batch_capable,
                preferred_batch_size=preferred_batch_size,
                imputer=imputer,
            )
        return ClustererModel(
            estimator,
            header,
            ignored_attributes=ignored_attributes,
            batch_capable=batch_capable,
            preferred_batch_size=preferred_batch_size,
            imputer=imputer,
        )
    except ValueError as e:
        raise ArtifactLoadError(f"Model does not match its header: {e}") from e


def _build(payload: Dict[str, Any], estimator: Any, source: Path) -> ScoringModel:
    if payload.get("header") is None:
        raise ArtifactLoadError(f"[ModelArtifact] no header in {source}")

    try:
        header = AttributeSchema.from_dict(payload["header"])
    except (KeyError, TypeError, ValueError) as e:
        raise ArtifactLoadError(f"[ModelArtifact] malformed header in {source}") from e

    return create_scoring_model(
        estimator,
        header,
        task=payload.get("task"),
        ignored_attributes=payload.get("ignored_attributes"),
        batch_capable=payload.get("batch_capable", True),
        preferred_batch_size=payload.get("batch_size"),
        imputer=payload.get("imputer"),
    )


# ============================================================
# load
# ============================================================
@logs.catch(msg="model artifact could not be loaded")
def load_model(path: str | Path) -> ScoringModel:
    path = Path(path)
    if not path.exists():
        raise ArtifactLoadError(f"Model file does not exist: {path}")

    if path.is_dir():
        return _load_directory(path)

    try:
        payload = joblib.load(path)
    except Exception as e:
        raise ArtifactLoadError(f"Problem deserializing model from {path}") from e

    if not isinstance(payload, dict) or "model" not in payload:
        raise ArtifactLoadError(
            f"[ModelArtifact] {path} does not contain a model payload"
        )

    model = _build(payload, payload["model"], path)
    logs.info(f"[ModelArtifact] loaded {model!r} from {path}")
    return model


def _load_directory(artifact_dir: Path) -> ScoringModel:
    meta_path = artifact_dir / ARTIFACT_META
    model_path = artifact_dir / ARTIFACT_MODEL
    if not meta_path.exists():
        raise ArtifactLoadError(f"[ModelArtifact] {ARTIFACT_META} not found in {artifact_dir}")
    if not model_path.exists():
        raise ArtifactLoadError(f"[ModelArtifact] {ARTIFACT_MODEL} not found in {artifact_dir}")

    try:
        meta = json.loads(meta_path.read_text())
        estimator = joblib.load(model_path)
    except Exception as e:
        raise ArtifactLoadError(f"Problem deserializing model from {artifact_dir}") from e

    spec = meta.get("spec") or {}
    payload = dict(meta)
    imputer_path = artifact_dir / ARTIFACT_IMPUTER
    if imputer_path.exists():
        try:
            payload["imputer"] = joblib.load(imputer_path)
        except Exception as e:
            raise ArtifactLoadError(f"Problem deserializing imputer from {artifact_dir}") from e
    payload.setdefault("task", spec.get("task"))

    model = _build(payload, estimator, artifact_dir)
    logs.info(f"[ModelArtifact] loaded {model!r} from {artifact_dir}")
    return model


# ============================================================
# save
# ============================================================
def _task_of(model: ScoringModel) -> str:
    if not model.is_supervised:
        return "clustering"
    if model.header.class_attribute.is_numeric:
        return "regression"
    return "classification"


def _payload(model: ScoringModel) -> Dict[str, Any]:
    return {
        "task": _task_of(model),
        "header": model.header.to_dict(),
        "ignored_attributes": list(getattr(model, "ignored_attributes", [])),
        "batch_size": model.preferred_batch_size,
        "batch_capable": model.is_batch_capable,
    }


def save_model(model: ScoringModel, path: str | Path) -> Path:
    """
    Persist ``model``. A path that is an existing directory, or has no
    suffix, is written as an artifact directory, anything else as a
    single joblib file.
    """
    path = Path(path)

    if path.is_dir() or not path.suffix:
        path.mkdir(parents=True, exist_ok=True)
        meta = _payload(model)
        meta["created_at"] = datetime.now(timezone.utc).isoformat()
        joblib.dump(model.estimator, path / ARTIFACT_MODEL)
        if model.imputer is not None:
            joblib.dump(model.imputer, path / ARTIFACT_IMPUTER)
        (path / ARTIFACT_META).write_text(json.dumps(meta, indent=2))
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = _payload(model)
        payload["model"] = model.estimator
        if model.imputer is not None:
            payload["imputer"] = model.imputer
        joblib.dump(payload, path)

    logs.info(f"[ModelArtifact] saved {model!r} to {path}")
    return path
