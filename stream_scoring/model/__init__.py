from stream_scoring.model.scoring_model import ModelKind, ScoringModel
from stream_scoring.model.supervised import SupervisedModel
from stream_scoring.model.clusterer import ClustererModel
from stream_scoring.model.artifact import create_scoring_model, load_model, save_model

__all__ = [
    "ModelKind",
    "ScoringModel",
    "SupervisedModel",
    "ClustererModel",
    "create_scoring_model",
    "load_model",
    "save_model",
]
