from .app_config import AppConfig
from .log_config import LogConfig
from .scoring_config import DEFAULT_BATCH_SCORING_SIZE, ModelSource, ScoringConfig

__all__ = [
    "AppConfig",
    "LogConfig",
    "ScoringConfig",
    "ModelSource",
    "DEFAULT_BATCH_SCORING_SIZE",
]
