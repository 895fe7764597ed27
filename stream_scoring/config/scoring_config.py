# stream_scoring/config/scoring_config.py
from __future__ import annotations

import os
from enum import Enum
from typing import Optional, Union
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, model_validator


DEFAULT_BATCH_SCORING_SIZE = 100


class ModelSource(str, Enum):
    FIXED_ARTIFACT = "fixed_artifact"
    PER_ROW_FIELD = "per_row_field"


class ScoringConfig(BaseModel):
    """
    ScoringConfig

    Configuration surface of one scoring step:
      - where the model comes from (a fixed artifact, or a path read per row)
      - how predictions are emitted
      - batching / incremental update / persistence of the updated model

    String values may reference environment variables (``$VAR`` / ``${VAR}``).
    """

    model_source: ModelSource = ModelSource.FIXED_ARTIFACT

    # fixed artifact; default model when model_source == per_row_field
    model_path: Optional[str] = None
    field_name_for_model_path: Optional[str] = None
    cache_loaded_models: bool = False

    output_probabilities: bool = False

    update_model_incrementally: bool = False
    saved_model_path: Optional[str] = None

    # kept as given; parsed when the stream starts
    batch_size: Optional[Union[int, str]] = None

    @model_validator(mode="after")
    def _check_model_source(self) -> "ScoringConfig":
        if self.model_source == ModelSource.PER_ROW_FIELD and not self.field_name_for_model_path:
            raise ValueError(
                "field_name_for_model_path is required when model_source is per_row_field"
            )
        return self

    @property
    def model_from_field(self) -> bool:
        return self.model_source == ModelSource.PER_ROW_FIELD

    def resolved_model_path(self) -> Optional[str]:
        return resolve_path(self.model_path) if self.model_path else None

    def resolved_saved_model_path(self) -> Optional[str]:
        if not self.saved_model_path:
            return None
        return resolve_path(self.saved_model_path)

    def resolved_batch_size(self) -> Optional[str]:
        if self.batch_size is None:
            return None
        return os.path.expandvars(str(self.batch_size)).strip()


def resolve_path(raw: str) -> str:
    """
    Expand environment variables; ``file:`` URIs become plain paths.
    """
    resolved = os.path.expandvars(raw.strip())
    if resolved.startswith("file:"):
        parsed = urlparse(resolved)
        resolved = unquote(parsed.path)
    return resolved
