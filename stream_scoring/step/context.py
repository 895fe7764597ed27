# stream_scoring/step/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from stream_scoring.engines.instance_builder import FeatureVector, InstanceBuilder
from stream_scoring.engines.prediction_formatter import PredictionFormatter
from stream_scoring.model.scoring_model import ScoringModel
from stream_scoring.schema.mapper import Mapping
from stream_scoring.schema.types import FieldSchema, FieldSpec
from stream_scoring.step.batch import BatchAccumulator


@dataclass
class ScoringContext:
    """
    ScoringContext = per-stream state of one step instance

    - built by ScoringStep.start(), dropped by ScoringStep.finish()
    - never shared between step instances
    """

    input_schema: FieldSchema

    # active model and everything derived from it
    model: Optional[ScoringModel] = None
    mapping: Optional[Mapping] = None
    builder: Optional[InstanceBuilder] = None
    formatter: Optional[PredictionFormatter] = None
    # reused by the single-row path
    vector: Optional[FeatureVector] = None

    # output layout, fixed for the whole stream
    prediction_fields: List[FieldSpec] = field(default_factory=list)
    output_schema: Optional[FieldSchema] = None

    model_field_index: int = -1
    update_enabled: bool = False
    batch: Optional[BatchAccumulator] = None

    rows_read: int = 0
