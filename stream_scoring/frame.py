# stream_scoring/frame.py
from __future__ import annotations

"""
pandas adapter: a DataFrame is a row stream with a FieldSchema derived
from its dtypes.
"""

from pathlib import Path

import pandas as pd
from pandas.api import types as ptypes

from stream_scoring.schema.types import FieldKind, FieldSchema, FieldSpec
from stream_scoring.step.scoring_step import ScoringStep


def field_kind(dtype) -> FieldKind:
    if ptypes.is_bool_dtype(dtype):
        return FieldKind.BOOLEAN
    if ptypes.is_integer_dtype(dtype):
        return FieldKind.INTEGER
    if ptypes.is_float_dtype(dtype):
        return FieldKind.NUMERIC
    if ptypes.is_string_dtype(dtype) or ptypes.is_object_dtype(dtype):
        return FieldKind.STRING
    return FieldKind.OTHER


def infer_field_schema(df: pd.DataFrame) -> FieldSchema:
    return FieldSchema(tuple(FieldSpec(str(c), field_kind(df[c].dtype)) for c in df.columns))


def score_frame(df: pd.DataFrame, step: ScoringStep) -> pd.DataFrame:
    schema = infer_field_schema(df)
    rows = list(step.run(schema, df.itertuples(index=False, name=None)))
    out_schema = step.last_output_schema if step.last_output_schema is not None else schema
    return pd.DataFrame(rows, columns=out_schema.names)


def read_table(path: str | Path) -> pd.DataFrame:
    path = Path(path)
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    return pd.read_csv(path)


def write_table(df: pd.DataFrame, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".parquet":
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)
    return path
