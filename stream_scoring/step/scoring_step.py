# stream_scoring/step/scoring_step.py
from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence

from stream_scoring import logs
from stream_scoring.config.scoring_config import ScoringConfig
from stream_scoring.engines.instance_builder import InstanceBuilder
from stream_scoring.engines.prediction_formatter import PredictionFormatter, output_fields
from stream_scoring.model.artifact import load_model, save_model
from stream_scoring.model.scoring_model import ScoringModel
from stream_scoring.observability.instrumentation import Instrumentation, NoOpInstrumentation
from stream_scoring.schema.mapper import describe_mapping, find_mappings, is_mapped
from stream_scoring.schema.types import FieldSchema
from stream_scoring.step.batch import BatchAccumulator, resolve_batch_size
from stream_scoring.step.context import ScoringContext
from stream_scoring.step.model_resolver import ModelResolver
from stream_scoring.utils.errors import ConfigurationError, RowScoringError, ScoringError

Row = Sequence[Any]


class ScoringStep:
    """
    ScoringStep

    Applies a trained model to a stream of rows, appending prediction fields.

    Lifecycle (one stream at a time, single threaded):
        out_schema = step.start(field_schema)
        for row in rows:
            emit(step.process_row(row))    # 0..n rows (batching)
        emit(step.finish())                # final partial batch

    Paths:
      - batch path  : batch-capable model, fixed model source, no incremental update
      - single path : everything else (predict, optional update, format)
    """

    stage = "scoring"
    feedback_every = 50_000

    def __init__(
        self,
        cfg: ScoringConfig,
        *,
        model: Optional[ScoringModel] = None,
        loader: Callable[[str], ScoringModel] = load_model,
        saver: Callable[[ScoringModel, str], Any] = save_model,
        inst: Instrumentation | None = None,
    ):
        self.cfg = cfg
        # in-memory model: the fixed model, or the default model when read per row
        self.model = model
        self.loader = loader
        self.saver = saver
        self.inst: Instrumentation | NoOpInstrumentation = (
            inst if inst is not None else NoOpInstrumentation()
        )
        self.ctx: Optional[ScoringContext] = None
        # survives finish(), for callers assembling output after the run
        self.last_output_schema: Optional[FieldSchema] = None
        self.resolver: Optional[ModelResolver] = None

    @property
    def step_name(self) -> str:
        return self.__class__.__name__

    @property
    def output_schema(self) -> FieldSchema:
        if self.ctx is None or self.ctx.output_schema is None:
            raise ConfigurationError(
                f"[{self.step_name}] output fields unknown: start() has not resolved a model yet"
            )
        return self.ctx.output_schema

    # --------------------------------------------------
    # stream start
    # --------------------------------------------------
    def start(self, input_schema: FieldSchema) -> Optional[FieldSchema]:
        """
        Resolve the model and everything derived from it.

        Returns the output schema; None only when the model path is read
        per row and no default model exists (known after the first row).
        """
        self.ctx = ScoringContext(input_schema=input_schema)
        self.last_output_schema = None

        if self.cfg.model_from_field:
            self._start_from_field(input_schema)
        else:
            self._activate(self._load_fixed_model())

        return self.ctx.output_schema

    def _load_fixed_model(self) -> ScoringModel:
        if self.model is not None:
            return self.model

        path = self.cfg.resolved_model_path()
        if not path:
            raise ConfigurationError("No filename to load model from")

        with self.inst.timer("model_load"):
            model = self.loader(path)
        self.inst.increment("models_loaded")
        return model

    def _start_from_field(self, input_schema: FieldSchema) -> None:
        name = self.cfg.field_name_for_model_path
        index = input_schema.index_of(name)
        if index < 0:
            raise ConfigurationError(
                f"Unable to locate model file field {name} in the incoming stream"
            )
        if not input_schema[index].is_string:
            raise ConfigurationError(f"Model file field {name} must be a string field")
        self.ctx.model_field_index = index

        default_model = self.model
        if default_model is None and self.cfg.resolved_model_path():
            default_model = self.loader(self.cfg.resolved_model_path())
            self.inst.increment("models_loaded")

        self.resolver = ModelResolver(
            loader=self.loader,
            cache_enabled=self.cfg.cache_loaded_models,
            default_model=default_model,
            inst=self.inst,
        )
        logs.info(f"[{self.step_name}] sourcing model file names from input field {name}")

        if default_model is not None:
            # output layout follows the default model; rows pick their own model
            self._activate(default_model)

    # --------------------------------------------------
    # model activation (recomputes the mapping)
    # --------------------------------------------------
    def _activate(self, model: ScoringModel) -> None:
        ctx = self.ctx
        first = ctx.model is None and ctx.output_schema is None

        ctx.model = model
        ctx.mapping = find_mappings(model.header, ctx.input_schema)
        ctx.builder = InstanceBuilder(model.header, ctx.input_schema, ctx.mapping)
        ctx.formatter = PredictionFormatter.for_model(model, self.cfg.output_probabilities)
        ctx.vector = ctx.builder.new_vector()

        for line in describe_mapping(model.header, ctx.input_schema, ctx.mapping):
            logs.debug(f"[{self.step_name}] {line}")
        if not any(is_mapped(ctx.mapping, i) for i in range(len(ctx.mapping))):
            logs.warning(f"[{self.step_name}] no incoming field matches the model attributes")

        if not first:
            return

        ctx.prediction_fields = output_fields(model, self.cfg.output_probabilities)
        ctx.output_schema = ctx.input_schema.extend(ctx.prediction_fields)
        self.last_output_schema = ctx.output_schema
        ctx.update_enabled = self._check_update_eligibility(model)

        if model.is_batch_capable and not self.cfg.model_from_field and not ctx.update_enabled:
            size = resolve_batch_size(self.cfg.resolved_batch_size(), model.preferred_batch_size)
            ctx.batch = BatchAccumulator(size)
            self.inst.record("batch_size", size)
            logs.info(f"[{self.step_name}] batch scoring with batch size {size}")

    def _check_update_eligibility(self, model: ScoringModel) -> bool:
        """Decided once per stream, never retried."""
        if not self.cfg.update_model_incrementally:
            return False

        if not model.is_updatable:
            logs.warning(
                f"[{self.step_name}] model {model!r} can not be updated incrementally, "
                f"incremental update disabled for this run"
            )
            return False

        if model.is_supervised and not is_mapped(self.ctx.mapping, model.header.class_index):
            logs.warning(
                f"[{self.step_name}] no incoming field matches the class attribute "
                f"'{model.header.class_attribute.name}', incremental update disabled for this run"
            )
            return False

        return True

    # --------------------------------------------------
    # per row
    # --------------------------------------------------
    def process_row(self, row: Row) -> List[List[Any]]:
        if self.ctx is None:
            raise ConfigurationError(f"[{self.step_name}] start() must be called before process_row()")

        ctx = self.ctx
        ctx.rows_read += 1
        if ctx.rows_read % self.feedback_every == 0:
            logs.info(f"[{self.step_name}] rows read: {ctx.rows_read}")

        try:
            if self.cfg.model_from_field:
                self._set_model_from_field(row)

            if ctx.batch is not None:
                if ctx.batch.add(row):
                    return self._flush()
                return []

            out = [self._score_one(row)]
        except ScoringError:
            raise
        except Exception as e:
            raise RowScoringError(ctx.rows_read, str(e)) from e
        return out

    def _set_model_from_field(self, row: Row) -> None:
        ctx = self.ctx
        raw = row[ctx.model_field_index] if ctx.model_field_index < len(row) else None
        model = self.resolver.resolve(raw)
        if model is not ctx.model:
            self._activate(model)

    def _score_one(self, row: Row) -> List[Any]:
        ctx = self.ctx
        model = ctx.model

        vector = ctx.builder.build(row, out=ctx.vector)
        dist = model.predict_one(vector)

        if ctx.update_enabled:
            self._update(model, vector)

        self.inst.increment("rows_scored")
        return self._append(row, ctx.formatter.format(dist))

    def _update(self, model: ScoringModel, vector) -> None:
        if model.is_supervised and vector.is_missing(model.header.class_index):
            return
        if model.update(vector):
            self.inst.increment("model_updates")

    def _append(self, row: Row, values: List[Any]) -> List[Any]:
        expected = len(self.ctx.prediction_fields)
        if len(values) != expected:
            raise ConfigurationError(
                f"[{self.step_name}] model {self.ctx.model!r} produced {len(values)} "
                f"prediction values, output layout has {expected}"
            )
        return list(row) + values

    # --------------------------------------------------
    # batch
    # --------------------------------------------------
    def _flush(self) -> List[List[Any]]:
        ctx = self.ctx
        rows = ctx.batch.drain()
        if not rows:
            return []

        logs.debug(f"[{self.step_name}] predicting batch of {len(rows)} rows")
        with self.inst.timer("batch_flush"):
            # fresh vectors: the whole batch is alive at once
            vectors = [ctx.builder.build(r) for r in rows]
            dists = ctx.model.predict_batch(vectors)

        self.inst.increment("batches_flushed")
        self.inst.increment("rows_scored", len(rows))
        return [self._append(r, ctx.formatter.format(d)) for r, d in zip(rows, dists)]

    # --------------------------------------------------
    # stream end
    # --------------------------------------------------
    def finish(self) -> List[List[Any]]:
        """
        Flush the pending batch, persist an updated model, release the model.
        """
        if self.ctx is None:
            return []

        ctx = self.ctx
        out: List[List[Any]] = []
        if ctx.batch is not None and ctx.batch.pending:
            try:
                out = self._flush()
            except ScoringError:
                raise
            except Exception as e:
                raise RowScoringError(ctx.rows_read, f"problem while getting predictions for batch: {e}") from e

        if not self.cfg.model_from_field:
            self._save_updated_model()
            if ctx.model is not None:
                ctx.model.done()
        else:
            self.resolver.reset()

        self.inst.report(self.step_name)
        logs.info(f"[{self.step_name}] finished, rows read: {ctx.rows_read}")
        self.ctx = None
        return out

    def _save_updated_model(self) -> None:
        if not self.cfg.update_model_incrementally:
            return
        path = self.cfg.resolved_saved_model_path()
        if not path or self.ctx.model is None:
            return
        try:
            self.saver(self.ctx.model, path)
        except Exception as e:
            raise ScoringError(f"Problem saving updated model to {path}") from e
        logs.info(f"[{self.step_name}] updated model saved to {path}")

    # --------------------------------------------------
    # whole stream
    # --------------------------------------------------
    def run(self, input_schema: FieldSchema, rows: Iterable[Row]) -> Iterator[List[Any]]:
        self.start(input_schema)
        for row in rows:
            yield from self.process_row(row)
        yield from self.finish()
