# stream_scoring/step/model_resolver.py
from __future__ import annotations

"""
ModelResolver

Decides which model scores the current row when the model path is read
from a row field.

Order of resolution:
1. empty path (None, "", NaN, pd.NA) -> default model (ConfigurationError if none)
2. same path as last row -> active model, no lookup
3. cache enabled + hit   -> cached model
4. otherwise             -> loader(path), cached when caching is enabled

State (cache, last path) belongs to one step instance; reset() at stream end.
"""

from typing import Callable, Dict, Optional

from stream_scoring import logs
from stream_scoring.config.scoring_config import resolve_path
from stream_scoring.engines.instance_builder import is_null
from stream_scoring.model.scoring_model import ScoringModel
from stream_scoring.observability.instrumentation import Instrumentation, NoOpInstrumentation
from stream_scoring.utils.errors import ConfigurationError

ModelLoader = Callable[[str], ScoringModel]


class ModelResolver:
    def __init__(
        self,
        *,
        loader: ModelLoader,
        cache_enabled: bool,
        default_model: Optional[ScoringModel] = None,
        inst: Instrumentation | NoOpInstrumentation | None = None,
    ):
        self.loader = loader
        self.cache_enabled = cache_enabled
        self.default_model = default_model
        self.inst = inst if inst is not None else NoOpInstrumentation()

        self._cache: Dict[str, ScoringModel] = {}
        self._last_path: Optional[str] = None
        self._active: Optional[ScoringModel] = None

    @property
    def active(self) -> Optional[ScoringModel]:
        return self._active

    @property
    def cached_paths(self):
        return list(self._cache)

    def resolve(self, raw_path: Optional[str]) -> ScoringModel:
        if is_null(raw_path) or str(raw_path).strip() == "":
            return self._use_default()

        path = resolve_path(str(raw_path))

        # fast path: runs of rows sharing one model
        if path == self._last_path and self._active is not None:
            return self._active

        if self.cache_enabled:
            cached = self._cache.get(path)
            if cached is not None:
                logs.debug(f"[ModelResolver] cache hit {path} -> {cached!r}")
                self.inst.increment("cache_hits")
                return self._activate(cached, path)

        logs.info(f"[ModelResolver] loading model from field value {path}")
        with self.inst.timer("model_load"):
            model = self.loader(path)
        self.inst.increment("models_loaded")

        if self.cache_enabled:
            self._cache[path] = model
        return self._activate(model, path)

    def _use_default(self) -> ScoringModel:
        if self.default_model is None:
            raise ConfigurationError(
                "No model file specified in the model path field and no default model"
            )
        logs.debug("[ModelResolver] empty model path, using default model")
        # the next non-empty path must not hit the fast path
        return self._activate(self.default_model, None)

    def _activate(self, model: ScoringModel, path: Optional[str]) -> ScoringModel:
        self._active = model
        self._last_path = path
        return model

    def reset(self) -> None:
        self._cache.clear()
        self._last_path = None
        self._active = None
