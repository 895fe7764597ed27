#!filepath: stream_scoring/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .scoring_config import ScoringConfig


def project_root() -> str:
    """
    stream_scoring/config/app_config.py -> stream_scoring/config -> stream_scoring -> project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    scoring: ScoringConfig

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        Load YAML config + .env
        - defaults to stream_scoring/config/base.yml
        - independent of the current working directory
        """
        root = project_root()

        # 1) .env at project root (variables referenced by scoring paths)
        load_dotenv(os.path.join(root, ".env"))

        # 2) config file
        if path is None:
            path = os.path.join(root, "stream_scoring/config/base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        return cls(**raw)
