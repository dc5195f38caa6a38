"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      - committed static defaults
  2. ``config/local.toml``        - optional local overrides (gitignored)
  3. ``.env``                     - local secrets and env overrides (gitignored)
  4. Environment variables        - ``SPENDSENSE_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Every pipeline stage and CLI command receives an ``AppConfig`` instance.
The content-generation API key is never stored in config; only the *name* of
the environment variable holding it (``content.api_key_env``).
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/spendsense.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class DataConfig(BaseModel):
    """Filesystem paths for raw datasets and exports."""

    model_config = ConfigDict(frozen=True)

    raw_dir: str = "data/raw"
    processed_dir: str = "data/processed"
    dataset_file: str = "data/raw/dataset.json"


class SignalConfig(BaseModel):
    """Which signal windows are computed, and which one drives personas."""

    model_config = ConfigDict(frozen=True)

    windows: list[str] = ["30d", "180d"]
    persona_window: str = "180d"

    @field_validator("windows")
    @classmethod
    def validate_windows(cls, v: list[str]) -> list[str]:
        from spendsense.signals.utils import WINDOW_DAYS

        unknown = [w for w in v if w not in WINDOW_DAYS]
        if unknown:
            raise ValueError(
                f"Unknown signal window(s) {unknown}. Must be in {sorted(WINDOW_DAYS)}."
            )
        return v

    @field_validator("persona_window")
    @classmethod
    def validate_persona_window(cls, v: str) -> str:
        from spendsense.signals.utils import WINDOW_DAYS

        if v not in WINDOW_DAYS:
            raise ValueError(
                f"persona_window must be one of {sorted(WINDOW_DAYS)}, got '{v}'."
            )
        return v

    @model_validator(mode="after")
    def validate_persona_window_computed(self) -> "SignalConfig":
        if self.persona_window not in self.windows:
            raise ValueError(
                f"persona_window '{self.persona_window}' must be one of windows {self.windows}."
            )
        return self


class RecommendationConfig(BaseModel):
    """Recommendation engine parameters."""

    model_config = ConfigDict(frozen=True)

    target_count: int = 5
    confidence: float = 0.85

    @field_validator("target_count")
    @classmethod
    def validate_target_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"target_count must be >= 1, got {v}.")
        return v

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v


class ContentConfig(BaseModel):
    """Settings for the external educational-content generator.

    The generator talks to an OpenAI-compatible ``/chat/completions``
    endpoint. When ``enabled`` is false or the API key env var is unset, the
    static fallback generator is used instead.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    api_base_url: str = "https://api.openai.com/v1"
    api_key_env: str = "OPENAI_API_KEY"
    model: str = "gpt-4"
    temperature: float = 0.7
    max_tokens: int = 500
    max_retries: int = 3
    backoff_base_s: float = 1.0
    request_timeout_s: float = 20.0
    total_timeout_s: float = 60.0

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_retries must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/spendsense.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration - the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    data: DataConfig = DataConfig()
    signals: SignalConfig = SignalConfig()
    recommendations: RecommendationConfig = RecommendationConfig()
    content: ContentConfig = ContentConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply SPENDSENSE_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SPENDSENSE_* env vars to the raw config dict.

    Supported overrides:
      SPENDSENSE_DB_PATH        → raw["database"]["db_path"]
      SPENDSENSE_LOG_LEVEL      → raw["logging"]["level"]
      SPENDSENSE_DEBUG          → raw["debug"]
      SPENDSENSE_CONTENT_MODEL  → raw["content"]["model"]
    """
    if db_path := os.environ.get("SPENDSENSE_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("SPENDSENSE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("SPENDSENSE_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    if model := os.environ.get("SPENDSENSE_CONTENT_MODEL"):
        raw.setdefault("content", {})["model"] = model

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        data=DataConfig(**raw.get("data", {})),
        signals=SignalConfig(**raw.get("signals", {})),
        recommendations=RecommendationConfig(**raw.get("recommendations", {})),
        content=ContentConfig(**raw.get("content", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
