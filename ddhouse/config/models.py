"""Config models and loader.

This module defines Pydantic models for file- and environment-based
configuration. Environment settings cover the process surface (sink address,
API key, thresholds); the optional JSON file only extends the static
classification tables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import orjson
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.tables import DEFAULT_TABLES, MappingTables


class AppConfig(BaseModel):
    """Optional file-based configuration.

    Attributes
    ----------
    root_metrics: Dict[str, str]
        Extra flat agent keys mapped to canonical dotted metric paths. Merged
        over the built-in table; this is how residual keys reported in the
        logs get promoted to real metrics.
    io_metrics: Dict[str, str]
        Extra canonical io column -> raw iostat field name entries.
    """

    root_metrics: Dict[str, str] = Field(default_factory=dict)
    io_metrics: Dict[str, str] = Field(default_factory=dict)

    @staticmethod
    def load(path: Path) -> "AppConfig":
        """Load application config from a JSON file."""
        return AppConfig.model_validate(orjson.loads(path.read_bytes()))

    def tables(self, base: MappingTables = DEFAULT_TABLES) -> MappingTables:
        """Return the immutable mapping tables with this config applied."""
        if not self.root_metrics and not self.io_metrics:
            return base
        return base.with_overrides(
            root_metrics=self.root_metrics, io_metrics=self.io_metrics
        )


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    api_key: str
        Key agents must send as the ``api_key`` query parameter. Blank
        disables the check.
    db_url: str
        Base URL of the time-series sink (e.g., "http://localhost:8086").
    db_name: str
        Sink database (container) that receives the series.
    db_user: str
        Sink user name, sent as the ``u`` query parameter.
    db_password: str
        Sink password, sent as the ``p`` query parameter.
    db_timeout_seconds: float
        HTTP timeout for sink requests.
    process_threshold: float
        Minimum cpu% or mem% (inclusive, either one) for a process bucket to
        be forwarded.
    event_queue_size: int
        Capacity of the bounded event queue in front of the event writer.
    event_log_path: str
        File that discrete agent events are appended to.
    config_path: Optional[str]
        Optional JSON file with :class:`AppConfig` table overrides.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DDHOUSE_")

    log_level: str = Field("INFO")
    api_key: str = Field("", description="Expected agent API key")

    db_url: str = Field(
        "http://localhost:8086", description="Base URL of the time-series sink"
    )
    db_name: str = Field("datadog", description="Target sink database")
    db_user: str = Field("root")
    db_password: str = Field("root")
    db_timeout_seconds: float = Field(30.0, gt=0)

    process_threshold: float = Field(
        0.1,
        ge=0.0,
        description="cpu%/mem% floor for forwarding a process bucket",
    )
    event_queue_size: int = Field(
        100, ge=1, description="Bounded event queue capacity"
    )
    event_log_path: str = Field("events.log", description="Event log file path")
    config_path: Optional[str] = Field(
        None, description="Optional JSON file with table overrides"
    )

    def load_tables(self) -> MappingTables:
        """Resolve mapping tables, applying ``config_path`` when it exists."""
        if not self.config_path:
            return DEFAULT_TABLES
        path = Path(self.config_path)
        if not path.exists():
            return DEFAULT_TABLES
        return AppConfig.load(path).tables()
