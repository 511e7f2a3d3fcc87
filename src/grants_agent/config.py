"""Run configuration, built once at process start and passed to each component."""

import os
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from grants_agent.errors import ConfigurationError

# Environment variable -> AgentConfig field
ENV_FIELDS: dict[str, str] = {
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_MODEL": "model",
    "DEFAULT_LANGUAGE": "language",
    "GRANTS_INGEST_ENDPOINT_URL": "ingest_endpoint_url",
    "GRANTS_INGEST_API_KEY": "ingest_api_key",
    "MAX_OPPORTUNITIES_PER_RUN": "max_items",
    "API_DELAY_MS": "api_delay_ms",
    "EXTRACTION_MAX_ATTEMPTS": "max_attempts",
    "REPROCESS_WINDOW_HOURS": "reprocess_window_hours",
    "STATE_BACKEND": "state_backend",
    "STATE_PATH": "state_path",
    "SEARCH_API_ENDPOINT": "search_endpoint",
    "SEARCH_API_KEY": "search_api_key",
    "SOURCES_FILE": "sources_file",
}


class AgentConfig(BaseModel):
    """Everything a run needs; nothing reads the environment after this is built."""

    openai_api_key: Optional[str] = None
    model: str = "gpt-4o"
    language: str = "en"

    ingest_endpoint_url: Optional[str] = None
    ingest_api_key: Optional[str] = None

    max_items: int = Field(default=20, ge=1, description="Cap on items fetched per run")
    api_delay_ms: int = Field(default=1000, ge=0, description="Pause after each synced item")
    max_attempts: int = Field(default=3, ge=1, description="Model attempts per item")
    reprocess_window_hours: float = Field(default=24.0, ge=0)

    state_backend: str = Field(default="sqlite", pattern="^(sqlite|json)$")
    state_path: Optional[Path] = None

    search_endpoint: str = "https://api.bing.microsoft.com/v7.0/search"
    search_api_key: Optional[str] = None

    sources_file: Optional[Path] = None

    @property
    def api_delay_seconds(self) -> float:
        return self.api_delay_ms / 1000.0

    @property
    def resolved_state_path(self) -> Path:
        """Default: grants_agent.db for sqlite, the working directory for json files."""
        if self.state_path is not None:
            return self.state_path
        return Path("grants_agent.db") if self.state_backend == "sqlite" else Path(".")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional[dict] = None,
    ) -> "AgentConfig":
        """Build from environment variables, layered over base values."""
        env = os.environ if environ is None else environ
        data: dict = dict(base or {})
        for var, field_name in ENV_FIELDS.items():
            value = env.get(var)
            if value is not None and value.strip() != "":
                data[field_name] = value.strip()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_yaml(
        cls,
        path: str | Path,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AgentConfig":
        """Load from YAML (field names as keys); environment values override the file."""
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_env(environ, base=data)

    def require_runtime(self, *, sync: bool = True) -> None:
        """Fail fast before a run when credentials are missing. Dry runs skip the registry."""
        required = [("OPENAI_API_KEY", self.openai_api_key)]
        if sync:
            required += [
                ("GRANTS_INGEST_ENDPOINT_URL", self.ingest_endpoint_url),
                ("GRANTS_INGEST_API_KEY", self.ingest_api_key),
            ]
        missing = [var for var, value in required if not value]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
