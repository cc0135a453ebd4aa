# config.py
import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from promptline.core.client import DEFAULT_COMPLETIONS_URL
from promptline.server.listener import DEFAULT_HOST, DEFAULT_PORT

# env var -> Settings field
ENV_FIELDS = {
    "OPENAI_API_KEY": "api_key",
    "PROMPTLINE_HOST": "host",
    "PROMPTLINE_PORT": "port",
    "OPENAI_COMPLETIONS_URL": "completions_url",
    "PROMPTLINE_REQUEST_TIMEOUT": "request_timeout",
    "PROMPTLINE_LOG_LEVEL": "log_level",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    pass


class Settings(BaseModel):
    api_key: str = Field(min_length=1)
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    completions_url: str = DEFAULT_COMPLETIONS_URL
    request_timeout: float | None = Field(default=None, gt=0)
    log_level: str = "INFO"

    @field_validator("completions_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("must be an http:// or https:// URL")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "Settings":
        """Build settings from environment variables, then apply non-None overrides"""
        if environ is None:
            environ = os.environ

        values: dict[str, object] = {}
        for var, name in ENV_FIELDS.items():
            raw = environ.get(var, "").strip()
            if raw:
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})

        if not values.get("api_key"):
            raise ConfigError("The OPENAI_API_KEY environment variable is not set.")

        try:
            return cls(**values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigError(f"Invalid configuration: {problems}") from e
