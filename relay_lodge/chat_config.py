"""Pydantic config model for the relay-lodge chat server.

ChatServerConfig: listening address, per-session limits and log level.
Values come from keyword arguments or, via ``from_env``, from environment
variables (after an optional ``.env`` file has been loaded by the caller).
"""
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

# Environment variable → config field
ENV_FIELDS = {
    "HOST": "host",
    "PORT": "port",
    "BACKLOG": "backlog",
    "ENCODING": "encoding",
    "MAX_PENDING_LINES": "max_pending_lines",
    "CLOSE_TIMEOUT": "close_timeout",
    "LOG_LEVEL": "log_level",
}


class ChatServerConfig(BaseModel):
    """Server-wide settings shared by every session."""
    host: str = "0.0.0.0"
    port: int = Field(default=1234, ge=0, le=65535)
    backlog: int = Field(default=50, ge=1)
    encoding: str = "utf-8"
    max_pending_lines: int = Field(
        default=1000, ge=1,
        description="Outbound lines queued per session before deliveries to it fail",
    )
    close_timeout: float = Field(
        default=2.0, gt=0,
        description="Seconds a closing session waits for its writer to flush",
    )
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ChatServerConfig":
        """Build a config from environment variables.

        :param environ: Mapping to read from, defaults to ``os.environ``
        :param overrides: Field values taking precedence over the environment
        """
        environ = os.environ if environ is None else environ
        values = {
            field: environ[name]
            for name, field in ENV_FIELDS.items()
            if environ.get(name, "") != ""
        }
        values.update(overrides)
        return cls(**values)
