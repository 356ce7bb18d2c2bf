from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KnowledgeGraphSettings(BaseSettings):
    """Configuration for the knowledge-graph client.

    Environment variables are prefixed with KBGRAPH_.
    """

    model_config = SettingsConfigDict(env_prefix="KBGRAPH_", extra="ignore")

    # --- Service ---
    base_url: str = Field(default="http://localhost:3000", description="Service origin, no trailing path")

    # --- Auth ---
    api_key: str | None = Field(default=None, description="Sent as Authorization: Bearer")
    session_cookie: str | None = Field(default=None, description="Sent as the `session` cookie")

    # --- Logging ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- HTTP ---
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    retry_attempts: int = 5


settings = KnowledgeGraphSettings()
