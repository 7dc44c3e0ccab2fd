"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant for old people, answer their questions in a way "
    "that is easy to understand and succinct. Keep your responses within 160 characters. "
    "Use the web_search tool only when the question needs current or factual "
    "information you do not already know."
)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    webhook_path: str = "/sms"


class AllowlistConfig(BaseModel):
    # Newline/comma/tab/space separated. Empty allows every sender.
    allowed_from_numbers: str = ""


class RateLimitConfig(BaseModel):
    capacity: int = Field(default=5, ge=1)
    refill_window_ms: int = Field(default=60_000, ge=1)


class HistoryConfig(BaseModel):
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: str = "./data/sms_assistant.db"
    max_entries: int = Field(default=10, ge=1)
    ttl_days: int = Field(default=7, ge=1)
    context_max_length: int = Field(default=1000, ge=1)


class GeminiConfig(BaseModel):
    api_key: str = ""
    model: str = "gemini-2.0-flash-lite"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float = 10.0
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


class SearchConfig(BaseModel):
    enabled: bool = True
    api_key: str = ""
    engine_id: str = ""
    base_url: str = "https://www.googleapis.com/customsearch/v1"
    result_count: int = Field(default=3, ge=1, le=10)
    timeout: float = 5.0


class ResponseConfig(BaseModel):
    max_length: int = Field(default=1200, ge=4)


class AppConfig(BaseModel):
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    server: ServerConfig = Field(default_factory=ServerConfig)
    allowlist: AllowlistConfig = Field(default_factory=AllowlistConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    response: ResponseConfig = Field(default_factory=ResponseConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Build a configuration from environment variables only."""
        env = os.environ
        data: dict = {
            "log_level": env.get("LOG_LEVEL", "INFO"),
            "allowlist": {"allowed_from_numbers": env.get("ALLOWED_FROM_NUMBERS", "")},
            "gemini": {"api_key": env.get("GOOGLE_API_KEY", "")},
            "search": {
                "api_key": env.get("GOOGLE_SEARCH_API_KEY", ""),
                "engine_id": env.get("GOOGLE_SEARCH_ENGINE_ID", ""),
            },
        }
        if "GEMINI_MODEL" in env:
            data["gemini"]["model"] = env["GEMINI_MODEL"]
        if "SMS_MAX_LENGTH" in env:
            data["response"] = {"max_length": int(env["SMS_MAX_LENGTH"])}
        if "HISTORY_DB_PATH" in env:
            data["history"] = {"db_path": env["HISTORY_DB_PATH"]}
        return cls(**data)


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} and ${VAR_NAME:-default} patterns with environment values.

    An unset variable without a default becomes an empty string, so a missing
    credential reads as missing rather than as the literal placeholder.
    """

    def _replace(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            return match.group(2) or ""
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")
    data = yaml.safe_load(_interpolate_env_vars(raw_text)) or {}

    return AppConfig(**data)
