from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

DEFAULT_HF_API_URL = "https://api-inference.huggingface.co/v1/chat/completions"
DEFAULT_HF_MODEL = "meta-llama/Llama-3.2-1B-Instruct"


@dataclass(frozen=True)
class AppConfig:
    app_name: str
    app_version: str
    hf_token: str | None
    hf_api_url: str
    hf_model: str
    inference_timeout_seconds: float
    memory_dir: str
    max_conversation_turns: int
    log_level: str


def _read_optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if not value:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _read_str_env(name: str, default: str) -> str:
    return _read_optional_env(name) or default


def _read_int_env(name: str, default: int) -> int:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float_env(name: str, default: float) -> float:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _default_memory_dir() -> str:
    return os.path.join(tempfile.gettempdir(), "memory")


def load_app_config() -> AppConfig:
    return AppConfig(
        app_name=_read_str_env("APP_NAME", "MaxMovies AI Assistant"),
        app_version=_read_str_env("APP_VERSION", "1.0.0"),
        hf_token=_read_optional_env("HF_TOKEN"),
        hf_api_url=_read_str_env("HF_API_URL", DEFAULT_HF_API_URL),
        hf_model=_read_str_env("HF_MODEL", DEFAULT_HF_MODEL),
        inference_timeout_seconds=_read_float_env("HF_TIMEOUT_SECONDS", 30.0),
        memory_dir=_read_str_env("MEMORY_DIR", _default_memory_dir()),
        # Fewer than two turns cannot hold the system turn plus a reply.
        max_conversation_turns=max(_read_int_env("MAX_CONVERSATION_TURNS", 20), 2),
        log_level=_read_str_env("LOG_LEVEL", "INFO").upper(),
    )
