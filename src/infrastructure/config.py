from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from src.domain.services.processing_service import PIL_FORMATS

# Common frontend dev servers
DEVELOPMENT_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:5173",  # Vite default
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
    "http://127.0.0.1:5173",
)


@dataclass(frozen=True, slots=True)
class ExtensionConfig:
    env: str
    cors_allow_list: tuple[str, ...]
    default_output_format: str
    default_input_source: str | None
    input_fetch_timeout: float
    max_input_bytes: int
    log_level: str
    log_json: bool
    api_host: str
    api_port: int


def _cors_allow_list(env: str) -> tuple[str, ...]:
    configured = os.getenv("CORS_ALLOW_LIST")
    if configured:
        return tuple(origin.strip() for origin in configured.split(",") if origin.strip())
    if env in ("development", "staging"):
        return DEVELOPMENT_ORIGINS
    return ("*",)


def load_config() -> ExtensionConfig:
    env = os.getenv("ENV", "development")
    default_output_format = os.getenv("DEFAULT_OUTPUT_FORMAT", "png").lower()
    if default_output_format == "jpg":
        default_output_format = "jpeg"
    if default_output_format not in PIL_FORMATS:
        raise ValueError(
            f"DEFAULT_OUTPUT_FORMAT must be one of {', '.join(PIL_FORMATS)}, "
            f"got {default_output_format!r}"
        )
    return ExtensionConfig(
        env=env,
        cors_allow_list=_cors_allow_list(env),
        default_output_format=default_output_format,
        default_input_source=os.getenv("DEFAULT_INPUT_SOURCE") or None,
        input_fetch_timeout=float(os.getenv("INPUT_FETCH_TIMEOUT", "10")),
        max_input_bytes=int(os.getenv("MAX_INPUT_BYTES", str(25 * 1024 * 1024))),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_json=os.getenv("LOG_JSON", "0") == "1",
        api_host=os.getenv("API_HOST", "localhost"),
        api_port=int(os.getenv("API_PORT", "3001")),
    )


@lru_cache(maxsize=1)
def get_config() -> ExtensionConfig:
    return load_config()
