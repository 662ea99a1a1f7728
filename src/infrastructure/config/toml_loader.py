"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from src.domain.ports.config import (
    AgentConfig,
    AppConfig,
    JobsConfig,
    LLMConfig,
    PersistenceConfig,
    SandboxConfig,
    SecurityConfig,
    ServerConfig,
)

logger = logging.getLogger(__name__)

# env var -> (section, key)
_STRING_OVERRIDES = {
    "LLM_BASE_URL": ("llm", "base_url"),
    "LLM_API_KEY": ("llm", "api_key"),
    "LLM_MODEL": ("llm", "model"),
    "SUMMARY_MODEL": ("llm", "summary_model"),
    "SANDBOX_PROVIDER": ("sandbox", "provider"),
    "SANDBOX_API_URL": ("sandbox", "api_url"),
    "SANDBOX_API_KEY": ("sandbox", "api_key"),
    "SANDBOX_TEMPLATE": ("sandbox", "template"),
    "OUTPUT_DIR": ("persistence", "output_dir"),
}

_INT_OVERRIDES = {
    "PORT": ("server", "port"),
    "AGENT_MAX_ITERATIONS": ("agent", "max_iterations"),
}


def _load_toml(path: Path) -> dict:
    """Load TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _merge(base: dict, override: dict) -> dict:
    """Shallow per-section merge: override sections update base sections."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    for env, (section, key) in _STRING_OVERRIDES.items():
        if value := os.getenv(env):
            config.setdefault(section, {})[key] = value.strip()
    for env, (section, key) in _INT_OVERRIDES.items():
        if value := os.getenv(env):
            try:
                config.setdefault(section, {})[key] = int(value)
            except ValueError:
                logger.warning("Invalid %s env value: %r, ignoring", env, value)
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    return config


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists.
    """
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent.parent.parent / "config"

    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        config = _merge(config, _load_toml(dev_path))

    config = _apply_env_overrides(config)

    logging_raw = config.get("logging") or {}
    return AppConfig(
        server=ServerConfig(**(config.get("server") or {})),
        llm=LLMConfig(**(config.get("llm") or {})),
        sandbox=SandboxConfig(**(config.get("sandbox") or {})),
        agent=AgentConfig(**(config.get("agent") or {})),
        jobs=JobsConfig(**(config.get("jobs") or {})),
        security=SecurityConfig(**(config.get("security") or {})),
        persistence=PersistenceConfig(**(config.get("persistence") or {})),
        log_level=logging_raw.get("level", "INFO"),
        log_file=(logging_raw.get("file") or "").strip(),
        log_rotation_max_mb=int(logging_raw.get("log_rotation_max_mb", 5)),
        log_rotation_backups=int(logging_raw.get("log_rotation_backups", 3)),
    )
