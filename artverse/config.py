import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early so env vars are available for YAML interpolation
_env_file = Path.cwd() / ".env"
load_dotenv(_env_file)

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

DEFAULT_ALLOWED_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
DEFAULT_MAX_UPLOAD_SIZE = 10 * 1024 * 1024

_config_path_override: Path | None = None


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def set_config_path(path: Path | str | None) -> None:
    """Force a specific config file (used by ``artverse -f``)."""
    global _config_path_override
    _config_path_override = Path(path) if path is not None else None


def get_config_path() -> Path:
    """Resolve the YAML config file.

    ``ARTVERSE_ENV=testing`` selects ``app.testing.yaml``; without it the
    plain ``app.yaml`` in the working directory is used.
    """
    if _config_path_override is not None:
        return _config_path_override

    env = os.environ.get("ARTVERSE_ENV", "").strip()
    if env and env != "production":
        return Path.cwd() / f"app.{env}.yaml"
    return Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    """Load and parse the app config with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"{config_path.name} not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return interpolate_env_vars(config)


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite+aiosqlite:///./artverse.db"
    pool_size: int = 5
    pool_overflow: int = 10
    pool_timeout: int = 30
    echo: bool = False


class RemoteStorageConfig(BaseModel):
    """Settings for delegating blob operations to another Artverse server."""

    base_url: str = "http://localhost:8080"
    api_token: str | None = None


class StorageConfig(BaseModel):
    """Upload storage configuration."""

    # "local", "remote", or "module:ClassName"
    backend: str = "local"
    base_upload_path: str = "/uploads/galleries"
    local_path: str = "./public/uploads/galleries"
    max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE
    allowed_types: list[str] = DEFAULT_ALLOWED_TYPES
    remote: RemoteStorageConfig = RemoteStorageConfig()

    # Per-call bounds applied by the lifecycle orchestrator
    timeout: float = 10.0
    retries: int = 2
    backoff_base: float = 0.2
    backoff_max: float = 2.0


class LifecycleConfig(BaseModel):
    """Gallery lifecycle limits."""

    max_artworks_per_gallery: int = 6
    max_price: float = 10000
    delete_concurrency: int = 4


class LogfireConfig(BaseModel):
    """Pydantic Logfire observability configuration."""

    enabled: bool = False
    service_name: str = "artverse"
    environment: str | None = None
    sample_rate: float = 1.0
    console: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    debug: bool = False
    log_level: str = "INFO"

    db: DatabaseConfig = DatabaseConfig()
    storage: StorageConfig = StorageConfig()
    lifecycle: LifecycleConfig = LifecycleConfig()
    logfire: LogfireConfig = LogfireConfig()


_SECTIONS = {
    "db": DatabaseConfig,
    "storage": StorageConfig,
    "lifecycle": LifecycleConfig,
    "logfire": LogfireConfig,
}


@lru_cache
def get_settings() -> Settings:
    """Load settings from .env and the YAML config file."""
    base_settings = Settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    updates = {}

    for key, model in _SECTIONS.items():
        if key in app_config:
            updates[key] = model(**app_config[key])

    for key in ("debug", "log_level"):
        if key in app_config:
            updates[key] = app_config[key]

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings


def clear_settings_cache() -> None:
    get_settings.cache_clear()
