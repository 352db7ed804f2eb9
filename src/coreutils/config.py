"""
Service Configuration

Builds typed configuration for the sync and enrichment services from
environment variables (loaded from .env by coreutils.env).
"""

from dataclasses import dataclass

from .env import env_get, env_int
from .errors import ConfigError

DEFAULT_STORE_PATH = "data/users.duckdb"
DEFAULT_API_BASE_URL = "http://apiv1.avici.club:3200/api/v1/pipe/users/all"
DEFAULT_GEO_API_URL = "https://api.ipgeolocation.io/v2/ipgeo"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    log_dir: str = "logs"


@dataclass(frozen=True)
class SyncConfig:
    store_path: str
    api_base_url: str
    interval_minutes: int = 10


@dataclass(frozen=True)
class EnrichmentConfig:
    store_path: str
    geo_api_key: str
    geo_api_url: str
    interval_minutes: int = 10
    batch_size: int = 50


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_logging_config() -> LoggingConfig:
    """
    Build the logging configuration

    Raises:
        ConfigError: If LOG_LEVEL is not a standard level name
    """
    level = env_get("LOG_LEVEL", "INFO").upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {level!r}")

    return LoggingConfig(
        level=level,
        log_dir=env_get("LOG_DIR", "logs"),
    )


def load_sync_config() -> SyncConfig:
    """Build the sync service configuration"""
    return SyncConfig(
        store_path=env_get("STORE_PATH", DEFAULT_STORE_PATH),
        api_base_url=env_get("API_BASE_URL", DEFAULT_API_BASE_URL),
        interval_minutes=env_int("SYNC_INTERVAL_MINUTES", 10),
    )


def load_enrichment_config() -> EnrichmentConfig:
    """
    Build the enrichment service configuration

    Raises:
        ConfigError: If IP_GEOLOCATION_API_KEY is not set
    """
    api_key = env_get("IP_GEOLOCATION_API_KEY")
    if not api_key:
        raise ConfigError(
            "IP_GEOLOCATION_API_KEY is not set. Add it to your .env file."
        )

    return EnrichmentConfig(
        store_path=env_get("STORE_PATH", DEFAULT_STORE_PATH),
        geo_api_key=api_key,
        geo_api_url=env_get("IP_GEOLOCATION_API_URL", DEFAULT_GEO_API_URL),
        interval_minutes=env_int("ENRICHMENT_INTERVAL_MINUTES", 10),
        batch_size=env_int("ENRICHMENT_BATCH_SIZE", 50),
    )
