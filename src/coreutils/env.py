from dotenv import load_dotenv
import os

from .errors import ConfigError

load_dotenv()  # take environment variables from .env


def env_get(key: str, default: str | None = None) -> str | None:
    """Get environment variable or return default."""
    value = os.getenv(key, default)
    if value is not None and value.strip() == "":
        return default
    return value


def env_int(key: str, default: int) -> int:
    """Get a positive integer environment variable or return default."""
    raw = env_get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value
