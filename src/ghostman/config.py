"""
Configuration management for Ghostman.

Loads client defaults from environment variables or a .env file.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from ghostman import __version__
from ghostman.errors import ConfigurationError

# Check common locations for .env
env_locations = [
    Path.home() / ".ghostman" / ".env",
    Path.home() / ".config" / "ghostman" / ".env",
    Path.cwd() / ".env",
]
for env_path in env_locations:
    if env_path.exists():
        load_dotenv(env_path)
        break


TLS_VERSIONS = ("TLSv1_1", "TLSv1_2", "TLSv1_3")


@dataclass
class ClientConfig:
    """HTTP client configuration."""

    # Timeouts (seconds)
    connect_timeout: float = 8.0
    timeout: float = 30.0
    keepalive_expiry: float = 60.0

    # Connection pool
    max_connections: int = 100
    max_keepalive_connections: int = 10

    # TLS
    verify_ssl: bool = True
    tls_min_version: str = "TLSv1_2"
    tls_max_version: str = "TLSv1_3"

    user_agent: str = f"ghostman/{__version__}"

    def __post_init__(self) -> None:
        for version in (self.tls_min_version, self.tls_max_version):
            if version not in TLS_VERSIONS:
                raise ConfigurationError(
                    f"unsupported TLS version {version!r}, expected one of {', '.join(TLS_VERSIONS)}"
                )

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        defaults = cls()
        return cls(
            connect_timeout=_env_float("GHOSTMAN_CONNECT_TIMEOUT", defaults.connect_timeout),
            timeout=_env_float("GHOSTMAN_TIMEOUT", defaults.timeout),
            keepalive_expiry=_env_float("GHOSTMAN_KEEPALIVE_EXPIRY", defaults.keepalive_expiry),
            max_connections=_env_int("GHOSTMAN_MAX_CONNECTIONS", defaults.max_connections),
            max_keepalive_connections=_env_int(
                "GHOSTMAN_MAX_KEEPALIVE", defaults.max_keepalive_connections
            ),
            verify_ssl=_env_bool("GHOSTMAN_VERIFY_SSL", defaults.verify_ssl),
            tls_min_version=os.getenv("GHOSTMAN_TLS_MIN", defaults.tls_min_version),
            tls_max_version=os.getenv("GHOSTMAN_TLS_MAX", defaults.tls_max_version),
            user_agent=os.getenv("GHOSTMAN_USER_AGENT", defaults.user_agent),
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Global config instance
_config: ClientConfig | None = None


def get_config() -> ClientConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ClientConfig.from_env()
    return _config


def set_config(config: ClientConfig | None) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
