"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config(), ConfigModule.get(), ConfigModule.get_config_schema()
Hidden: Environment variable names, parsing, validation

Can be replaced with different config systems (Consul, etcd, AWS Parameter Store).
"""

import os
from typing import Any, Callable, Dict, NamedTuple, Optional


def _redis_port(value: str) -> int:
    # Kubernetes service links expose REDIS_PORT as tcp://host:port
    if value.startswith("tcp://"):
        value = value.rsplit(":", 1)[-1]
    return int(value)


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _optional_int(value: str) -> Optional[int]:
    return int(value) if value.strip() else None


class Setting(NamedTuple):
    env: str
    description: str
    default: Optional[str]
    parse: Callable[[str], Any] = str


# Configuration Contract: Required and Optional Keys
# Required keys always resolve to a value (from env or default); optional ones may be None

REQUIRED_SETTINGS: Dict[str, Setting] = {
    "redis_host": Setting("REDIS_HOST", "Redis server hostname", "localhost"),
    "redis_port": Setting("REDIS_PORT", "Redis server port number", "6379", _redis_port),
    "redis_db": Setting("REDIS_DB", "Redis database number", "0", int),
    "host": Setting("API_HOST", "API server bind address", "0.0.0.0"),
    "port": Setting("API_PORT", "API server port", "8000", int),
    "log_level": Setting("LOG_LEVEL", "Logging level (DEBUG, INFO, WARNING, ERROR)", "INFO", str.upper),
    "cache_ttl": Setting("CACHE_TTL", "Lifetime of the test cache entry in seconds", "60", int),
    "cache_key": Setting("CACHE_KEY", "Redis key of the single test cache slot", "unique_id_cache"),
    "job_steps": Setting("JOB_STEPS", "Number of progress steps a background job performs", "10", int),
    "job_step_seconds": Setting(
        "JOB_STEP_SECONDS", "Pause before each background job step in seconds", "1", float
    ),
}

OPTIONAL_SETTINGS: Dict[str, Setting] = {
    "redis_password": Setting("REDIS_PASSWORD", "Redis authentication password", None),
    "debug": Setting("DEBUG", "Enable debug mode (auto-reload)", "false", _flag),
    "token_ttl": Setting(
        "TOKEN_TTL", "Bearer token lifetime in seconds (unset = never expires)", None, _optional_int
    ),
    "environment": Setting("APP_ENV", "Deployment environment name", "development"),
}


class ConfigModule:
    """Configuration management module."""

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        """
        Load configuration.

        Args:
            environ: Mapping to read instead of os.environ
        """
        self._environ = os.environ if environ is None else environ
        self._config = self._load()
        self._validate_required_keys()

    def _load(self) -> Dict[str, Any]:
        config = {}
        for key, setting in {**REQUIRED_SETTINGS, **OPTIONAL_SETTINGS}.items():
            raw = self._environ.get(setting.env, setting.default)
            if raw is None:
                config[key] = None
                continue
            try:
                config[key] = setting.parse(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {setting.env}: {raw!r}") from e
        return config

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present and sane.

        Raises:
            ValueError: If required keys are missing or out of range
        """
        missing = [key for key in REQUIRED_SETTINGS if self._config.get(key) is None]
        if missing:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing)}. "
                f"Check environment variables and deployment configuration."
            )

        if self._config["cache_ttl"] <= 0:
            raise ValueError("CACHE_TTL must be a positive number of seconds")
        if self._config["job_steps"] <= 0:
            raise ValueError("JOB_STEPS must be positive")
        if self._config["job_step_seconds"] < 0:
            raise ValueError("JOB_STEP_SECONDS cannot be negative")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values (the Redis password is masked)."""
        values = self._config.copy()
        if values.get("redis_password"):
            values["redis_password"] = "***"
        return values

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Get the configuration schema (contract) for this module.

        Returns:
            Dictionary with 'required' and 'optional' key specifications

        Example:
            >>> schema = ConfigModule.get_config_schema()
            >>> schema['required']['cache_ttl']['env']
            'CACHE_TTL'
        """

        def describe(settings: Dict[str, Setting]) -> Dict[str, Dict[str, Any]]:
            return {
                key: {"env": s.env, "description": s.description, "default": s.default}
                for key, s in settings.items()
            }

        return {"required": describe(REQUIRED_SETTINGS), "optional": describe(OPTIONAL_SETTINGS)}


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule"]
