"""
Logging configuration for Cachegate.

Application modules log under the ``cachegate`` logger tree
(``cachegate.api``, ``cachegate.auth``, ``cachegate.cache``, ``cachegate.jobs``).
Uvicorn access lines for health probes are dropped.
"""

import logging
from typing import Any, Dict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
HEALTH_PATHS = ("/health", "/api/health")


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access records for GET health probes."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True

        # uvicorn passes (client, method, path, http_version, status) as args
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            method, path = args[1], str(args[2]).split("?", 1)[0]
            return not (method == "GET" and path in HEALTH_PATHS)

        message = record.getMessage()
        return not ("GET" in message and any(p in message for p in HEALTH_PATHS))


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """
    Build a dictConfig for the app and uvicorn.

    Args:
        level: Level of the cachegate loggers (uvicorn stays at INFO)
    """
    level = level.upper()

    uvicorn_loggers = {
        name: {"handlers": [handler], "level": "INFO", "propagate": False}
        for name, handler in (
            ("uvicorn", "default"),
            ("uvicorn.error", "default"),
            ("uvicorn.access", "access"),
        )
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"health_check_filter": {"()": HealthCheckFilter}},
        "formatters": {
            "default": {"format": LOG_FORMAT},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": {
            **uvicorn_loggers,
            "cachegate": {"handlers": ["default"], "level": level, "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["default"]},
    }
