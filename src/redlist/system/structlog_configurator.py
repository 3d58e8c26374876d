"""Structlog-based logging configuration for redlist-pi.

Library modules keep using ``logging.getLogger(__name__)``; this module routes
the standard library through structlog's renderers so every record carries
the same static context and formatting.

Supports different deployment targets:
- Docker: JSON lines on stderr
- Development: Human-readable colored console output on stderr (JSON on request)
"""

import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import structlog

from redlist.config.models import RedListConfig


def is_docker_environment() -> bool:
    """Check if running in a Docker container."""
    return os.path.exists("/.dockerenv") or os.environ.get("DOCKER_CONTAINER") == "true"


def get_deployment_environment() -> str:
    """Get deployment environment with 'unknown' fallback."""
    if is_docker_environment():
        return "docker"
    elif os.environ.get("REDLIST_ENV") == "development":
        return "development"
    else:
        return "unknown"


def _add_static_context(extra_fields: dict[str, str]) -> Callable:
    """Processor to add static context fields to all log entries."""

    def processor(
        logger: structlog.BoundLogger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.update(extra_fields)
        return event_dict

    return processor


def _shared_processors(config: RedListConfig) -> list:
    extra_fields = {
        "service": "redlist-pi",
        "deployment": get_deployment_environment(),
        **config.logging.extra_fields,  # Allow config to override/add fields
    }

    processors: list = [
        structlog.contextvars.merge_contextvars,
        _add_static_context(extra_fields),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]

    # Add caller info if requested
    if config.logging.include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder())

    return processors


def _use_json(config: RedListConfig) -> bool:
    use_json = config.logging.json_logs
    if use_json is None:
        # Auto-detect: JSON for Docker, human-readable elsewhere
        use_json = is_docker_environment()
    if os.environ.get("REDLIST_JSON_LOGS", "").lower() == "true":
        use_json = True
    return use_json


def configure_structlog(config: RedListConfig) -> None:
    """Configure structlog-based logging system.

    Args:
        config: The RedListConfig instance containing logging settings.
    """
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)
    shared = _shared_processors(config)
    renderer = (
        structlog.processors.JSONRenderer()
        if _use_json(config)
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Stdlib records (httpx and our own modules) go through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Structured logging configured",
        log_level=config.logging.level,
        environment=get_deployment_environment(),
        json_output=_use_json(config),
    )
