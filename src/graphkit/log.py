"""
Structured logging setup.

Levels and renderer default to the ``GRAPH_LOG_LEVEL`` and ``GRAPH_LOG_JSON``
settings so library users and the CLI share one switch.
"""

import logging
import sys
from typing import Optional

import structlog

from graphkit.config import GraphConfig, get_config


def build_processors(json_format: bool) -> list:
    """Processor chain ending in a JSON or console renderer."""
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer(),
    ]


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    config: Optional[GraphConfig] = None,
) -> int:
    """
    Configure structured logging on stderr.

    Args:
        level: Level name, overrides config.log_level
        json_format: JSON output, overrides config.log_json
        config: Graph configuration. Uses global config if not provided.

    Returns:
        The numeric level that was applied
    """
    config = config or get_config()
    level_name = (level or config.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level_name}'")
    use_json = config.log_json if json_format is None else json_format

    structlog.configure(
        processors=build_processors(use_json),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=numeric_level, stream=sys.stderr)
    logging.getLogger().setLevel(numeric_level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
    return numeric_level
