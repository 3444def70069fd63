"""ABOUTME: Logging set up shared by the web app and the CLI
ABOUTME: Standard library log records are rendered by structlog, as JSON in production and plain text in development"""

import logging
import logging.config
from typing import Any

import structlog

from accountdesk import config

HANDLER_NAME = "dev_console" if config.is_development() else "default"

# Loggers turned up when LOG_ALL_REQUESTS is set
VERBOSE_LOGGERS = {
    "werkzeug": logging.DEBUG,
    "sqlalchemy.engine": logging.INFO,
}

timestamper = structlog.processors.TimeStamper(fmt="iso")

# run on records that did not come through structlog
foreign_pre_chain = [structlog.stdlib.add_log_level, timestamper]


def _formatter(renderer: Any) -> dict[str, Any]:
    return {
        "()": structlog.stdlib.ProcessorFormatter,
        "processor": renderer,
        "foreign_pre_chain": foreign_pre_chain,
    }


def build_dict_config(handler_name: str = HANDLER_NAME) -> dict[str, Any]:
    """
    dictConfig schema with a JSON handler ("default") and a console handler
    ("dev_console"). The root logger writes to `handler_name` only.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": _formatter(structlog.dev.ConsoleRenderer(colors=False)),
            "json": _formatter(structlog.processors.JSONRenderer()),
        },
        "handlers": {
            "default": {"level": "INFO", "class": "logging.StreamHandler", "formatter": "json"},
            "dev_console": {"level": "DEBUG", "class": "logging.StreamHandler", "formatter": "console"},
        },
        "root": {"handlers": [handler_name], "level": "INFO"},
    }


logging.config.dictConfig(build_dict_config())

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)


def logging_setup(log_level: int = logging.INFO) -> None:
    """Apply the configured level to the active handler and the root logger."""
    handler = logging.getHandlerByName(HANDLER_NAME)
    assert handler is not None
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if config.should_log_all_requests():
        root_logger.setLevel(logging.DEBUG)
        for name, level in VERBOSE_LOGGERS.items():
            logging.getLogger(name).setLevel(level)
