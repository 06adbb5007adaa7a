"""
Logging for the rebalance command.

The report is written to stdout, so log lines go to stderr. structlog hands its
events to stdlib logging, and a single ProcessorFormatter renders structlog and
stdlib records (Django's own) the same way: colored key/value pairs when
DEBUG is on, logfmt otherwise.

Usage (config/settings/base.py):
    configure_structlog(debug=DEBUG)
    LOGGING = get_logging_config(debug=DEBUG)
"""

import sys
from typing import Any

import structlog

# Applied to every record before rendering, including those not from structlog
PRE_CHAIN: list[Any] = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
]


def _renderer(debug: bool) -> Any:
    if debug:
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.LogfmtRenderer(key_order=["timestamp", "level", "event"])


def configure_structlog(debug: bool = False) -> None:
    """Send structlog events through stdlib logging, where LOGGING decides their fate.

    Must run before the first logger is bound; settings call it at import time.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            *PRE_CHAIN,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logging_config(debug: bool = False) -> dict[str, Any]:
    """
    Return the Django LOGGING dict.

    One stderr handler on the root logger. The rebalancer package logs at
    DEBUG when debug is set and only warnings otherwise, so a normal run
    prints nothing but the report.
    """
    processors: list[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if not debug:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer(debug))

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": processors,
                "foreign_pre_chain": PRE_CHAIN,
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "structlog",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "handlers": ["stderr"],
            "level": "WARNING",
        },
        "loggers": {
            "rebalancer": {
                "level": "DEBUG" if debug else "WARNING",
            },
        },
    }
