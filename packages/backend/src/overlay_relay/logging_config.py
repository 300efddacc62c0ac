"""structlog configuration.

Learn: Every module logs through `structlog.get_logger()` using
dotted event names ("connection.opened", "broadcast.send_timeout") plus
key/value context. This module sets the processor chain once, at
startup. Context bound with structlog.contextvars (e.g. request_id from
RequestIdMiddleware) is merged into every entry.
"""

import logging

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog's processor chain and level filter."""
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        level_no = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        # ConsoleRenderer formats exceptions itself
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        cache_logger_on_first_use=False,
    )
