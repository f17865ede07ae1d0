"""
Structured Logging

DESIGN DECISION: Every state change and every degraded path is logged
as a structured event. This provides:
1. Traceability of what the ledger did and why a rate is stale
2. Debugging capability without a debugger attached to the UI
3. Machine-readable output (JSON lines)

structlog is configured once per process. Modules call get_logger()
and never touch the configuration themselves.
"""

import logging
from typing import Optional

import structlog

_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    Safe to call repeatedly; only the first call has an effect.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if level is None:
        from trip_budget.config import get_settings

        try:
            level = get_settings().app.log_level
        except Exception:
            level = "INFO"

    logging.basicConfig(format="%(message)s", level=getattr(logging, level))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a module logger, configuring structlog on first use."""
    configure_logging()
    return structlog.get_logger(name)
