"""
Observability - Structured Logging

Usage:
    from shared.observability import configure_logging, LogContext

    # Initialize once at service startup
    configure_logging(service_name="economy_service")

    with LogContext(actor_id="steve"):
        logger.info("Quote issued")
"""
from .logging_config import LogContext, configure_logging

__all__ = [
    "LogContext",
    "configure_logging",
]
