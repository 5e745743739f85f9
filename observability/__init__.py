"""Logging setup and log context.

setup_logging:
    Console + rotating file handlers, text or JSON format.

set_run_context / source_context / clear_context:
    Tag log lines with the ingestion cycle's run ID and the feed being
    processed.
"""

from observability.logging import setup_logging, set_run_context, source_context, clear_context

__all__ = [
    "setup_logging",
    "set_run_context",
    "source_context",
    "clear_context",
]
