"""Utility functions and helpers for the orchestrator."""

from iap_orchestrator.utils.durations import format_duration, parse_duration_seconds
from iap_orchestrator.utils.transaction_ids import generate_transaction_id, truncate_for_log

__all__ = [
    # Transaction identifiers
    "generate_transaction_id",
    "truncate_for_log",
    # Duration parsing
    "parse_duration_seconds",
    "format_duration",
]
