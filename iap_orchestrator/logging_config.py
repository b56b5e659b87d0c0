"""Structured logging configuration using structlog.

Every orchestrator operation runs inside a ``flow_context`` so its events
share a flow name, a short flow id and the product being handled. Shared
secrets and raw receipt data never reach the output.
"""

import logging
import os
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.typing import EventDict, Processor

APP_NAME = "iap-orchestrator"

# Keys whose values are masked in every event
SENSITIVE_KEYS = frozenset({"shared_secret", "password", "receipt_data", "receipt-data"})
REDACTED = "***"


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["app"] = APP_NAME
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask shared secrets and receipt payloads."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def drop_debug_unless_enabled(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Drop DEBUG events unless LOG_LEVEL=DEBUG."""
    if method_name == "debug" and not is_debug_mode():
        raise structlog.DropEvent
    return event_dict


def is_debug_mode() -> bool:
    return os.getenv("LOG_LEVEL", "INFO").upper() == "DEBUG"


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = True,
    include_timestamp: bool = True,
) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON; if False, use colored console output
        include_timestamp: Include UTC ISO 8601 timestamps
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        redact_secrets,
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    if numeric_level > logging.DEBUG:
        processors.append(drop_debug_unless_enabled)
    processors.extend([
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ])

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def new_flow_id() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def flow_context(flow: str, **context: Any) -> Iterator[str]:
    """Bind flow context to every event logged inside the block.

    Values bound by an enclosing flow are restored on exit, so nested flows
    (verify_purchase -> verify_receipt) keep the outer flow id.

    Usage:
        with flow_context("purchase", product_id=identifier) as flow_id:
            logger.info("purchase_started")

    Yields:
        The flow id bound for this block
    """
    bound = structlog.contextvars.get_contextvars()
    flow_id = bound.get("flow_id") or new_flow_id()
    values = {"flow": bound.get("flow", flow), "flow_id": flow_id, **context}
    with structlog.contextvars.bound_contextvars(**values):
        yield flow_id
