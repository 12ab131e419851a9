"""Structured logging setup and resource snapshots."""

import dataclasses
import logging
import sys
from enum import Enum
from typing import Any, Literal

import structlog
from structlog.types import Processor

SECRET_KEYS = frozenset({"password", "client_secret", "pfx_blob", "passphrase"})


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential and certificate values passed as event keys."""
    for key in SECRET_KEYS & event_dict.keys():
        event_dict[key] = "***"
    return event_dict


def setup_logging(
    log_format: Literal["json", "console"] = "console",
    log_level: str = "INFO",
    subscription_id: str | None = None,
) -> None:
    """
    Configure structlog on top of the standard library logger.

    Every event carries the subscription the run is billed to, and after
    bind_run() the run id, so interleaved runs can be told apart.

    Args:
        log_format: "json" for machine-readable lines, "console" for humans.
        log_level: Level name (DEBUG, INFO, WARNING, ERROR).
        subscription_id: Azure subscription bound to every event.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=False))
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
    structlog.contextvars.clear_contextvars()
    if subscription_id:
        structlog.contextvars.bind_contextvars(subscription_id=subscription_id)


def bind_run(run_id: str) -> None:
    """Tag every following event with run_id (the resource group name)."""
    structlog.contextvars.bind_contextvars(run=run_id)


def snapshot(resource: Any) -> dict[str, Any]:
    """Flatten a resource record into loggable key/values."""
    if not dataclasses.is_dataclass(resource):
        return {"value": repr(resource)}
    values = {}
    for f in dataclasses.fields(resource):
        if not f.repr:
            continue
        value = getattr(resource, f.name)
        values[f.name] = value.value if isinstance(value, Enum) else value
    return values


def print_resource(logger: Any, resource: Any) -> None:
    """Log a snapshot of resource under the 'resource' event."""
    logger.info("resource", kind=type(resource).__name__, **snapshot(resource))
