"""
Structured logging for the refinance lead bot.

structlog renders every event either as one JSON object per line or, for
local work, through the coloured console renderer. Chat identities are
phone numbers, so anything logged under an identity key is masked.
"""

import logging
import os
import sys
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.stdlib import LoggerFactory

IDENTITY_KEYS = ("chat_id", "recipient")
MASK = "****"


def mask_chat_id(chat_id: Optional[str]) -> str:
    """Hide the last four digits of a chat identity."""
    if not chat_id:
        return ""
    if chat_id.endswith(MASK):
        return chat_id
    if len(chat_id) <= 4:
        return MASK
    return f"{chat_id[:-4]}{MASK}"


def _mask_identities(logger: Any, method_name: str, event_dict: dict) -> dict:
    for key in IDENTITY_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = mask_chat_id(value)
    return event_dict


def _add_process_id(logger: Any, method_name: str, event_dict: dict) -> dict:
    event_dict["process_id"] = os.getpid()
    return event_dict


def _add_thread_id(logger: Any, method_name: str, event_dict: dict) -> dict:
    event_dict["thread_id"] = threading.get_ident()
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    include_process_id: bool = True,
    include_thread_id: bool = False,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: 'json' for one object per line, anything else for console
        include_process_id: Add the worker's pid to every event
        include_thread_id: Add the thread ident to every event
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _mask_identities,
    ]
    if include_process_id:
        processors.append(_add_process_id)
    if include_thread_id:
        processors.append(_add_thread_id)

    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True, exception_formatter=structlog.dev.plain_traceback
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives a class a ``logger`` named after itself."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)


@contextmanager
def turn_context(chat_id: str, **kwargs: Any) -> Iterator[None]:
    """Tag every event logged during one conversation turn with its chat."""
    with structlog.contextvars.bound_contextvars(chat_id=chat_id, **kwargs):
        yield


def log_api_request(
    method: str, path: str, **kwargs: Any
) -> structlog.stdlib.BoundLogger:
    """Logger bound to an inbound HTTP request."""
    return get_logger("api_request").bind(method=method, path=path, **kwargs)


def log_refinance_calculation(
    chat_id: Optional[str] = None,
    calculation_type: Optional[str] = None,
    **kwargs: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Create a logger for refinance calculation events.

    Args:
        chat_id: Chat identity the calculation belongs to
        calculation_type: Which pipeline ran (path_a, path_b)
        **kwargs: Additional calculation context

    Returns:
        Logger with calculation context
    """
    return get_logger("refinance_calculation").bind(
        chat_id=chat_id, calculation_type=calculation_type, **kwargs
    )


def log_llm_interaction(
    model: Optional[str] = None, **kwargs: Any
) -> structlog.stdlib.BoundLogger:
    """Logger bound to one LLM call."""
    return get_logger("llm_interaction").bind(model=model, **kwargs)


def log_outbound_call(
    service: str,
    url: Optional[str] = None,
    **kwargs: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Create a logger for outbound HTTP calls (WhatsApp, leads portal).

    Args:
        service: Name of the remote service
        url: Target URL
        **kwargs: Additional context

    Returns:
        Logger with outbound call context
    """
    return get_logger("outbound_call").bind(service=service, url=url, **kwargs)


# Initialize logging with default configuration
configure_logging()
