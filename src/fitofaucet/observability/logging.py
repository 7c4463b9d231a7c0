"""Structured logging for the faucet.

Both structlog loggers and plain ``logging.getLogger(__name__)`` loggers
end up in one stdout handler, rendered as JSON lines or as console text.
Fields passed through ``extra=`` become top-level keys, the current
request ID is attached from structlog's context variables, and values of
secret-bearing keys are masked.
"""

import logging
import sys
from collections.abc import Iterable

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

REDACTED = "[REDACTED]"

# Exact key names; "token_symbol" and "tx_hash" must stay readable
REDACTED_FIELDS = frozenset(
    {
        "ai_api_key",
        "api_key",
        "authorization",
        "password",
        "private_key",
        "secret",
        "wallet_private_key",
    }
)


class RedactSecrets:
    """Processor masking the values of sensitive keys, case-insensitively."""

    def __init__(self, fields: Iterable[str] = REDACTED_FIELDS):
        self._fields = frozenset(f.lower() for f in fields)

    def __call__(self, _logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        for key in event_dict:
            if key.lower() in self._fields:
                event_dict[key] = REDACTED
        return event_dict


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        RedactSecrets(),
    ]


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Install the faucet's log pipeline on the root logger.

    Parameters
    ----------
    level : str
        Log level name, any case.
    log_format : str
        ``json`` for JSON lines, anything else for console output.

    Raises
    ------
    ValueError
        If ``level`` is not a known level name.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    if log_format.lower() == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    pre_chain = _pre_chain()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def set_request_id(request_id: str) -> None:
    """Attach ``request_id`` to every record logged from the current context."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def get_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("request_id")


def clear_request_id() -> None:
    structlog.contextvars.unbind_contextvars("request_id")
