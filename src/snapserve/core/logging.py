"""Logging setup.

Modules log through structlog using event names as messages
(``snapshot_written``, ``bundle_published``, ...). Rendering happens in
stdlib handlers, one per configured output, so records from uvicorn and
watchfiles share the format and destination of our own events.

The request id is held in structlog's context variables. It is merged into
every event logged while the request is handled, including the snapshot
write that runs in a worker thread (``asyncio.to_thread`` copies the
context).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from snapserve.config.models import LoggingConfig, LogOutputConfig

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = (
    "uvicorn.access",  # duplicates request_complete
    "watchfiles.main",  # one line per change in the watched build dir
)


def get_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("request_id")


def set_request_id(request_id: str | None = None) -> str:
    """Bind a request id to the current context, generating one if needed."""
    rid = request_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(request_id=rid)
    return rid


def clear_request_id() -> None:
    structlog.contextvars.unbind_contextvars("request_id")


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
    ]


def _create_formatter(
    output: LogOutputConfig, pre_chain: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = getattr(sys, output.destination, None)
        renderer = structlog.dev.ConsoleRenderer(
            colors=stream is not None and stream.isatty(),
            pad_event_to=0,
        )
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=pre_chain,
    )


def _create_handler(destination: str) -> logging.Handler:
    """Handler for "stderr", "stdout" or an absolute file path."""
    if destination in ("stderr", "stdout"):
        return logging.StreamHandler(getattr(sys, destination))
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install handlers for every output in config.

    Without a config a single stderr output is used, rendered as JSON
    when json_format is set. Safe to call more than once; earlier
    handlers are replaced.
    """
    from snapserve.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _level(config.level)
    pre_chain = _shared_processors()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Level changes must reach loggers created at import time
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(root_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _create_handler(output.destination)
        handler.setLevel(_level(output.level or config.level))
        handler.setFormatter(_create_formatter(output, pre_chain))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)  # type: ignore[no-any-return]
