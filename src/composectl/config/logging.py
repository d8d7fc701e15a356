"""structlog configuration for composectl.

Logs always go to stderr so they never mix with command output:
- Human (default): colored console lines when stderr is a TTY
- JSON (--log-json): one JSON object per line

Stdlib ``logging`` records from composectl modules pass through the same
processor chain, so ``logging.getLogger(__name__)`` and
``structlog.get_logger()`` render identically.
"""

from __future__ import annotations

import logging
import sys

import structlog

APP_LOGGER = "composectl"


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    context_name: str | None = None,
) -> None:
    """Configure structlog processors and stderr routing.

    Args:
        verbose: DEBUG for composectl loggers; WARNING otherwise.
        log_json: JSON lines instead of console output.
        context_name: Deployment context bound to every log record.
    """
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(APP_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if context_name:
        structlog.contextvars.bind_contextvars(context=context_name)
