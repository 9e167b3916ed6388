from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from quotealert.settings import env_str

# LOG_FORMAT values; anything else falls back to json
_RENDERERS = {
    "json": structlog.processors.JSONRenderer,
    "console": structlog.dev.ConsoleRenderer,
}


def _level(name: str) -> int:
    lvl = logging.getLevelName(name.upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Send structlog events through one stderr handler on the root logger.

    level / log_format default to LOG_LEVEL (INFO) and LOG_FORMAT (json), so call
    this after the .env file has been loaded. Stdlib records from aiohttp or
    asyncio get the same renderer as our own events.
    """
    level = level or env_str("LOG_LEVEL", "INFO")
    log_format = (log_format or env_str("LOG_FORMAT", "json")).lower()
    renderer = _RENDERERS.get(log_format, structlog.processors.JSONRenderer)()

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=pre_chain + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(_level(level))
