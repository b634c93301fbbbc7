"""Structured logging for the outing service: stdout plus an optional dated log file.

Format and level come from OutingSettings (OUTING_LOG_FORMAT, OUTING_LOG_LEVEL).
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def _plain(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _serialize_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render game statuses as their wire strings and timestamps as ISO text."""
    for key, value in event_dict.items():
        if isinstance(value, dict):
            event_dict[key] = {k: _plain(v) for k, v in value.items()}
        elif isinstance(value, list | tuple):
            event_dict[key] = [_plain(v) for v in value]
        else:
            event_dict[key] = _plain(value)
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def configure_structlog() -> None:
    """Route structlog events through stdlib logging with outing values made plain."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _formatter(*, json_mode: bool, colors: bool) -> logging.Formatter:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    # format_exc_info runs here, once per handler.
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _open_log_file(log_dir: Path | str, *, json_mode: bool) -> logging.FileHandler:
    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    handler = logging.FileHandler(dir_path / f"outing_{stamp}.log")
    handler.setFormatter(_formatter(json_mode=json_mode, colors=False))
    return handler


def setup_logging(
    log_dir: Path | str | None = None,
    level: int = logging.INFO,
    *,
    json_mode: bool = False,
) -> Path | None:
    """Configure structlog with stdout and optional file output.

    json_mode renders one JSON object per line. When log_dir is given (and
    not under pytest) a datetime-stamped outing log file is opened there and
    its path returned; otherwise None.
    """
    configure_structlog()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_formatter(json_mode=json_mode, colors=sys.stdout.isatty()))
    root_logger.addHandler(stdout_handler)

    if log_dir is None or _is_test():
        return None
    file_handler = _open_log_file(log_dir, json_mode=json_mode)
    root_logger.addHandler(file_handler)
    return Path(file_handler.baseFilename)
