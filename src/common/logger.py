"""
Centralized logging configuration for the compensation pipeline.

Provides run_id and stage tagging so one request can be followed through
context assembly, synthesis, validation, scoring and caching.
"""

import json
import logging
import os
import sys
from typing import Any, Optional


_debug_enabled = os.getenv("DEBUG_MODE", "false").lower() == "true"


def set_global_debug_mode(enabled: bool) -> None:
    global _debug_enabled
    _debug_enabled = enabled


def is_debug_mode() -> bool:
    return _debug_enabled


class PipelineLogger:
    """
    Logger wrapper that tags every message with its run and stage.

    Output looks like ``[run:op_compe] [synthesis] Parsed analysis``.
    """

    def __init__(
        self,
        name: str,
        run_id: Optional[str] = None,
        stage: Optional[str] = None,
        debug_mode: Optional[bool] = None,
    ):
        self.logger = logging.getLogger(name)
        self.run_id = run_id
        self.stage = stage
        self.debug_mode = is_debug_mode() if debug_mode is None else debug_mode
        if self.debug_mode:
            self.logger.setLevel(logging.DEBUG)

    @property
    def level(self) -> int:
        return self.logger.level

    def with_stage(self, stage: str) -> "PipelineLogger":
        """Return a sibling logger for another stage of the same run."""
        return PipelineLogger(self.logger.name, self.run_id, stage, self.debug_mode)

    def _tag(self, message: str) -> str:
        tags = []
        if self.run_id:
            tags.append(f"[run:{self.run_id[:8]}]")
        if self.stage:
            tags.append(f"[{self.stage}]")
        return " ".join(tags + [message])

    def log(self, level: int, message: str, **kwargs: Any) -> None:
        self.logger.log(level, self._tag(message), **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, message, **kwargs)


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, parseable by log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Route all pipeline logging to stdout.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (unknown values mean INFO)
        format: "simple" for text lines, "json" for one JSON object per line
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format == "json":
        formatter: logging.Formatter = JsonLineFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)


def get_logger(
    name: str,
    run_id: Optional[str] = None,
    stage: Optional[str] = None,
    debug_mode: Optional[bool] = None,
) -> PipelineLogger:
    """Pipeline logger for ``name``, optionally tagged with a run and stage."""
    return PipelineLogger(name, run_id, stage, debug_mode)
