"""
Logging for the soarcast service, the batch driver and its worker processes.

Entry points call ``setup_logging`` once (``run_server.py``, ``soarcast-batch``);
process-pool workers call ``configure_worker`` through the pool initializer.
Modules only ask for a tagged logger:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="forecast_service")
    logger.debug("Built location forecasts", extra={"days": 7})

Every record carries a ``job_name`` (which process wrote it: server, batch or
batch worker) and a ``tag`` (which component). Call-site ``extra`` values are
kept on the record next to the tag.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, MutableMapping, Optional, Tuple


# Records emitted before setup_logging (imports, settings errors) still get a timestamp.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_JOB_NAME = "soarcast"
WORKER_JOB_SUFFIX = "_worker"

_CONFIGURED: bool = False


class MaxLevelFilter(logging.Filter):
    """Keep records at or below ``max_level`` (progress output on stdout)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class RecordContextFilter(logging.Filter):
    """
    Fill in ``job_name`` and ``tag`` on records that lack them.

    Records from ``get_tagged_logger`` bring their own tag. Library loggers
    (uvicorn, fastapi) get the last segment of their name, so "uvicorn.error"
    shows up as "error".
    """

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self.job_name = job_name or DEFAULT_JOB_NAME

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self.job_name
        if not hasattr(record, "tag"):
            record.tag = record.name.rsplit(".", 1)[-1] if record.name else "-"
        return True


class TaggedLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that adds its tag to the caller's ``extra`` instead of replacing it."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(kwargs.get("extra") or {}), **self.extra}
        return msg, kwargs


def build_logging_config(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    log_format: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
) -> Mapping[str, Any]:
    """
    dictConfig mapping for one soarcast process.

    DEBUG and INFO go to stdout, WARNING and above to stderr, so a batch run
    can send its progress to a file and still show problems on the terminal.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {"()": RecordContextFilter, "job_name": job_name},
            "info_and_below": {"()": MaxLevelFilter, "max_level": logging.INFO},
        },
        "formatters": {
            "soarcast": {"format": log_format, "datefmt": date_format},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "soarcast",
                "filters": ["context", "info_and_below"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "soarcast",
                "filters": ["context"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": level, "handlers": ["stdout", "stderr"]},
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """Configure logging once per process; later calls need ``override_existing``."""
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name))
    _CONFIGURED = True


def worker_job_name(job_name: Optional[str]) -> str:
    """Job name of a pool worker started by ``job_name``, e.g. "soarcast_batch_worker"."""
    return (job_name or DEFAULT_JOB_NAME) + WORKER_JOB_SUFFIX


def configure_worker(level: str | int, job_name: Optional[str]) -> None:
    """Process-pool initializer: log like the parent, under the worker job name."""
    setup_logging(level=level, job_name=worker_job_name(job_name), override_existing=True)


def get_tagged_logger(name: str, *, tag: Optional[str] = None) -> TaggedLoggerAdapter:
    """Logger for ``name`` whose records carry ``tag`` (default: last segment of ``name``)."""
    return TaggedLoggerAdapter(logging.getLogger(name), {"tag": tag or name.rsplit(".", 1)[-1]})
