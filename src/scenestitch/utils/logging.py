"""Logging for scenestitch.

Modules log through ``logging.getLogger(__name__)``; every record is rendered
by structlog, as console lines or as JSON. Pipeline fields (``job_id``,
``scene``, ``stage``) live in structlog's context variables. asyncio copies
the context into each task it creates, so a field bound inside one scene's
task shows up on that scene's records only.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from structlog.contextvars import (
    bind_contextvars,
    bound_contextvars,
    unbind_contextvars,
)

PIPELINE_FIELDS = ("job_id", "scene", "stage")

NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "aiohttp.access",
    "botocore",
    "boto3",
    "s3transfer",
    "google_genai",
    "urllib3.connectionpool",
    "uvicorn.access",
)


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Route stdlib logging through structlog.

    Args:
        log_level: Root level name; unknown names fall back to INFO
        json_output: One JSON object per line instead of console lines
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_job_context(job_id: str) -> None:
    """Tag the current task's records with ``job_id``.

    Call from inside the job's own task; tasks it spawns inherit the tag.
    """
    bind_contextvars(job_id=job_id)


def clear_job_context() -> None:
    unbind_contextvars(*PIPELINE_FIELDS)


@contextmanager
def scene_context(index: int, stage: Optional[str] = None) -> Iterator[None]:
    """Tag records with the 1-based scene number and, optionally, a stage."""
    fields = {"scene": index + 1}
    if stage:
        fields["stage"] = stage
    with bound_contextvars(**fields):
        yield


@contextmanager
def stage_context(stage: str) -> Iterator[None]:
    with bound_contextvars(stage=stage):
        yield
