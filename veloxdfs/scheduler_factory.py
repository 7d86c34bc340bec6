"""Construction of logical block schedulers by name."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .scheduler import (
    BaseScheduler,
    Scheduler,
    ScoreBasedScheduler,
    SimpleScheduler,
    StatsListener,
    VlmbScheduler,
)
from .scheduler_python import PythonScheduler
from .scheduler_slots import LeanScheduler, MultiwaveScheduler, StealScheduler

log = logging.getLogger(__name__)

_KINDS: dict[str, type[Scheduler]] = {
    "scheduler_simple": SimpleScheduler,
    "scheduler_score_based": ScoreBasedScheduler,
    "python": PythonScheduler,
    "scheduler_vlmb": VlmbScheduler,
    "scheduler_multiwave": MultiwaveScheduler,
    "scheduler_lean": LeanScheduler,
    "scheduler_steal": StealScheduler,
    "scheduler_base": BaseScheduler,
}


class UnknownSchedulerError(ValueError):
    """Raised when no scheduler has the requested name."""


def scheduler_factory(
    kind: str,
    boundaries: Any,
    options: Mapping[str, str] | None = None,
    listener: StatsListener | None = None,
) -> Scheduler:
    """Create the scheduler named kind with its boundaries, options and listener."""
    try:
        cls = _KINDS[kind]
    except KeyError:
        log.error("No file scheduler chosen, EXITING")
        raise UnknownSchedulerError(f"unknown scheduler type: {kind!r}") from None
    return cls(boundaries, options, listener)