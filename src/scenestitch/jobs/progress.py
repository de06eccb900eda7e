"""Progress accounting for a generation job.

A job with ``n`` scenes has ``3n + 3`` work units: for every scene the media
is resolved, the narration synthesized and the clip composed, then the
sequence is assembled, branded and uploaded. Percent is the floor of the
completed fraction and is capped below 100 until the job is done.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

UNITS_PER_SCENE = 3
POST_SCENE_UNITS = 3


@dataclass
class ProcessingStage:
    """One named group of work units."""

    name: str
    total_items: int
    completed_items: int = 0

    @property
    def progress_percent(self) -> float:
        if self.total_items == 0:
            return 0.0
        return (self.completed_items / self.total_items) * 100


@dataclass
class ProgressTracker:
    """Counts completed work units and reports them as a percentage.

    ``update_callback`` receives ``(percent, message)`` after every change.
    """

    scene_count: int
    update_callback: Optional[Callable[[int, str], None]] = None
    stages: dict[str, ProcessingStage] = field(default_factory=dict)

    def __post_init__(self):
        self.register_stage("media", self.scene_count)
        self.register_stage("narration", self.scene_count)
        self.register_stage("compose", self.scene_count)
        self.register_stage("finalize", POST_SCENE_UNITS)

    @property
    def total_units(self) -> int:
        return self.scene_count * UNITS_PER_SCENE + POST_SCENE_UNITS

    @property
    def completed_units(self) -> int:
        return sum(stage.completed_items for stage in self.stages.values())

    @property
    def percent(self) -> int:
        """Floor of completed/total, never 100 before the last unit."""
        if self.total_units == 0:
            return 0
        value = (100 * self.completed_units) // self.total_units
        if self.completed_units < self.total_units:
            value = min(value, 99)
        return value

    def register_stage(self, stage_name: str, total_items: int) -> None:
        self.stages[stage_name] = ProcessingStage(name=stage_name, total_items=total_items)

    def complete_unit(self, stage_name: str, message: str) -> int:
        """Mark one unit of ``stage_name`` done and notify.

        Returns:
            The new percentage
        """
        stage = self.stages[stage_name]
        if stage.completed_items >= stage.total_items:
            logger.warning(f"Stage {stage_name} already complete, ignoring extra unit")
        else:
            stage.completed_items += 1
        self.notify(message)
        return self.percent

    def notify(self, message: str) -> None:
        if self.update_callback:
            self.update_callback(self.percent, message)
