"""Progress reporting for the full index rebuild."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ProgressStatus(str, Enum):
    SUCCESS = "success"
    SKIP = "skip"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted once per note processed by ``rebuild_all()``.

    Attributes:
        status: success | skip | error.
        preview: First 30 characters of the note content.
        current: 1-based position of this note in the run.
        total: Number of notes when the run started.
        note_id: Id of the note the event is about.
        error: Cause of an ``error`` event.
    """

    status: ProgressStatus
    preview: str
    current: int
    total: int
    note_id: int | None = None
    error: BaseException | None = None

    @property
    def progress(self) -> tuple[int, int]:
        return self.current, self.total


@dataclass
class RebuildTally:
    """Aggregate counts over a stream of ProgressEvents."""

    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[ProgressEvent] = field(default_factory=list)

    def record(self, event: ProgressEvent) -> ProgressEvent:
        """Count *event* and return it unchanged, so it can wrap a loop."""
        if event.status is ProgressStatus.SUCCESS:
            self.succeeded += 1
        elif event.status is ProgressStatus.SKIP:
            self.skipped += 1
        else:
            self.failed += 1
            self.errors.append(event)
        return event

    @property
    def total(self) -> int:
        return self.succeeded + self.skipped + self.failed
