"""Progress tracking for batched runs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ProgressTracker:
    """Tracks how far a run has drained its groups."""

    total: int
    group_total: int = 0
    processed: int = 0
    groups_completed: int = 0
    timed_out: int = 0
    spawn_failed: int = 0
    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None
    current_item: Optional[str] = None

    @property
    def percentage(self) -> float:
        """Calculate completion percentage."""
        if self.total == 0:
            return 100.0
        return min(100.0, (self.processed / self.total) * 100.0)

    @property
    def elapsed_seconds(self) -> float:
        """Seconds since the run started, frozen once it finishes."""
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    @property
    def items_per_second(self) -> float:
        elapsed = self.elapsed_seconds
        if elapsed == 0:
            return 0.0
        return self.processed / elapsed

    def record(self, item: str, timed_out: bool = False, spawn_failed: bool = False) -> None:
        """Count one invocation that reached a terminal state.

        Args:
            item: Item whose invocation finished
            timed_out: Whether its deadline fired
            spawn_failed: Whether its process never started
        """
        self.processed += 1
        self.current_item = item
        if timed_out:
            self.timed_out += 1
        if spawn_failed:
            self.spawn_failed += 1

    def complete_group(self) -> None:
        self.groups_completed += 1

    def finish(self) -> None:
        if self.finished_at is None:
            self.finished_at = time.monotonic()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "processed": self.processed,
            "group_total": self.group_total,
            "groups_completed": self.groups_completed,
            "timed_out": self.timed_out,
            "spawn_failed": self.spawn_failed,
            "percentage": round(self.percentage, 2),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "items_per_second": round(self.items_per_second, 2),
            "current_item": self.current_item,
        }

    def __repr__(self) -> str:
        return (
            f"Progress({self.processed}/{self.total} = {self.percentage:.1f}%, "
            f"groups {self.groups_completed}/{self.group_total}, "
            f"timed out {self.timed_out}, spawn failed {self.spawn_failed})"
        )
