"""Build the summary handed back to the caller once a run has drained."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .progress import ProgressTracker
from .scheduler import RunContext
from .sinks import SinkPair


@dataclass
class RunSummary:
    """Where every item's output went, plus group and timing counts."""

    run_id: str
    run_dir: Path
    width: int
    group_count: int
    label: str = "commands"
    entries: List[Tuple[str, SinkPair]] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def invocation_count(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "run_dir": str(self.run_dir),
            "width": self.width,
            "group_count": self.group_count,
            "invocation_count": self.invocation_count,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "outputs": [
                {"item": item, **sinks.to_dict()} for item, sinks in self.entries
            ],
        }

    def to_text(self) -> str:
        """Render the summary as the prose reply sent over MCP."""
        files = "\n".join(
            f'- {item}: stdout at "{sinks.stdout}", stderr at "{sinks.stderr}"'
            for item, sinks in self.entries
        )
        return (
            f"Completed {self.invocation_count} {self.label} in {self.group_count} "
            f"batch(es) of up to {self.width} in parallel "
            f"({self.elapsed_seconds:.1f}s). Output has been streamed to files "
            f"under {self.run_dir}.\n\n"
            f"OUTPUT FILES:\n{files or '(none)'}\n\n"
            "NEXT STEPS:\n"
            "1. Read the stdout files to check the result for each item\n"
            "2. If something looks wrong, check the matching stderr file\n\n"
            "Every invocation has finished and its output files are ready to read."
        )


def build_summary(
    context: RunContext,
    tracker: ProgressTracker,
    label: str = "commands",
) -> RunSummary:
    """Pair each item with its sinks in original item order.

    Sink contents are never read here; interpreting them is up to the caller.
    """
    count = len(context.specs)
    return RunSummary(
        run_id=context.run_id,
        run_dir=context.run_dir,
        width=context.width,
        group_count=math.ceil(count / context.width),
        label=label,
        entries=[(spec.item, spec.sinks) for spec in context.specs],
        elapsed_seconds=tracker.elapsed_seconds,
    )
