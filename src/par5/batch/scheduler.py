"""Group-by-group execution of invocations with bounded concurrency."""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence

from ..core.config import DEFAULT_BATCH_SIZE, ConfigError, RunConfig
from .progress import ProgressTracker
from .runner import InvocationResult, InvocationSpec, run_invocation

logger = logging.getLogger(__name__)

Runner = Callable[[InvocationSpec], Awaitable[InvocationResult]]


@dataclass
class RunContext:
    """Identity and work list of one fan-out execution."""

    run_id: str
    run_dir: Path
    width: int
    specs: List[InvocationSpec] = field(default_factory=list)


def partition(specs: Sequence[InvocationSpec], width: int) -> List[List[InvocationSpec]]:
    """Split ``specs`` into contiguous groups of at most ``width``, in order."""
    if width < 1:
        raise ConfigError(f"batch width must be at least 1, got {width}")
    return [list(specs[i : i + width]) for i in range(0, len(specs), width)]


class BatchScheduler:
    """Runs invocations in fixed-size groups, one group at a time.

    Every member of a group is started together and the next group starts
    only after all of them have finished, so at most ``width`` processes are
    alive at once. A finished member does not free its slot early.
    """

    def __init__(self, width: int = DEFAULT_BATCH_SIZE, runner: Optional[Runner] = None):
        if width < 1:
            raise ConfigError(f"batch width must be at least 1, got {width}")
        self.width = width
        self.runner: Runner = runner or run_invocation

    @classmethod
    def from_config(cls, config: RunConfig) -> BatchScheduler:
        runner = functools.partial(
            run_invocation, shell=config.shell, kill_grace=config.kill_grace
        )
        return cls(width=config.batch_size, runner=runner)

    async def run(
        self,
        specs: Sequence[InvocationSpec],
        tracker: Optional[ProgressTracker] = None,
    ) -> List[InvocationResult]:
        """Drive every group to completion.

        Args:
            specs: Invocations in item order
            tracker: Progress tracker to update (a fresh one if None)

        Returns:
            One result per spec, in the order of ``specs``
        """
        groups = partition(specs, self.width)
        tracker = tracker or ProgressTracker(total=len(specs))
        tracker.group_total = len(groups)
        results: List[InvocationResult] = []

        for number, group in enumerate(groups, start=1):
            outcomes = await asyncio.gather(
                *(self.runner(spec) for spec in group), return_exceptions=True
            )

            for spec, outcome in zip(group, outcomes):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    logger.error("Invocation for %r raised: %s", spec.item, outcome)
                    outcome = InvocationResult(
                        index=spec.index,
                        item=spec.item,
                        sinks=spec.sinks,
                        error=str(outcome),
                        finished_at=time.monotonic(),
                    )
                tracker.record(
                    spec.item,
                    timed_out=outcome.timed_out,
                    spawn_failed=outcome.error is not None,
                )
                results.append(outcome)

            tracker.complete_group()
            logger.info("Group %d/%d finished: %r", number, len(groups), tracker)

        tracker.finish()
        return results
