"""Batch processors for the two invocation modes: shell and agent."""
from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..core.agents import Agent
from ..core.config import RunConfig
from .progress import ProgressTracker
from .report import RunSummary, build_summary
from .runner import InvocationSpec
from .scheduler import BatchScheduler, RunContext
from .sinks import SinkAllocator
from .templates import expand_prompt, expand_shell, shell_quote

logger = logging.getLogger(__name__)


class _BaseProcessor:
    def __init__(
        self,
        config: Optional[RunConfig] = None,
        scheduler: Optional[BatchScheduler] = None,
    ):
        """Initialize processor.

        Args:
            config: Engine configuration (uses defaults if None)
            scheduler: Scheduler to run groups with (built from config if None)
        """
        self.config = config or RunConfig()
        self.allocator = SinkAllocator(self.config.results_dir)
        self.scheduler = scheduler or BatchScheduler.from_config(self.config)

    def _plan(
        self,
        items: Sequence[str],
        build_command: Callable[[str], str],
        timeout: Optional[float],
    ) -> RunContext:
        run_id = self.allocator.new_run_id()
        run_dir = self.allocator.prepare(run_id)
        specs = [
            InvocationSpec(
                index=index,
                item=item,
                command=build_command(item),
                sinks=self.allocator.allocate(run_id, item),
                timeout=timeout,
            )
            for index, item in enumerate(items)
        ]
        return RunContext(
            run_id=run_id, run_dir=run_dir, width=self.scheduler.width, specs=specs
        )

    async def _execute(self, context: RunContext, label: str) -> RunSummary:
        logger.info(
            "Run %s: %d %s, width %d, output in %s",
            context.run_id,
            len(context.specs),
            label,
            context.width,
            context.run_dir,
        )
        tracker = ProgressTracker(total=len(context.specs))
        await self.scheduler.run(context.specs, tracker)
        summary = build_summary(context, tracker, label=label)
        logger.info("Run %s finished: %s", context.run_id, tracker.to_dict())
        return summary


class BatchShellProcessor(_BaseProcessor):
    """Run one shell command per item, with ``$item`` shell-quoted."""

    async def process(self, items: Sequence[str], command: str) -> RunSummary:
        """Fan ``command`` out across ``items``.

        Args:
            items: Items to substitute for ``$item``
            command: Shell command template

        Returns:
            Summary listing each item's output files
        """
        context = self._plan(
            items,
            lambda item: expand_shell(command, item),
            self.config.shell_timeout,
        )
        return await self._execute(context, "shell commands")


class BatchAgentProcessor(_BaseProcessor):
    """Run one agent CLI per item, with ``{{item}}`` substituted into the prompt."""

    def agent_command(self, agent: Agent, prompt: str) -> str:
        prefix = agent.command_prefix(
            self.config.agent_args, self.config.extra_args_for(agent)
        )
        return f"{prefix} {shell_quote(prompt)}"

    async def process(self, items: Sequence[str], prompt: str, agent: Agent) -> RunSummary:
        """Fan an agent out across ``items``.

        Args:
            items: Items to substitute for ``{{item}}``
            prompt: Prompt template
            agent: Which agent CLI to run

        Returns:
            Summary listing each item's output files
        """
        agent = Agent(agent)
        if agent in self.config.disabled_agents:
            raise ValueError(f"Agent {agent.value!r} is disabled")
        context = self._plan(
            items,
            lambda item: self.agent_command(agent, expand_prompt(prompt, item)),
            self.config.agent_timeout,
        )
        return await self._execute(context, f"{agent.display_name} agents")
