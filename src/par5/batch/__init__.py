"""Batched parallel execution engine for par5.

Provides:
- Template expansion of list items into shell commands or agent prompts
- Per-run output directories with one stdout/stderr file pair per item
- Group-by-group process execution with bounded concurrency and deadlines
- A summary of where every item's output was written
"""

from __future__ import annotations

from .processors import BatchAgentProcessor, BatchShellProcessor
from .progress import ProgressTracker
from .report import RunSummary, build_summary
from .runner import InvocationResult, InvocationSpec, capture_output, run_invocation
from .scheduler import BatchScheduler, RunContext, partition
from .sinks import SinkAllocator, SinkPair, safe_filename
from .templates import expand_prompt, expand_shell, shell_quote

__all__ = [
    "BatchShellProcessor",
    "BatchAgentProcessor",
    "BatchScheduler",
    "RunContext",
    "partition",
    "InvocationSpec",
    "InvocationResult",
    "run_invocation",
    "capture_output",
    "SinkAllocator",
    "SinkPair",
    "safe_filename",
    "RunSummary",
    "build_summary",
    "ProgressTracker",
    "expand_shell",
    "expand_prompt",
    "shell_quote",
]
