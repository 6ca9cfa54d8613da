"""Per-run output directories and per-item stdout/stderr file names."""

from __future__ import annotations

import logging
import posixpath
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
STDOUT_SUFFIX = ".stdout.txt"
STDERR_SUFFIX = ".stderr.txt"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def safe_filename(item: str) -> str:
    """Derive a filesystem-safe base name from an item.

    Takes the last path segment, replaces anything outside
    ``[A-Za-z0-9._-]`` with ``_`` and truncates to ``MAX_NAME_LENGTH``.
    Distinct items can map to the same name; the later writer wins.
    """
    name = posixpath.basename(item.rstrip("/"))
    name = _UNSAFE_CHARS.sub("_", name)[:MAX_NAME_LENGTH]
    return name or "_"


@dataclass(frozen=True)
class SinkPair:
    """The stdout and stderr files that receive one invocation's output."""

    stdout: Path
    stderr: Path

    def to_dict(self) -> Dict[str, str]:
        return {"stdout": str(self.stdout), "stderr": str(self.stderr)}


class SinkAllocator:
    """Allocates output files under ``<results_root>/<run_id>/``."""

    def __init__(self, results_root: str | Path):
        self.results_root = Path(results_root)

    @staticmethod
    def new_run_id() -> str:
        return str(uuid.uuid4())

    def run_dir(self, run_id: str) -> Path:
        return self.results_root / run_id

    def prepare(self, run_id: str) -> Path:
        """Create the run directory (and parents) before anything runs."""
        run_dir = self.run_dir(run_id)
        run_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Prepared run directory %s", run_dir)
        return run_dir

    def allocate(self, run_id: str, item: str) -> SinkPair:
        base = safe_filename(item)
        run_dir = self.run_dir(run_id)
        return SinkPair(
            stdout=run_dir / f"{base}{STDOUT_SUFFIX}",
            stderr=run_dir / f"{base}{STDERR_SUFFIX}",
        )
