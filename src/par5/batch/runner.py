"""Run one shell invocation with its output streamed into a pair of files."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, Tuple

from .sinks import SinkPair

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class InvocationSpec:
    """A ready-to-run command for one list item."""

    index: int
    item: str
    command: str
    sinks: SinkPair
    timeout: Optional[float] = None


@dataclass
class InvocationResult:
    """What happened to one invocation.

    ``returncode`` is recorded but never judged; a non-zero exit is a normal
    terminal state. ``error`` is only set when the process could not start.
    """

    index: int
    item: str
    sinks: SinkPair
    returncode: Optional[int] = None
    timed_out: bool = False
    error: Optional[str] = None
    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return self.finished_at - self.started_at


def _signal_group(proc: asyncio.subprocess.Process, sig: int) -> None:
    # The child leads its own session, so its pid is also its process group id.
    try:
        os.killpg(proc.pid, sig)
    except ProcessLookupError:
        pass


class _Deadline:
    """Terminates a process group once ``timeout`` seconds have passed.

    SIGTERM goes out first; SIGKILL follows if the group still exists after
    ``grace`` seconds. :meth:`cancel` disarms whatever is still pending.
    """

    def __init__(self, proc: asyncio.subprocess.Process, timeout: float, grace: float):
        self.proc = proc
        self.grace = grace
        self.fired = False
        self._loop = asyncio.get_running_loop()
        self._handles: List[asyncio.TimerHandle] = [
            self._loop.call_later(timeout, self._terminate)
        ]

    def _terminate(self) -> None:
        # Signal even if the shell itself is gone: descendants may still hold
        # the output pipes open.
        self.fired = True
        _signal_group(self.proc, signal.SIGTERM)
        self._handles.append(
            self._loop.call_later(self.grace, _signal_group, self.proc, signal.SIGKILL)
        )

    def cancel(self) -> None:
        for handle in self._handles:
            handle.cancel()


async def _pump(stream: asyncio.StreamReader, sink: BinaryIO) -> None:
    while True:
        chunk = await stream.read(CHUNK_SIZE)
        if not chunk:
            break
        sink.write(chunk)
        # Flush every chunk so the files can be tailed while the process runs.
        sink.flush()


async def run_invocation(
    spec: InvocationSpec,
    *,
    shell: str = "sh",
    kill_grace: float = 5.0,
) -> InvocationResult:
    """Execute ``spec.command`` through ``shell -c`` and wait for it to finish.

    Never raises for process-level problems: spawn failures are written to
    the stderr sink and a timed-out process is terminated, then awaited.

    Args:
        spec: Invocation to run
        shell: Shell executable used to interpret the command
        kill_grace: Seconds between SIGTERM and SIGKILL after a deadline

    Returns:
        Result describing how the invocation ended
    """
    result = InvocationResult(index=spec.index, item=spec.item, sinks=spec.sinks)

    with open(spec.sinks.stdout, "wb") as out, open(spec.sinks.stderr, "wb") as err:
        result.started_at = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                shell,
                "-c",
                spec.command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            # ValueError: the command holds a NUL byte and cannot become an argv entry.
            err.write(f"\nERROR: {exc}\n".encode("utf-8", errors="replace"))
            result.error = str(exc)
            result.finished_at = time.monotonic()
            logger.warning("Could not start command for %r: %s", spec.item, exc)
            return result

        deadline = _Deadline(proc, spec.timeout, kill_grace) if spec.timeout else None
        try:
            await asyncio.gather(
                _pump(proc.stdout, out),
                _pump(proc.stderr, err),
                proc.wait(),
            )
        finally:
            if deadline is not None:
                deadline.cancel()
            if proc.returncode is None:
                # Only reachable when this coroutine is cancelled mid-run; the
                # process is still reaped before the sinks close.
                _signal_group(proc, signal.SIGKILL)
                await asyncio.shield(proc.wait())

        result.returncode = proc.returncode
        result.timed_out = deadline is not None and deadline.fired
        result.finished_at = time.monotonic()

    if result.timed_out:
        logger.warning(
            "Command for %r exceeded its %.1fs deadline and was terminated",
            spec.item,
            spec.timeout,
        )
    logger.debug(
        "Command for %r exited with %s after %.2fs",
        spec.item,
        result.returncode,
        result.duration_seconds,
    )
    return result


async def capture_output(command: str, *, shell: str = "sh") -> Tuple[int, str, str]:
    """Run ``command`` to completion and return ``(returncode, stdout, stderr)``.

    Raises:
        OSError: if the shell could not be started
        ValueError: if ``command`` contains a NUL byte
    """
    proc = await asyncio.create_subprocess_exec(
        shell,
        "-c",
        command,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return (
        proc.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )
