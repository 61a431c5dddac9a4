"""Command execution for shhoook.

run_command() spawns argv[0] with argv[1:] — never through a shell — with an
environment reduced to a single PATH entry, and waits for it under a
deadline.

Output capture:
  stdout and stderr share ONE pipe (stderr=STDOUT), so the captured bytes are
  in the order the child wrote them. Ordering between the two streams is
  best-effort: the child's own stdio buffering decides when bytes hit the pipe.

Deadline / cancellation:
  The child runs in its own session (process group). When the deadline
  expires, or the awaiting task is cancelled (client went away), the whole
  group gets SIGKILL, so grandchildren such as ``bash -lc "sleep 5"`` die too
  and cannot hold the pipe open. Output captured before the kill is kept.

Failure semantics (no exceptions — callers inspect ExecutionResult):
  exit 0 in time → ok=True
  non-zero exit  → ok=False, output as captured
  deadline       → ok=False, timed_out=True, output + TIMEOUT_MARKER
  spawn failure  → ok=False, returncode=None, output = error description
                   (missing executable, or argv holding NUL / unencodable text)

Every call is a single attempt — nothing is retried.
"""

from __future__ import annotations

import asyncio
import os
import signal
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from shhoook.constants import OUTPUT_CHUNK_BYTES, SANDBOX_PATH, TIMEOUT_MARKER
from shhoook.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one command run."""

    output: bytes
    returncode: Optional[int]
    timed_out: bool = False
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def sandbox_env() -> dict[str, str]:
    """The complete environment handed to every child process."""
    return {"PATH": SANDBOX_PATH}


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    # The leader may already be gone while grandchildren still hold the pipe.
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        if proc.returncode is None:
            proc.kill()


async def _drain(stream: asyncio.StreamReader, sink: bytearray) -> None:
    while True:
        chunk = await stream.read(OUTPUT_CHUNK_BYTES)
        if not chunk:
            return
        sink.extend(chunk)


async def _reap(proc: asyncio.subprocess.Process, reader: "asyncio.Task[None]") -> None:
    """Kill the process group, wait for exit, stop draining."""
    _kill_group(proc)
    await proc.wait()
    reader.cancel()
    try:
        await reader
    except asyncio.CancelledError:
        pass


async def run_command(argv: Sequence[str], timeout: float) -> ExecutionResult:
    """Run argv under a deadline and capture combined output.

    Args:
        argv:    Expanded argument vector; argv[0] is the executable.
        timeout: Deadline in seconds.

    Raises:
        asyncio.CancelledError: propagated after the child has been killed.
    """
    started = time.perf_counter()

    def _elapsed_ms() -> float:
        return (time.perf_counter() - started) * 1000

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=sandbox_env(),
            start_new_session=True,
        )
    except (OSError, ValueError) as exc:
        # ValueError covers argv the OS cannot take: embedded NUL bytes, and
        # lone surrogates (UnicodeEncodeError) from decoded JSON bodies.
        reason = getattr(exc, "strerror", None) or str(exc)
        logger.warning(
            "process_spawn_failed",
            executable=argv[0],
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return ExecutionResult(
            output=f"exec {argv[0]}: {reason}\n".encode("utf-8", "backslashreplace"),
            returncode=None,
            duration_ms=_elapsed_ms(),
        )

    logger.info("process_spawned", executable=argv[0], pid=proc.pid, timeout_s=timeout)

    captured = bytearray()
    assert proc.stdout is not None
    reader = asyncio.ensure_future(_drain(proc.stdout, captured))

    try:
        await asyncio.wait_for(asyncio.shield(reader), timeout=timeout)
        remaining = max(timeout - (time.perf_counter() - started), 0.0)
        await asyncio.wait_for(proc.wait(), timeout=remaining)
    except asyncio.TimeoutError:
        await _reap(proc, reader)
        duration_ms = _elapsed_ms()
        logger.warning(
            "process_timed_out",
            executable=argv[0],
            pid=proc.pid,
            timeout_s=timeout,
            output_bytes=len(captured),
            duration_ms=round(duration_ms, 1),
        )
        return ExecutionResult(
            output=bytes(captured) + TIMEOUT_MARKER,
            returncode=proc.returncode,
            timed_out=True,
            duration_ms=duration_ms,
        )
    except asyncio.CancelledError:
        await _reap(proc, reader)
        logger.info("process_aborted", executable=argv[0], pid=proc.pid)
        raise

    duration_ms = _elapsed_ms()
    logger.info(
        "process_finished",
        executable=argv[0],
        pid=proc.pid,
        returncode=proc.returncode,
        output_bytes=len(captured),
        duration_ms=round(duration_ms, 1),
    )
    return ExecutionResult(
        output=bytes(captured),
        returncode=proc.returncode,
        duration_ms=duration_ms,
    )
