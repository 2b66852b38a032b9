"""Async subprocess helper for git and package-manager commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

from patchfleet.errors import CommandError, CommandTimeoutError


async def run_command(cmd: list[str], cwd: str | Path, timeout: float | None = None) -> str:
    """Run *cmd* in *cwd* and return its stripped stdout.

    Raises ``CommandError`` on non-zero exit code and ``CommandTimeoutError``
    when *timeout* seconds pass first (the process is killed).
    """
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise CommandTimeoutError(cmd, timeout or 0) from None

    if proc.returncode != 0:
        raise CommandError(cmd, proc.returncode, stderr.decode(errors="replace"))
    return stdout.decode(errors="replace").strip()
