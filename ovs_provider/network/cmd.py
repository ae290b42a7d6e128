"""Shared async command utilities for switch and tap adapters."""

import asyncio


async def run_cmd(cmd: list[str]) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Command and arguments as list

    Returns:
        Tuple of (return_code, stdout, stderr)
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return (
        process.returncode or 0,
        stdout.decode(errors="replace"),
        stderr.decode(errors="replace"),
    )


def with_sudo(cmd: list[str], use_sudo: bool) -> list[str]:
    """Prefix a command with sudo when privilege escalation is enabled."""
    return ["sudo", *cmd] if use_sudo else list(cmd)
