"""Credential file access for quotabar.

quotabar never stores credentials itself; it reads the files the provider
CLIs already maintain. All file access runs in a worker thread so the event
loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

KEYCHAIN_TIMEOUT_SECONDS = 2.0


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError:
        return None


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


async def read_credential(path: Path) -> bytes | None:
    """Read a credential file; None if missing or unreadable."""
    return await asyncio.to_thread(_read_bytes, path)


async def credential_mtime(path: Path) -> float | None:
    """Modification time of a credential file; None if missing."""
    return await asyncio.to_thread(_mtime, path)


async def credential_exists(path: Path) -> bool:
    """Check whether a credential file exists."""
    return await credential_mtime(path) is not None


async def read_keychain_password(service: str) -> str | None:
    """Read a generic password from the macOS keychain.

    Returns None on other platforms or when the item does not exist.
    """
    if sys.platform != "darwin":
        return None

    try:
        proc = await asyncio.create_subprocess_exec(
            "security",
            "find-generic-password",
            "-s",
            service,
            "-w",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError:
        return None

    try:
        stdout, _ = await asyncio.wait_for(
            proc.communicate(), timeout=KEYCHAIN_TIMEOUT_SECONDS
        )
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.debug("keychain lookup for %s timed out", service)
        return None

    if proc.returncode != 0:
        return None
    return stdout.decode("utf-8", errors="replace").strip() or None
