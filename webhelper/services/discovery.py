"""
Goal: Find the helper without knowing its port, and answer "is it alive at all".

Implements
- port_in_use(port, host) -> bool
- probe(start_port, end_port, host) -> int | None
- ProcessInspector and three implementations:
    PortProbeInspector  (default, portable: alive if a port in the band answers)
    PsutilInspector     (process table lookup for the helper executable)
    UnknownInspector    (no capability on this platform: always None)

Notes
- A port that accepts a TCP connection is taken as the helper's. We don't
  check who is actually listening.
- None from is_running() means "can't tell"; the session then skips the
  launch attempt and goes straight to discovery.
"""

from __future__ import annotations

from typing import Optional, Protocol, Tuple

import anyio
from anyio import to_thread
from loguru import logger

from webhelper.adapters.helper_process import HELPER_NAMES, helper_process_running
from webhelper.settings import PORT_RANGE

LOCALHOST = "127.0.0.1"


async def port_in_use(port: int, host: str = LOCALHOST) -> bool:
    try:
        stream = await anyio.connect_tcp(host, port)
    except OSError:
        return False
    await stream.aclose()
    return True


async def probe(
    start_port: int = PORT_RANGE[0],
    end_port: int = PORT_RANGE[1],
    host: str = LOCALHOST,
) -> Optional[int]:
    """Return the first port in [start_port, end_port] that is in use, else None."""
    if not 1 <= start_port <= end_port <= 65535:
        raise ValueError(f"invalid port range {start_port}-{end_port}")
    for port in range(start_port, end_port + 1):
        if await port_in_use(port, host):
            logger.debug("Port {} is in use", port)
            return port
    return None


class ProcessInspector(Protocol):
    async def is_running(self) -> Optional[bool]:
        ...


class PortProbeInspector:
    def __init__(self, port_range: Tuple[int, int] = PORT_RANGE, host: str = LOCALHOST) -> None:
        self.port_range = port_range
        self.host = host

    async def is_running(self) -> Optional[bool]:
        return await probe(self.port_range[0], self.port_range[1], self.host) is not None


class PsutilInspector:
    def __init__(self, names: Tuple[str, ...] = HELPER_NAMES) -> None:
        self.names = names

    async def is_running(self) -> Optional[bool]:
        return await to_thread.run_sync(helper_process_running, self.names)


class UnknownInspector:
    async def is_running(self) -> Optional[bool]:
        return None
