# bedrockstat - A Minecraft Bedrock server status checker
# Copyright (C) 2016-2023 Lloyd Dilley, Felix Ern (MindSolve)
# http://www.dilley.me/
#
# Secondary optimization and customization are carried out by @molanp.
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, write to the Free Software Foundation, Inc.,
# 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.
import asyncio
import functools
import logging
from time import perf_counter

from .address import resolve
from .errors import (
    BedrockStatError,
    ClockError,
    ConnStatus,
    EncodingError,
    ReceiveTimeout,
    ResolutionError,
    SendTimeout,
    TooShort,
)
from .protocol import MAX_REPLY_SIZE, build_ping, decode
from .status import Players, Server, Status, Version, map_status
from .transport import DEFAULT_TIMEOUT, exchange

__all__ = [
    "BedrockStatError",
    "ClockError",
    "ConnStatus",
    "EncodingError",
    "Players",
    "ReceiveTimeout",
    "ResolutionError",
    "SendTimeout",
    "Server",
    "Status",
    "TooShort",
    "Version",
    "async_query",
    "query",
]

VERSION = "1.0.0"
"""The bedrockstat version"""
DEFAULT_PORT_V4 = 19132
"""default UDP port for Bedrock/MCPE IPv4 servers"""
DEFAULT_PORT_V6 = 19133
"""default UDP port for Bedrock/MCPE IPv6 servers"""

logger = logging.getLogger(__name__)


def query(
    host: str,
    port: int | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    *,
    write_timeout: float | None = None,
    use_ipv6: bool = False,
    buffer_size: int = MAX_REPLY_SIZE,
) -> Status:
    """
    Query a Bedrock server (Minecraft PE, Windows 10 or Education Edition)
    with a RakNet `Unconnected Ping`.

    Nothing is retried, a lost datagram ends in `ReceiveTimeout`.

    :param host: Hostname or IP address of the Minecraft server.
    :param port: Optional port of the server. Defaults to 19132 (19133 with `use_ipv6`).
    :param timeout: Optional read timeout in seconds. Defaults to 2 seconds.
    :param write_timeout: Optional write timeout in seconds. Defaults to `timeout`.
    :param use_ipv6: Optional, whether to resolve hostnames to IPv6. Defaults to False.
    :param buffer_size: Optional receive buffer size, longer replies are truncated.
    :return: The decoded server status.
    :raises BedrockStatError: One of its subclasses, if the query failed.
    """
    if not port:
        port = DEFAULT_PORT_V6 if use_ipv6 else DEFAULT_PORT_V4

    family, sockaddr = resolve(host, port, use_ipv6)
    request = build_ping()

    start_time = perf_counter()
    byte_count, reply, remote_host = exchange(
        family,
        sockaddr,
        request,
        timeout=timeout,
        write_timeout=write_timeout,
        buffer_size=buffer_size,
    )
    latency = round((perf_counter() - start_time) * 1000)
    logger.debug("%d byte pong from %s after %dms", byte_count, remote_host, latency)

    guid, payload = decode(reply, byte_count, buffer_size)
    return map_status(host, port, remote_host, guid, payload, latency)


async def async_query(
    host: str,
    port: int | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs,
) -> Status:
    """Run `query()` in the default executor of the running event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, functools.partial(query, host, port, timeout, **kwargs)
    )
