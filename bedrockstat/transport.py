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
import logging
import socket
from time import monotonic

from .address import resolve
from .errors import ReceiveTimeout, ResolutionError, SendTimeout
from .protocol import MAX_REPLY_SIZE

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2
"""default read and write timeout in seconds"""


def format_address(sockaddr: tuple) -> str:
    """Format a socket address as `ip:port`, or `[ip]:port` for IPv6."""
    host, port = sockaddr[0], sockaddr[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _recv_until(sock: socket.socket, deadline: float, buffer_size: int) -> tuple[bytes, tuple]:
    """
    Receive one datagram before `deadline`.

    A closed port answers with ICMP "port unreachable", which the connected
    socket reports as `ConnectionRefusedError` (or `ConnectionResetError` on
    Windows). Those do not end the wait.
    """
    while True:
        remaining = deadline - monotonic()
        if remaining <= 0:
            raise TimeoutError
        sock.settimeout(remaining)
        try:
            return sock.recvfrom(buffer_size)
        except (ConnectionRefusedError, ConnectionResetError) as e:
            logger.debug("ignoring ICMP error while waiting for pong: %s", e)


def exchange(
    family: int,
    sockaddr: tuple[str, int],
    request: bytes,
    timeout: float = DEFAULT_TIMEOUT,
    write_timeout: float | None = None,
    buffer_size: int = MAX_REPLY_SIZE,
) -> tuple[int, bytes, str]:
    """
    Send one datagram to an already resolved address and wait for exactly one reply.

    :param family: Address family of `sockaddr`.
    :param sockaddr: The `(ip, port)` to send to.
    :param request: The datagram to send.
    :param timeout: Read timeout in seconds.
    :param write_timeout: Write timeout in seconds, defaults to `timeout`.
    :param buffer_size: Size of the receive buffer, longer replies are truncated.
    :return: The received byte count, the reply and the address it came from.
    """
    if write_timeout is None:
        write_timeout = timeout

    peer = format_address(sockaddr)
    bind_address = "::" if family == socket.AF_INET6 else "0.0.0.0"

    # Create socket with type DGRAM (for UDP)
    with socket.socket(family, socket.SOCK_DGRAM, socket.IPPROTO_UDP) as sock:
        try:
            sock.bind((bind_address, 0))
            sock.connect(sockaddr)
        except OSError as e:
            raise ResolutionError(f"could not reach {peer}: {e}") from e

        sock.settimeout(write_timeout)
        try:
            sock.send(request)
        except TimeoutError as e:
            raise SendTimeout(f"sending to {peer} timed out") from e
        except OSError as e:
            raise ResolutionError(f"could not send to {peer}: {e}") from e
        logger.debug("sent %d byte ping to %s", len(request), peer)

        try:
            reply, source = _recv_until(sock, monotonic() + timeout, buffer_size)
        except TimeoutError as e:
            raise ReceiveTimeout(f"no reply from {peer} within {timeout} seconds") from e
        except OSError as e:
            raise ResolutionError(f"could not receive from {peer}: {e}") from e

    if len(reply) >= buffer_size:
        logger.warning(
            "reply from %s filled the %d byte buffer and may be truncated",
            format_address(source),
            buffer_size,
        )
    return len(reply), reply, format_address(source)


def send_and_receive(
    host: str,
    port: int,
    request: bytes,
    timeout: float = DEFAULT_TIMEOUT,
    write_timeout: float | None = None,
    use_ipv6: bool = False,
    buffer_size: int = MAX_REPLY_SIZE,
) -> tuple[int, bytes, str]:
    """Resolve the host, then `exchange()` one datagram with it."""
    family, sockaddr = resolve(host, port, use_ipv6)
    return exchange(
        family,
        sockaddr,
        request,
        timeout=timeout,
        write_timeout=write_timeout,
        buffer_size=buffer_size,
    )
