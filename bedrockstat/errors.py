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
from enum import Enum


class ConnStatus(Enum):
    """
    Contains possible connection states.

    - `SUCCESS`: The unconnected ping succeeded (request & reply parsing OK)
    - `CONNFAIL`: The server could not be resolved or reached. Wrong hostname or port?
    - `TIMEOUT`: No reply in time. (Server offline? Firewall rules OK?)
    - `UNKNOWN`: A reply arrived, but it could not be decoded.
    """

    def __str__(self) -> str:
        return str(self.name)

    SUCCESS = 0
    """The unconnected ping succeeded (request & reply parsing OK)"""

    CONNFAIL = -1
    """The server could not be resolved or reached. (Wrong hostname or port?)"""

    TIMEOUT = -2
    """No reply in time. (Server offline? Firewall rules OK?)"""

    UNKNOWN = -3
    """A reply arrived, but it could not be decoded."""


class BedrockStatError(Exception):
    """Base class of every error raised by a status query."""

    status: ConnStatus = ConnStatus.UNKNOWN


class ResolutionError(BedrockStatError):
    """The host could not be resolved, or the socket could not reach it."""

    status = ConnStatus.CONNFAIL


class SendTimeout(BedrockStatError, TimeoutError):
    """Sending the ping did not complete within the write timeout."""

    status = ConnStatus.TIMEOUT


class ReceiveTimeout(BedrockStatError, TimeoutError):
    """No pong arrived within the read timeout."""

    status = ConnStatus.TIMEOUT


class TooShort(BedrockStatError):
    """The reply is too short to hold the server GUID."""

    def __init__(self, byte_count: int, minimum: int) -> None:
        super().__init__(
            f"reply of {byte_count} bytes is shorter than the {minimum} byte minimum"
        )
        self.byte_count = byte_count
        self.minimum = minimum


class EncodingError(BedrockStatError):
    """The reply payload is not valid UTF-8."""


class ClockError(BedrockStatError):
    """The system clock cannot be encoded as a signed 64-bit millisecond timestamp."""
