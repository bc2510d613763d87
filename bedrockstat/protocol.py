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
"""
RakNet `Unconnected Ping` / `Unconnected Pong` wire format.

See https://wiki.vg/Raknet_Protocol#Unconnected_Ping
"""
import codecs
import logging
import random
import struct
from time import time

from .errors import ClockError, EncodingError, TooShort

logger = logging.getLogger(__name__)

# RakNet MAGIC (0x00ffff00fefefefefdfdfdfd12345678)
RAKNET_MAGIC = bytes(
    [
        0x00,
        0xFF,
        0xFF,
        0x00,
        0xFE,
        0xFE,
        0xFE,
        0xFE,
        0xFD,
        0xFD,
        0xFD,
        0xFD,
        0x12,
        0x34,
        0x56,
        0x78,
    ]
)

ID_UNCONNECTED_PING = 0x01
ID_UNCONNECTED_PONG = 0x1C

PING_SIZE = 1 + 8 + 16 + 8
"""id, timestamp, magic, client GUID"""

GUID_OFFSET = 1 + 8
MIN_REPLY_SIZE = GUID_OFFSET + 8
"""smallest reply that still holds the server GUID"""

STRING_LENGTH_OFFSET = GUID_OFFSET + 8 + 16
"""RakNet pongs: big-endian short length of the server ID string"""

STRING_OFFSET = STRING_LENGTH_OFFSET + 2
HEADER_SIZE = GUID_OFFSET + 8 + 16 + 8
"""id, timestamp, server GUID, magic, server GUID echo"""

MAX_REPLY_SIZE = 2048
"""receive buffer size, longer pongs are truncated to this many bytes"""


def build_ping(now: float | None = None, guid: bytes | int | None = None) -> bytes:
    """
    Construct the `Unconnected Ping` packet.

    :param now: Optional wall-clock time in seconds. Defaults to `time.time()`.
    :param guid: Optional client GUID, 8 bytes or an unsigned 64-bit int. Random by default.
    :return: The 33 byte datagram.
    """
    if now is None:
        now = time()
    if guid is None:
        guid = random.getrandbits(64)
    if isinstance(guid, int):
        guid = guid.to_bytes(8, "big")
    if len(guid) != 8:
        raise ValueError("client GUID must be 8 bytes long")

    millis = int(now * 1000)
    if millis < 0:
        raise ClockError(f"system time {now!r} lies before the unix epoch")

    # Packet ID - 0x01
    req_data = bytearray([ID_UNCONNECTED_PING])
    # current unix timestamp in ms as signed long (64-bit) BE-encoded
    try:
        req_data += struct.pack(">q", millis)
    except struct.error as e:
        raise ClockError(f"system time {now!r} does not fit a signed 64-bit timestamp") from e
    req_data += RAKNET_MAGIC
    req_data += guid

    return bytes(req_data)


def payload_offset(raw: bytes, byte_count: int, truncated: bool = False) -> int:
    """
    Locate the server ID string inside a pong.

    A RakNet pong prefixes the string with its length at offset 33. When that
    length matches the rest of the datagram the string starts at offset 35,
    otherwise the fixed 41 byte header is skipped. A truncated datagram only
    needs a length that reaches past its end.
    """
    if byte_count >= STRING_OFFSET:
        (declared,) = struct.unpack(
            ">H", raw[STRING_LENGTH_OFFSET:STRING_OFFSET]
        )
        remaining = byte_count - STRING_OFFSET
        if declared == remaining or (truncated and declared > remaining):
            return STRING_OFFSET

    logger.debug("no length-prefixed server ID, skipping %d byte header", HEADER_SIZE)
    return HEADER_SIZE


def decode(
    raw: bytes, byte_count: int | None = None, buffer_size: int = MAX_REPLY_SIZE
) -> tuple[int, str]:
    """
    Decode an `Unconnected Pong` packet.

    response packet:
    byte - 0x1C - Unconnected Pong
    long - timestamp
    long - server GUID
    16 byte - magic
    short - Server ID string length
    string - Server ID string

    :param raw: The received datagram.
    :param byte_count: Number of valid bytes in `raw`. Defaults to `len(raw)`.
    :param buffer_size: Size of the receive buffer, a reply filling it counts as truncated.
    :return: The server GUID and the (possibly empty) server ID string.
    """
    if byte_count is None or byte_count > len(raw):
        byte_count = len(raw)

    if byte_count < MIN_REPLY_SIZE:
        raise TooShort(byte_count, MIN_REPLY_SIZE)

    # Server GUID
    (guid,) = struct.unpack(">q", raw[GUID_OFFSET:MIN_REPLY_SIZE])

    truncated = byte_count >= buffer_size
    start = payload_offset(raw, byte_count, truncated)
    if byte_count <= start:
        return guid, ""

    # a truncated string may end inside a multi-byte character, which is dropped
    decoder = codecs.getincrementaldecoder("utf8")()
    try:
        payload = decoder.decode(bytes(raw[start:byte_count]), final=not truncated)
    except UnicodeDecodeError as e:
        raise EncodingError(f"server ID string is not valid UTF-8: {e}") from e

    return guid, payload
