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
from dataclasses import dataclass
import re

MOTD_INDEX = [
    "edition",
    "motd_1",
    "protocol_version",
    "version",
    "current_players",
    "max_players",
    "server_uid",
    "motd_2",
    "gamemode",
]
"""order of the `;` separated fields of the server ID string"""

DEFAULT_PROTOCOL = 1
UNKNOWN_PLAYERS = -1

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def motd_strip_formatting(raw_motd: str) -> str:
    """Strip the `§` formatting codes from a MOTD line."""
    return re.sub(r"§.", "", raw_motd)


def split_fields(payload: str) -> list[str]:
    """Split the server ID string into exactly 9 fields, missing ones are empty."""
    parts = payload.split(";")[: len(MOTD_INDEX)]
    return parts + [""] * (len(MOTD_INDEX) - len(parts))


def parse_int(token: str, default: int) -> int:
    """Parse a signed 32-bit decimal field, returning `default` if it is not one."""
    if not _INT_PATTERN.fullmatch(token):
        return default
    value = int(token)
    if not _INT32_MIN <= value <= _INT32_MAX:
        return default
    return value


@dataclass(frozen=True)
class Server:
    host: str
    """hostname or IP address the query was sent to"""
    port: int
    """port the query was sent to"""
    remote_host: str
    """address the reply actually came from, as `ip:port`"""
    guid: int
    """server GUID from the binary pong header"""
    edition: str
    """`MCPE` or `MCEE`"""
    motd: tuple[str, str]
    """message of the day, line 1 and line 2 (the level name on vanilla servers)"""
    server_uid: str = ""
    """server unique id as sent in the server ID string, may differ from `guid`"""
    gamemode: str = ""
    """current game mode (Creative/Survival/Adventure), empty on older servers"""

    @property
    def stripped_motd(self) -> tuple[str, str]:
        """message of the day, stripped of all formatting ("human-readable")"""
        return (
            motd_strip_formatting(self.motd[0]),
            motd_strip_formatting(self.motd[1]),
        )

    @property
    def guid_matches(self) -> bool:
        # Several server implementations send a different id in the string.
        return self.server_uid == str(self.guid)


@dataclass(frozen=True)
class Version:
    protocol: int
    """network protocol version, `1` if the server sent none"""
    name: str
    """game version, e.g. `1.20.81`"""


@dataclass(frozen=True)
class Players:
    online: int
    """current number of players online, `-1` if unknown"""
    max: int
    """maximum player capacity, `-1` if unknown"""


@dataclass(frozen=True)
class Status:
    server: Server
    version: Version
    players: Players
    latency: int | None = None
    """ping time to server in milliseconds"""


def map_status(
    host: str,
    port: int,
    remote_host: str,
    guid: int,
    payload: str,
    latency: int | None = None,
) -> Status:
    """
    Build a `Status` from a decoded pong.

    Numeric fields that are missing or malformed fall back to their defaults
    instead of failing the query.
    """
    payload_dict = dict(zip(MOTD_INDEX, split_fields(payload)))

    return Status(
        server=Server(
            host=host,
            port=port,
            remote_host=remote_host,
            guid=guid,
            edition=payload_dict["edition"],
            motd=(payload_dict["motd_1"], payload_dict["motd_2"]),
            server_uid=payload_dict["server_uid"],
            gamemode=payload_dict["gamemode"],
        ),
        version=Version(
            protocol=parse_int(payload_dict["protocol_version"], DEFAULT_PROTOCOL),
            name=payload_dict["version"],
        ),
        players=Players(
            online=parse_int(payload_dict["current_players"], UNKNOWN_PLAYERS),
            max=parse_int(payload_dict["max_players"], UNKNOWN_PLAYERS),
        ),
        latency=latency,
    )
