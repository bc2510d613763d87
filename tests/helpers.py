import socket
import struct
import threading

from bedrockstat.protocol import ID_UNCONNECTED_PONG, RAKNET_MAGIC

GOLDEN_PAYLOAD = (
    "MCPE;Dedicated Server;475;1.18.0;5;20;1234567890;Bedrock level;Survival;1;19132;19133;"
)
GOLDEN_GUID = 1234567890


def build_pong(server_id: str, guid: int = GOLDEN_GUID, client_time: int = 0) -> bytes:
    """Build an Unconnected Pong the way a Bedrock server sends it."""
    name_bytes = server_id.encode("utf-8")

    buf = bytearray()
    buf.append(ID_UNCONNECTED_PONG)
    buf.extend(struct.pack(">q", client_time))
    buf.extend(struct.pack(">q", guid))
    buf.extend(RAKNET_MAGIC)
    buf.extend(struct.pack(">H", len(name_bytes)))
    buf.extend(name_bytes)
    return bytes(buf)


def build_echo_pong(payload: bytes, guid: int = GOLDEN_GUID, client_time: int = 0) -> bytes:
    """Pong with a second copy of the server GUID in place of the string length."""
    buf = bytearray()
    buf.append(ID_UNCONNECTED_PONG)
    buf.extend(struct.pack(">q", client_time))
    buf.extend(struct.pack(">q", guid))
    buf.extend(RAKNET_MAGIC)
    buf.extend(struct.pack(">q", guid))
    buf.extend(payload)
    return bytes(buf)


class FakeBedrockServer(threading.Thread):
    """Answers a single ping on the loopback interface."""

    def __init__(self, reply: bytes | None = None, silent: bool = False):
        super().__init__(daemon=True)
        self.reply = build_pong(GOLDEN_PAYLOAD) if reply is None else reply
        self.silent = silent
        self.requests = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(5)
        self.port = self.sock.getsockname()[1]

    def run(self):
        try:
            data, addr = self.sock.recvfrom(2048)
        except OSError:
            return
        self.requests.append(data)
        if not self.silent:
            self.sock.sendto(self.reply, addr)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.join(timeout=6)
        self.sock.close()
