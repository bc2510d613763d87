import struct
import unittest

from bedrockstat.errors import ClockError, EncodingError, TooShort
from bedrockstat.protocol import (
    HEADER_SIZE,
    MAX_REPLY_SIZE,
    PING_SIZE,
    RAKNET_MAGIC,
    build_ping,
    decode,
)

from tests.helpers import GOLDEN_GUID, GOLDEN_PAYLOAD, build_echo_pong, build_pong


class TestBuildPing(unittest.TestCase):
    def test_layout(self):
        ping = build_ping()
        self.assertEqual(len(ping), PING_SIZE)
        self.assertEqual(len(ping), 33)
        self.assertEqual(ping[0], 0x01)
        self.assertEqual(ping[9:25], RAKNET_MAGIC)
        self.assertEqual(RAKNET_MAGIC.hex(), "00ffff00fefefefefdfdfdfd12345678")

    def test_timestamp_is_big_endian_millis(self):
        ping = build_ping(now=1700000000.25)
        self.assertEqual(struct.unpack(">q", ping[1:9])[0], 1700000000250)

    def test_client_guid(self):
        self.assertEqual(build_ping(guid=b"\x04" * 8)[25:], b"\x04" * 8)
        self.assertEqual(build_ping(guid=1)[25:], b"\x00" * 7 + b"\x01")

    def test_client_guid_is_random(self):
        guids = {build_ping()[25:] for _ in range(8)}
        self.assertGreater(len(guids), 1)

    def test_bad_guid_length(self):
        with self.assertRaises(ValueError):
            build_ping(guid=b"\x01\x02")

    def test_unrepresentable_clock(self):
        with self.assertRaises(ClockError):
            build_ping(now=1e17)
        with self.assertRaises(ClockError):
            build_ping(now=-1.0)


class TestDecode(unittest.TestCase):
    def test_too_short(self):
        for size in range(17):
            with self.assertRaises(TooShort):
                decode(bytes(size))

    def test_short_header_has_empty_payload(self):
        for size in range(17, HEADER_SIZE + 1):
            guid, payload = decode(bytes(size))
            self.assertEqual(guid, 0)
            self.assertEqual(payload, "")

    def test_guid_is_signed(self):
        raw = bytearray(17)
        raw[9:17] = struct.pack(">q", -42)
        self.assertEqual(decode(bytes(raw))[0], -42)

    def test_golden_pong(self):
        guid, payload = decode(build_pong(GOLDEN_PAYLOAD))
        self.assertEqual(guid, GOLDEN_GUID)
        self.assertEqual(payload, GOLDEN_PAYLOAD)

    def test_pong_with_guid_echo(self):
        guid, payload = decode(build_echo_pong(GOLDEN_PAYLOAD.encode()))
        self.assertEqual(guid, GOLDEN_GUID)
        self.assertEqual(payload, GOLDEN_PAYLOAD)

    def test_byte_count_limits_payload(self):
        raw = build_echo_pong(b"MCPE;motd") + b"garbage"
        _, payload = decode(raw, HEADER_SIZE + 9)
        self.assertEqual(payload, "MCPE;motd")

    def test_byte_count_is_clamped(self):
        raw = build_pong("MCPE")
        self.assertEqual(decode(raw, 4096)[1], "MCPE")

    def test_invalid_utf8(self):
        with self.assertRaises(EncodingError):
            decode(build_echo_pong(b"MCPE;\xff\xfe"))

    def test_truncated_pong_keeps_leading_fields(self):
        server_id = "MCPE;" + "x" * 3000 + ";475;1.18.0;5;20"
        raw = build_pong(server_id)[:MAX_REPLY_SIZE]

        _, payload = decode(raw, MAX_REPLY_SIZE)
        self.assertTrue(payload.startswith("MCPE;xxx"))
        self.assertEqual(payload, server_id[: MAX_REPLY_SIZE - 35])

    def test_truncated_pong_drops_partial_character(self):
        server_id = "MCPE;" + "é" * 100
        raw = build_pong(server_id)[:65]

        _, payload = decode(raw, 65, buffer_size=65)
        self.assertEqual(payload, "MCPE;" + "é" * 12)

    def test_short_reply_with_matching_length_field(self):
        raw = bytearray(40)
        raw[33:35] = struct.pack(">H", 5)
        raw[35:40] = b"MCPE;"
        self.assertEqual(decode(bytes(raw)), (0, "MCPE;"))

        raw[33:35] = struct.pack(">H", 4)
        self.assertEqual(decode(bytes(raw)), (0, ""))

    def test_multibyte_motd(self):
        _, payload = decode(build_pong("MCPE;§a服务器;475"))
        self.assertEqual(payload, "MCPE;§a服务器;475")


if __name__ == "__main__":
    unittest.main()
