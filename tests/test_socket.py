"""Tests for the transport and the block framing"""
from struct import unpack

import pytest

from monetmapi.errors import ConnectionError, QueryError
from monetmapi.globals import MAX_MSG_SIZE
from monetmapi.MapiSocket import MapiSocket, Client, encode_header, decode_header

from tests.mock import MockSock, frame


def _client(responses=(), raw=b'', recv_size=None, max_reads=1000, server=None):
    sock = server.add(responses, raw=raw, recv_size=recv_size)
    return Client(MapiSocket('localhost', 50000), max_reads=max_reads), sock


def _round_trip(server, message):
    client, sock = _client(server=server)
    client.write(message)
    sock.inbound += sock.outbound
    return client.read()


class TestHeaders:

    @pytest.mark.parametrize("length, last", [(0, True), (0, False), (1, True), (44, False),
                                              (MAX_MSG_SIZE, False), (MAX_MSG_SIZE, True)])
    def test_header_round_trip(self, length, last):
        assert decode_header(encode_header(length, last)) == (length, last)

    def test_header_is_little_endian(self):
        # 66 bytes, more to come
        assert encode_header(66, False) == b'\x84\x00'
        assert decode_header(b'\x85\x00') == (66, True)

    def test_known_credentials_header(self):
        message = "BIG:monetdb:{MD5}6432e841c9943d524b9b922ee1e5924a:sql:test_drive:"
        assert Client(None).pack(message) == [b'\x83\x00' + message.encode()]


class TestPack:

    def test_empty_message_is_one_last_block(self):
        assert Client(None).pack("") == [b'\x01\x00']

    def test_length_counts_bytes_not_characters(self):
        message = "Message with multibyte chars: ✷"
        blocks = Client(None).pack(message)
        assert len(blocks) == 1
        assert unpack('<H', blocks[0][:2])[0] == (len(message.encode('utf8')) << 1) | 1

    def test_split_at_max_block_size(self):
        blocks = Client(None).pack("x" * (MAX_MSG_SIZE + 1))
        assert [decode_header(block[:2]) for block in blocks] == [(MAX_MSG_SIZE, False), (1, True)]
        assert b''.join(block[2:] for block in blocks) == b"x" * (MAX_MSG_SIZE + 1)


class TestRoundTrip:

    @pytest.mark.parametrize("size", [0, MAX_MSG_SIZE - 1, MAX_MSG_SIZE, MAX_MSG_SIZE + 1, 3 * MAX_MSG_SIZE + 7])
    def test_sizes(self, server, size):
        payload = bytes(i % 251 for i in range(size))
        assert _round_trip(server, payload) == payload

    def test_multibyte_across_block_boundary(self, server):
        # a 3 byte character starts one byte before the block ends
        message = "a" * (MAX_MSG_SIZE - 1) + "✷✷✷ done"
        client, sock = _client(server=server)
        client.write(message)
        sock.inbound += sock.outbound
        assert client.get_response() == message


class TestClient:

    def test_reads_two_blocks(self, server):
        first_chunk, last_chunk = b" " * 44, b" " * 22
        client, _ = _client(server=server, raw=encode_header(44, False) + first_chunk + encode_header(22, True) + last_chunk)
        assert client.read() == first_chunk + last_chunk

    def test_short_reads_are_joined(self, server):
        client, _ = _client(["hello world"], server=server, recv_size=3)
        assert client.get_response() == "hello world"

    def test_read_bound(self, server):
        client, _ = _client(["hello world"], server=server, recv_size=1, max_reads=4)
        with pytest.raises(ConnectionError):
            client.get_response()

    def test_peer_closes_mid_block(self, server):
        client, _ = _client(server=server, raw=encode_header(10, True) + b"abc")
        with pytest.raises(ConnectionError):
            client.get_response()

    def test_invalid_utf8(self, server):
        client, _ = _client(server=server, raw=frame(b"ab\xffcd"))
        with pytest.raises(QueryError, match="not valid utf8"):
            client.get_response()

    def test_send_string_returns_response(self, server):
        client, sock = _client(["&3"], server=server)
        assert client.send_string("sCREATE TABLE t (i int);") == "&3"
        assert sock.sent == ["sCREATE TABLE t (i int);"]

    def test_send_string_without_response(self, server):
        client, sock = _client(server=server)
        assert client.send_string("Xreply_size -1\n", get_response=False) is None
        assert sock.outbound == frame("Xreply_size -1\n")


class TestMapiSocket:

    def test_refused(self, server):
        with pytest.raises(ConnectionError, match="refused"):
            MapiSocket('localhost', 6000)

    def test_timeout_is_passed_on(self, server):
        sock = server.add()
        MapiSocket('localhost', 50000, timeout=2.5)
        assert sock.timeout == 2.5

    def test_send_on_broken_socket(self, server):
        sock = server.add()
        transport = MapiSocket('localhost', 50000)
        sock.close()
        with pytest.raises(ConnectionError):
            transport.send(b"x")

    def test_close_is_idempotent(self, server):
        sock = server.add()
        transport = MapiSocket('localhost', 50000)
        transport.close()
        transport.close()
        assert sock.closed
        assert transport.s is None

    def test_receive_exact(self):
        transport = MapiSocket.__new__(MapiSocket)
        transport.s = MockSock(raw=b"abcdef", recv_size=2)
        assert transport.receive(5) == b"abcde"
