from monetmapi.errors import ConnectionError, QueryError
from monetmapi.globals import ENCODING, MAX_MSG_SIZE, MAX_READS
from monetmapi.logger import log_and_raise, logger
import logging
import socket
from struct import pack, unpack


def encode_header(length, last):
    ''' 2 byte little endian block header: length in the upper 15 bits, last-block flag in bit 0 '''

    return pack('<H', (length << 1) | (1 if last else 0))


def decode_header(header):
    ''' Inverse of encode_header, returns (length, last) '''

    value = unpack('<H', header)[0]
    return value >> 1, (value & 1) == 1


class MapiSocket:
    ''' Plain TCP socket, byte-exact send and receive, no framing '''

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.s = None
        self._setup_socket(host, port)

    def _setup_socket(self, host, port):

        try:
            self.s = socket.create_connection((host, port), timeout=self.timeout)
        except ConnectionRefusedError as e:
            log_and_raise(ConnectionError, f"Connection refused by {host}:{port}, perhaps wrong port?", e)
        except socket.timeout as e:
            log_and_raise(ConnectionError, f"Timeout when connecting to {host}:{port}, perhaps wrong host?", e)
        except OSError as e:
            log_and_raise(ConnectionError, f"Unable to connect to {host}:{port}: {e}", e)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f'Socket opened to {host}:{port}')

    def send(self, data):

        try:
            self.s.sendall(data)
        except OSError as e:
            log_and_raise(ConnectionError, f"MonetDB connection interrupted while sending: {e}", e)

    def receive(self, byte_num, max_reads=None):
        ''' Read exactly byte_num bytes, looping on short reads '''

        data = bytearray(byte_num)
        view = memoryview(data)
        reads = 0

        while view:
            if max_reads is not None and reads >= max_reads:
                log_and_raise(ConnectionError,
                              f'Gave up reading {byte_num} bytes after {reads} reads, {len(view)} bytes missing')
            try:
                received = self.s.recv_into(view)
            except OSError as e:
                log_and_raise(ConnectionError, f"MonetDB connection interrupted while receiving: {e}", e)
            if received == 0:
                log_and_raise(ConnectionError, 'MonetDB connection interrupted - 0 returned by socket')
            view = view[received:]
            reads += 1

        return bytes(data)

    def close(self):

        if self.s is None:
            return
        try:
            self.s.close()
        finally:
            self.s = None


class Client:
    ''' Block protocol on top of a MapiSocket '''

    def __init__(self, socket, max_reads=MAX_READS):
        self.socket = socket
        self.max_reads = max_reads

    def pack(self, message):
        ''' Split a message into header-prefixed blocks of at most MAX_MSG_SIZE payload bytes '''

        data = message.encode(ENCODING) if isinstance(message, str) else bytes(message)
        chunks = [data[i:i + MAX_MSG_SIZE] for i in range(0, len(data), MAX_MSG_SIZE)] or [b'']

        return [encode_header(len(chunk), idx == len(chunks) - 1) + chunk
                for idx, chunk in enumerate(chunks)]

    def write(self, message):

        for block in self.pack(message):
            self.socket.send(block)

    def read_block(self):
        ''' Read one block, returns (payload, last) '''

        length, last = decode_header(self.socket.receive(2, max_reads=self.max_reads))
        payload = self.socket.receive(length, max_reads=self.max_reads) if length else b''

        return payload, last

    def read(self):
        ''' Reassemble blocks up to and including the last one, as raw bytes '''

        data = bytearray()
        last = False
        while not last:
            payload, last = self.read_block()
            data += payload

        return bytes(data)

    def get_response(self):
        ''' Full response as text. Decoded once, after reassembly, so multi-byte
            characters split over two blocks come out whole '''

        data = self.read()
        try:
            response = data.decode(ENCODING)
        except UnicodeDecodeError as e:
            snippet = data[max(e.start - 20, 0):e.end + 20]
            log_and_raise(QueryError, f'Response is not valid {ENCODING}: {snippet!r}', e)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f'response received: {response[:200]!r}')

        return response

    def send_string(self, cmd, get_response=True):
        ''' Send a message and optionally return the response '''

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f'string sent: {cmd[:200]!r}')
        self.write(cmd)

        if get_response:
            return self.get_response()
