"""Global test configurations and fixtures"""
import socket
from datetime import timedelta

import pytest

from monetmapi import connection as connection_module
from monetmapi.config import ConnectionConfig
from monetmapi.connection import Connection

from tests.mock import MockServer, handshake


DEFAULT_HOST = "localhost"
DEFAULT_PORT = 50000
DEFAULT_DATABASE = "demo"
DEFAULT_USERNAME = "monetdb"
DEFAULT_PASSWORD = "monetdb"


@pytest.fixture(name='server')
def mock_server(monkeypatch):
    """Fixture that routes every socket.create_connection to a MockServer"""
    server = MockServer()
    monkeypatch.setattr(socket, "create_connection", server.create_connection)
    yield server


@pytest.fixture(autouse=True)
def fixed_utc_offset(monkeypatch):
    """Pin the local UTC offset so the timezone command is predictable"""
    monkeypatch.setattr(connection_module, "local_utc_offset", lambda: timedelta(hours=2))


@pytest.fixture(name='config')
def connection_config():
    yield ConnectionConfig(host=DEFAULT_HOST, port=DEFAULT_PORT, database=DEFAULT_DATABASE,
                           username=DEFAULT_USERNAME, password=DEFAULT_PASSWORD)


@pytest.fixture(name='conn')
def monetdb_connection(server, config):
    """Fixture that creates a connected Connection over a mock socket.

    The socket is exposed as ``conn.mock``; queue query responses with
    ``conn.mock.inbound += frame(...)``.
    """
    sock = server.add(handshake())
    connection = Connection(config)
    connection.connect()
    connection.mock = sock
    yield connection
    connection.disconnect()
