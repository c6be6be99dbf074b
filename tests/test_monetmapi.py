"""Tests for the module level API: connect, registry and logging switches"""
from datetime import date, datetime

import pytest

import monetmapi
from monetmapi import ConnectionConfig, ConnectionRegistry
from monetmapi.errors import ConnectionError, ProgrammingError
from monetmapi.logger import logger

from tests.mock import handshake


class TestConnect:

    def test_connect(self, server):
        sock = server.add(handshake())
        conn = monetmapi.connect(database="demo")
        assert conn.connected
        assert conn.config.database == "demo"
        assert sock.sent[0].endswith(":sql:demo:")
        conn.close()
        assert sock.closed

    def test_string_port(self, server):
        server.add(handshake(), port=50001)
        conn = monetmapi.connect(port="50001")
        assert conn.config.port == 50001

    def test_extra_options(self, server):
        sock = server.add(handshake())
        monetmapi.connect(reply_size=250, timeout=3)
        assert sock.timeout == 3
        assert sock.sent[-1] == "Xreply_size 250\n"

    def test_reconnect_must_be_bool(self):
        with pytest.raises(ProgrammingError):
            monetmapi.connect(reconnect="yes")

    def test_refused(self, server):
        with pytest.raises(ConnectionError):
            monetmapi.connect()


class TestConnectionRegistry:

    CONFIGURATIONS = {
        "development": {"host": "localhost", "port": "50000", "database": "dev"},
        "replica": ConnectionConfig(host="replica", port=50001, database="prod"),
    }

    def test_named_configuration(self, server):
        sock = server.add(handshake())
        registry = ConnectionRegistry(self.CONFIGURATIONS)
        conn = registry.establish_connection("development")
        assert conn.config.port == 50000
        assert sock.sent[0].endswith(":sql:dev:")

    def test_names_are_strings(self):
        registry = ConnectionRegistry({1: {"database": "one"}})
        assert registry.resolve("1").database == "one"
        assert registry.resolve(1).database == "one"

    def test_unknown_name(self):
        with pytest.raises(ConnectionError, match="staging"):
            ConnectionRegistry(self.CONFIGURATIONS).resolve("staging")

    def test_resolve_passthrough(self):
        config = ConnectionConfig(database="x")
        registry = ConnectionRegistry()
        assert registry.resolve(config) is config
        assert registry.resolve({"database": "x"}) == config

    def test_new_connection_closes_previous(self, server):
        first = server.add(handshake())
        server.add(handshake(), host="replica", port=50001)
        registry = ConnectionRegistry(self.CONFIGURATIONS)
        registry.establish_connection("development")
        conn = registry.establish_connection("replica")
        assert first.closed
        assert registry.connection is conn
        assert conn.config.host == "replica"

    def test_logger_is_handed_on(self, server):
        server.add(handshake())
        records = []

        class Recorder:
            def log(self, level, msg):
                records.append(msg)

        ConnectionRegistry(self.CONFIGURATIONS, logger=Recorder()).establish_connection("development")
        assert records and records[0].startswith("Authenticated as monetdb")


class TestLogs:

    def test_enable_and_stop(self, tmp_path, server):
        log_file = tmp_path / "monetmapi.log"
        monetmapi.enable_logs(str(log_file))
        try:
            assert not logger.disabled
            server.add(handshake())
            monetmapi.connect(database="demo").close()
        finally:
            monetmapi.stop_logs()

        assert logger.disabled
        assert logger.handlers == []
        assert "Connection opened to database demo" in log_file.read_text()

    def test_bad_path(self, tmp_path):
        with pytest.raises(ProgrammingError):
            monetmapi.enable_logs(str(tmp_path / "missing" / "dir" / "x.log"))
        monetmapi.stop_logs()


def test_dbapi_constructors():
    assert monetmapi.monetmapi.DateFromTicks(0) == date.fromtimestamp(0)
    assert monetmapi.monetmapi.TimestampFromTicks(0) == datetime.fromtimestamp(0)
    assert monetmapi.monetmapi.apilevel == "2.0"
    assert monetmapi.monetmapi.paramstyle == "pyformat"
