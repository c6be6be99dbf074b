from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, List, Mapping

from monetmapi.authentication import Authenticator
from monetmapi.config import ConnectionConfig, Session
from monetmapi.cursor import Cursor
from monetmapi.errors import CommandError, ConnectionError
from monetmapi.globals import COMMAND_PREFIX, MSG_ERROR, STATEMENT_PREFIX
from monetmapi.logger import log_and_raise, logger
from monetmapi.MapiSocket import MapiSocket, Client
from monetmapi.response import QueryResult, msg_chr
from monetmapi.transaction import Transaction


class ConnectionState(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTED = "Connected-Unauthenticated"
    READY = "Ready"


def local_utc_offset() -> timedelta:
    return datetime.now().astimezone().utcoffset()


def timezone_interval(offset: timedelta) -> str:
    ''' timedelta(hours=-5, minutes=-30) -> "'-05:30'" '''

    minutes = int(offset.total_seconds() // 60)
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"'{sign}{hours:02d}:{minutes:02d}'"


class Connection:
    ''' Connection class used to interact with MonetDB

        One transport, one request in flight. Share it between threads only
        behind a lock held around whole calls. '''

    def __init__(self, config: ConnectionConfig | Mapping[str, Any] | None = None, logger=None):

        if config is None:
            config = ConnectionConfig()
        elif not isinstance(config, ConnectionConfig):
            config = ConnectionConfig.from_mapping(config)

        self.config = config
        self.logger = logger
        self.socket = None
        self.client = None
        self.session: Session | None = None
        self.endpoint: ConnectionConfig | None = None
        self.timezone_interval_set = False
        self.reply_size_set = False
        self.savepoints = Transaction()
        self.in_transaction = False

    @property
    def connected(self) -> bool:
        return self.socket is not None

    @property
    def reconnect(self) -> bool:
        return self.config.reconnect

    @property
    def state(self) -> ConnectionState:
        if not self.connected:
            return ConnectionState.DISCONNECTED
        return ConnectionState.READY if self.session is not None else ConnectionState.CONNECTED

    def log(self, level, msg):
        if self.logger is not None:
            self.logger.log(level, msg)

    ## MonetDB mechanisms

    def _open_client(self, config: ConnectionConfig) -> Client:
        ''' New transport and block client for host/port of config '''

        return Client(MapiSocket(config.host, config.port, config.timeout), config.max_reads)

    def connect(self):
        ''' Open the socket, authenticate (following redirects) and set up the session '''

        if self.connected:
            self.disconnect()

        start = time.perf_counter()
        authenticator = Authenticator(self._open_client(self.config), self.config, self._open_client)
        self.client = authenticator.client
        self.socket = self.client.socket
        try:
            self.session = authenticator.authenticate()
        except Exception:
            authenticator.client.socket.close()
            self.disconnect()
            raise

        self.client = authenticator.client
        self.socket = self.client.socket
        self.endpoint = authenticator.config
        self.timezone_interval_set = self.reply_size_set = False

        try:
            self.setup()
        except Exception:
            self.disconnect()
            raise

        elapsed = (time.perf_counter() - start) * 1000
        self.log(logging.INFO, f"Authenticated as {self.config.username} to {self.endpoint.host}:{self.endpoint.port}"
                               f"/{self.endpoint.database} ({elapsed:.1f}ms)")
        if logger.isEnabledFor(logging.INFO):
            logger.info(f'Connection opened to database {self.endpoint.database} on '
                        f'{self.endpoint.host}:{self.endpoint.port}')
        return True

    def disconnect(self):

        if self.socket is not None:
            self.socket.close()
            if logger.isEnabledFor(logging.INFO):
                logger.info(f'Connection closed to database {self.config.database}')
        self.socket = None
        self.client = None
        self.session = None
        self.savepoints = Transaction()
        self.in_transaction = False

    close = disconnect

    def check_connectivity(self):
        ''' Auto-reconnect once when configured, otherwise insist on a live connection '''

        if self.connected:
            return
        if self.reconnect:
            self.connect()
            return
        log_and_raise(ConnectionError, "Not connected to server")

    def _verify_con_open(self):
        if not self.connected:
            log_and_raise(ConnectionError, "Not connected to server")

    def write(self, message):
        self._verify_con_open()
        try:
            self.client.write(message)
        except ConnectionError:
            self.disconnect()
            raise

    def read(self):
        self._verify_con_open()
        try:
            return self.client.get_response()
        except ConnectionError:
            # half read block, nothing on this socket can be trusted
            self.disconnect()
            raise

    def send_string(self, message):
        self.write(message)
        return self.read()

    ## Session setup

    def setup(self):
        self.set_timezone_interval()
        self.set_reply_size()

    def set_timezone_interval(self):

        if self.timezone_interval_set:
            return False

        interval = timezone_interval(local_utc_offset())
        response = self.send_string(f"{STATEMENT_PREFIX}SET TIME ZONE INTERVAL {interval} HOUR TO MINUTE;")
        if msg_chr(response) == MSG_ERROR:
            log_and_raise(CommandError, f"Unable to set timezone interval: {response.strip()}")

        self.timezone_interval_set = True
        return True

    def set_reply_size(self):

        if self.reply_size_set:
            return False

        response = self.send_string(f"{COMMAND_PREFIX}reply_size {self.config.reply_size}\n")
        if msg_chr(response) == MSG_ERROR:
            log_and_raise(CommandError, f"Unable to set reply size: {response.strip()}")

        self.reply_size_set = True
        return True

    ## Queries

    def cursor(self):
        return Cursor(self)

    def execute(self, statement: str) -> QueryResult:
        return self.cursor().execute(statement).result

    def query(self, statement: str):
        ''' Rows of a table result, True for anything else '''

        result = self.execute(statement)
        return result.rows if result.is_table else result.succeeded

    select_rows = query

    def select_values(self, statement: str) -> List[Any]:
        return self.execute(statement).values()

    def select_value(self, statement: str):
        return self.execute(statement).value()

    @contextmanager
    def transaction(self):
        """Run the block in a transaction. Nested blocks get a savepoint each,
        so an inner failure only undoes the inner block."""

        if not self.in_transaction:
            self.query("START TRANSACTION")
            self.in_transaction = True
            try:
                yield self
            except BaseException:
                if self.connected:
                    self.query("ROLLBACK")
                raise
            else:
                self.query("COMMIT")
            finally:
                self.in_transaction = False
            return

        name = self.savepoints.save()
        self.query(f"SAVEPOINT {name}")
        try:
            yield self
        except BaseException:
            if self.connected:
                self.query(f"ROLLBACK TO SAVEPOINT {name}")
            raise
        else:
            self.query(f"RELEASE SAVEPOINT {name}")
        finally:
            if self.savepoints.id:
                self.savepoints.release()

    # Internal Methods
    # ----------------

    def __enter__(self):
        if not self.connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.disconnect()

    def __repr__(self):
        return f"<Connection {self.config.username}@{self.config.host}:{self.config.port}/{self.config.database} " \
               f"{self.state.value}>"
