"""MonetDB MAPI Python API"""


from datetime import datetime, date, time as t
import time
from monetmapi.globals import __version__
from monetmapi.config import ConnectionConfig
from monetmapi.errors import ConnectionError, ProgrammingError
from monetmapi.logger import log_and_raise, start_logging, stop_logging
from monetmapi.connection import Connection


def enable_logs(log_path=None):
    start_logging(None if log_path is True else log_path)


def stop_logs():
    stop_logging()


def connect(host='localhost', port=50000, database='', username='monetdb', password='monetdb',
            reconnect=False, logger=None, **options):
    ''' Connect to MonetDB database '''
    if not isinstance(reconnect, bool):
        log_and_raise(ProgrammingError, f'reconnect should be a boolean, got : {reconnect}')

    config = ConnectionConfig(host=host, port=int(port), database=database, username=username,
                              password=password, reconnect=reconnect, **options)
    conn = Connection(config, logger=logger)
    conn.connect()

    return conn


class ConnectionRegistry:
    ''' Named connection configurations and the connection made from the latest one.

        Plain object, create as many as needed. '''

    def __init__(self, configurations=None, logger=None):
        self.logger = logger
        self.connection = None
        self.configurations = configurations or {}

    @property
    def configurations(self):
        return self._configurations

    @configurations.setter
    def configurations(self, configurations):
        self._configurations = {str(name): config for name, config in configurations.items()}

    def resolve(self, arg):
        if isinstance(arg, ConnectionConfig):
            return arg
        if isinstance(arg, dict):
            return ConnectionConfig.from_mapping(arg)

        config = self._configurations.get(str(arg))
        if config is None:
            log_and_raise(ConnectionError, f"Unable to establish connection for {arg!r}")
        return config if isinstance(config, ConnectionConfig) else ConnectionConfig.from_mapping(config)

    def establish_connection(self, arg):
        ''' Connect with a configuration name, a dict or a ConnectionConfig '''

        config = self.resolve(arg)
        if self.connection is not None:
            self.connection.disconnect()
        self.connection = Connection(config, logger=self.logger)
        self.connection.connect()
        return self.connection


## DBapi compatibility
#  -------------------
''' To comply with the parts of Python's DB-API 2.0 that fit a text protocol. Ignore when using internally '''

# Type objects and constructors required by the DB-API 2.0 standard
Date = date
Time = t
Timestamp = datetime


def DateFromTicks(ticks):
    return Date.fromtimestamp(ticks)


def TimeFromTicks(ticks):
    return Time(
        *time.localtime(ticks)[3:6]
    )  # localtime() returns a namedtuple, fields 3-5 are hr/min/sec


def TimestampFromTicks(ticks):
    return Timestamp.fromtimestamp(ticks)


# DB-API global parameters
apilevel = '2.0'

threadsafety = 1  # Threads can share the module but not a connection

# Statements go over the wire as complete text, Cursor.execute rejects parameters.
# The DB-API still asks for a declared style.
paramstyle = 'pyformat'
