"""Python client for MonetDB's MAPI wire protocol

Talks to a MonetDB server over a plain TCP socket without the native
client library: handshake and authentication (including redirects from
the merovingian proxy), block framing, session setup, and a parser that
turns text responses into typed Python rows.
"""
# Import modules through the package, e.g. in connection.py use
# "from monetmapi.cursor import ..." rather than "from cursor import ...".
from .monetmapi import connect, __version__, enable_logs, stop_logs, ConnectionRegistry
from .config import ConnectionConfig
from .connection import Connection
from .errors import (Error,
                     ConnectionError,
                     ProtocolError,
                     AuthenticationError,
                     CommandError,
                     QueryError,
                     UnsupportedTypeError,
                     ProgrammingError)

__all__ = [
    "connect",
    "__version__",
    "enable_logs",
    "stop_logs",
    "ConnectionRegistry",
    "ConnectionConfig",
    "Connection",
    "Error",
    "ConnectionError",
    "ProtocolError",
    "AuthenticationError",
    "CommandError",
    "QueryError",
    "UnsupportedTypeError",
    "ProgrammingError",
]
