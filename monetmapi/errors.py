"""Provide all error classes for monetmapi

The set is flat: every error is a direct child of Error, so one except
clause catches anything the driver raises while each failure keeps its
own kind.
"""


class Error(Exception):
    """Exception that is the base class of all other error exceptions.

    Could be used to catch all errors with one single except statement.
    """


class ConnectionError(Error):  # pylint: disable=redefined-builtin
    """Raised when the transport is absent or broken

    E.g. the server refused the connection, the peer closed the stream in
    the middle of a block, or the connection was dropped after the
    response stream got out of sync.
    """


class ProtocolError(Error):
    """Raised when the server speaks a MAPI protocol version we don't"""


class AuthenticationError(Error):
    """Raised when the handshake fails

    E.g. no common hash algorithm, credentials rejected, an unsupported
    or malformed redirect, or too many redirects.
    """


class CommandError(Error):
    """Raised when the server rejects a session setup command"""


class QueryError(Error):
    """Raised for malformed or mismatched query responses

    Also carries the server's error line when a statement fails.
    """


class UnsupportedTypeError(Error, NotImplementedError):
    """Raised when a result column has a type we cannot decode"""


class ProgrammingError(Error):
    """Raised for programming errors

    E.g. invalid connection parameters, fetching from a closed cursor or
    releasing a savepoint that was never made.
    """
