"""Connection configuration and the values negotiated during the handshake

ConnectionConfig is what the caller asks for. It never changes: a direct
redirect produces a new value through ConnectionConfig.redirected().
ServerChallenge and Session are what the server tells us, threaded from
the authenticator to the connection.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from monetmapi.errors import ProgrammingError
from monetmapi.globals import (DEFAULT_HOST,
                               DEFAULT_PORT,
                               DEFAULT_USERNAME,
                               DEFAULT_PASSWORD,
                               LANG,
                               MAX_READS,
                               REPLY_SIZE)
from monetmapi.logger import log_and_raise


@dataclass(frozen=True)
class ConnectionConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    username: str = DEFAULT_USERNAME
    password: str = field(default=DEFAULT_PASSWORD, repr=False)
    database: str = ""
    language: str = LANG
    auth_type: str | None = None
    reconnect: bool = False
    reply_size: int = REPLY_SIZE
    timeout: float | None = None
    max_reads: int = MAX_READS

    def __post_init__(self):
        if not isinstance(self.max_reads, int) or self.max_reads < 1:
            log_and_raise(ProgrammingError, f'max_reads should be a positive integer, got : {self.max_reads}')
        if self.auth_type is not None:
            object.__setattr__(self, "auth_type", self.auth_type.upper())

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> ConnectionConfig:
        """Build a config from a dict, e.g. one entry of a registry.

        Keys may be any objects whose str() is a field name. The port is
        coerced to int since configuration files often carry it as text.
        """
        known = {f.name for f in fields(cls)}
        options = {str(key): value for key, value in mapping.items()}
        unknown = sorted(set(options) - known)
        if unknown:
            log_and_raise(ProgrammingError, f"Unknown connection option(s): {', '.join(unknown)}")

        if "port" in options:
            try:
                options["port"] = int(options["port"])
            except (TypeError, ValueError) as e:
                log_and_raise(ProgrammingError, f"Invalid port: {options['port']!r}", e)

        return cls(**options)

    def redirected(self, host: str, port: int, database: str | None = None) -> ConnectionConfig:
        changes = {"host": host, "port": port}
        if database:
            changes["database"] = database
        return replace(self, **changes)


@dataclass(frozen=True)
class ServerChallenge:
    salt: str
    server_name: str
    protocol: str
    auth_types: tuple[str, ...]
    server_endianness: str
    password_digest_method: str

    @classmethod
    def from_line(cls, line: str) -> ServerChallenge:
        """Split ``salt:server:protocol:algos:endianness:digest:``

        Protocol 8 servers stop after the endianness, missing fields are
        left empty.
        """
        parts = (line.strip().split(":") + [""] * 6)[:6]
        salt, server_name, protocol, auth_types, server_endianness, password_digest_method = parts
        return cls(salt=salt,
                   server_name=server_name,
                   protocol=protocol,
                   auth_types=tuple(x for x in auth_types.split(",") if x),
                   server_endianness=server_endianness,
                   password_digest_method=password_digest_method)


@dataclass(frozen=True)
class Session:
    """Parameters negotiated by a successful handshake"""

    challenge: ServerChallenge
    auth_type: str

    @property
    def protocol(self) -> str:
        return self.challenge.protocol

    @property
    def server_name(self) -> str:
        return self.challenge.server_name
