"""MAPI challenge/response handshake

The server opens with a challenge line, the client answers with a single
credentials line, and the server replies with an empty message (welcome),
an error, or a redirect. A redirect either asks to restart the handshake
on the same socket (``merovingian``, the proxy) or to go to another
host/port altogether (``monetdb``).

Redirect following is a loop with a hop counter rather than recursion:
at most MAX_REDIRECTS hops, proxy and direct hops counted together.
"""
from __future__ import annotations

import hashlib
import logging
from typing import Callable
from urllib.parse import urlsplit

from monetmapi.config import ConnectionConfig, ServerChallenge, Session
from monetmapi.errors import AuthenticationError, ProtocolError
from monetmapi.globals import (AUTH_PLAIN,
                               AUTH_TYPES,
                               ENDIANNESS,
                               MAPI_V9,
                               MAX_REDIRECTS,
                               MSG_ERROR,
                               MSG_REDIRECT,
                               PROTOCOLS,
                               REDIRECT_PREFIX,
                               SCHEME_MEROVINGIAN,
                               SCHEME_MONETDB)
from monetmapi.logger import log_and_raise, logger
from monetmapi.MapiSocket import Client
from monetmapi.response import msg_chr


def hexdigest(method: str, value: str) -> str:
    """Hex digest of value with a MAPI algorithm name (MD5, SHA1, SHA512, ...)"""
    try:
        digest = hashlib.new(method.lower())
    except ValueError as e:
        log_and_raise(AuthenticationError, f"Hash algorithm '{method}' not available", e)
    digest.update(value.encode('utf8'))
    return digest.hexdigest()


def hashsum(auth_type: str, password: str, challenge: ServerChallenge) -> str:
    """Password proof for the credentials line

    Protocol 9 servers store passwords pre-hashed with their digest method,
    so the password is hashed with it before being salted.
    """
    if auth_type == AUTH_PLAIN:
        return password + challenge.salt

    if challenge.protocol == MAPI_V9:
        password = hexdigest(challenge.password_digest_method, password)
    return hexdigest(auth_type, password + challenge.salt)


def authentication_string(config: ConnectionConfig, session: Session) -> str:
    return ":".join([ENDIANNESS,
                     config.username,
                     f"{{{session.auth_type}}}{hashsum(session.auth_type, config.password, session.challenge)}",
                     config.language,
                     config.database,
                     ""])


def select_auth_type(challenge: ServerChallenge, requested: str | None = None) -> str:
    """First client-preferred algorithm the server also offers"""
    candidates = (requested,) if requested else AUTH_TYPES
    for auth_type in candidates:
        if auth_type in challenge.auth_types:
            return auth_type

    log_and_raise(AuthenticationError,
                  f"Authentication types ({', '.join(challenge.auth_types)}) not supported. "
                  f"Only {', '.join(candidates)}.")


def assert_supported_protocol(challenge: ServerChallenge) -> None:
    if challenge.protocol not in PROTOCOLS:
        log_and_raise(ProtocolError,
                      f"Protocol '{challenge.protocol}' not supported. "
                      f"Only {', '.join(repr(x) for x in PROTOCOLS)}.")


def parse_redirect(response: str) -> tuple[str, str | None, int | None, str]:
    """Find the ``^mapi:`` line of a redirect response.

    Returns (scheme, host, port, database).
    """
    uri = next((line[len(REDIRECT_PREFIX):].strip() for line in response.split("\n")
                if line.startswith(REDIRECT_PREFIX)), None)
    if uri is None:
        log_and_raise(AuthenticationError, f"Authentication redirect not supported: {response}")

    try:
        parts = urlsplit(uri)
        port = parts.port
    except ValueError as e:
        log_and_raise(AuthenticationError, f"Invalid authentication redirect URI: {uri}", e)

    return parts.scheme, parts.hostname, port, parts.path.lstrip("/")


class Authenticator:
    """Runs the handshake over a Client, following redirects.

    ``reopen`` is called with the redirected config when a ``monetdb://``
    redirect moves us to another server; it must return a fresh Client.
    After authenticate() returns, ``client`` and ``config`` are the ones the
    session was established on.
    """

    def __init__(self, client: Client, config: ConnectionConfig,
                 reopen: Callable[[ConnectionConfig], Client],
                 max_redirects: int = MAX_REDIRECTS):
        self.client = client
        self.config = config
        self.reopen = reopen
        self.max_redirects = max_redirects
        self.redirects = 0

    def read_challenge(self) -> ServerChallenge:
        challenge = ServerChallenge.from_line(self.client.get_response())
        assert_supported_protocol(challenge)
        return challenge

    def negotiate(self) -> Session:
        challenge = self.read_challenge()
        return Session(challenge, select_auth_type(challenge, self.config.auth_type))

    def authenticate(self) -> Session:
        while True:
            session = self.negotiate()
            response = self.client.send_string(authentication_string(self.config, session))

            tag = msg_chr(response)
            if tag == MSG_ERROR:
                log_and_raise(AuthenticationError, f"Authentication failed: {response.strip()}")
            if tag != MSG_REDIRECT:
                if logger.isEnabledFor(logging.INFO):
                    logger.info(f'Authenticated as {self.config.username} on {session.server_name} '
                                f'using {session.auth_type} (protocol {session.protocol})')
                return session

            self.follow_redirect(response)

    def follow_redirect(self, response: str) -> None:
        if self.redirects >= self.max_redirects:
            log_and_raise(AuthenticationError, f"Too many redirects while authenticating ({self.redirects})")
        self.redirects += 1

        scheme, host, port, database = parse_redirect(response)
        if logger.isEnabledFor(logging.INFO):
            logger.info(f'Redirect {self.redirects}/{self.max_redirects}: {scheme}://{host}:{port}/{database}')

        if scheme == SCHEME_MEROVINGIAN:
            # proxy keeps the socket and sends a fresh challenge
            return

        if scheme == SCHEME_MONETDB:
            if not host or port is None:
                log_and_raise(AuthenticationError, f"Redirect without host and port: {response.strip()}")
            self.config = self.config.redirected(host, port, database)
            self.client.socket.close()
            self.client = self.reopen(self.config)
            return

        log_and_raise(AuthenticationError, f"Cannot authenticate, unsupported redirect scheme '{scheme}'")
