"""Contain Cursor, which is used to run a statement and hold its result.

Sends the statement, reads the whole response and parses it with
monetmapi.response. The protocol is strictly request/response, a cursor
never has anything left to fetch from the server once execute() returns.

Should be used only by .connection.Connection
"""
from __future__ import annotations

import logging
import time

from typing import Any, List

from monetmapi.errors import ProgrammingError, QueryError
from monetmapi.globals import COMMAND_PREFIX, FETCH_MANY_DEFAULT, Q_BLOCK, Q_TABLE, STATEMENT_PREFIX, typecodes
from monetmapi.logger import log_and_raise, logger
from monetmapi.response import QueryResult, build_result, extract_headers, split_lines


class Cursor:
    """
    Represent a database cursor, which is used to manage the context of
    a fetch operation.

    Base PEP 249 – Python Database API Specification v2.0
    https://peps.python.org/pep-0249/#id12
    """

    def __init__(self, conn):

        self.conn = conn
        self.closed = False
        self.arraysize = FETCH_MANY_DEFAULT
        self.rowcount = -1  # DB-API property
        self.description = None
        self.result = None
        self.rows_fetched = 0
        self.latest_stmt = None

    def _verify_open(self):
        if self.closed:
            log_and_raise(ProgrammingError, 'Cursor has been closed')

    def _verify_result(self):
        self._verify_open()
        if self.result is None:
            log_and_raise(ProgrammingError, 'No statement was executed on this cursor')

    def _fetch_remaining(self, query_header, lines: List[str]) -> List[str]:
        """Ask for the rows a positive reply size held back, ``Xexport <id> <offset> <n>``

        Each answer is a ``&6`` block header followed by its row lines.
        """
        lines = list(lines)
        reply_size = self.conn.config.reply_size

        while len(lines) < query_header.rows:
            amount = query_header.rows - len(lines)
            if reply_size > 0:
                amount = min(amount, reply_size)

            response = self.conn.send_string(f"{COMMAND_PREFIX}export {query_header.id} {len(lines)} {amount}\n")
            block_header, _, block_lines = extract_headers(split_lines(response))
            if block_header.type != Q_BLOCK:
                log_and_raise(QueryError, f"Expected a block header while fetching rows, got: {response[:200]}")
            if not block_lines:
                break
            lines += block_lines

        return lines

    def _execute_statement(self, statement: str) -> QueryResult:
        """Send ``s<statement>;`` and parse the response.

        When the server returned fewer rows than the result holds (positive
        reply size) the rest is fetched block by block. A table response
        whose row count still differs from its header means the byte stream
        is out of step with the protocol; with auto-reconnect the connection
        is dropped before raising so the next statement starts on a fresh
        transport.
        """
        response = self.conn.send_string(f"{STATEMENT_PREFIX}{statement};")

        query_header, schema, lines = extract_headers(split_lines(response))
        if query_header.type == Q_TABLE:
            if len(lines) == query_header.returned < query_header.rows:
                lines = self._fetch_remaining(query_header, lines)

            if query_header.rows != len(lines) and self.conn.reconnect:
                logger.warning(f'Row count mismatch ({len(lines)} instead of {query_header.rows}), '
                               f'dropping connection')
                self.conn.disconnect()

        return build_result(query_header, schema, lines)

    def _fill_description(self):
        """(name, type_code, display_size, internal_size, precision, scale, null_ok) per column"""

        schema = self.result.schema
        if schema is None:
            self.description = None
            return self.description

        self.description = [
            (name, typecodes.get(type_name.lower()), length, length, None, None, None)
            for name, type_name, length in zip(schema.column_names, schema.column_types, schema.column_lengths)
        ]
        return self.description

    def execute(self, statement: str, params=None):
        """Execute a statement, the result is kept in ``self.result``

        Statements are sent as text, parameter binding is not supported.
        """

        self._verify_open()
        if params is not None:
            log_and_raise(ProgrammingError, "Parameter binding is not supported, pass a complete statement")
        self.conn.check_connectivity()

        self.latest_stmt = statement
        start = time.perf_counter()
        self.result = self._execute_statement(statement)
        elapsed = (time.perf_counter() - start) * 1000

        self.conn.log(logging.INFO, f"SQL ({elapsed:.1f}ms) {statement}")
        if logger.isEnabledFor(logging.INFO):
            logger.info(f'Executed statement in {elapsed:.1f}ms, {len(self.result.rows)} rows:\n{statement}')

        self._fill_description()
        self.rowcount = len(self.result.rows) if self.result.is_table else -1
        self.rows_fetched = 0
        return self

    def fetchmany(self, size: int | None = None) -> List[List[Any]]:
        self._verify_result()

        size = self.arraysize if size is None else size
        if size < 0:
            log_and_raise(ProgrammingError, f"fetchmany size should be a non negative integer, got : {size}")

        rows = self.result.rows[self.rows_fetched:self.rows_fetched + size]
        self.rows_fetched += len(rows)
        return rows

    def fetchone(self):
        rows = self.fetchmany(1)
        return rows[0] if rows else None

    def fetchall(self) -> List[List[Any]]:
        self._verify_result()

        rows = self.result.rows[self.rows_fetched:]
        self.rows_fetched += len(rows)
        return rows

    def close(self):
        self.closed = True
        self.result = None

    # Internal Methods
    # ----------------
    ''' Include: __enter__(), __exit__() - for using "with",
                 __iter__ for use in for-in clause  '''

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()

    def __iter__(self):
        row = self.fetchone()
        while row is not None:
            yield row
            row = self.fetchone()
