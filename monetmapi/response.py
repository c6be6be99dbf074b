"""Parse MAPI query responses

A response is line oriented::

    &1 0 2 2 2                      query header
    % sys.t,\tsys.t # table_name    schema header, four lines
    % id,\tname # name
    % int,\tvarchar # type
    % 1,\t4 # length
    [ 1,\t"Paul"\t]                 one line per row
    [ 2,\t"Ken"\t]

Everything here is pure: text in, headers and typed rows out. Sockets and
reconnect policy live in the cursor.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

import pandas as pd
import pyarrow as pa

from monetmapi.casting import ColumnType, parse_value
from monetmapi.errors import QueryError
from monetmapi.globals import (MSG_ERROR,
                               MSG_QUERY,
                               MSG_SCHEMA_HEADER,
                               MSG_TUPLE,
                               Q_BLOCK,
                               Q_TABLE,
                               monet_to_pa)
from monetmapi.logger import log_and_raise


@dataclass(frozen=True)
class TableHeader:
    id: int
    rows: int
    columns: int
    returned: int
    type: str = field(default=Q_TABLE, init=False)


@dataclass(frozen=True)
class BlockHeader:
    id: int
    columns: int
    remains: int
    offset: int
    type: str = field(default=Q_BLOCK, init=False)


@dataclass(frozen=True)
class OtherHeader:
    """Acknowledgement of anything that is not a result set (DDL, DML, ...)"""
    type: str


QueryHeader = Union[TableHeader, BlockHeader, OtherHeader]

_header_types = {
    Q_TABLE: TableHeader,
    Q_BLOCK: BlockHeader,
}


@dataclass(frozen=True)
class SchemaHeader:
    table_name: str
    column_names: List[str]
    column_types: List[str]
    column_lengths: List[int]

    @property
    def types(self) -> dict:
        return dict(zip(self.column_names, self.column_types))


def msg_chr(line: str) -> str:
    return line[0] if line else ""


def parse_query_header(header: str) -> QueryHeader:
    if msg_chr(header) == MSG_ERROR:
        log_and_raise(QueryError, header)

    if msg_chr(header) != MSG_QUERY:
        log_and_raise(QueryError, f"Expected a query header ({MSG_QUERY}) but got ({msg_chr(header)}): {header[:200]}")

    query_type = header[1:2]
    header_type = _header_types.get(query_type)
    if header_type is None:
        return OtherHeader(query_type)

    try:
        values = [int(x) for x in header[2:].split()[:4]]
        return header_type(*values)
    except (TypeError, ValueError) as e:
        log_and_raise(QueryError, f"Malformed query header: {header}", e)


_schema_decoration = re.compile(rf"(^{MSG_SCHEMA_HEADER}\s+|\s+#[^#]+$)")
_schema_separator = re.compile(r",?\s+")


def split_schema_line(line: str) -> List[str]:
    ''' "% id,\tname # name" -> ["id", "name"] '''

    return _schema_separator.split(_schema_decoration.sub("", line))


def parse_schema_header(lines: List[str]) -> Optional[SchemaHeader]:
    if not lines:
        return None
    if len(lines) < 4:
        log_and_raise(QueryError, f"Incomplete schema header, expected 4 lines but got {len(lines)}")

    table_names, column_names, column_types, column_lengths = (split_schema_line(line) for line in lines[:4])
    if not len(column_names) == len(column_types) == len(column_lengths):
        log_and_raise(QueryError, "Schema header lines disagree on the number of columns")
    if len(set(column_names)) != len(column_names):
        log_and_raise(QueryError, f"Duplicate column names in schema header: {', '.join(column_names)}")

    try:
        lengths = [int(x) for x in column_lengths]
    except ValueError as e:
        log_and_raise(QueryError, f"Malformed column lengths in schema header: {lines[3]}", e)

    return SchemaHeader(table_name=table_names[0],
                        column_names=column_names,
                        column_types=column_types,
                        column_lengths=lengths)


def extract_headers(lines: List[str]):
    ''' Split response lines into (query header, schema header or None, row lines) '''

    if not lines:
        log_and_raise(QueryError, "Empty response, expected a query header")

    query_header = parse_query_header(lines[0])

    count = 1
    while count < len(lines) and msg_chr(lines[count]) == MSG_SCHEMA_HEADER:
        count += 1
    schema_header = parse_schema_header(lines[1:count])

    return query_header, schema_header, lines[count:]


def split_row(line: str) -> List[str]:
    ''' '[ 1,\t"Paul"\t]' -> ['1', '"Paul"'] '''

    if msg_chr(line) != MSG_TUPLE:
        log_and_raise(QueryError, f"Expected a row ({MSG_TUPLE}) but got: {line[:200]}")

    body = line[1:]
    if body.endswith("]"):
        body = body[:-1]

    return [value.strip() for value in body.split(",\t")]


def parse_row(column_types: List[Union[ColumnType, str]], line: str) -> List[Any]:
    values = split_row(line)
    if len(values) != len(column_types):
        log_and_raise(QueryError, f"Row has {len(values)} fields but the schema declares {len(column_types)}")

    return [parse_value(column_type, value) for column_type, value in zip(column_types, values)]


def parse_rows(schema: SchemaHeader, lines: List[str]) -> List[List[Any]]:
    # resolve type names once per result, not per cell
    column_types = [ColumnType.lookup(type_name) for type_name in schema.column_types]
    return [parse_row(column_types, line) for line in lines]


def parse_table(query_header: TableHeader, schema: Optional[SchemaHeader], lines: List[str]) -> List[List[Any]]:
    ''' Row lines of a table response, checked against the declared row count '''

    if query_header.rows != len(lines):
        log_and_raise(QueryError, f"Amount of fetched rows does not match header value "
                                  f"({len(lines)} instead of {query_header.rows})")
    if schema is None:
        if lines:
            log_and_raise(QueryError, "Table response carries rows but no schema header")
        return []

    return parse_rows(schema, lines)


@dataclass
class QueryResult:
    header: QueryHeader
    schema: Optional[SchemaHeader] = None
    rows: List[List[Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return True

    @property
    def is_table(self) -> bool:
        return self.header.type == Q_TABLE

    @property
    def columns(self) -> List[str]:
        return list(self.schema.column_names) if self.schema else []

    def values(self) -> List[Any]:
        ''' First column of every row '''

        return [row[0] for row in self.rows]

    def value(self):
        ''' First column of the first row, None for an empty result '''

        return self.rows[0][0] if self.rows else None

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.columns)

    def to_arrow(self) -> pa.Table:
        if self.schema is None:
            return pa.table({})

        arrays = []
        for idx, type_name in enumerate(self.schema.column_types):
            arrays.append(pa.array([row[idx] for row in self.rows], type=monet_to_pa.get(type_name.lower())))

        return pa.Table.from_arrays(arrays, names=self.columns)


def split_lines(response: str) -> List[str]:
    lines = response.split("\n")
    while lines and not lines[-1]:
        lines.pop()
    return lines


def build_result(query_header: QueryHeader, schema: Optional[SchemaHeader], lines: List[str]) -> QueryResult:
    ''' QueryResult for extracted headers and the complete set of row lines '''

    if query_header.type != Q_TABLE:
        return QueryResult(query_header)

    return QueryResult(query_header, schema, parse_table(query_header, schema, lines))


def parse_response(response: str) -> QueryResult:
    ''' Whole response text to a QueryResult '''

    return build_result(*extract_headers(split_lines(response)))
