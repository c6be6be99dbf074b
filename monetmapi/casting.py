"""
Support functions for converting MonetDB result cells to python values
"""
from __future__ import annotations

from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from enum import Enum

from monetmapi.errors import QueryError, UnsupportedTypeError
from monetmapi.logger import log_and_raise


NULL = "NULL"


class ColumnType(str, Enum):
    """Column types we know how to decode, valued by the server's type name"""

    VARCHAR = "varchar"
    TEXT = "text"
    CHAR = "char"
    CLOB = "clob"
    TINYINT = "tinyint"
    BOOLEAN = "boolean"
    SMALLINT = "smallint"
    INT = "int"
    BIGINT = "bigint"
    HUGEINT = "hugeint"
    SERIAL = "serial"
    WRD = "wrd"
    OID = "oid"
    REAL = "real"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATE = "date"
    TIMESTAMP = "timestamp"

    @classmethod
    def lookup(cls, type_name: str) -> ColumnType:
        try:
            return cls(type_name.lower())
        except ValueError:
            log_and_raise(UnsupportedTypeError, f"Cannot parse value of type {type_name!r}")


def parse_string_value(value: str) -> str:
    return value[1:-1]


def parse_integer_value(value: str) -> int:
    return int(value)


def parse_float_value(value: str) -> float:
    return float(value)


def parse_decimal_value(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"invalid decimal literal {value!r}") from e


def parse_date_value(value: str) -> date:
    year, month, day = value.split("-")
    return date(int(year), int(month), int(day))


def parse_date_time_value(value: str) -> datetime:
    ''' YYYY-MM-DD HH:MM:SS[.fraction]. The fraction is kept down to microseconds,
        digits past the sixth are dropped '''

    date_part, time_part = value.split(" ")
    hms, _, fraction = time_part.partition(".")
    hour, mins, sec = hms.split(":")
    usec = int((fraction + "000000")[:6]) if fraction else 0
    day = parse_date_value(date_part)

    return datetime(day.year, day.month, day.day, int(hour), int(mins), int(sec), usec)


def parse_tinyint_value(value: str) -> bool:
    # tinyint columns are used as booleans
    return value == "1"


def parse_boolean_value(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "y", "t", "true"):
        return True
    if lowered in ("0", "n", "f", "false"):
        return False
    raise ValueError(f"invalid boolean literal {value!r}")


decoders = {
    ColumnType.VARCHAR:   parse_string_value,
    ColumnType.TEXT:      parse_string_value,
    ColumnType.CHAR:      parse_string_value,
    ColumnType.CLOB:      parse_string_value,
    ColumnType.TINYINT:   parse_tinyint_value,
    ColumnType.BOOLEAN:   parse_boolean_value,
    ColumnType.SMALLINT:  parse_integer_value,
    ColumnType.INT:       parse_integer_value,
    ColumnType.BIGINT:    parse_integer_value,
    ColumnType.HUGEINT:   parse_integer_value,
    ColumnType.SERIAL:    parse_integer_value,
    ColumnType.WRD:       parse_integer_value,
    ColumnType.OID:       parse_integer_value,
    ColumnType.REAL:      parse_float_value,
    ColumnType.FLOAT:     parse_float_value,
    ColumnType.DOUBLE:    parse_float_value,
    ColumnType.DECIMAL:   parse_decimal_value,
    ColumnType.DATE:      parse_date_value,
    ColumnType.TIMESTAMP: parse_date_time_value,
}


def parse_value(column_type: ColumnType | str, value: str):
    """Decode one cell. NULL wins over the declared type."""

    if value == NULL:
        return None

    if not isinstance(column_type, ColumnType):
        column_type = ColumnType.lookup(column_type)

    try:
        return decoders[column_type](value)
    except ValueError as e:
        log_and_raise(QueryError, f"Cannot parse {value!r} as {column_type.value}", e)
