"""Contains monetmapi global variables"""
import pyarrow as pa

__version__ = '1.0.0'

# Query types, second character of a query header
Q_TABLE = "1"        # SELECT operation
Q_UPDATE = "2"       # INSERT/UPDATE operations
Q_CREATE = "3"       # CREATE/DROP TABLE operations
Q_TRANSACTION = "4"  # TRANSACTION
Q_PREPARE = "5"      # QPREPARE message
Q_BLOCK = "6"        # QBLOCK message

# Line tags, first character of a response line
MSG_REDIRECT = "^"
MSG_QUERY = "&"
MSG_SCHEMA_HEADER = "%"
MSG_ERROR = "!"
MSG_TUPLE = "["

MAX_MSG_SIZE = 32766  # payload bytes per block
MAX_READS = 1000      # socket reads allowed for a single block
REPLY_SIZE = -1
ENDIANNESS = "BIG"
LANG = "sql"
ENCODING = "utf8"

STATEMENT_PREFIX = "s"
COMMAND_PREFIX = "X"

MAPI_V8 = "8"
MAPI_V9 = "9"
PROTOCOLS = MAPI_V8, MAPI_V9

AUTH_MD5 = "MD5"
AUTH_SHA512 = "SHA512"
AUTH_SHA384 = "SHA384"
AUTH_SHA256 = "SHA256"
AUTH_SHA1 = "SHA1"
AUTH_PLAIN = "PLAIN"
AUTH_TYPES = AUTH_MD5, AUTH_SHA512, AUTH_SHA384, AUTH_SHA256, AUTH_SHA1, AUTH_PLAIN

MAX_REDIRECTS = 5
REDIRECT_PREFIX = "^mapi:"
SCHEME_MEROVINGIAN = "merovingian"
SCHEME_MONETDB = "monetdb"

SAVEPOINT_PREFIX = "monetdbsp"

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 50000
DEFAULT_USERNAME = "monetdb"
DEFAULT_PASSWORD = "monetdb"

FETCH_MANY_DEFAULT = 1  # default parameter for fetchmany()

# Declared column type to arrow type, None lets pyarrow infer
monet_to_pa = {
    'varchar':   pa.string(),
    'text':      pa.string(),
    'char':      pa.string(),
    'clob':      pa.string(),
    'tinyint':   pa.bool_(),
    'boolean':   pa.bool_(),
    'smallint':  pa.int16(),
    'int':       pa.int32(),
    'bigint':    pa.int64(),
    'serial':    pa.int32(),
    'wrd':       pa.int64(),
    'oid':       pa.int64(),
    'hugeint':   None,
    'real':      pa.float32(),
    'float':     pa.float64(),
    'double':    pa.float64(),
    'decimal':   None,
    'date':      pa.date32(),
    'timestamp': pa.timestamp('us'),
}

typecodes = {
    'varchar': 'STRING',
    'text': 'STRING',
    'char': 'STRING',
    'clob': 'STRING',
    'tinyint': 'NUMBER',
    'boolean': 'NUMBER',
    'smallint': 'NUMBER',
    'int': 'NUMBER',
    'bigint': 'NUMBER',
    'serial': 'NUMBER',
    'wrd': 'NUMBER',
    'oid': 'NUMBER',
    'hugeint': 'NUMBER',
    'real': 'NUMBER',
    'float': 'NUMBER',
    'double': 'NUMBER',
    'decimal': 'NUMBER',
    'date': 'DATETIME',
    'timestamp': 'DATETIME',
}
