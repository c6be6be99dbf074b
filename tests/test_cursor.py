"""Tests for Cursor execute/fetch behaviour"""
import pytest

from monetmapi.errors import ProgrammingError, QueryError

from tests.mock import SELECT_RESPONSE, frame


@pytest.fixture(name='cur')
def select_cursor(conn):
    conn.mock.inbound += frame(SELECT_RESPONSE)
    cur = conn.cursor()
    cur.execute("SELECT id, name FROM t")
    yield cur
    cur.close()


class TestFetch:

    def test_fetchone(self, cur):
        assert cur.fetchone() == [1, "Paul"]
        assert cur.fetchone() == [2, "Ken"]
        assert cur.fetchone() is None

    def test_fetchmany(self, cur):
        assert cur.fetchmany(1) == [[1, "Paul"]]
        assert cur.fetchmany(5) == [[2, "Ken"]]
        assert cur.fetchmany(5) == []

    def test_fetchmany_uses_arraysize(self, cur):
        cur.arraysize = 2
        assert cur.fetchmany() == [[1, "Paul"], [2, "Ken"]]

    def test_fetchmany_negative(self, cur):
        with pytest.raises(ProgrammingError):
            cur.fetchmany(-1)

    def test_fetchall_after_fetchone(self, cur):
        cur.fetchone()
        assert cur.fetchall() == [[2, "Ken"]]
        assert cur.fetchall() == []

    def test_iteration(self, cur):
        assert list(cur) == [[1, "Paul"], [2, "Ken"]]


class TestMetadata:

    def test_description(self, cur):
        assert cur.description == [("id", "NUMBER", 2, 2, None, None, None),
                                   ("name", "STRING", 17, 17, None, None, None)]

    def test_rowcount(self, cur):
        assert cur.rowcount == 2

    def test_latest_statement(self, cur):
        assert cur.latest_stmt == "SELECT id, name FROM t"

    def test_non_table_statement(self, conn):
        conn.mock.inbound += frame("&3")
        cur = conn.cursor().execute("CREATE TABLE t (id int)")
        assert cur.description is None
        assert cur.rowcount == -1
        assert cur.fetchall() == []


class TestLifecycle:

    def test_fetch_before_execute(self, conn):
        with pytest.raises(ProgrammingError, match="No statement"):
            conn.cursor().fetchone()

    def test_closed_cursor(self, cur):
        cur.close()
        with pytest.raises(ProgrammingError, match="closed"):
            cur.fetchall()
        with pytest.raises(ProgrammingError, match="closed"):
            cur.execute("SELECT 1")

    def test_context_manager(self, conn):
        conn.mock.inbound += frame(SELECT_RESPONSE)
        with conn.cursor() as cur:
            cur.execute("SELECT id, name FROM t")
            assert cur.fetchone() == [1, "Paul"]
        assert cur.closed

    def test_reexecute_resets_position(self, cur, conn):
        cur.fetchall()
        conn.mock.inbound += frame(SELECT_RESPONSE)
        cur.execute("SELECT id, name FROM t")
        assert cur.fetchone() == [1, "Paul"]

    def test_error_keeps_previous_result(self, cur, conn):
        conn.mock.inbound += frame("!42S02!SELECT: no such table 'nope'")
        with pytest.raises(QueryError, match="no such table"):
            cur.execute("SELECT * FROM nope")
        assert cur.fetchone() == [1, "Paul"]

    def test_parameters_are_rejected(self, conn):
        with pytest.raises(ProgrammingError, match="not supported"):
            conn.cursor().execute("SELECT * FROM t WHERE id = %(id)s", {"id": 1})
        assert len(conn.mock.sent) == 3
