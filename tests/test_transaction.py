import pytest

from monetmapi.errors import ProgrammingError
from monetmapi.transaction import Transaction


def test_savepoint_names():
    transaction = Transaction()
    assert transaction.save() == "monetdbsp1"
    assert transaction.save() == "monetdbsp2"
    assert transaction.savepoint == "monetdbsp2"


def test_release_steps_back():
    transaction = Transaction()
    transaction.save()
    transaction.save()
    assert transaction.release() == "monetdbsp2"
    assert transaction.savepoint == "monetdbsp1"
    assert transaction.release() == "monetdbsp1"
    assert transaction.id == 0


def test_release_without_savepoint():
    with pytest.raises(ProgrammingError):
        Transaction().release()


def test_custom_prefix():
    assert Transaction(prefix="sp").save() == "sp1"
