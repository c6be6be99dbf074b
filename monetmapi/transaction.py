"""Savepoint counter used to emulate nested transactions"""
from monetmapi.errors import ProgrammingError
from monetmapi.globals import SAVEPOINT_PREFIX
from monetmapi.logger import log_and_raise


class Transaction:

    def __init__(self, prefix=SAVEPOINT_PREFIX):
        self.prefix = prefix
        self.id = 0

    @property
    def savepoint(self):
        return f"{self.prefix}{self.id}"

    def save(self):
        ''' Next savepoint name '''

        self.id += 1
        return self.savepoint

    def release(self):
        ''' Name of the savepoint being released, steps back to the previous one '''

        if self.id == 0:
            log_and_raise(ProgrammingError, "No savepoint to release")
        name = self.savepoint
        self.id -= 1
        return name
