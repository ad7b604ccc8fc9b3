"""Errors raised at the store boundary. The rule engine itself never raises."""


class StoreError(Exception):
    """Base class for row store failures"""


class NotFound(StoreError):
    """A row addressed by primary key does not exist"""

    def __init__(self, table: str, key: str):
        super().__init__(f"{table} row {key} not found")
        self.table = table
        self.key = key


class StoreUnavailable(StoreError):
    """The backing store could not be reached or rejected the operation"""
