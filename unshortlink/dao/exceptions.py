"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues,
        timeouts, OOM, corrupt entries, etc.).

Example:
    >>> from unshortlink.dao.exceptions import DataStoreError
    >>> raise DataStoreError("Can't connect to Redis at localhost:6379/0.")
    Traceback (most recent call last):
        ...
    unshortlink.dao.exceptions.DataStoreError: Can't connect to Redis at localhost:6379/0.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, OOM, unreadable entries, etc.
    """

    pass
