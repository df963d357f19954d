"""Failures raised by the dataset services and reported back to API callers."""

from __future__ import annotations


class QueryError(Exception):
    """Base class for failures that map onto an HTTP status."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MalformedTimestamp(QueryError, ValueError):
    """A timestamp string could not be read as a UTC instant."""

    status_code = 400


class InvalidParameter(QueryError):
    status_code = 400


class IndexOutOfRange(QueryError):
    status_code = 404


class DataNotReady(QueryError):
    """The dataset is still loading, or its load failed."""

    status_code = 503
