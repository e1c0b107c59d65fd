# app/query/exceptions.py
"""Exceptions raised while compiling or executing a query descriptor."""

from typing import Optional


class QueryError(Exception):
    """Base class for query engine failures; ``status_code`` is the HTTP status to report."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CompilationError(QueryError):
    """The descriptor cannot be turned into SQL."""

    status_code = 400


class InvalidIdentifier(CompilationError):
    """A table or column name is empty or carries a quote character."""

    def __init__(self, identifier: Optional[str]):
        super().__init__(f"Invalid identifier: {identifier!r}")
        self.identifier = identifier


class MissingTable(QueryError):
    """The descriptor does not name a table."""

    status_code = 400

    def __init__(self, message: str = "No table selected"):
        super().__init__(message)


class QueryExecutionError(QueryError):
    """The database rejected or failed one of the statements."""

    status_code = 500


# Driver messages recognized as infrastructure failures, in match order.
# Anything else is passed through verbatim.
DATABASE_ERROR_CATEGORIES = [
    (
        ("ORA-01017", "DPY-4001", "password authentication failed", "Access denied for user"),
        "Invalid database credentials",
    ),
    (
        ("ORA-12541", "ORA-12170", "ORA-12543", "DPY-6005", "could not connect to server",
         "Connection refused", "Can't connect to MySQL server", "timeout expired"),
        "Database host is unreachable",
    ),
    (
        ("ORA-12514", "ORA-12505", "DPY-6001", "DPY-6003", "Unknown database"),
        "Unknown database service",
    ),
]


def translate_database_error(exc: Exception) -> str:
    """Turn a driver/SQLAlchemy exception into the message reported to the caller."""
    original = getattr(exc, "orig", None) or exc
    message = str(original).strip() or type(original).__name__

    for markers, category in DATABASE_ERROR_CATEGORIES:
        if any(marker.lower() in message.lower() for marker in markers):
            return f"{category}: {message}"
    return message
