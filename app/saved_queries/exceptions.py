# app/saved_queries/exceptions.py
"""Outcomes of saved-query operations that are reported to the caller rather than crashing."""


class SavedQueryError(Exception):
    """Base class; ``status_code`` is the HTTP status to report."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateName(SavedQueryError):
    status_code = 409

    def __init__(self, name: str):
        super().__init__(f"A saved query named '{name}' already exists")
        self.name = name


class NotFound(SavedQueryError):
    status_code = 404

    def __init__(self, query_id: str):
        super().__init__(f"Saved query {query_id} not found")
        self.query_id = query_id


class NoValidEntries(SavedQueryError):
    def __init__(self, message: str = "No valid saved queries found in the imported document"):
        super().__init__(message)


class InvalidSavedQuery(SavedQueryError):
    """The candidate lacks a name, a table or a column list."""
