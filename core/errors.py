"""Import errors and failure formatting."""

from typing import Optional


class FiasImportError(Exception):
    """Base class for import failures."""


class ConfigurationError(FiasImportError):
    """Raised for invalid or missing run parameters, before touching the store."""


class IngestionError(FiasImportError):
    """Raised when a record of a table cannot be written to the store."""

    def __init__(self, table: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.table = table
        detail = message or (describe_error(cause) if cause is not None else "unknown error")
        super().__init__(f"Failed to import table {table}: {detail}")


class LexemeIndexError(FiasImportError):
    """Raised when the lexeme index loop aborts."""


class ImportCancelled(FiasImportError):
    """Raised when an operator stops the run before ingestion finished."""


def describe_error(exc: BaseException) -> str:
    """
    Format an exception for operator output.

    The nested cause is appended only when one is attached.
    """
    text = str(exc) or type(exc).__name__
    cause = exc.__cause__ or exc.__context__
    if cause is not None and cause is not exc:
        cause_text = str(cause) or type(cause).__name__
        if cause_text not in text:
            text = f"{text} (caused by {type(cause).__name__}: {cause_text})"
    return text
