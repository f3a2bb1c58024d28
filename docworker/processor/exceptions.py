class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class NotFoundError(ProcessorError):
    """Raised when a row the pipeline depends on does not exist."""


class DocumentNotFoundError(NotFoundError):
    """Raised when a document cannot be found in the database."""


class PersistenceError(ProcessorError):
    """Raised when a write to the relational store fails."""
