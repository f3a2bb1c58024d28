class ExtractionError(Exception):
    """Raised when text cannot be extracted from a document."""
