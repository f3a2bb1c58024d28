class UnsupportedContentTypeError(Exception):
    """Raised when an upload's content type cannot be processed."""
