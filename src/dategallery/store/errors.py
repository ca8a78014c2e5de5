"""Gallery storage errors."""


class GalleryError(Exception):
    """Base exception for gallery store and upload operations."""

    code = "gallery_error"


class InvalidInputError(GalleryError):
    """Raised when a request carries a malformed date or no files."""

    code = "invalid_input"


class BucketNotFoundError(GalleryError):
    """Raised when a date bucket folder (or the store root) does not exist."""

    code = "not_found"


class EmptyBucketError(GalleryError):
    """Raised when a date bucket folder exists but holds no readable images."""

    code = "empty"


class NoValidFilesError(GalleryError):
    """Raised when every file in an upload batch was rejected by screening."""

    code = "no_valid_files"


class PersistenceError(GalleryError):
    """Raised when the folder index, catalog, or image files cannot be read or written."""

    code = "persistence_failure"
