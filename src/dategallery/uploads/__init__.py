"""Upload handling for date-bucketed images."""

from .coordinator import UploadCoordinator, sanitize_filename

__all__ = ["UploadCoordinator", "sanitize_filename"]
