"""Image pipeline for validating, transcoding and previewing selected files.

Exports
-------
validate_file
    Check declared MIME type and size against the configured policy.
transcode / compute_target_size
    Bound and re-encode an image, falling back to the original bytes.
PreviewRegistry
    Allocate and revoke ephemeral preview handles.
"""

from .preview import PreviewRegistry
from .transcode import compute_target_size, renamed_for, transcode
from .validate import format_megabytes, validate_file

__all__ = [
    "PreviewRegistry",
    "compute_target_size",
    "format_megabytes",
    "renamed_for",
    "transcode",
    "validate_file",
]
