"""Submission transport for the create-product endpoint."""

from .multipart import encode_multipart, flatten_fields
from .session import UploadSession
from .transport import AsyncUploadTransport, ProgressCallback

__all__ = [
    "AsyncUploadTransport",
    "ProgressCallback",
    "UploadSession",
    "encode_multipart",
    "flatten_fields",
]
