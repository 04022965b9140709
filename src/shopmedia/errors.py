"""Full error hierarchy for the shopmedia pipeline.

Every public error class inherits from ShopMediaError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.

Not every error is raised.  The validator *returns* image errors so the
caller can drop one file and keep the rest of a batch, and the upload
transport converts network/server errors into an :class:`UploadFailure`
result.  The classes still exist so both paths share one vocabulary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the pipeline produces."""

    IMAGE_ERROR = "IMAGE_ERROR"
    IMAGE_TYPE_ERROR = "IMAGE_TYPE_ERROR"
    IMAGE_SIZE_ERROR = "IMAGE_SIZE_ERROR"
    TRANSCODE_ERROR = "TRANSCODE_ERROR"
    SELECTION_ERROR = "SELECTION_ERROR"
    PREVIEW_ERROR = "PREVIEW_ERROR"
    SESSION_CLOSED = "SESSION_CLOSED"
    MISSING_ASSET = "MISSING_ASSET"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"


class NetworkErrorKind(str, Enum):
    """Sub-classification of :class:`ShopMediaNetworkError`."""

    TIMEOUT = "timeout"
    CONNECTION_LOST = "connection_lost"


class ServerErrorKind(str, Enum):
    """Sub-classification of :class:`ShopMediaServerError`."""

    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ShopMediaError(Exception):
    """Base exception for all shopmedia errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A user-presentable description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Image errors
# ---------------------------------------------------------------------------

class ShopMediaImageError(ShopMediaError):
    """Base class for per-file image errors.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.IMAGE_ERROR,
        message: str = "Image error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaImageTypeError(ShopMediaImageError):
    """The declared MIME type is not in the configured allowlist.

    Context keys: ``name``, ``declared_mime``, ``allowed_mimes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_TYPE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaImageSizeError(ShopMediaImageError):
    """The file exceeds the configured per-file ceiling.

    Context keys: ``name``, ``size_bytes``, ``max_bytes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_SIZE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaTranscodeError(ShopMediaImageError):
    """Decoding or re-encoding failed.

    Only used internally: the transcoder logs it and falls back to the
    original bytes.

    Context keys: ``name``, ``stage``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.TRANSCODE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Session errors
# ---------------------------------------------------------------------------

class ShopMediaSelectionError(ShopMediaError):
    """A selection violates a slot rule (too many files, gallery full).

    Context keys: ``slot``, ``selected``, ``limit``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SELECTION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaPreviewError(ShopMediaError):
    """A preview handle was used after it had been released.

    Context keys: ``uri``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PREVIEW_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaSessionClosedError(ShopMediaError):
    """The media session has been disposed and cannot be used again."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SESSION_CLOSED,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaMissingAssetError(ShopMediaError):
    """A slot required for submission is empty.

    Context keys: ``slot``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MISSING_ASSET,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class ShopMediaUploadError(ShopMediaError):
    """Base class for submission errors.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.UPLOAD_ERROR,
        message: str = "Upload error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaNetworkError(ShopMediaUploadError):
    """A transport-level failure (deadline exceeded, connection dropped).

    Context keys: ``url``, ``timeout_seconds``.
    """

    def __init__(
        self,
        message: str,
        kind: NetworkErrorKind = NetworkErrorKind.CONNECTION_LOST,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.kind: NetworkErrorKind = kind
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopMediaServerError(ShopMediaUploadError):
    """The backend answered but did not create the resource.

    Context keys: ``status_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        kind: ServerErrorKind = ServerErrorKind.UNKNOWN,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.kind: ServerErrorKind = kind
        super().__init__(
            code=ErrorCode.SERVER_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
