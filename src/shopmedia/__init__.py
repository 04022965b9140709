"""shopmedia: product image ingestion and upload pipeline.

Public re-exports
-----------------

* **Client:** :class:`AsyncShopMediaClient`
* **Session:** :class:`MediaSession`, :class:`GalleryCollection`
* **Configuration:** :class:`ShopMediaConfig`
* **Errors:** Every :class:`ShopMediaError` subclass and :class:`ErrorCode`
* **Models:** Asset types, result types and enums

Usage::

    from shopmedia import AsyncShopMediaClient, MediaAsset, SlotKind

    client = AsyncShopMediaClient(token="secret_xxx", base_url="https://shop.example")
    session = client.new_session()
    await session.select(SlotKind.GALLERY_IMAGES, [MediaAsset.from_path("a.jpg")])
"""

from __future__ import annotations

# ── Client ──────────────────────────────────────────────────────────────
from shopmedia.async_client import AsyncShopMediaClient

# ── Session ─────────────────────────────────────────────────────────────
from shopmedia.batch import FormInputHandle, GalleryCollection, MediaSession, SingleSlot

# ── Configuration ───────────────────────────────────────────────────────
from shopmedia.config import DEFAULT_IMAGE_MIMES, ShopMediaConfig

# ── Errors ──────────────────────────────────────────────────────────────
from shopmedia.errors import (
    ErrorCode,
    NetworkErrorKind,
    ServerErrorKind,
    ShopMediaError,
    ShopMediaImageError,
    ShopMediaImageSizeError,
    ShopMediaImageTypeError,
    ShopMediaMissingAssetError,
    ShopMediaNetworkError,
    ShopMediaPreviewError,
    ShopMediaSelectionError,
    ShopMediaServerError,
    ShopMediaSessionClosedError,
    ShopMediaTranscodeError,
    ShopMediaUploadError,
)

# ── Image pipeline ──────────────────────────────────────────────────────
from shopmedia.image import PreviewRegistry, transcode, validate_file

# ── Models ──────────────────────────────────────────────────────────────
from shopmedia.models import (
    FailureKind,
    GalleryEntry,
    MediaAsset,
    NotifyLevel,
    PreviewHandle,
    Provenance,
    Rejection,
    SelectionResult,
    SlotKind,
    TranscodedAsset,
    UploadFailure,
    UploadResult,
    UploadState,
    UploadSuccess,
    ValidationResult,
)

# ── Observability ───────────────────────────────────────────────────────
from shopmedia.observability import LoggingNotifier, NoopNotifier, NotificationPort

# ── Transport ───────────────────────────────────────────────────────────
from shopmedia.transport import AsyncUploadTransport, UploadSession

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Client
    "AsyncShopMediaClient",
    # Session
    "MediaSession",
    "GalleryCollection",
    "SingleSlot",
    "FormInputHandle",
    # Configuration
    "ShopMediaConfig",
    "DEFAULT_IMAGE_MIMES",
    # Error base + code enums
    "ShopMediaError",
    "ErrorCode",
    "NetworkErrorKind",
    "ServerErrorKind",
    # Image errors
    "ShopMediaImageError",
    "ShopMediaImageTypeError",
    "ShopMediaImageSizeError",
    "ShopMediaTranscodeError",
    # Session errors
    "ShopMediaSelectionError",
    "ShopMediaPreviewError",
    "ShopMediaSessionClosedError",
    "ShopMediaMissingAssetError",
    # Upload errors
    "ShopMediaUploadError",
    "ShopMediaNetworkError",
    "ShopMediaServerError",
    # Image pipeline
    "validate_file",
    "transcode",
    "PreviewRegistry",
    # Models: assets
    "MediaAsset",
    "TranscodedAsset",
    "PreviewHandle",
    "GalleryEntry",
    # Models: results
    "ValidationResult",
    "Rejection",
    "SelectionResult",
    "UploadSuccess",
    "UploadFailure",
    "UploadResult",
    # Models: enums
    "SlotKind",
    "Provenance",
    "UploadState",
    "FailureKind",
    "NotifyLevel",
    # Observability
    "NotificationPort",
    "LoggingNotifier",
    "NoopNotifier",
    # Transport
    "AsyncUploadTransport",
    "UploadSession",
]
