"""Public data models for the shopmedia pipeline.

This module contains every asset type, result type and enum referenced
by the public API surface.  Asset types are frozen dataclasses: once a
file has been selected or transcoded it is never mutated.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from shopmedia.errors import ShopMediaError, ShopMediaImageError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SlotKind(str, Enum):
    """Named image attachment points of the product form.

    The value is the multi-part field name the backend expects.
    """

    MAIN_IMAGE = "mainImage"
    """Single slot: the product's primary image."""

    SIZE_CHART_IMAGE = "sizeChartImage"
    """Single slot: the size-chart image."""

    GALLERY_IMAGES = "galleryImages"
    """Multi slot: an ordered gallery of images."""

    @property
    def is_multi(self) -> bool:
        return self is SlotKind.GALLERY_IMAGES

    @property
    def label(self) -> str:
        """Name shown to the operator."""
        return _SLOT_LABELS[self]


_SLOT_LABELS: dict[SlotKind, str] = {
    SlotKind.MAIN_IMAGE: "Main image",
    SlotKind.SIZE_CHART_IMAGE: "Size chart image",
    SlotKind.GALLERY_IMAGES: "Gallery",
}


class Provenance(str, Enum):
    """How a :class:`TranscodedAsset` was produced."""

    TRANSCODED = "transcoded"
    """The image was decoded, resized if needed and re-encoded."""

    PASSTHROUGH = "passthrough"
    """The original bytes were kept (below threshold or transcoding failed)."""


class UploadState(str, Enum):
    """Lifecycle states of an :class:`~shopmedia.transport.session.UploadSession`."""

    PENDING = "pending"
    """Payload built, nothing sent yet."""

    UPLOADING = "uploading"
    """Body chunks are being streamed."""

    SUCCEEDED = "succeeded"
    """The backend created the resource."""

    FAILED = "failed"
    """The submission failed as a whole."""


class FailureKind(str, Enum):
    """Classification of a failed submission."""

    TIMEOUT = "timeout"
    CONNECTION_LOST = "connection_lost"
    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


class NotifyLevel(str, Enum):
    """Severity of a user-facing notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

# Magic bytes used when a file arrives without a declared type.
_MAGIC_BYTES: list[tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"RIFF", "image/webp"),  # RIFF....WEBP (check further)
    (b"BM", "image/bmp"),
]


def sniff_mime(data: bytes) -> str | None:
    """Attempt to detect MIME type from the first bytes of image data."""
    for magic, mime in _MAGIC_BYTES:
        if data[:len(magic)] == magic:
            if magic == b"RIFF" and data[8:12] != b"WEBP":
                continue
            return mime
    return None


@dataclass(frozen=True)
class MediaAsset:
    """One user-selected file before any processing.

    Attributes
    ----------
    name:
        Original file name as shown to the user.
    mime_type:
        Declared MIME type.  Untrusted: the validator checks it against
        the allowlist but never inspects pixel data.
    data:
        Raw file bytes.
    """

    name: str
    mime_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        mime_type: str | None = None,
    ) -> MediaAsset:
        """Build an asset, inferring a missing declared type.

        Falls back to magic-byte sniffing, then to the file-name
        extension, then to ``application/octet-stream``.
        """
        if not mime_type:
            mime_type = sniff_mime(data) or mimetypes.guess_type(name)[0]
        return cls(name=name, mime_type=mime_type or "application/octet-stream", data=data)

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> MediaAsset:
        """Read a file from disk into an asset."""
        file_path = Path(path)
        if not mime_type:
            mime_type = mimetypes.guess_type(file_path.name)[0]
        return cls.from_bytes(file_path.name, file_path.read_bytes(), mime_type)


@dataclass(frozen=True)
class TranscodedAsset:
    """Output of the transcoder, ready for preview and upload.

    Attributes
    ----------
    name:
        File name to send; the extension follows ``mime_type``.
    mime_type:
        MIME type of ``data``.
    data:
        Payload bytes.  Identical to the input for passthrough assets.
    provenance:
        Whether the bytes were re-encoded or passed through.
    dimensions:
        ``(width, height)`` of the output when the image was decoded,
        ``None`` otherwise.
    """

    name: str
    mime_type: str
    data: bytes = field(repr=False)
    provenance: Provenance
    dimensions: tuple[int, int] | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def passthrough(cls, asset: MediaAsset) -> TranscodedAsset:
        return cls(
            name=asset.name,
            mime_type=asset.mime_type,
            data=asset.data,
            provenance=Provenance.PASSTHROUGH,
        )


@dataclass(frozen=True)
class PreviewHandle:
    """Ephemeral, process-local reference to a kept asset.

    Attributes
    ----------
    uri:
        Opaque ``blob:`` URI, unique for the life of the process.
    name:
        Name of the asset behind the handle, for display.
    """

    uri: str
    name: str


@dataclass(frozen=True)
class GalleryEntry:
    """A kept asset together with its preview handle."""

    asset: TranscodedAsset
    handle: PreviewHandle


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one file.

    ``error`` is ``None`` exactly when ``ok`` is true.
    """

    error: ShopMediaImageError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Rejection:
    """A selected file that was not added to its slot.

    Attributes
    ----------
    name:
        File name as selected.
    slot:
        Target slot of the selection.
    error:
        Why the file was rejected.
    """

    name: str
    slot: SlotKind
    error: ShopMediaError

    @property
    def message(self) -> str:
        return self.error.message


@dataclass
class SelectionResult:
    """Outcome of one file-picker interaction.

    Attributes
    ----------
    slot:
        Slot the files were selected for.
    accepted:
        New entries, in selection order.
    rejections:
        Files that were dropped, in selection order.
    replaced:
        For single slots, the entry that was displaced (its handle has
        already been released).
    superseded:
        True when the slot was cleared while these files were still
        transcoding, or (single slots only) a later selection for the
        same slot was made in the meantime.  Nothing from this selection
        was kept.
    """

    slot: SlotKind
    accepted: list[GalleryEntry] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)
    replaced: GalleryEntry | None = None
    superseded: bool = False


@dataclass(frozen=True)
class UploadSuccess:
    """The backend created the product.

    Attributes
    ----------
    resource_id:
        Identifier assigned by the backend.
    response:
        Parsed response body, for callers that need more than the id.
    """

    resource_id: str
    response: dict[str, Any] = field(default_factory=dict, compare=False)

    ok = True


@dataclass(frozen=True)
class UploadFailure:
    """The submission failed as a whole; nothing was committed.

    Attributes
    ----------
    kind:
        Failure classification.
    detail:
        Human-readable message, passed through verbatim from the server
        when it supplied one.
    error:
        The underlying typed error.
    """

    kind: FailureKind
    detail: str
    error: ShopMediaError | None = field(default=None, compare=False)

    ok = False

    @property
    def retryable(self) -> bool:
        return self.kind in (FailureKind.TIMEOUT, FailureKind.CONNECTION_LOST)


UploadResult = Union[UploadSuccess, UploadFailure]
