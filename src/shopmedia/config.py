"""Pipeline configuration for shopmedia.

:class:`ShopMediaConfig` is a dataclass that captures every tuneable knob
of the media pipeline.  Instances are shared by the validator, the
transcoder, the media session and the upload transport.

The module-level constant :data:`DEFAULT_IMAGE_MIMES` defines the default
declared-type allowlist.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from shopmedia.models import SlotKind

# ---------------------------------------------------------------------------
# MIME allowlist constants
# ---------------------------------------------------------------------------

DEFAULT_IMAGE_MIMES: list[str] = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
]
"""Declared MIME types accepted for every image slot.  ``image/jpg`` is
not registered but some browsers still report it."""

TRANSCODE_OUTPUT_MIMES: tuple[str, ...] = (
    "image/webp",
    "image/jpeg",
    "image/png",
)
"""MIME types the transcoder can re-encode into."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class ShopMediaConfig:
    """Complete configuration for the media pipeline.

    Every parameter has a default matching the product console's
    observed policy.

    Parameters
    ----------
    token:
        Bearer token for the create-product endpoint.  Never logged.
    base_url:
        Backend API root URL.
    create_path:
        Path of the atomic create-product endpoint, relative to
        ``base_url``.
    image_allowed_mimes:
        Declared MIME types accepted by the validator.
    image_max_size_bytes:
        Per-file ceiling in bytes.  Default is 5 MiB.
    transcode_threshold_bytes:
        Files strictly smaller than this are passed through untouched.
    transcode_output_mime:
        Format the transcoder re-encodes into.  One of
        :data:`TRANSCODE_OUTPUT_MIMES`.
    single_max_dimension:
        Longest-side bound for the main and size-chart images.
    single_quality:
        Encoder quality (0-1) for the main and size-chart images.
    gallery_max_dimension:
        Longest-side bound for gallery images.
    gallery_quality:
        Encoder quality (0-1) for gallery images.
    gallery_max_files:
        Maximum number of gallery entries, or ``None`` for no limit.
    required_slots:
        Wire names of slots that must be filled before submission.
    upload_timeout_seconds:
        Upper bound on the whole submission, end to end.
    upload_chunk_size:
        Bytes per streamed body chunk; one progress report per chunk.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~shopmedia.observability.MetricsHook` backend.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    base_url: str = "http://localhost:5000"

    create_path: str = "/products"

    # ── Validation ──────────────────────────────────────────────────────
    image_allowed_mimes: list[str] = field(
        default_factory=lambda: list(DEFAULT_IMAGE_MIMES),
    )

    image_max_size_bytes: int = 5 * 1024 * 1024  # 5 MiB

    # ── Transcoding ─────────────────────────────────────────────────────
    transcode_threshold_bytes: int = 100 * 1024

    transcode_output_mime: str = "image/webp"

    single_max_dimension: int = 800

    single_quality: float = 0.8

    gallery_max_dimension: int = 800

    gallery_quality: float = 0.7

    # ── Session ─────────────────────────────────────────────────────────
    gallery_max_files: int | None = 10

    required_slots: tuple[str, ...] = ("mainImage",)

    # ── Upload ──────────────────────────────────────────────────────────
    upload_timeout_seconds: float = 45.0

    upload_chunk_size: int = 64 * 1024

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.image_max_size_bytes <= 0:
            raise ValueError(f"image_max_size_bytes must be > 0, got {self.image_max_size_bytes}")
        if self.transcode_threshold_bytes < 0:
            raise ValueError(
                f"transcode_threshold_bytes must be >= 0, got {self.transcode_threshold_bytes}"
            )
        if self.transcode_output_mime not in TRANSCODE_OUTPUT_MIMES:
            raise ValueError(
                f"transcode_output_mime must be one of {TRANSCODE_OUTPUT_MIMES}, "
                f"got {self.transcode_output_mime!r}"
            )
        for name in ("single_max_dimension", "gallery_max_dimension"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        for name in ("single_quality", "gallery_quality"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        if self.gallery_max_files is not None and self.gallery_max_files < 1:
            raise ValueError(f"gallery_max_files must be >= 1, got {self.gallery_max_files}")
        for slot_name in self.required_slots:
            try:
                SlotKind(slot_name)
            except ValueError:
                raise ValueError(f"required_slots contains unknown slot {slot_name!r}") from None
        if self.upload_timeout_seconds <= 0:
            raise ValueError(
                f"upload_timeout_seconds must be > 0, got {self.upload_timeout_seconds}"
            )
        if self.upload_chunk_size < 1:
            raise ValueError(f"upload_chunk_size must be >= 1, got {self.upload_chunk_size}")

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"ShopMediaConfig({', '.join(parts)})"
