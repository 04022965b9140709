"""Image validation: declared MIME type and size checks.

Validates that a selected file conforms to the configured MIME-type
allowlist and per-file ceiling before the transcoder sees it.  Only file
metadata is inspected; pixel data is never decoded here.
"""

from __future__ import annotations

from shopmedia.config import ShopMediaConfig
from shopmedia.errors import ShopMediaImageSizeError, ShopMediaImageTypeError
from shopmedia.models import MediaAsset, SlotKind, ValidationResult

_MIB = 1024 * 1024


def validate_file(
    asset: MediaAsset,
    slot: SlotKind,
    config: ShopMediaConfig,
) -> ValidationResult:
    """Validate a selected file's declared MIME type and size.

    Parameters
    ----------
    asset:
        The selected file.
    slot:
        The slot it was selected for.  Carried into the error context so
        the caller can surface the error next to the right input.
    config:
        Pipeline configuration with the MIME allowlist and size ceiling.

    Returns
    -------
    ValidationResult
        ``ok`` when the file may proceed.  Otherwise ``error`` holds a
        :class:`ShopMediaImageTypeError` or :class:`ShopMediaImageSizeError`;
        the error is returned, not raised, so one bad file never aborts
        its siblings.
    """
    declared = (asset.mime_type or "").lower()
    if declared not in config.image_allowed_mimes:
        return ValidationResult(
            error=ShopMediaImageTypeError(
                message=f"{asset.name}: please upload JPEG, PNG, or WebP files only",
                context={
                    "name": asset.name,
                    "slot": slot.value,
                    "declared_mime": asset.mime_type,
                    "allowed_mimes": list(config.image_allowed_mimes),
                },
            )
        )

    if asset.size > config.image_max_size_bytes:
        return ValidationResult(
            error=ShopMediaImageSizeError(
                message=(
                    f"{asset.name}: file too large, maximum is "
                    f"{format_megabytes(config.image_max_size_bytes)} per image"
                ),
                context={
                    "name": asset.name,
                    "slot": slot.value,
                    "size_bytes": asset.size,
                    "max_bytes": config.image_max_size_bytes,
                },
            )
        )

    return ValidationResult()


def format_megabytes(num_bytes: int, precision: int = 1) -> str:
    """Render a byte count as ``"5MB"`` / ``"1.2MB"``."""
    value = num_bytes / _MIB
    if value == int(value):
        return f"{int(value)}MB"
    return f"{value:.{precision}f}MB"
