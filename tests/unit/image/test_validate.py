"""Tests for per-file validation of declared type and size."""

import pytest

from shopmedia.config import ShopMediaConfig
from shopmedia.errors import ErrorCode, ShopMediaImageSizeError, ShopMediaImageTypeError
from shopmedia.image.validate import format_megabytes, validate_file
from shopmedia.models import MediaAsset, SlotKind

MIB = 1024 * 1024


def make_asset(name="photo.jpg", mime="image/jpeg", size=1024):
    return MediaAsset(name=name, mime_type=mime, data=b"\x00" * size)


# =========================================================================
# Declared type
# =========================================================================

class TestDeclaredType:
    """Only the allowlisted declared types pass."""

    @pytest.mark.parametrize("mime", ["image/jpeg", "image/jpg", "image/png", "image/webp"])
    def test_allowed_types_pass(self, config, mime):
        result = validate_file(make_asset(mime=mime), SlotKind.GALLERY_IMAGES, config)
        assert result.ok
        assert result.error is None

    def test_declared_type_is_case_insensitive(self, config):
        result = validate_file(make_asset(mime="IMAGE/PNG"), SlotKind.MAIN_IMAGE, config)
        assert result.ok

    @pytest.mark.parametrize(
        "mime", ["image/gif", "image/svg+xml", "application/pdf", "application/octet-stream", ""]
    )
    def test_disallowed_types_rejected(self, config, mime):
        result = validate_file(make_asset(name="doc.pdf", mime=mime), SlotKind.MAIN_IMAGE, config)
        assert not result.ok
        assert isinstance(result.error, ShopMediaImageTypeError)
        assert result.error.code == ErrorCode.IMAGE_TYPE_ERROR
        assert result.error.message == "doc.pdf: please upload JPEG, PNG, or WebP files only"

    def test_type_error_context(self, config):
        result = validate_file(make_asset(mime="image/gif"), SlotKind.SIZE_CHART_IMAGE, config)
        ctx = result.error.context
        assert ctx["name"] == "photo.jpg"
        assert ctx["slot"] == "sizeChartImage"
        assert ctx["declared_mime"] == "image/gif"
        assert "image/png" in ctx["allowed_mimes"]

    def test_type_checked_before_size(self, config):
        asset = make_asset(mime="image/gif", size=6 * MIB)
        result = validate_file(asset, SlotKind.GALLERY_IMAGES, config)
        assert isinstance(result.error, ShopMediaImageTypeError)

    def test_pixel_data_not_inspected(self, config):
        """A PNG payload declared as JPEG passes; only metadata is checked."""
        asset = MediaAsset(name="x.jpg", mime_type="image/jpeg", data=b"\x89PNG\r\n\x1a\n")
        assert validate_file(asset, SlotKind.MAIN_IMAGE, config).ok

    def test_custom_allowlist(self):
        config = ShopMediaConfig(image_allowed_mimes=["image/png"])
        assert not validate_file(make_asset(mime="image/jpeg"), SlotKind.MAIN_IMAGE, config).ok
        assert validate_file(make_asset(mime="image/png"), SlotKind.MAIN_IMAGE, config).ok


# =========================================================================
# Size ceiling
# =========================================================================

class TestSizeCeiling:
    """Files strictly larger than the ceiling are rejected."""

    def test_exactly_at_ceiling_passes(self, config):
        result = validate_file(make_asset(size=5 * MIB), SlotKind.GALLERY_IMAGES, config)
        assert result.ok

    def test_one_byte_over_ceiling_rejected(self, config):
        result = validate_file(make_asset(size=5 * MIB + 1), SlotKind.GALLERY_IMAGES, config)
        assert isinstance(result.error, ShopMediaImageSizeError)
        assert result.error.code == ErrorCode.IMAGE_SIZE_ERROR
        assert result.error.message == "photo.jpg: file too large, maximum is 5MB per image"
        assert result.error.context["size_bytes"] == 5 * MIB + 1
        assert result.error.context["max_bytes"] == 5 * MIB

    def test_empty_file_passes(self, config):
        assert validate_file(make_asset(size=0), SlotKind.MAIN_IMAGE, config).ok

    def test_custom_ceiling_in_message(self):
        config = ShopMediaConfig(image_max_size_bytes=int(1.5 * MIB))
        result = validate_file(make_asset(size=2 * MIB), SlotKind.MAIN_IMAGE, config)
        assert "maximum is 1.5MB per image" in result.error.message


# =========================================================================
# Formatting helper
# =========================================================================

class TestFormatMegabytes:
    def test_whole_megabytes(self):
        assert format_megabytes(5 * MIB) == "5MB"

    def test_fractional_megabytes(self):
        assert format_megabytes(int(1.2 * MIB)) == "1.2MB"

    def test_precision(self):
        assert format_megabytes(int(2.25 * MIB), precision=2) == "2.25MB"
