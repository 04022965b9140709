"""Tests for asset construction, MIME inference and result types."""

import dataclasses

import pytest

from shopmedia.errors import ShopMediaNetworkError
from shopmedia.models import (
    FailureKind,
    MediaAsset,
    Provenance,
    SlotKind,
    TranscodedAsset,
    UploadFailure,
    UploadSuccess,
    ValidationResult,
    sniff_mime,
)


class TestSlotKind:
    def test_wire_names(self):
        assert [kind.value for kind in SlotKind] == ["mainImage", "sizeChartImage", "galleryImages"]

    def test_only_gallery_is_multi(self):
        assert [kind.is_multi for kind in SlotKind] == [False, False, True]

    def test_labels(self):
        assert SlotKind.MAIN_IMAGE.label == "Main image"
        assert SlotKind.SIZE_CHART_IMAGE.label == "Size chart image"


class TestSniffMime:
    @pytest.mark.parametrize(
        ("data", "mime"),
        [
            (b"\x89PNG\r\n\x1a\n....", "image/png"),
            (b"\xff\xd8\xff\xe0....", "image/jpeg"),
            (b"GIF89a....", "image/gif"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
            (b"BM......", "image/bmp"),
        ],
    )
    def test_known_signatures(self, data, mime):
        assert sniff_mime(data) == mime

    def test_riff_without_webp_marker(self):
        assert sniff_mime(b"RIFF\x00\x00\x00\x00WAVEfmt ") is None

    def test_unknown(self):
        assert sniff_mime(b"hello world") is None


class TestMediaAsset:
    def test_declared_type_kept(self):
        asset = MediaAsset.from_bytes("a.png", b"\xff\xd8\xff", "image/png")
        assert asset.mime_type == "image/png"

    def test_missing_type_sniffed(self):
        assert MediaAsset.from_bytes("blob", b"\x89PNG\r\n\x1a\n").mime_type == "image/png"

    def test_missing_type_guessed_from_name(self):
        assert MediaAsset.from_bytes("photo.jpg", b"????").mime_type == "image/jpeg"

    def test_unknown_type_falls_back(self):
        assert MediaAsset.from_bytes("data", b"????").mime_type == "application/octet-stream"

    def test_from_path(self, tmp_path, make_image):
        path = tmp_path / "shirt.png"
        path.write_bytes(make_image(10, 10, "PNG"))
        asset = MediaAsset.from_path(path)
        assert asset.name == "shirt.png"
        assert asset.mime_type == "image/png"
        assert asset.size == path.stat().st_size

    def test_frozen(self):
        asset = MediaAsset("a.jpg", "image/jpeg", b"x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            asset.name = "b.jpg"

    def test_repr_omits_bytes(self):
        assert "data" not in repr(MediaAsset("a.jpg", "image/jpeg", b"secret-bytes"))


class TestTranscodedAsset:
    def test_passthrough_keeps_everything(self):
        asset = MediaAsset("a.jpg", "image/jpeg", b"abc")
        out = TranscodedAsset.passthrough(asset)
        assert out.provenance == Provenance.PASSTHROUGH
        assert (out.name, out.mime_type, out.data) == ("a.jpg", "image/jpeg", b"abc")
        assert out.size == 3


class TestResults:
    def test_validation_ok(self):
        assert ValidationResult().ok

    def test_upload_success(self):
        result = UploadSuccess(resource_id="p1", response={"id": "p1"})
        assert result.ok
        assert result == UploadSuccess(resource_id="p1")

    @pytest.mark.parametrize(
        ("kind", "retryable"),
        [
            (FailureKind.TIMEOUT, True),
            (FailureKind.CONNECTION_LOST, True),
            (FailureKind.BAD_REQUEST, False),
            (FailureKind.CONFLICT, False),
            (FailureKind.UNKNOWN, False),
        ],
    )
    def test_upload_failure_retryable(self, kind, retryable):
        failure = UploadFailure(kind=kind, detail="x", error=ShopMediaNetworkError("x"))
        assert not failure.ok
        assert failure.retryable is retryable
