"""Shared test fixtures for the shopmedia test suite."""

from __future__ import annotations

import io
from typing import Any

import pytest
from PIL import Image

from shopmedia.config import ShopMediaConfig
from shopmedia.models import MediaAsset, NotifyLevel, SlotKind


def encode_image(
    width: int,
    height: int,
    fmt: str = "JPEG",
    *,
    noise: bool = False,
    quality: int = 75,
) -> bytes:
    """Render a test image and return its encoded bytes.

    Noise defeats compression so large dimensions produce large files.
    """
    if noise:
        image = Image.effect_noise((width, height), 64).convert("RGB")
    else:
        image = Image.new("RGB", (width, height), (200, 40, 90))
    buf = io.BytesIO()
    save_kwargs: dict[str, Any] = {"quality": quality} if fmt in ("JPEG", "WEBP") else {}
    image.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


class RecordingNotifier:
    """Notification port that records every message."""

    def __init__(self) -> None:
        self.messages: list[tuple[NotifyLevel, str]] = []

    def notify(self, level: NotifyLevel, message: str) -> None:
        self.messages.append((level, message))

    def at(self, level: NotifyLevel) -> list[str]:
        return [message for lvl, message in self.messages if lvl == level]


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [call["name"] for call in self.increments]


class FakeInput:
    """File input handle that counts resets."""

    def __init__(self) -> None:
        self.resets = 0

    def reset(self) -> None:
        self.resets += 1


@pytest.fixture
def config() -> ShopMediaConfig:
    """Default test configuration with a dummy token."""
    return ShopMediaConfig(token="test_token_1234", base_url="https://shop.test")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()


@pytest.fixture
def small_png() -> MediaAsset:
    """A tiny PNG well below the transcoding threshold."""
    return MediaAsset.from_bytes("swatch.png", encode_image(64, 64, "PNG"), "image/png")


@pytest.fixture
def large_jpeg() -> MediaAsset:
    """A 1200x900 noisy JPEG: above the threshold, below the 5 MiB ceiling."""
    return MediaAsset.from_bytes(
        "front.jpg", encode_image(1200, 900, "JPEG", noise=True), "image/jpeg"
    )


@pytest.fixture
def make_image():
    """Factory fixture around :func:`encode_image`."""
    return encode_image


@pytest.fixture
def inputs() -> dict[SlotKind, FakeInput]:
    """One fake file input per slot."""
    return {kind: FakeInput() for kind in SlotKind}
