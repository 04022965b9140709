"""Best-effort image transcoding.

Shrinks accepted images before upload: decode, bound the longest side,
re-encode into one normalised format.  Transcoding is an optimisation,
never a precondition for submitting, so :func:`transcode` always returns a
usable :class:`TranscodedAsset` and falls back to the original bytes on any
decode or encode failure.

Decoding and encoding are CPU-bound and run in the loop's default
executor; they are the only points where a transcode yields to the event
loop.
"""

from __future__ import annotations

import asyncio
import io
import time
from pathlib import PurePath

from PIL import Image, ImageOps

from shopmedia.config import ShopMediaConfig
from shopmedia.errors import ShopMediaTranscodeError
from shopmedia.models import MediaAsset, Provenance, TranscodedAsset
from shopmedia.observability import get_logger, resolve_metrics

log = get_logger("shopmedia.transcode")

_PIL_FORMATS: dict[str, str] = {
    "image/webp": "WEBP",
    "image/jpeg": "JPEG",
    "image/png": "PNG",
}

_EXTENSIONS: dict[str, str] = {
    "image/webp": ".webp",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}

# Pillow raises a zoo of exception types for hostile input.
_DECODE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


def compute_target_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Return the output size for an image bounded by *max_dimension*.

    The longer side becomes exactly *max_dimension*; the shorter side is
    scaled by the same factor and rounded half up (never below 1 px).
    Images already within bounds keep their size.
    """
    if max(width, height) <= max_dimension:
        return width, height
    if width >= height:
        return max_dimension, max(1, int(height * max_dimension / width + 0.5))
    return max(1, int(width * max_dimension / height + 0.5)), max_dimension


def renamed_for(name: str, mime_type: str) -> str:
    """Swap the extension of *name* for the one matching *mime_type*."""
    stem = PurePath(name).stem
    return f"{stem}{_EXTENSIONS.get(mime_type, '')}"


def _decode(data: bytes, max_dimension: int) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        image = ImageOps.exif_transpose(img) or img
        target = compute_target_size(image.width, image.height, max_dimension)
        if target != image.size:
            image = image.resize(target, Image.Resampling.LANCZOS)
        else:
            image = image.copy()
    return image


def _encode(image: Image.Image, output_mime: str, quality: float) -> bytes:
    fmt = _PIL_FORMATS[output_mime]
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    if fmt == "JPEG":
        if image.mode != "RGB":
            image = image.convert("RGB")
    elif image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if has_alpha else "RGB")

    buf = io.BytesIO()
    save_kwargs: dict[str, object] = {"optimize": True}
    if fmt in ("WEBP", "JPEG"):
        save_kwargs["quality"] = int(round(quality * 100))
    image.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


async def transcode(
    asset: MediaAsset,
    max_dimension: int,
    quality: float,
    config: ShopMediaConfig | None = None,
) -> TranscodedAsset:
    """Shrink *asset* for upload.

    Parameters
    ----------
    asset:
        A file that has already passed validation.
    max_dimension:
        Bound on the longest side of the output, in pixels.
    quality:
        Encoder quality on a 0-1 scale.
    config:
        Supplies the skip threshold, output format and metrics backend.
        Defaults to :class:`ShopMediaConfig` defaults.

    Returns
    -------
    TranscodedAsset
        ``TRANSCODED`` with the re-encoded bytes, or ``PASSTHROUGH`` with
        the original bytes when the file is below the threshold or could
        not be decoded or encoded.  Never raises for bad image data.
    """
    config = config or ShopMediaConfig()
    metrics = resolve_metrics(config.metrics)

    if asset.size < config.transcode_threshold_bytes:
        metrics.increment(
            "shopmedia.transcode_total",
            tags={"provenance": Provenance.PASSTHROUGH.value, "reason": "below_threshold"},
        )
        return TranscodedAsset.passthrough(asset)

    output_mime = config.transcode_output_mime
    loop = asyncio.get_running_loop()
    t0 = time.monotonic()
    try:
        try:
            image = await loop.run_in_executor(None, _decode, asset.data, max_dimension)
        except _DECODE_ERRORS as exc:
            raise ShopMediaTranscodeError(
                message=f"Could not decode {asset.name}",
                context={"name": asset.name, "stage": "decode"},
                cause=exc,
            ) from exc

        try:
            payload = await loop.run_in_executor(None, _encode, image, output_mime, quality)
        except (OSError, ValueError) as exc:
            raise ShopMediaTranscodeError(
                message=f"Could not encode {asset.name}",
                context={"name": asset.name, "stage": "encode"},
                cause=exc,
            ) from exc

        if not payload:
            raise ShopMediaTranscodeError(
                message=f"Encoder produced no output for {asset.name}",
                context={"name": asset.name, "stage": "encode"},
            )
    except ShopMediaTranscodeError as exc:
        log.warning(
            "Transcode failed, keeping original bytes",
            extra={
                "extra_fields": {
                    "op": "transcode",
                    **exc.context,
                    "error": str(exc.cause or exc),
                }
            },
        )
        metrics.increment(
            "shopmedia.transcode_total",
            tags={"provenance": Provenance.PASSTHROUGH.value, "reason": exc.context["stage"]},
        )
        return TranscodedAsset.passthrough(asset)

    elapsed_ms = (time.monotonic() - t0) * 1000
    result = TranscodedAsset(
        name=renamed_for(asset.name, output_mime),
        mime_type=output_mime,
        data=payload,
        provenance=Provenance.TRANSCODED,
        dimensions=image.size,
    )
    metrics.increment(
        "shopmedia.transcode_total",
        tags={"provenance": Provenance.TRANSCODED.value},
    )
    metrics.timing("shopmedia.transcode_duration_ms", elapsed_ms)
    log.debug(
        "Image transcoded",
        extra={
            "extra_fields": {
                "op": "transcode",
                "name": asset.name,
                "in_bytes": asset.size,
                "out_bytes": result.size,
                "width": result.dimensions[0] if result.dimensions else None,
                "height": result.dimensions[1] if result.dimensions else None,
                "duration_ms": round(elapsed_ms, 1),
            }
        },
    )
    return result
