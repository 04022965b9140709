"""Multi-part payload assembly for the create-product endpoint.

The backend expects one ``multipart/form-data`` body: the scalar product
fields first, then the binary parts ``mainImage``, ``sizeChartImage`` and
one ``galleryImages`` part per gallery entry, in collection order.

Encoding is delegated to httpx; this module only normalises the inputs
and hands back the encoded bytes so the transport can stream them in
chunks and report progress.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from shopmedia.models import TranscodedAsset

FieldValue = str | list[str]

# httpx needs an absolute URL to build a request; the body is re-sent elsewhere.
_ENCODE_URL = "http://multipart.invalid/"


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def flatten_fields(fields: Mapping[str, Any]) -> dict[str, FieldValue]:
    """Normalise form fields for multi-part encoding.

    * ``None`` and empty strings are dropped.
    * Lists, tuples and sets become repeated keys (blank items dropped).
    * Booleans become ``"true"`` / ``"false"``; dicts become compact JSON.
    * Everything else is passed through ``str()``.
    """
    flat: dict[str, FieldValue] = {}
    for key, value in fields.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            items = [_scalar(item) for item in value if not _is_blank(item)]
            if items:
                flat[key] = items
        elif not _is_blank(value):
            flat[key] = _scalar(value)
    return flat


def encode_multipart(
    fields: Mapping[str, Any],
    files: Sequence[tuple[str, TranscodedAsset]],
) -> tuple[dict[str, str], bytes]:
    """Encode *fields* and *files* into one multi-part body.

    Parameters
    ----------
    fields:
        Scalar product fields; see :func:`flatten_fields`.
    files:
        ``(field_name, asset)`` pairs, in the order they must appear.

    Returns
    -------
    tuple[dict[str, str], bytes]
        ``(headers, body)`` where *headers* carries ``Content-Type`` (with
        the boundary) and ``Content-Length``.

    Raises
    ------
    ValueError
        If *files* is empty; the endpoint always receives at least one
        image.
    """
    if not files:
        raise ValueError("A product submission needs at least one image part")

    request = httpx.Request(
        "POST",
        _ENCODE_URL,
        data=flatten_fields(fields),
        files=[
            (field_name, (asset.name, asset.data, asset.mime_type))
            for field_name, asset in files
        ],
    )
    body = request.read()
    headers = {
        "Content-Type": request.headers["Content-Type"],
        "Content-Length": str(len(body)),
    }
    return headers, body
