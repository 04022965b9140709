"""Async HTTP transport for the atomic create-product submission.

One call to :meth:`AsyncUploadTransport.submit` handles the full
lifecycle of a submission:

1. Encode fields and images into one multi-part body.
2. Stream the body in fixed-size chunks, reporting progress after each.
3. Enforce an end-to-end deadline on the whole exchange.
4. On ``2xx`` with ``success`` -- return :class:`UploadSuccess` with the
   created identifier.
5. On anything else -- return :class:`UploadFailure` with a classified
   kind and the server's message verbatim.

There is no retry: a failed submission commits nothing and the caller
may simply submit again.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from typing import Any

import httpx

from shopmedia.config import ShopMediaConfig
from shopmedia.errors import (
    NetworkErrorKind,
    ServerErrorKind,
    ShopMediaNetworkError,
    ShopMediaServerError,
    ShopMediaUploadError,
)
from shopmedia.models import (
    FailureKind,
    TranscodedAsset,
    UploadFailure,
    UploadResult,
    UploadState,
    UploadSuccess,
)
from shopmedia.observability import get_logger, resolve_metrics

from .multipart import encode_multipart
from .session import UploadSession

log = get_logger("shopmedia.transport")

ProgressCallback = Callable[[int, str], None]
"""``(percent, status_text) -> None``, called after every streamed chunk."""

_ID_KEYS = ("insertedId", "id", "_id", "productId")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _extract_resource_id(body: Mapping[str, Any]) -> str | None:
    """Find the created resource's identifier in a success body."""
    for container in (body, body.get("data"), body.get("product")):
        if not isinstance(container, Mapping):
            continue
        for key in _ID_KEYS:
            value = container.get(key)
            if value not in (None, ""):
                return str(value)
    return None


def _classify_response(response: httpx.Response) -> tuple[str, dict[str, Any]]:
    """Return ``(resource_id, body)`` or raise :class:`ShopMediaServerError`."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    server_message = body.get("message") or body.get("error")

    if 200 <= status < 300:
        resource_id = _extract_resource_id(body)
        if body.get("success") and resource_id is not None:
            return resource_id, body
        raise ShopMediaServerError(
            message=server_message or "Server did not confirm the product was created",
            kind=ServerErrorKind.UNKNOWN,
            context={"status_code": status, "body": body},
        )

    if status in (400, 422):
        kind = ServerErrorKind.BAD_REQUEST
    elif status == 409:
        kind = ServerErrorKind.CONFLICT
    else:
        kind = ServerErrorKind.UNKNOWN

    raise ShopMediaServerError(
        message=server_message or response.text[:500] or f"Server responded with HTTP {status}",
        kind=kind,
        context={"status_code": status, "body": body},
    )


async def _stream_body(
    body: bytes,
    chunk_size: int,
    on_chunk: Callable[[int], None],
) -> AsyncIterator[bytes]:
    for offset in range(0, len(body), chunk_size):
        chunk = body[offset:offset + chunk_size]
        yield chunk
        # Resumed only once the transport has taken the chunk.
        on_chunk(len(chunk))


def _failure_from(error: ShopMediaUploadError) -> UploadFailure:
    kind = getattr(error, "kind", None)
    return UploadFailure(
        kind=FailureKind(kind.value) if kind is not None else FailureKind.UNKNOWN,
        detail=error.message,
        error=error,
    )


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncUploadTransport:
    """Sends one product submission per :meth:`submit` call.

    Parameters
    ----------
    config:
        A :class:`ShopMediaConfig` controlling endpoint, token, deadline
        and chunk size.
    transport:
        Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        config: ShopMediaConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._metrics = resolve_metrics(config.metrics)

        headers = {"Accept": "application/json"}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"

        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=httpx.Timeout(config.upload_timeout_seconds),
            proxy=config.http_proxy,
            transport=transport,
        )

    # -- public API --------------------------------------------------------

    async def submit(
        self,
        files: Sequence[tuple[str, TranscodedAsset]],
        fields: Mapping[str, Any] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Submit *files* and *fields* as one atomic multi-part request.

        Parameters
        ----------
        files:
            ``(field_name, asset)`` pairs that already went through
            validation and transcoding, in wire order.
        fields:
            Scalar product fields, treated as an opaque bag.
        on_progress:
            Called with ``(percent, status_text)`` after each streamed
            chunk.  Percentages never decrease within one call.

        Returns
        -------
        UploadSuccess | UploadFailure
            Exactly one outcome; network and server errors never escape
            as exceptions.

        Raises
        ------
        ValueError
            If *files* is empty.
        """
        headers, body = encode_multipart(fields or {}, files)
        session = UploadSession(total_bytes=len(body))
        timeout = self._config.upload_timeout_seconds

        t0 = time.monotonic()
        try:
            resource_id, payload = await asyncio.wait_for(
                self._exchange(session, headers, body, on_progress),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            outcome: UploadResult = _failure_from(
                ShopMediaNetworkError(
                    message=f"Upload timed out after {timeout:g} seconds",
                    kind=NetworkErrorKind.TIMEOUT,
                    context={"url": self._config.create_path, "timeout_seconds": timeout},
                    cause=exc,
                )
            )
        except ShopMediaUploadError as exc:
            outcome = _failure_from(exc)
        else:
            outcome = UploadSuccess(resource_id=resource_id, response=payload)
        elapsed_ms = (time.monotonic() - t0) * 1000

        session.finish(outcome)
        self._record(session, outcome, elapsed_ms)
        return outcome

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncUploadTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- internals ---------------------------------------------------------

    async def _exchange(
        self,
        session: UploadSession,
        headers: dict[str, str],
        body: bytes,
        on_progress: ProgressCallback | None,
    ) -> tuple[str, dict[str, Any]]:
        session.transition(UploadState.UPLOADING)

        def on_chunk(num_bytes: int) -> None:
            percent = session.advance(num_bytes)
            if on_progress is not None:
                on_progress(percent, session.status_text)

        request = self._client.build_request(
            "POST",
            self._config.create_path,
            content=_stream_body(body, self._config.upload_chunk_size, on_chunk),
            headers=headers,
        )
        log.debug(
            "Sending create request",
            extra={
                "extra_fields": {
                    "op": "submit",
                    "path": self._config.create_path,
                    "headers": dict(request.headers),
                    "total_bytes": session.total_bytes,
                }
            },
        )
        try:
            response = await self._client.send(request)
        except httpx.TimeoutException as exc:
            raise ShopMediaNetworkError(
                message=f"Upload timed out: {exc}",
                kind=NetworkErrorKind.TIMEOUT,
                context={"url": self._config.create_path},
                cause=exc,
            ) from exc
        except httpx.TransportError as exc:
            raise ShopMediaNetworkError(
                message=f"Connection lost during upload: {exc}",
                kind=NetworkErrorKind.CONNECTION_LOST,
                context={"url": self._config.create_path},
                cause=exc,
            ) from exc

        return _classify_response(response)

    def _record(self, session: UploadSession, outcome: UploadResult, elapsed_ms: float) -> None:
        fields: dict[str, Any] = {
            "op": "submit",
            "path": self._config.create_path,
            "total_bytes": session.total_bytes,
            "transferred_bytes": session.transferred_bytes,
            "duration_ms": round(elapsed_ms, 1),
        }
        self._metrics.timing("shopmedia.upload_duration_ms", elapsed_ms)
        if isinstance(outcome, UploadSuccess):
            self._metrics.increment("shopmedia.upload_success_total")
            log.info(
                "Product submitted",
                extra={"extra_fields": {**fields, "resource_id": outcome.resource_id}},
            )
            return
        self._metrics.increment(
            "shopmedia.upload_failure_total",
            tags={"kind": outcome.kind.value},
        )
        log.warning(
            "Product submission failed",
            extra={
                "extra_fields": {
                    **fields,
                    "kind": outcome.kind.value,
                    "detail": outcome.detail,
                    "status_code": outcome.error.context.get("status_code")
                    if outcome.error is not None
                    else None,
                }
            },
        )
