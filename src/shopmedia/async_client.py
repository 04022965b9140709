"""Asynchronous product media client.

:class:`AsyncShopMediaClient` ties the pipeline together for a product
form: it hands out :class:`MediaSession` objects for collecting images and
submits a session's assets together with the form fields.

Usage::

    import asyncio
    from shopmedia import AsyncShopMediaClient, MediaAsset, SlotKind

    async def main():
        async with AsyncShopMediaClient(token="secret_xxx",
                                        base_url="https://shop.example") as client:
            async with client.new_session() as session:
                await session.select(SlotKind.MAIN_IMAGE, [MediaAsset.from_path("front.jpg")])
                result = await client.submit_product(session, {"title": "Tee"})
                print(result)

    asyncio.run(main())
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from shopmedia.batch import FormInputHandle, MediaSession, Transcoder
from shopmedia.config import ShopMediaConfig
from shopmedia.errors import ShopMediaMissingAssetError
from shopmedia.image import PreviewRegistry
from shopmedia.models import NotifyLevel, SlotKind, UploadResult, UploadSuccess
from shopmedia.observability import LoggingNotifier, NotificationPort
from shopmedia.transport import AsyncUploadTransport, ProgressCallback


class AsyncShopMediaClient:
    """Asynchronous client for the product media pipeline.

    Parameters
    ----------
    token:
        Bearer token for the backend.  May be empty for open endpoints.
    transport:
        Optional httpx transport forwarded to :class:`AsyncUploadTransport`.
    notifier:
        Default :class:`NotificationPort` for sessions and submissions.
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`ShopMediaConfig`.
    """

    def __init__(
        self,
        token: str = "",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        notifier: NotificationPort | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = ShopMediaConfig(token=token, **kwargs)
        self._transport = AsyncUploadTransport(self._config, transport=transport)
        self._notifier = notifier or LoggingNotifier()

    @property
    def config(self) -> ShopMediaConfig:
        return self._config

    def new_session(
        self,
        *,
        notifier: NotificationPort | None = None,
        inputs: Mapping[SlotKind, FormInputHandle] | None = None,
        transcoder: Transcoder | None = None,
    ) -> MediaSession:
        """Start collecting images for one product form.

        Each session gets its own :class:`PreviewRegistry`; sessions never
        share handles.
        """
        return MediaSession(
            self._config,
            registry=PreviewRegistry(metrics=self._config.metrics),
            notifier=notifier or self._notifier,
            inputs=inputs,
            transcoder=transcoder,
        )

    async def submit_product(
        self,
        session: MediaSession,
        fields: Mapping[str, Any],
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Submit everything *session* holds, plus *fields*, as one product.

        On success the session is reset: every preview handle is released
        and every file input cleared.  On failure the session is left
        untouched so the operator can retry.

        Raises
        ------
        ShopMediaMissingAssetError
            If a slot listed in ``config.required_slots`` is empty.
        """
        for slot_name in self._config.required_slots:
            slot = SlotKind(slot_name)
            if not session.is_filled(slot):
                error = ShopMediaMissingAssetError(
                    message=f"{slot.label} is required",
                    context={"slot": slot.value},
                )
                self._notifier.notify(NotifyLevel.ERROR, error.message)
                raise error

        result = await self._transport.submit(session.upload_files(), fields, on_progress)

        if isinstance(result, UploadSuccess):
            session.reset()
            self._notifier.notify(NotifyLevel.SUCCESS, "Product created successfully")
        else:
            self._notifier.notify(NotifyLevel.ERROR, f"Failed to create product: {result.detail}")
        return result

    async def close(self) -> None:
        """Close the underlying HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncShopMediaClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
