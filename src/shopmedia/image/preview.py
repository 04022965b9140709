"""Preview handle lifecycle.

A :class:`PreviewRegistry` hands out one ephemeral ``blob:`` URI per kept
asset so the interface can render a thumbnail without re-reading the
bytes, and tracks which handles are still live.

Every acquired handle must be released exactly once: when the user
removes the asset, when a single-slot asset is replaced, or when the
owning session is disposed.  A second release is harmless to the live
count but is logged and counted, because it means the caller's
bookkeeping is wrong.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from shopmedia.errors import ShopMediaPreviewError
from shopmedia.models import PreviewHandle, TranscodedAsset
from shopmedia.observability import get_logger, resolve_metrics

log = get_logger("shopmedia.preview")

URI_PREFIX = "blob:shopmedia/"


class PreviewRegistry:
    """Allocates and revokes preview handles.

    Parameters
    ----------
    metrics:
        Optional metrics backend; receives the ``shopmedia.preview_live``
        gauge after every change.
    """

    def __init__(self, metrics: object | None = None) -> None:
        self._live: dict[str, TranscodedAsset] = {}
        self._metrics = resolve_metrics(metrics)

    @property
    def live_count(self) -> int:
        """Number of handles acquired and not yet released."""
        return len(self._live)

    def is_live(self, handle: PreviewHandle) -> bool:
        return handle.uri in self._live

    def acquire(self, asset: TranscodedAsset) -> PreviewHandle:
        """Allocate a new handle for *asset*.  O(1), no I/O."""
        handle = PreviewHandle(uri=f"{URI_PREFIX}{uuid.uuid4()}", name=asset.name)
        self._live[handle.uri] = asset
        self._metrics.gauge("shopmedia.preview_live", len(self._live))
        return handle

    def resolve(self, handle: PreviewHandle) -> TranscodedAsset:
        """Return the asset behind a live handle.

        Raises
        ------
        ShopMediaPreviewError
            If *handle* has been released (or was never acquired here).
        """
        try:
            return self._live[handle.uri]
        except KeyError:
            raise ShopMediaPreviewError(
                message=f"Preview handle {handle.uri} is not live",
                context={"uri": handle.uri},
            ) from None

    def release(self, handle: PreviewHandle) -> bool:
        """Revoke *handle*.

        Returns
        -------
        bool
            ``True`` if the handle was live and is now revoked; ``False``
            if it had already been released.  The second case is a
            bookkeeping bug in the caller and is logged as a warning.
        """
        if self._live.pop(handle.uri, None) is None:
            log.warning(
                "Preview handle released more than once",
                extra={"extra_fields": {"op": "preview_release", "uri": handle.uri}},
            )
            self._metrics.increment("shopmedia.preview_double_release_total")
            return False
        self._metrics.gauge("shopmedia.preview_live", len(self._live))
        return True

    def release_all(self, handles: Iterable[PreviewHandle] | None = None) -> int:
        """Revoke many handles at once.

        Parameters
        ----------
        handles:
            Handles to revoke.  When omitted, every live handle is revoked.

        Returns
        -------
        int
            Number of handles actually revoked.
        """
        if handles is None:
            released = len(self._live)
            self._live.clear()
            self._metrics.gauge("shopmedia.preview_live", 0)
            return released
        return sum(1 for handle in list(handles) if self.release(handle))
