"""Selection orchestration for the product image slots.

:class:`MediaSession` owns everything an operator has attached to one
product form: the two single slots (main image, size-chart image), the
gallery, and one preview handle per kept asset.  It turns file-picker
events into validated, transcoded, previewable entries.

Ordering: a gallery selection of N files is transcoded concurrently but
written back only once all N have finished, at their *selection* index.
Overlapping selections commit in the order they were made: each batch
waits for the batch selected before it.  The same selections therefore
always yield the same order, however long each transcode takes.

Staleness: clearing a slot (directly, through :meth:`MediaSession.reset`
or on dispose) invalidates every selection for it that is still
transcoding, and a newer single-slot selection invalidates an older one.
Invalidated results are dropped before a preview handle is acquired.

Handle bookkeeping: an entry leaves the visible collection before its
handle is released, so the collection never references a revoked handle.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from typing import Protocol, runtime_checkable

from shopmedia.config import ShopMediaConfig
from shopmedia.errors import (
    ShopMediaError,
    ShopMediaSelectionError,
    ShopMediaSessionClosedError,
)
from shopmedia.image import PreviewRegistry, transcode, validate_file
from shopmedia.models import (
    GalleryEntry,
    MediaAsset,
    NotifyLevel,
    PreviewHandle,
    Rejection,
    SelectionResult,
    SlotKind,
    TranscodedAsset,
)
from shopmedia.observability import LoggingNotifier, NotificationPort, get_logger, resolve_metrics

log = get_logger("shopmedia.batch")

Transcoder = Callable[[MediaAsset, int, float], Awaitable[TranscodedAsset]]
"""``(asset, max_dimension, quality) -> TranscodedAsset``; must never raise."""

@runtime_checkable
class FormInputHandle(Protocol):
    """The file input a slot was picked from.

    Resetting it lets the operator pick the same file again.
    """

    def reset(self) -> None:
        ...


# ---------------------------------------------------------------------------
# Slot containers
# ---------------------------------------------------------------------------

class GalleryCollection:
    """Ordered gallery entries, in selection order.

    Appending extends the sequence; removal by index shifts later entries
    down by one and leaves their relative order untouched.
    """

    def __init__(self) -> None:
        self._entries: list[GalleryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[GalleryEntry]:
        return iter(list(self._entries))

    def __getitem__(self, index: int) -> GalleryEntry:
        return self._entries[index]

    @property
    def assets(self) -> list[TranscodedAsset]:
        return [entry.asset for entry in self._entries]

    @property
    def handles(self) -> list[PreviewHandle]:
        return [entry.handle for entry in self._entries]

    def extend(self, entries: Sequence[GalleryEntry]) -> None:
        self._entries.extend(entries)

    def remove(self, index: int) -> GalleryEntry:
        """Remove and return the entry at *index*.

        Raises
        ------
        IndexError
            If *index* is negative or past the end.
        """
        if not 0 <= index < len(self._entries):
            raise IndexError(
                f"gallery index {index} out of range for {len(self._entries)} entries"
            )
        return self._entries.pop(index)

    def clear(self) -> list[GalleryEntry]:
        removed, self._entries = self._entries, []
        return removed


class SingleSlot:
    """Holds at most one entry."""

    def __init__(self, kind: SlotKind) -> None:
        self.kind = kind
        self.entry: GalleryEntry | None = None

    def replace(self, entry: GalleryEntry) -> GalleryEntry | None:
        previous, self.entry = self.entry, entry
        return previous

    def clear(self) -> GalleryEntry | None:
        previous, self.entry = self.entry, None
        return previous


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class MediaSession:
    """All images attached to one product form.

    Parameters
    ----------
    config:
        Pipeline configuration.  Defaults to :class:`ShopMediaConfig`.
    registry:
        Preview registry.  A private one is created when omitted; it must
        not be shared with another session.
    notifier:
        Where user-facing messages go.  Defaults to
        :class:`LoggingNotifier`.
    inputs:
        Optional file-input handle per slot, reset after each selection.
    transcoder:
        Replacement for :func:`shopmedia.image.transcode`.  Tests inject
        one to control completion order.

    The host must call :meth:`dispose` (or use ``async with``) when the
    form goes away, so that every preview handle is released.
    """

    def __init__(
        self,
        config: ShopMediaConfig | None = None,
        *,
        registry: PreviewRegistry | None = None,
        notifier: NotificationPort | None = None,
        inputs: Mapping[SlotKind, FormInputHandle] | None = None,
        transcoder: Transcoder | None = None,
    ) -> None:
        self._config = config or ShopMediaConfig()
        self._metrics = resolve_metrics(self._config.metrics)
        self.registry = registry or PreviewRegistry(metrics=self._config.metrics)
        self._notifier = notifier or LoggingNotifier()
        self._inputs: dict[SlotKind, FormInputHandle] = dict(inputs or {})
        self._transcoder = transcoder or self._default_transcoder
        self._singles: dict[SlotKind, SingleSlot] = {
            SlotKind.MAIN_IMAGE: SingleSlot(SlotKind.MAIN_IMAGE),
            SlotKind.SIZE_CHART_IMAGE: SingleSlot(SlotKind.SIZE_CHART_IMAGE),
        }
        self.gallery = GalleryCollection()
        self._gallery_pending = 0
        # Bumped whenever the gallery is cleared; batches from an older
        # epoch are dropped.
        self._gallery_epoch = 0
        # Committed-event of the most recently selected gallery batch.
        self._gallery_tail: asyncio.Event | None = None
        self._single_generation: dict[SlotKind, int] = dict.fromkeys(self._singles, 0)
        self._disposed = False

    async def _default_transcoder(
        self, asset: MediaAsset, max_dimension: int, quality: float
    ) -> TranscodedAsset:
        return await transcode(asset, max_dimension, quality, self._config)

    # -- inspection --------------------------------------------------------

    @property
    def disposed(self) -> bool:
        return self._disposed

    def entry(self, slot: SlotKind) -> GalleryEntry | None:
        """Current entry of a single slot."""
        if slot.is_multi:
            raise ValueError(f"{slot.value} is a multi slot; use .gallery")
        return self._singles[slot].entry

    def is_filled(self, slot: SlotKind) -> bool:
        if slot.is_multi:
            return len(self.gallery) > 0
        return self._singles[slot].entry is not None

    def upload_files(self) -> list[tuple[str, TranscodedAsset]]:
        """Kept assets as ``(field_name, asset)`` pairs in wire order.

        Single slots first, then one pair per gallery entry in collection
        order.
        """
        files: list[tuple[str, TranscodedAsset]] = []
        for kind, slot in self._singles.items():
            if slot.entry is not None:
                files.append((kind.value, slot.entry.asset))
        files.extend((SlotKind.GALLERY_IMAGES.value, asset) for asset in self.gallery.assets)
        return files

    @property
    def total_bytes(self) -> int:
        return sum(asset.size for _, asset in self.upload_files())

    # -- selection ---------------------------------------------------------

    async def select(self, slot: SlotKind, files: Sequence[MediaAsset]) -> SelectionResult:
        """Process one file-picker interaction for *slot*.

        Single slots take exactly one file and replace their previous
        entry.  The gallery appends every file that passes validation;
        rejected files are reported and never abort their siblings.

        Raises
        ------
        ShopMediaSessionClosedError
            If the session has been disposed.
        """
        self._check_open()
        try:
            if not files:
                return SelectionResult(slot=slot)
            if slot.is_multi:
                return await self._select_gallery(files)
            return await self._select_single(slot, files)
        finally:
            self._reset_input(slot)

    async def _select_single(
        self, slot: SlotKind, files: Sequence[MediaAsset]
    ) -> SelectionResult:
        result = SelectionResult(slot=slot)
        label = slot.label

        if len(files) > 1:
            error = ShopMediaSelectionError(
                message=f"{label}: please select only one image",
                context={"slot": slot.value, "selected": len(files), "limit": 1},
            )
            result.rejections = [Rejection(f.name, slot, error) for f in files]
            self._notifier.notify(NotifyLevel.ERROR, error.message)
            return result

        asset = files[0]
        outcome = validate_file(asset, slot, self._config)
        if not outcome.ok:
            self._reject(result, asset, slot, outcome.error)
            return result

        self._notifier.notify(NotifyLevel.INFO, f"Optimizing {label.lower()}...")
        generation = self._single_generation[slot] + 1
        self._single_generation[slot] = generation
        transcoded = await self._transcoder(
            asset, self._config.single_max_dimension, self._config.single_quality
        )
        if self._disposed:
            self._log_discarded(slot, 1, reason="disposed")
            return result
        if generation != self._single_generation[slot]:
            result.superseded = True
            self._log_discarded(slot, 1, reason="superseded")
            return result

        entry = GalleryEntry(transcoded, self.registry.acquire(transcoded))
        replaced = self._singles[slot].replace(entry)
        if replaced is not None:
            self.registry.release(replaced.handle)
        result.accepted = [entry]
        result.replaced = replaced

        self._log_selection(result)
        self._notifier.notify(NotifyLevel.SUCCESS, f"{label} optimized and ready")
        return result

    async def _select_gallery(self, files: Sequence[MediaAsset]) -> SelectionResult:
        slot = SlotKind.GALLERY_IMAGES
        result = SelectionResult(slot=slot)

        accepted: list[MediaAsset] = []
        for asset in files:
            outcome = validate_file(asset, slot, self._config)
            if outcome.ok:
                accepted.append(asset)
            else:
                self._reject(result, asset, slot, outcome.error)

        limit = self._config.gallery_max_files
        if accepted and limit is not None:
            occupied = len(self.gallery) + self._gallery_pending
            if occupied + len(accepted) > limit:
                error = ShopMediaSelectionError(
                    message=f"Maximum {limit} gallery images allowed",
                    context={
                        "slot": slot.value,
                        "selected": len(accepted),
                        "occupied": occupied,
                        "limit": limit,
                    },
                )
                for asset in accepted:
                    result.rejections.append(Rejection(asset.name, slot, error))
                self._notifier.notify(NotifyLevel.ERROR, error.message)
                return result

        if not accepted:
            return result

        self._notifier.notify(NotifyLevel.INFO, f"Compressing {len(accepted)} images...")
        epoch = self._gallery_epoch
        predecessor = self._gallery_tail
        committed = asyncio.Event()
        self._gallery_tail = committed
        self._gallery_pending += len(accepted)
        try:
            # gather() returns results in argument order, i.e. selection order,
            # whatever order the individual transcodes finish in.
            transcoded = await asyncio.gather(
                *(
                    self._transcoder(
                        asset,
                        self._config.gallery_max_dimension,
                        self._config.gallery_quality,
                    )
                    for asset in accepted
                )
            )
            if predecessor is not None:
                await predecessor.wait()

            if self._disposed:
                self._log_discarded(slot, len(transcoded), reason="disposed")
                return result
            if epoch != self._gallery_epoch:
                result.superseded = True
                self._log_discarded(slot, len(transcoded), reason="superseded")
                return result

            entries = [GalleryEntry(asset, self.registry.acquire(asset)) for asset in transcoded]
            self.gallery.extend(entries)
            result.accepted = entries
        finally:
            if epoch == self._gallery_epoch:
                self._gallery_pending -= len(accepted)
            committed.set()
            if self._gallery_tail is committed:
                self._gallery_tail = None

        self._log_selection(result)
        self._notifier.notify(
            NotifyLevel.SUCCESS, f"Added {len(entries)} optimized image(s)"
        )
        return result

    # -- removal -----------------------------------------------------------

    def remove_gallery_image(self, index: int) -> GalleryEntry:
        """Remove the gallery entry at *index* and release its handle.

        Raises
        ------
        IndexError
            If *index* is out of range.
        """
        self._check_open()
        entry = self.gallery.remove(index)
        self.registry.release(entry.handle)
        self._notifier.notify(NotifyLevel.SUCCESS, "Image removed")
        return entry

    def clear_slot(self, slot: SlotKind) -> int:
        """Empty *slot*, releasing its handles.  Returns how many were released.

        Selections for *slot* still transcoding are invalidated too.
        """
        if slot.is_multi:
            self._gallery_epoch += 1
            self._gallery_pending = 0
            self._gallery_tail = None
            removed = self.gallery.clear()
            return self.registry.release_all(entry.handle for entry in removed)
        self._single_generation[slot] += 1
        previous = self._singles[slot].clear()
        if previous is None:
            return 0
        return int(self.registry.release(previous.handle))

    def reset(self) -> int:
        """Empty every slot and reset every input.  Returns handles released."""
        released = sum(self.clear_slot(kind) for kind in SlotKind)
        for kind in SlotKind:
            self._reset_input(kind)
        return released

    def dispose(self) -> int:
        """Release everything the session holds.  Safe to call twice."""
        if self._disposed:
            return 0
        released = self.reset()
        self._disposed = True
        log.debug(
            "Media session disposed",
            extra={"extra_fields": {"op": "dispose", "released": released}},
        )
        return released

    async def __aenter__(self) -> MediaSession:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.dispose()

    # -- helpers -----------------------------------------------------------

    def _check_open(self) -> None:
        if self._disposed:
            raise ShopMediaSessionClosedError(message="Media session has been disposed")

    def _reset_input(self, slot: SlotKind) -> None:
        handle = self._inputs.get(slot)
        if handle is not None:
            handle.reset()

    def _reject(
        self,
        result: SelectionResult,
        asset: MediaAsset,
        slot: SlotKind,
        error: ShopMediaError,
    ) -> None:
        result.rejections.append(Rejection(asset.name, slot, error))
        self._metrics.increment(
            "shopmedia.validation_rejected_total",
            tags={"slot": slot.value, "code": getattr(error.code, "value", error.code)},
        )
        self._notifier.notify(NotifyLevel.ERROR, error.message)

    def _log_selection(self, result: SelectionResult) -> None:
        log.info(
            "Selection processed",
            extra={
                "extra_fields": {
                    "op": "select",
                    "slot": result.slot.value,
                    "accepted": len(result.accepted),
                    "rejected": len(result.rejections),
                    "live_handles": self.registry.live_count,
                }
            },
        )

    def _log_discarded(self, slot: SlotKind, count: int, *, reason: str) -> None:
        log.info(
            "Selection results discarded",
            extra={
                "extra_fields": {
                    "op": "select",
                    "slot": slot.value,
                    "discarded": count,
                    "reason": reason,
                }
            },
        )
        self._metrics.increment(
            "shopmedia.selection_discarded_total",
            count,
            tags={"slot": slot.value, "reason": reason},
        )
