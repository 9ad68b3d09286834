"""Local notification cache kept consistent with the server and the live channel."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from portal_notify.domain.entities import Notification, NotificationPage
from portal_notify.domain.errors import FetchFailure, MutationConfirmationFailure
from portal_notify.infrastructure.repositories import (
    NotificationApiError,
    NotificationRepository,
)

logger = logging.getLogger(__name__)

_OP_INSERT = "insert"
_OP_READ = "read"
_OP_READ_ALL = "read_all"
_OP_DELETE = "delete"


@dataclass
class _JournalEntry:
    """A local change that a fetch response started earlier may not reflect."""

    seq: int
    op: str
    notification_id: str | None = None
    notification: Notification | None = None
    pending: bool = False
    cancelled: bool = False


class NotificationSynchronizer:
    """Ordered notification list plus its denormalized unread counter.

    Every change is applied locally first. Mutations are then confirmed with
    the server and rolled back when the server rejects them. Local changes
    are journaled with a sequence number while a fetch is in flight so the
    fetched snapshot can be merged instead of blindly replacing newer state.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        *,
        page_size: int = 10,
        on_alert: Callable[[Notification], None] | None = None,
        on_error: Callable[[MutationConfirmationFailure], None] | None = None,
    ) -> None:
        self._repository = repository
        self.page_size = page_size
        self._on_alert = on_alert
        self._on_error = on_error
        self._items: list[Notification] = []
        self.unread_count = 0
        self.total = 0
        self.page = 0
        self.pages: int | None = None
        self.error: FetchFailure | None = None
        self._active = True
        self._sequence = 0
        self._journal: list[_JournalEntry] = []
        self._inflight: list[int] = []
        self._fetches = 0
        self._applied_fetch = 0
        # Sequence numbers of confirmed mutations still overlapping a pending one.
        self._confirmed_reads: dict[str, int] = {}
        self._confirmed_deletes: dict[str, int] = {}
        self._confirmed_read_all = 0

    @property
    def notifications(self) -> list[Notification]:
        return list(self._items)

    @property
    def is_loading(self) -> bool:
        return bool(self._inflight)

    @property
    def active(self) -> bool:
        return self._active

    def get(self, notification_id: str) -> Notification | None:
        for item in self._items:
            if item.id == notification_id:
                return item
        return None

    def close(self) -> None:
        """Deactivate the cache; late responses become no-ops."""

        self._active = False
        self._journal.clear()
        self._confirmed_reads.clear()
        self._confirmed_deletes.clear()

    async def load_page(
        self, page: int = 1, limit: int | None = None
    ) -> NotificationPage | None:
        """Fetch ``page`` from the server and merge it into the cache."""

        limit = limit or self.page_size
        self._fetches += 1
        fetch = self._fetches
        since = self._sequence
        self._inflight.append(since)
        try:
            try:
                result = await self._repository.list_page(page, limit)
            except NotificationApiError as exc:
                if self._active:
                    logger.error("Could not load notifications page %s: %s", page, exc)
                    self.error = FetchFailure(str(exc))
                return None

            if not self._active:
                logger.debug("Discarding notifications page %s received after close", page)
                return None

            if fetch < self._applied_fetch:
                logger.info(
                    "Discarding stale notifications page %s (fetch %s, list replaced by fetch %s)",
                    page,
                    fetch,
                    self._applied_fetch,
                )
                return None

            if page <= 1:
                self._apply_first_page(result, since)
                self._applied_fetch = fetch
            else:
                self._apply_next_page(result, since)
            self.error = None
            return result
        finally:
            self._inflight.remove(since)
            self._trim_journal()

    def apply_realtime_insert(self, notification: Notification) -> bool:
        """Put a pushed notification at the head of the list as unread."""

        if not self._active:
            return False
        if self.get(notification.id) is not None:
            logger.info("Ignoring duplicate realtime notification %s", notification.id)
            return False

        inserted = replace(notification, read=False)
        self._items.insert(0, inserted)
        self.unread_count += 1
        self.total += 1
        self._record(
            _OP_INSERT, notification_id=inserted.id, notification=replace(inserted)
        )
        self._trim_journal()
        self._alert(inserted)
        return True

    async def mark_read(self, notification_id: str) -> bool:
        item = self.get(notification_id)
        flipped = item is not None and not item.read
        if flipped:
            item.read = True
            self.unread_count = max(0, self.unread_count - 1)

        entry = self._record(_OP_READ, notification_id=notification_id, pending=True)
        try:
            await self._repository.mark_as_read(notification_id)
        except NotificationApiError as exc:
            entry.cancelled = True
            if not self._active:
                return False
            if flipped and not self._read_confirmed_after(notification_id, entry.seq):
                self._restore_unread(notification_id)
            self._report(
                MutationConfirmationFailure("mark_read", notification_id, cause=exc)
            )
            return False
        else:
            self._confirmed_reads[notification_id] = entry.seq
            # An earlier rollback may have restored the item meanwhile.
            current = self.get(notification_id)
            if self._active and current is not None and not current.read:
                current.read = True
                self.unread_count = max(0, self.unread_count - 1)
        finally:
            entry.pending = False
            self._trim_journal()
        return True

    async def mark_all_read(self) -> bool:
        previous_unread = self.unread_count
        flipped = [item.id for item in self._items if not item.read]
        covered = {item.id for item in self._items}
        covered.update(
            entry.notification_id
            for entry in self._journal
            if entry.pending and entry.op == _OP_DELETE
        )
        for item in self._items:
            item.read = True
        self.unread_count = 0

        entry = self._record(_OP_READ_ALL, pending=True)
        try:
            await self._repository.mark_all_as_read()
        except NotificationApiError as exc:
            entry.cancelled = True
            if not self._active:
                return False
            restored = sum(
                1
                for item_id in flipped
                if not self._read_confirmed_after(item_id, entry.seq)
                and self._restore_unread(item_id, count=False)
            )
            self.unread_count += restored
            if self._confirmed_read_all <= entry.seq:
                # Unread items outside the loaded pages were zeroed as well.
                self.unread_count += max(previous_unread - len(flipped), 0)
            self._report(MutationConfirmationFailure("mark_all_read", cause=exc))
            return False
        else:
            self._confirmed_read_all = max(self._confirmed_read_all, entry.seq)
            if self._active:
                for item in self._items:
                    if item.id in covered and not item.read:
                        item.read = True
                        self.unread_count = max(0, self.unread_count - 1)
        finally:
            entry.pending = False
            self._trim_journal()
        return True

    async def delete_notification(self, notification_id: str) -> bool:
        item = self.get(notification_id)
        index = self._items.index(item) if item is not None else 0
        if item is not None:
            self._items.remove(item)
            self.total = max(0, self.total - 1)
            if not item.read:
                self.unread_count = max(0, self.unread_count - 1)

        entry = self._record(_OP_DELETE, notification_id=notification_id, pending=True)
        try:
            await self._repository.delete(notification_id)
        except NotificationApiError as exc:
            entry.cancelled = True
            if not self._active:
                return False
            if (
                item is not None
                and self.get(notification_id) is None
                and notification_id not in self._confirmed_deletes
            ):
                if self._read_confirmed_after(notification_id, entry.seq):
                    item.read = True
                self._items.insert(min(index, len(self._items)), item)
                self.total += 1
                if not item.read:
                    self.unread_count += 1
            self._report(
                MutationConfirmationFailure("delete", notification_id, cause=exc)
            )
            return False
        else:
            self._confirmed_deletes[notification_id] = entry.seq
            current = self.get(notification_id)
            if self._active and current is not None:
                self._items.remove(current)
                self.total = max(0, self.total - 1)
                if not current.read:
                    self.unread_count = max(0, self.unread_count - 1)
        finally:
            entry.pending = False
            self._trim_journal()
        return True

    def _read_confirmed_after(self, notification_id: str, seq: int) -> bool:
        """Whether the server confirmed a read of the item issued after ``seq``."""

        single = self._confirmed_reads.get(notification_id, 0)
        return max(self._confirmed_read_all, single) > seq

    def _apply_first_page(self, result: NotificationPage, since: int) -> None:
        items = [replace(item) for item in result.notifications]
        unread, total = result.unread, result.total
        for entry in self._replayable(since):
            if entry.op == _OP_INSERT:
                if entry.seq <= since or _find(items, entry.notification_id) is not None:
                    continue
                items.insert(0, replace(entry.notification))
                total += 1
                unread += 1
            else:
                unread, total = _apply_mutation(items, entry, unread, total)

        self._items = items
        self.unread_count = unread
        self.total = total
        self.page = max(result.page, 1)
        self.pages = result.pages

    def _apply_next_page(self, result: NotificationPage, since: int) -> None:
        known = {item.id for item in self._items}
        fresh = [replace(item) for item in result.notifications if item.id not in known]
        replayable = self._replayable(since)
        for entry in replayable:
            if entry.op != _OP_INSERT:
                _apply_mutation(fresh, entry, 0, 0)
        self._items.extend(fresh)
        if not replayable:
            self.unread_count = result.unread
            self.total = result.total
        self.page = max(self.page, result.page)
        self.pages = result.pages

    def _replayable(self, since: int) -> list[_JournalEntry]:
        return [
            entry
            for entry in self._journal
            if not entry.cancelled and (entry.seq > since or entry.pending)
        ]

    def _restore_unread(self, notification_id: str, *, count: bool = True) -> bool:
        item = self.get(notification_id)
        if item is None or not item.read:
            return False
        item.read = False
        if count:
            self.unread_count += 1
        return True

    def _record(self, op: str, **fields) -> _JournalEntry:
        self._sequence += 1
        entry = _JournalEntry(seq=self._sequence, op=op, **fields)
        self._journal.append(entry)
        return entry

    def _trim_journal(self) -> None:
        horizon = min(self._inflight) if self._inflight else None
        self._journal = [
            entry
            for entry in self._journal
            if entry.pending or (horizon is not None and entry.seq > horizon)
        ]
        oldest_pending = min(
            (entry.seq for entry in self._journal if entry.pending), default=None
        )
        for confirmed in (self._confirmed_reads, self._confirmed_deletes):
            if oldest_pending is None:
                confirmed.clear()
                continue
            for notification_id, seq in list(confirmed.items()):
                if seq < oldest_pending:
                    del confirmed[notification_id]

    def _alert(self, notification: Notification) -> None:
        if self._on_alert is None:
            return
        try:
            self._on_alert(notification)
        except Exception:
            logger.exception("Notification alert callback failed")

    def _report(self, failure: MutationConfirmationFailure) -> None:
        logger.warning("%s; local change rolled back", failure)
        if self._on_error is None:
            return
        try:
            self._on_error(failure)
        except Exception:
            logger.exception("Notification error callback failed")


def _find(items: list[Notification], notification_id: str | None) -> Notification | None:
    for item in items:
        if item.id == notification_id:
            return item
    return None


def _apply_mutation(
    items: list[Notification], entry: _JournalEntry, unread: int, total: int
) -> tuple[int, int]:
    """Replay a read/read-all/delete over a fetched snapshot."""

    if entry.op == _OP_READ_ALL:
        for item in items:
            item.read = True
        return 0, total

    item = _find(items, entry.notification_id)
    if item is None:
        return unread, total
    if entry.op == _OP_READ and not item.read:
        item.read = True
        unread = max(0, unread - 1)
    elif entry.op == _OP_DELETE:
        items.remove(item)
        total = max(0, total - 1)
        if not item.read:
            unread = max(0, unread - 1)
    return unread, total


__all__ = ["NotificationSynchronizer"]
