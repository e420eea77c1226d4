"""In-memory, URI-keyed notification store."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from notifsync.notifications.domain.models import NotificationRecord


def _display_order(records: Iterable[NotificationRecord]) -> list[NotificationRecord]:
	# Two stable passes: id ascending, then indexed_at descending.
	ordered = sorted(records, key=lambda item: item.id)
	ordered.sort(key=lambda item: item.indexed_at, reverse=True)
	return ordered


class NotificationStore:
	"""Deduplicating notification collection with deterministic display order.

	Records are keyed by their URI. Ordering is recomputed on every snapshot so
	no stale ordering can be observed after an upsert.
	"""

	def __init__(self, records: Iterable[NotificationRecord] = ()) -> None:
		self._records: dict[str, NotificationRecord] = {}
		self.upsert(records)

	def __len__(self) -> int:
		return len(self._records)

	def __contains__(self, notification_id: object) -> bool:
		return notification_id in self._records

	def __iter__(self) -> Iterator[NotificationRecord]:
		return iter(self.ordered_snapshot())

	def get(self, notification_id: str) -> Optional[NotificationRecord]:
		return self._records.get(notification_id)

	def upsert(self, records: Iterable[NotificationRecord]) -> int:
		"""Insert or replace records by id, returning the number of new ids."""
		added = 0
		for record in records:
			existing = self._records.get(record.id)
			if existing is None:
				added += 1
			elif existing.is_read and not record.is_read:
				# Local read flags only move forward until clear().
				record = record.as_read()
			self._records[record.id] = record
		return added

	def replace_all(self, records: Iterable[NotificationRecord]) -> None:
		"""Swap the whole contents in one step (used by a successful full refresh)."""
		fresh = NotificationStore(records)
		self._records = fresh._records

	def clear(self) -> None:
		self._records = {}

	def ordered_snapshot(self) -> tuple[NotificationRecord, ...]:
		return tuple(_display_order(self._records.values()))

	def mark_all_read(self) -> int:
		"""Flag every record as read locally; returns how many changed."""
		changed = 0
		for key, record in self._records.items():
			if not record.is_read:
				self._records[key] = record.as_read()
				changed += 1
		return changed

	def unread_local_count(self) -> int:
		return sum(1 for record in self._records.values() if not record.is_read)


__all__ = ["NotificationStore"]
