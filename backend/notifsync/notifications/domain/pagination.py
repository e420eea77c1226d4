"""Cursor pagination state and the fetch-source contract."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from notifsync.notifications.domain.models import NotificationPage, PaginationState
from notifsync.settings import clamp_page_size, settings


@runtime_checkable
class FetchSource(Protocol):
	"""Authenticated access to the remote notification feed."""

	async def fetch_page(self, limit: int, cursor: Optional[str]) -> NotificationPage:
		...

	async def fetch_unread_count(self) -> int:
		...

	async def mark_seen(self, seen_at: datetime) -> None:
		...


def coerce_page(result: object) -> NotificationPage:
	"""Accept a ``NotificationPage`` or a ``(records, next_cursor)`` pair."""
	if isinstance(result, NotificationPage):
		return result
	records, next_cursor = result  # type: ignore[misc]
	return NotificationPage(records=tuple(records), next_cursor=next_cursor)


class FetchKind(str, Enum):
	REFRESH = "refresh"
	APPEND = "append"


@dataclass(frozen=True, eq=False)
class FetchTicket:
	"""Issued when a fetch starts; carries the generation it was issued under."""

	kind: FetchKind
	generation: int
	cursor: Optional[str]


class PaginationCursor:
	"""Tracks the feed cursor, in-flight fetches and the fetch generation.

	A full refresh bumps the generation, so any append issued before it is
	recognised as stale when it completes. Appends never run concurrently with
	each other or with a refresh.
	"""

	def __init__(self, *, page_size: Optional[int] = None) -> None:
		self.page_size = settings.page_size if page_size is None else clamp_page_size(page_size)
		self._state = PaginationState.initial()
		self._generation = 0
		self._refresh: Optional[FetchTicket] = None
		self._append: Optional[FetchTicket] = None

	@property
	def state(self) -> PaginationState:
		return self._state

	@property
	def has_more(self) -> bool:
		return self._state.has_more

	@property
	def generation(self) -> int:
		return self._generation

	@property
	def is_refreshing(self) -> bool:
		return self._refresh is not None

	@property
	def is_loading_more(self) -> bool:
		return self._append is not None

	@property
	def in_flight(self) -> bool:
		return self._refresh is not None or self._append is not None

	def can_load_more(self) -> bool:
		return self._state.has_more and not self.in_flight

	def begin_refresh(self) -> Optional[FetchTicket]:
		"""Start a full refresh; returns None if one is already running."""
		if self._refresh is not None:
			return None
		self._generation += 1
		self._refresh = FetchTicket(kind=FetchKind.REFRESH, generation=self._generation, cursor=None)
		return self._refresh

	def begin_append(self) -> Optional[FetchTicket]:
		"""Start an append; returns None when it would be a no-op."""
		if not self.can_load_more():
			return None
		self._append = FetchTicket(kind=FetchKind.APPEND, generation=self._generation, cursor=self._state.cursor)
		return self._append

	def is_current(self, ticket: FetchTicket) -> bool:
		return ticket.generation == self._generation

	def commit(self, ticket: FetchTicket, next_cursor: Optional[str]) -> bool:
		"""Advance the cursor for a completed page unless the ticket is stale."""
		if not self.is_current(ticket):
			return False
		self._state = PaginationState.after_page(next_cursor)
		return True

	def finish(self, ticket: FetchTicket) -> None:
		if self._refresh is ticket:
			self._refresh = None
		elif self._append is ticket:
			self._append = None

	def reset(self) -> None:
		"""Drop the cursor and invalidate every in-flight fetch."""
		self._generation += 1
		self._state = PaginationState.initial()
		self._refresh = None
		self._append = None


__all__ = ["FetchSource", "FetchKind", "FetchTicket", "PaginationCursor", "coerce_page"]
