"""Periodic and on-demand notification refresh driver."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import suppress
from datetime import datetime, timezone
from enum import Enum
from typing import Coroutine, Optional
from uuid import uuid4

from notifsync.notifications.domain.exceptions import NotConfiguredError
from notifsync.notifications.domain.models import NotificationRecord, PaginationState
from notifsync.notifications.domain.pagination import FetchKind, FetchSource, PaginationCursor, coerce_page
from notifsync.notifications.domain.reconciler import ReadStateReconciler
from notifsync.notifications.domain.store import NotificationStore
from notifsync.notifications.infra.retry import RetryExecutor
from notifsync.obs import logging as obs_logging
from notifsync.obs import metrics as obs_metrics
from notifsync.settings import settings

_LOG = logging.getLogger(__name__)
_JOB_NAME = "notifications-periodic-refresh"


class SchedulerState(str, Enum):
	IDLE = "idle"
	REFRESHING = "refreshing"
	LOADING_MORE = "loading_more"
	SCHEDULED = "scheduled"


class RefreshScheduler:
	"""Owns the notification store, cursor and unread counter for one session.

	Built by the host's composition root: ``configure(source)`` injects the
	fetch source, ``start()``/``stop()`` follow the app's foreground and
	background transitions. All state lives on the event loop that calls it.
	"""

	def __init__(
		self,
		*,
		source: Optional[FetchSource] = None,
		page_size: Optional[int] = None,
		refresh_interval_seconds: Optional[float] = None,
		retry: Optional[RetryExecutor] = None,
	) -> None:
		interval = settings.refresh_interval_seconds if refresh_interval_seconds is None else refresh_interval_seconds
		if interval <= 0:
			raise ValueError("refresh_interval_seconds must be positive")
		self.refresh_interval_seconds = float(interval)
		self._source: Optional[FetchSource] = source
		self._retry = retry or RetryExecutor()
		self._store = NotificationStore()
		self._cursor = PaginationCursor(page_size=page_size)
		self._reconciler = ReadStateReconciler(
			store=self._store,
			source=self._require_source,
			retry=self._retry,
		)
		self._timer: Optional[asyncio.Task] = None
		self._background: set[asyncio.Task] = set()
		self._last_fetch_at: Optional[datetime] = None

	# --- read-only views -------------------------------------------------

	@property
	def notifications(self) -> tuple[NotificationRecord, ...]:
		return self._store.ordered_snapshot()

	@property
	def unread_count(self) -> int:
		return self._reconciler.unread_count

	@property
	def has_more(self) -> bool:
		return self._cursor.has_more

	@property
	def is_loading_more(self) -> bool:
		return self._cursor.is_loading_more

	@property
	def is_refreshing(self) -> bool:
		return self._cursor.is_refreshing

	@property
	def pagination(self) -> PaginationState:
		return self._cursor.state

	@property
	def last_fetch_at(self) -> Optional[datetime]:
		return self._last_fetch_at

	@property
	def is_scheduled(self) -> bool:
		return self._timer is not None and not self._timer.done()

	@property
	def state(self) -> SchedulerState:
		if self._cursor.is_refreshing:
			return SchedulerState.REFRESHING
		if self._cursor.is_loading_more:
			return SchedulerState.LOADING_MORE
		if self.is_scheduled:
			return SchedulerState.SCHEDULED
		return SchedulerState.IDLE

	# --- lifecycle -------------------------------------------------------

	def configure(self, source: FetchSource) -> None:
		"""Attach a fetch source; switching sources drops all session state."""
		if self._source is not None and source is not self._source:
			self.clear_notifications()
			self._reconciler.reset()
		self._source = source

	def _require_source(self) -> FetchSource:
		if self._source is None:
			raise NotConfiguredError("notification source is not configured")
		return self._source

	def start(self) -> None:
		"""Arm the periodic refresh; re-arms if already running.

		Must be called from a running event loop. Also kicks off an immediate
		unread-count refresh so the badge is current on foreground.
		"""
		self._require_source()
		self._cancel_timer()
		self._timer = asyncio.create_task(self._run_periodic(), name="notifications-refresh-timer")
		self._spawn(self._refresh_unread_quietly(), name="notifications-unread-refresh")
		_LOG.info("notifications.scheduler_started", extra={"interval_seconds": self.refresh_interval_seconds})

	def stop(self) -> None:
		"""Disarm the periodic refresh. In-flight fetches are left to finish."""
		if self._cancel_timer():
			_LOG.info("notifications.scheduler_stopped")

	async def aclose(self) -> None:
		"""Stop and wait for every task this scheduler spawned to wind down."""
		timer = self._timer
		self.stop()
		tasks = [task for task in self._background if not task.done()]
		if timer is not None:
			tasks.append(timer)
		for task in tasks:
			task.cancel()
		for task in tasks:
			with suppress(asyncio.CancelledError):
				await task

	def _cancel_timer(self) -> bool:
		timer = self._timer
		self._timer = None
		if timer is None or timer.done():
			return False
		timer.cancel()
		return True

	def _spawn(self, coro: Coroutine, *, name: str) -> asyncio.Task:
		task = asyncio.create_task(coro, name=name)
		self._background.add(task)
		task.add_done_callback(self._background.discard)
		return task

	async def _run_periodic(self) -> None:
		while True:
			await asyncio.sleep(self.refresh_interval_seconds)
			# Run the refresh outside the timer task so stop() never cancels a fetch.
			self._spawn(self._periodic_refresh(), name="notifications-periodic-refresh")

	async def _periodic_refresh(self) -> None:
		tokens = obs_logging.bind_context(cycle_id=uuid4().hex)
		started = time.monotonic()
		try:
			applied = await self.load_notifications(append=False)
			obs_metrics.record_job_run(
				_JOB_NAME,
				result="success" if applied else "skipped",
				duration_seconds=time.monotonic() - started,
			)
		except Exception:
			obs_metrics.record_job_run(_JOB_NAME, result="error")
			_LOG.exception("notifications.periodic_refresh_failed")
		finally:
			obs_logging.reset_context(tokens)

	# --- operations ------------------------------------------------------

	async def load_notifications(self, *, append: bool = False) -> bool:
		"""Fetch a page and merge it into the store.

		A full refresh (``append=False``) replaces the store and cursor only once
		the first page has arrived; on failure the previous contents stay. An
		append adds the next page. Returns False when the call was a no-op or its
		result was superseded by a newer refresh. Fetch errors propagate.
		"""
		source = self._require_source()
		ticket = self._cursor.begin_append() if append else self._cursor.begin_refresh()
		if ticket is None:
			return False
		kind = ticket.kind.value
		limit = self._cursor.page_size
		try:
			try:
				result = await self._retry.execute(
					lambda: source.fetch_page(limit, ticket.cursor),
					name=f"fetch_page:{kind}",
				)
				page = coerce_page(result)
			except Exception:
				obs_metrics.record_fetch(kind, result="error")
				_LOG.warning("notifications.fetch_failed", extra={"kind": kind}, exc_info=True)
				raise
			if not self._cursor.is_current(ticket):
				obs_metrics.inc_stale_result(kind)
				_LOG.info("notifications.fetch_superseded", extra={"kind": kind})
				return False
			if ticket.kind is FetchKind.REFRESH:
				self._store.replace_all(page.records)
				self._last_fetch_at = datetime.now(timezone.utc)
			else:
				self._store.upsert(page.records)
			self._cursor.commit(ticket, page.next_cursor)
		finally:
			self._cursor.finish(ticket)
		obs_metrics.record_fetch(kind, result="success", records=len(page.records))
		_LOG.info(
			"notifications.loaded",
			extra={"kind": kind, "records": len(page.records), "has_more": self._cursor.has_more},
		)
		await self._refresh_unread_quietly()
		return True

	async def load_more_notifications(self) -> bool:
		if not self._cursor.can_load_more():
			return False
		return await self.load_notifications(append=True)

	async def refresh_unread_count(self) -> int:
		return await self._reconciler.refresh_unread_count()

	async def mark_all_as_read(self) -> bool:
		return await self._reconciler.mark_all_as_read()

	def clear_notifications(self) -> None:
		"""Empty the store and pagination; the unread counter is left alone."""
		self._store.clear()
		self._cursor.reset()
		self._last_fetch_at = None

	async def _refresh_unread_quietly(self) -> None:
		try:
			await self._reconciler.refresh_unread_count()
		except Exception:
			# Already logged by the reconciler; the prior count stays.
			_LOG.debug("notifications.unread_refresh_skipped")


__all__ = ["RefreshScheduler", "SchedulerState"]
