"""Reconciles optimistic local read flags with the server unread counter."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from notifsync.notifications.domain.models import UnreadCounter
from notifsync.notifications.domain.pagination import FetchSource
from notifsync.notifications.domain.store import NotificationStore
from notifsync.notifications.infra.retry import RetryExecutor
from notifsync.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class ReadStateReconciler:
	"""Owns the unread counter.

	The counter is the badge source of truth and only ever comes from the
	server, except that ``mark_all_as_read`` zeroes it optimistically. A count
	fetch that started before a mark-all finished, or that landed while one was
	pending, is dropped so it cannot bring back a badge the user just cleared.
	"""

	def __init__(
		self,
		*,
		store: NotificationStore,
		source: Callable[[], FetchSource],
		retry: RetryExecutor,
		clock: Callable[[], datetime] = _utcnow,
	) -> None:
		self._store = store
		self._source = source
		self._retry = retry
		self._clock = clock
		self._counter = UnreadCounter()
		self._epoch = 0
		self._marks_pending = 0

	@property
	def unread_count(self) -> int:
		return self._counter.count

	async def refresh_unread_count(self) -> int:
		"""Fetch and store the server unread count; failures keep the prior value."""
		source = self._source()
		epoch = self._epoch
		try:
			count = await self._retry.execute(source.fetch_unread_count, name="fetch_unread_count")
		except Exception:
			obs_metrics.record_unread_refresh("error")
			_LOG.warning("notifications.unread_refresh_failed", exc_info=True)
			raise
		if epoch != self._epoch or self._marks_pending:
			obs_metrics.inc_stale_result("unread_count")
			_LOG.debug("notifications.unread_refresh_superseded", extra={"count": count})
			return self._counter.count
		self._counter.set(count)
		obs_metrics.record_unread_refresh("success", self._counter.count)
		_LOG.debug("notifications.unread_count_updated", extra={"count": self._counter.count})
		return self._counter.count

	async def mark_all_as_read(self) -> bool:
		"""Mark everything read locally, then mark it seen on the server.

		The local effect applies up front and is kept even when the server call
		fails; the next successful ``refresh_unread_count`` settles any drift.
		Returns whether the server acknowledged the call.
		"""
		source = self._source()
		seen_at = self._clock()
		self._epoch += 1
		changed = self._store.mark_all_read()
		self._counter.reset()
		obs_metrics.set_unread_count(0)
		acknowledged = False
		self._marks_pending += 1
		try:
			await self._retry.execute(lambda: source.mark_seen(seen_at), name="mark_seen")
			acknowledged = True
			obs_metrics.record_mark_seen("success")
		except Exception:
			obs_metrics.record_mark_seen("error")
			_LOG.warning("notifications.mark_seen_failed", exc_info=True)
		finally:
			self._marks_pending -= 1
			# Counts fetched while the round-trip was pending predate the seen marker.
			self._epoch += 1
		_LOG.info(
			"notifications.marked_all_read",
			extra={"records": changed, "server_acknowledged": acknowledged},
		)
		return acknowledged

	def reset(self) -> None:
		self._epoch += 1
		self._counter.reset()


__all__ = ["ReadStateReconciler"]
