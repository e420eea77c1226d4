"""Retry-with-backoff wrapper for fallible async operations."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from notifsync.notifications.domain.exceptions import is_retryable
from notifsync.obs import metrics as obs_metrics
from notifsync.settings import settings

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[object]]


class RetryExecutor:
	"""Runs an async operation up to ``max_attempts`` times with exponential backoff.

	Errors flagged non-retryable by the sync taxonomy stop the loop at once; any
	other failure is retried. The final error is re-raised unchanged.
	"""

	def __init__(
		self,
		*,
		max_attempts: Optional[int] = None,
		initial_delay: Optional[float] = None,
		backoff_multiplier: Optional[float] = None,
		sleep: Sleep = asyncio.sleep,
	) -> None:
		self.max_attempts = settings.retry_max_attempts if max_attempts is None else max_attempts
		self.initial_delay = settings.retry_initial_delay if initial_delay is None else initial_delay
		self.backoff_multiplier = (
			settings.retry_backoff_multiplier if backoff_multiplier is None else backoff_multiplier
		)
		self._sleep = sleep

	async def execute(
		self,
		operation: Callable[[], Awaitable[T]],
		*,
		name: Optional[str] = None,
		max_attempts: Optional[int] = None,
		initial_delay: Optional[float] = None,
		backoff_multiplier: Optional[float] = None,
	) -> T:
		attempts = self.max_attempts if max_attempts is None else max_attempts
		if attempts < 1:
			raise ValueError("max_attempts must be at least 1")
		delay = self.initial_delay if initial_delay is None else initial_delay
		multiplier = self.backoff_multiplier if backoff_multiplier is None else backoff_multiplier
		label = name or getattr(operation, "__name__", "operation")

		attempt = 1
		while True:
			try:
				return await operation()
			except Exception as exc:
				if not is_retryable(exc) or attempt >= attempts:
					raise
				_LOG.warning(
					"retry.attempt_failed",
					extra={
						"operation": label,
						"attempt": attempt,
						"max_attempts": attempts,
						"delay_seconds": delay,
						"error": repr(exc),
					},
				)
				obs_metrics.inc_retry_attempt(label, exc)
			await self._sleep(delay)
			delay *= multiplier
			attempt += 1


_default_executor: RetryExecutor | None = None


def get_default_executor() -> RetryExecutor:
	global _default_executor
	if _default_executor is None:
		_default_executor = RetryExecutor()
	return _default_executor


async def with_retry(operation: Callable[[], Awaitable[T]], **kwargs) -> T:
	"""Run ``operation`` through the process-wide executor built from settings."""
	return await get_default_executor().execute(operation, **kwargs)


__all__ = ["RetryExecutor", "get_default_executor", "with_retry"]
