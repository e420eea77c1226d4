"""Notification feed synchronization: store, pagination, read state and scheduling."""

from __future__ import annotations

from typing import Optional

from notifsync.notifications.infra.xrpc import XrpcNotificationSource
from notifsync.notifications.workers.refresh_scheduler import RefreshScheduler, SchedulerState


def build_scheduler(
	*,
	access_token: str,
	service_url: Optional[str] = None,
	refresh_interval_seconds: Optional[float] = None,
) -> RefreshScheduler:
	"""Wire an XRPC-backed scheduler for one signed-in account."""
	scheduler = RefreshScheduler(refresh_interval_seconds=refresh_interval_seconds)
	scheduler.configure(XrpcNotificationSource(access_token=access_token, service_url=service_url))
	return scheduler


__all__ = ["RefreshScheduler", "SchedulerState", "XrpcNotificationSource", "build_scheduler"]
