"""Central registry for Prometheus metrics used by the sync engine."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

RETRY_ATTEMPTS = Counter(
	"notifsync_retry_attempts_total",
	"Retries scheduled after a failed operation attempt",
	["operation", "error"],
)

FETCH_RESULTS = Counter(
	"notifsync_fetch_total",
	"Notification fetches by kind and outcome",
	["kind", "result"],
)

FETCH_RECORDS = Counter(
	"notifsync_fetch_records_total",
	"Notification records received from the fetch source",
	["kind"],
)

STALE_RESULTS = Counter(
	"notifsync_stale_results_total",
	"Fetch results discarded because a newer generation started",
	["kind"],
)

MARK_SEEN_RESULTS = Counter(
	"notifsync_mark_seen_total",
	"Server mark-seen round-trips",
	["result"],
)

UNREAD_REFRESH_RESULTS = Counter(
	"notifsync_unread_refresh_total",
	"Unread count refreshes",
	["result"],
)

UNREAD_COUNT = Gauge(
	"notifsync_unread_count",
	"Last known server-side unread notification count",
)

BACKGROUND_RUNS = Counter(
	"notifsync_background_runs_total",
	"Periodic job runs",
	["name", "result"],
)

BACKGROUND_DURATION = Histogram(
	"notifsync_background_duration_seconds",
	"Periodic job duration in seconds",
	["name"],
	buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def inc_retry_attempt(operation: str, error: BaseException) -> None:
	RETRY_ATTEMPTS.labels(operation=operation, error=type(error).__name__).inc()


def record_fetch(kind: str, *, result: str, records: int = 0) -> None:
	FETCH_RESULTS.labels(kind=kind, result=result).inc()
	if records:
		FETCH_RECORDS.labels(kind=kind).inc(records)


def inc_stale_result(kind: str) -> None:
	STALE_RESULTS.labels(kind=kind).inc()


def record_mark_seen(result: str) -> None:
	MARK_SEEN_RESULTS.labels(result=result).inc()


def record_unread_refresh(result: str, count: int | None = None) -> None:
	UNREAD_REFRESH_RESULTS.labels(result=result).inc()
	if count is not None:
		UNREAD_COUNT.set(count)


def set_unread_count(count: int) -> None:
	UNREAD_COUNT.set(count)


def record_job_run(name: str, *, result: str, duration_seconds: float | None = None) -> None:
	BACKGROUND_RUNS.labels(name=name, result=result).inc()
	if duration_seconds is not None:
		BACKGROUND_DURATION.labels(name=name).observe(duration_seconds)


__all__ = [
	"RETRY_ATTEMPTS",
	"FETCH_RESULTS",
	"FETCH_RECORDS",
	"STALE_RESULTS",
	"MARK_SEEN_RESULTS",
	"UNREAD_REFRESH_RESULTS",
	"UNREAD_COUNT",
	"BACKGROUND_RUNS",
	"BACKGROUND_DURATION",
	"inc_retry_attempt",
	"record_fetch",
	"inc_stale_result",
	"record_mark_seen",
	"record_unread_refresh",
	"set_unread_count",
	"record_job_run",
]
