"""Error taxonomy for notification sync operations."""

from __future__ import annotations


class SyncError(Exception):
	"""Base class for notification sync errors."""

	retryable: bool = True
	detail: str = "sync_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class InvalidInput(SyncError):
	"""Request was rejected as malformed."""

	retryable = False
	detail = "invalid_input"


class NetworkFailure(SyncError):
	"""Transport-level failure (DNS, connect, timeout, reset)."""

	detail = "network_failure"


class AuthenticationRequired(SyncError):
	"""Session is missing or expired."""

	retryable = False
	detail = "authentication_required"


class NotFound(SyncError):
	retryable = False
	detail = "not_found"


class PermissionDenied(SyncError):
	retryable = False
	detail = "permission_denied"


class RateLimited(SyncError):
	"""Server asked the client to slow down."""

	detail = "rate_limited"

	def __init__(self, detail: str | None = None, *, retry_after: float | None = None) -> None:
		super().__init__(detail)
		self.retry_after = retry_after


class ServerError(SyncError):
	detail = "server_error"


class NotConfiguredError(SyncError):
	"""Raised when the engine is used before a fetch source is configured."""

	retryable = False
	detail = "not_configured"


def is_retryable(error: BaseException) -> bool:
	"""Only explicitly non-retryable sync errors stop a retry loop."""
	if isinstance(error, SyncError):
		return error.retryable
	return True


__all__ = [
	"SyncError",
	"InvalidInput",
	"NetworkFailure",
	"AuthenticationRequired",
	"NotFound",
	"PermissionDenied",
	"RateLimited",
	"ServerError",
	"NotConfiguredError",
	"is_retryable",
]
