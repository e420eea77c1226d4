"""httpx-backed fetch source for the app.bsky.notification XRPC endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import httpx
from pydantic import ValidationError

from notifsync.notifications.domain.exceptions import (
    AuthenticationRequired,
    InvalidInput,
    NetworkFailure,
    NotFound,
    PermissionDenied,
    RateLimited,
    ServerError,
    SyncError,
)
from notifsync.notifications.domain.models import NotificationPage, NotificationRecord
from notifsync.settings import settings

_LOG = logging.getLogger(__name__)

LIST_NOTIFICATIONS = "app.bsky.notification.listNotifications"
GET_UNREAD_COUNT = "app.bsky.notification.getUnreadCount"
UPDATE_SEEN = "app.bsky.notification.updateSeen"


def _retry_after(response: httpx.Response) -> Optional[float]:
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        return None


def _error_body(response: httpx.Response) -> Mapping[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def error_for_response(response: httpx.Response) -> SyncError:
    """Map a non-success XRPC response onto the sync error taxonomy."""
    body = _error_body(response)
    code = str(body.get("error") or "")
    message = str(body.get("message") or code or response.reason_phrase or response.status_code)
    status = response.status_code
    if status == 401 or code in ("ExpiredToken", "InvalidToken", "AuthMissing"):
        return AuthenticationRequired(message)
    if status == 403:
        return PermissionDenied(message)
    if status == 404:
        return NotFound(message)
    if status == 429:
        return RateLimited(message, retry_after=_retry_after(response))
    if status >= 500:
        return ServerError(message)
    return InvalidInput(message)


class XrpcNotificationSource:
    """Fetch source talking to a PDS/AppView over XRPC.

    Authentication is the host's job: pass a bearer token, or an ``httpx``
    client that already carries auth. The source never retries on its own;
    wrap calls in a ``RetryExecutor``.
    """

    def __init__(
        self,
        *,
        access_token: Optional[str] = None,
        service_url: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._owns_http = http is None
        if http is None:
            headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
            http = httpx.AsyncClient(
                base_url=service_url or settings.service_url,
                headers=headers,
                timeout=settings.http_timeout_seconds if timeout is None else timeout,
            )
        self._http = http

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _call(self, method: str, nsid: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, f"/xrpc/{nsid}", **kwargs)
        except httpx.TransportError as exc:
            raise NetworkFailure(f"{nsid}: {exc!r}") from exc
        if response.is_success:
            return response
        error = error_for_response(response)
        _LOG.debug(
            "xrpc.request_failed",
            extra={"nsid": nsid, "status": response.status_code, "error": error.detail},
        )
        raise error

    @staticmethod
    def _json(response: httpx.Response, nsid: str) -> Mapping[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise ServerError(f"{nsid}: malformed response body") from exc
        if not isinstance(body, dict):
            raise ServerError(f"{nsid}: unexpected response shape")
        return body

    async def fetch_page(self, limit: int, cursor: Optional[str]) -> NotificationPage:
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        response = await self._call("GET", LIST_NOTIFICATIONS, params=params)
        body = self._json(response, LIST_NOTIFICATIONS)
        try:
            records = tuple(
                NotificationRecord.model_validate(item) for item in body.get("notifications") or []
            )
        except ValidationError as exc:
            raise ServerError(f"{LIST_NOTIFICATIONS}: invalid notification payload") from exc
        next_cursor = body.get("cursor") or None
        return NotificationPage(records=records, next_cursor=next_cursor)

    async def fetch_unread_count(self) -> int:
        response = await self._call("GET", GET_UNREAD_COUNT)
        body = self._json(response, GET_UNREAD_COUNT)
        try:
            return max(0, int(body.get("count", 0)))
        except (TypeError, ValueError) as exc:
            raise ServerError(f"{GET_UNREAD_COUNT}: invalid count") from exc

    async def mark_seen(self, seen_at: datetime) -> None:
        if seen_at.tzinfo is None:
            seen_at = seen_at.replace(tzinfo=timezone.utc)
        stamp = seen_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
        await self._call("POST", UPDATE_SEEN, json={"seenAt": stamp})


__all__ = [
    "XrpcNotificationSource",
    "error_for_response",
    "LIST_NOTIFICATIONS",
    "GET_UNREAD_COUNT",
    "UPDATE_SEEN",
]
