"""Reason-based dispatch for notifications."""

from __future__ import annotations

from typing import Mapping, Optional, assert_never

from notifsync.notifications.domain.models import NotificationReason, NotificationRecord
from notifsync.notifications.infra.aturi import is_valid_uri


def related_resource_uri(notification: NotificationRecord) -> Optional[str]:
	"""Locate the post a notification is about, if any.

	Likes and reposts point at the subject of their own record; replies,
	mentions and quotes point at ``subject_uri``. Everything else has no
	related post.
	"""
	reason = notification.reason
	match reason:
		case NotificationReason.LIKE | NotificationReason.REPOST:
			subject = notification.record.get("subject")
			if isinstance(subject, Mapping):
				uri = subject.get("uri")
				return uri if isinstance(uri, str) and is_valid_uri(uri) else None
			return None
		case NotificationReason.REPLY | NotificationReason.MENTION | NotificationReason.QUOTE:
			return notification.subject_uri
		case (
			NotificationReason.FOLLOW
			| NotificationReason.STARTERPACK_JOINED
			| NotificationReason.VERIFIED
			| NotificationReason.UNVERIFIED
			| NotificationReason.OTHER
		):
			return None
		case _:
			assert_never(reason)


def describe_reason(reason: NotificationReason) -> str:
	match reason:
		case NotificationReason.LIKE:
			return "liked your post"
		case NotificationReason.REPOST:
			return "reposted your post"
		case NotificationReason.FOLLOW:
			return "followed you"
		case NotificationReason.REPLY:
			return "replied to your post"
		case NotificationReason.MENTION:
			return "mentioned you in a post"
		case NotificationReason.QUOTE:
			return "quoted your post"
		case NotificationReason.STARTERPACK_JOINED:
			return "joined via your starter pack"
		case NotificationReason.VERIFIED:
			return "you are now verified"
		case NotificationReason.UNVERIFIED:
			return "verification removed"
		case NotificationReason.OTHER:
			return "interacted with you"
		case _:
			assert_never(reason)


def post_text(notification: NotificationRecord) -> Optional[str]:
	"""Text of the notifying post for reply/mention/quote notifications."""
	if notification.reason not in (
		NotificationReason.REPLY,
		NotificationReason.MENTION,
		NotificationReason.QUOTE,
	):
		return None
	text = notification.record.get("text")
	return text if isinstance(text, str) else None


__all__ = ["related_resource_uri", "describe_reason", "post_text"]
