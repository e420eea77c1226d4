from __future__ import annotations

from datetime import datetime, timezone

import pytest

from notifsync.notifications.domain import reasons
from notifsync.notifications.domain.models import ActorRef, NotificationReason, NotificationRecord
from notifsync.notifications.infra import aturi

_POST = "at://did:plc:alice/app.bsky.feed.post/3k7abc"
_REPLY = "at://did:plc:bob/app.bsky.feed.post/3k7xyz"


def _notification(reason: str, **kwargs) -> NotificationRecord:
	return NotificationRecord(
		id=f"at://did:plc:bob/app.bsky.feed.{reason}/rk1",
		author=ActorRef(did="did:plc:bob"),
		reason=reason,
		indexed_at=datetime(2025, 7, 15, tzinfo=timezone.utc),
		**kwargs,
	)


@pytest.mark.parametrize("reason", ["like", "repost"])
def test_like_and_repost_point_at_record_subject(reason):
	notification = _notification(reason, record={"subject": {"uri": _POST, "cid": "bafy"}}, subject_uri=_REPLY)
	assert reasons.related_resource_uri(notification) == _POST


def test_like_without_valid_subject_has_no_related_post():
	assert reasons.related_resource_uri(_notification("like")) is None
	assert reasons.related_resource_uri(_notification("like", record={"subject": {"uri": "https://x"}})) is None


@pytest.mark.parametrize("reason", ["reply", "mention", "quote"])
def test_post_reasons_point_at_reason_subject(reason):
	notification = _notification(reason, subject_uri=_POST, record={"text": "hey"})
	assert reasons.related_resource_uri(notification) == _POST
	assert reasons.post_text(notification) == "hey"


@pytest.mark.parametrize("reason", ["follow", "starterpack-joined", "verified", "unverified"])
def test_non_post_reasons_have_no_related_resource(reason):
	notification = _notification(reason, subject_uri=_POST, record={"subject": {"uri": _POST}})
	assert reasons.related_resource_uri(notification) is None
	assert reasons.post_text(notification) is None


def test_every_reason_is_handled():
	for reason in NotificationReason:
		assert reasons.describe_reason(reason)
		reasons.related_resource_uri(_notification(reason.value))


def test_unknown_server_reason_maps_to_other():
	notification = _notification("subscribed-post")
	assert notification.reason is NotificationReason.OTHER
	assert reasons.describe_reason(notification.reason) == "interacted with you"


def test_describe_reason_text():
	assert reasons.describe_reason(NotificationReason.LIKE) == "liked your post"
	assert reasons.describe_reason(NotificationReason.STARTERPACK_JOINED) == "joined via your starter pack"


def test_parse_and_build_at_uri():
	parsed = aturi.parse_uri(_POST)
	assert parsed == aturi.AtUri(repo="did:plc:alice", collection="app.bsky.feed.post", rkey="3k7abc")
	assert parsed.uri == _POST
	assert aturi.build_uri("did:plc:alice", "app.bsky.feed.post", "3k7abc") == _POST


@pytest.mark.parametrize("value", ["", "https://bsky.app/profile/x", "at://did:plc:alice", "at://did:plc:alice/app.bsky.feed.post"])
def test_invalid_at_uris(value):
	assert aturi.parse_uri(value) is None
	assert not aturi.is_valid_uri(value)


def test_extract_did():
	assert aturi.extract_did("did:plc:alice") == "did:plc:alice"
	assert aturi.extract_did(_POST) == "did:plc:alice"
	assert aturi.extract_did("at://alice.test/app.bsky.feed.post/1") is None
	assert aturi.extract_did("alice.test") is None
