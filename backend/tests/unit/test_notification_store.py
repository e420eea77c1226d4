from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from notifsync.notifications.domain.models import ActorRef, NotificationReason, NotificationRecord
from notifsync.notifications.domain.store import NotificationStore

_BASE = datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)


def _record(rkey: str, *, minutes: int = 0, is_read: bool = False, reason: str = "like") -> NotificationRecord:
	return NotificationRecord(
		id=f"at://did:plc:alice/app.bsky.feed.like/{rkey}",
		author=ActorRef(did="did:plc:bob", handle="bob.test"),
		reason=reason,
		indexed_at=_BASE + timedelta(minutes=minutes),
		is_read=is_read,
	)


def _is_display_ordered(records) -> bool:
	pairs = [(r.indexed_at, r.id) for r in records]
	for current, following in zip(pairs, pairs[1:]):
		if current[0] < following[0]:
			return False
		if current[0] == following[0] and current[1] > following[1]:
			return False
	return True


def test_snapshot_orders_newest_first_regardless_of_insert_order():
	records = [_record(f"k{i:02d}", minutes=i % 7) for i in range(30)]
	rng = random.Random(7)
	for _ in range(5):
		shuffled = records[:]
		rng.shuffle(shuffled)
		store = NotificationStore()
		for chunk_start in range(0, len(shuffled), 4):
			store.upsert(shuffled[chunk_start : chunk_start + 4])
			assert _is_display_ordered(store.ordered_snapshot())
		assert len(store) == 30


def test_ties_on_indexed_at_break_by_id():
	store = NotificationStore([_record("c"), _record("a"), _record("b")])
	ids = [r.id.rsplit("/", 1)[1] for r in store.ordered_snapshot()]
	assert ids == ["a", "b", "c"]


def test_duplicate_id_replaces_without_growing():
	store = NotificationStore()
	store.upsert([_record("x", minutes=1, reason="like")])
	added = store.upsert([_record("x", minutes=5, reason="repost")])

	assert added == 0
	assert len(store) == 1
	replaced = store.get(_record("x").id)
	assert replaced is not None
	assert replaced.reason is NotificationReason.REPOST
	assert replaced.indexed_at == _BASE + timedelta(minutes=5)


def test_upsert_never_reverts_local_read_flag():
	store = NotificationStore([_record("x")])
	store.mark_all_read()

	store.upsert([_record("x", is_read=False)])

	assert store.get(_record("x").id).is_read is True


def test_clear_drops_records_and_read_flags():
	store = NotificationStore([_record("x")])
	store.mark_all_read()
	store.clear()
	assert len(store) == 0

	store.upsert([_record("x")])
	assert store.get(_record("x").id).is_read is False


def test_mark_all_read_flags_every_record():
	store = NotificationStore([_record(str(i), minutes=i) for i in range(5)])
	assert store.unread_local_count() == 5

	changed = store.mark_all_read()

	assert changed == 5
	assert store.unread_local_count() == 0
	assert all(r.is_read for r in store.ordered_snapshot())


def test_snapshot_is_detached_from_later_mutations():
	store = NotificationStore([_record("x")])
	before = store.ordered_snapshot()
	store.mark_all_read()
	store.upsert([_record("y", minutes=3)])

	assert len(before) == 1
	assert before[0].is_read is False
	assert _record("x").id in store
	assert len(store.ordered_snapshot()) == 2


def test_replace_all_swaps_contents():
	store = NotificationStore([_record("old")])
	store.replace_all([_record("new1", minutes=1), _record("new2", minutes=2)])
	assert [r.id.rsplit("/", 1)[1] for r in store] == ["new2", "new1"]


def test_snapshot_payload_is_read_only_and_records_hash():
	record = NotificationRecord(
		id="at://did:plc:alice/app.bsky.feed.like/p",
		author=ActorRef(did="did:plc:bob"),
		reason="like",
		record={"subject": {"uri": "at://did:plc:alice/app.bsky.feed.post/p1"}, "langs": ["en"]},
		indexed_at=_BASE,
	)
	store = NotificationStore([record])
	snapshot = store.ordered_snapshot()

	with pytest.raises(TypeError):
		snapshot[0].record["text"] = "edited"  # type: ignore[index]
	with pytest.raises(TypeError):
		snapshot[0].record["subject"]["uri"] = "at://elsewhere"  # type: ignore[index]
	assert snapshot[0].record["langs"] == ("en",)
	assert _record("empty").record == {}

	assert hash(record) == hash(snapshot[0])
	assert len({record, snapshot[0], record.as_read()}) == 2
