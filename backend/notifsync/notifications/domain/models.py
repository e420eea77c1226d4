"""Domain models for synchronized notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _freeze(value: Any) -> Any:
	if isinstance(value, Mapping):
		return MappingProxyType({key: _freeze(item) for key, item in value.items()})
	if isinstance(value, (list, tuple)):
		return tuple(_freeze(item) for item in value)
	return value

class NotificationReason(str, Enum):
	LIKE = "like"
	REPOST = "repost"
	FOLLOW = "follow"
	REPLY = "reply"
	MENTION = "mention"
	QUOTE = "quote"
	STARTERPACK_JOINED = "starterpack-joined"
	VERIFIED = "verified"
	UNVERIFIED = "unverified"
	OTHER = "other"

	@classmethod
	def parse(cls, value: Any) -> "NotificationReason":
		"""Map a server reason string onto the enum; unknown reasons become OTHER."""
		if isinstance(value, cls):
			return value
		text = str(value).strip().lower()
		if text == "starterpackjoined":
			text = cls.STARTERPACK_JOINED.value
		try:
			return cls(text)
		except ValueError:
			return cls.OTHER


class ActorRef(BaseModel):
	"""Opaque reference to the actor that caused a notification."""

	did: str
	handle: Optional[str] = None
	display_name: Optional[str] = Field(default=None, alias="displayName")
	avatar: Optional[str] = None

	model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class NotificationRecord(BaseModel):
	"""A single notification as returned by listNotifications.

	Records are immutable, down to the raw ``record`` payload, which is exposed
	as nested read-only mappings and tuples. Local read-state changes produce a
	new instance via ``as_read()`` so snapshots handed to consumers never change
	underneath them.
	"""

	id: str = Field(alias="uri")
	cid: Optional[str] = None
	author: ActorRef
	reason: NotificationReason
	subject_uri: Optional[str] = Field(default=None, alias="reasonSubject")
	record: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
	indexed_at: datetime = Field(alias="indexedAt")
	is_read: bool = Field(default=False, alias="isRead")

	model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

	@field_validator("reason", mode="before")
	def _coerce_reason(cls, value):  # type: ignore[override]
		return NotificationReason.parse(value)

	@field_validator("indexed_at")
	def _ensure_aware(cls, value: datetime) -> datetime:  # type: ignore[override]
		if value.tzinfo is None:
			return value.replace(tzinfo=timezone.utc)
		return value

	@field_validator("id")
	def _non_empty_id(cls, value: str) -> str:  # type: ignore[override]
		if not value:
			raise ValueError("notification uri must not be empty")
		return value

	@field_validator("record")
	def _read_only_record(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:  # type: ignore[override]
		return _freeze(value)

	def __hash__(self) -> int:
		return hash((self.id, self.cid, self.indexed_at, self.is_read))

	def as_read(self) -> "NotificationRecord":
		if self.is_read:
			return self
		return self.model_copy(update={"is_read": True})


@dataclass(frozen=True)
class PaginationState:
	cursor: Optional[str] = None
	has_more: bool = True

	@classmethod
	def initial(cls) -> "PaginationState":
		return cls(cursor=None, has_more=True)

	@classmethod
	def after_page(cls, next_cursor: Optional[str]) -> "PaginationState":
		# Trust the server's continuation signal, never the page size. An empty
		# cursor ends the feed the same way a missing one does.
		next_cursor = next_cursor or None
		return cls(cursor=next_cursor, has_more=next_cursor is not None)


@dataclass(frozen=True)
class NotificationPage:
	records: tuple[NotificationRecord, ...]
	next_cursor: Optional[str] = None


@dataclass
class UnreadCounter:
	"""Best-effort mirror of the server-side unread count."""

	count: int = 0

	def set(self, value: int) -> None:
		self.count = max(0, int(value))

	def reset(self) -> None:
		self.count = 0


__all__ = [
	"NotificationReason",
	"ActorRef",
	"NotificationRecord",
	"PaginationState",
	"NotificationPage",
	"UnreadCounter",
]
