"""Helpers for ``at://repo/collection/rkey`` resource identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

_SCHEME = "at://"


@dataclass(frozen=True)
class AtUri:
	repo: str
	collection: str
	rkey: str

	@property
	def uri(self) -> str:
		return build_uri(self.repo, self.collection, self.rkey)


def parse_uri(uri: str) -> Optional[AtUri]:
	if not uri.startswith(_SCHEME):
		return None
	parts = [part for part in uri[len(_SCHEME):].split("/") if part]
	if len(parts) < 3:
		return None
	repo, collection, rkey = parts[0], parts[1], parts[2]
	return AtUri(repo=repo, collection=collection, rkey=rkey)


def build_uri(repo: str, collection: str, rkey: str) -> str:
	return f"{_SCHEME}{repo}/{collection}/{rkey}"


def is_valid_uri(uri: str) -> bool:
	return parse_uri(uri) is not None


def extract_did(identifier: str) -> Optional[str]:
	"""Return the DID behind a DID or AT-URI; handles yield None."""
	if identifier.startswith("did:"):
		return identifier
	parsed = parse_uri(identifier)
	if parsed and parsed.repo.startswith("did:"):
		return parsed.repo
	return None


__all__ = ["AtUri", "parse_uri", "build_uri", "is_valid_uri", "extract_did"]
