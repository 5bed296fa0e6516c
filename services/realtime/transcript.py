"""Accumulate streamed transcript fragments until a completion event."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Optional, Set

# Input-audio items completed recently enough to still see a duplicate
# completion (transcription event plus item echo).
RECENT_ITEMS = 32


class TranscriptAccumulator:
	"""Collect assistant transcript deltas for the in-flight response.

	Completion is reported once per response id: whichever completion event
	arrives first wins and later ones for the same response are ignored
	until :meth:`forget` drops the id on ``response.done``.
	"""

	def __init__(self) -> None:
		self.response_id: Optional[str] = None
		self._parts: list[str] = []
		self._emitted: Set[str] = set()

	@property
	def text(self) -> str:
		return "".join(self._parts)

	def reset(self, response_id: Optional[str] = None) -> None:
		self.response_id = response_id
		self._parts = []

	def append(self, delta: str) -> None:
		if delta:
			self._parts.append(delta)

	def complete(self, response_id: Optional[str] = None, transcript: Optional[str] = None) -> Optional[str]:
		"""Return the finished transcript, or None if already delivered or empty."""
		key = response_id or self.response_id
		if key is not None and key in self._emitted:
			return None
		text = self.text or (transcript or "")
		self._parts = []
		if not text:
			return None
		if key is not None:
			self._emitted.add(key)
		return text

	def forget(self, response_id: Optional[str]) -> None:
		self._emitted.discard(response_id)


class UserTranscripts:
	"""Input-audio transcription deltas keyed by conversation item id."""

	def __init__(self, recent: int = RECENT_ITEMS) -> None:
		self._parts: Dict[str, list[str]] = {}
		self._emitted: Deque[str] = deque(maxlen=recent)

	def append(self, item_id: str, delta: str) -> None:
		if delta:
			self._parts.setdefault(item_id, []).append(delta)

	def complete(self, item_id: Optional[str], transcript: Optional[str] = None) -> Optional[str]:
		if item_id is not None and item_id in self._emitted:
			return None
		buffered = "".join(self._parts.pop(item_id, [])) if item_id is not None else ""
		text = (transcript or buffered).strip()
		if not text:
			return None
		if item_id is not None:
			self._emitted.append(item_id)
		return text
