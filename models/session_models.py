"""Session domain models for realtime voice conversations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class SessionState(str, Enum):
	"""Lifecycle of a realtime session."""

	IDLE = "idle"
	CONNECTING = "connecting"
	CONNECTED = "connected"
	RECORDING = "recording"
	DISCONNECTED = "disconnected"


@dataclass
class RealtimeMessage:
	"""A completed user or assistant turn delivered to the caller."""

	role: str
	content: str
	created_at: float = field(default_factory=lambda: time.time())


@dataclass
class FunctionCallRecord:
	"""One tool call requested by the model, alive for a single round trip."""

	name: str
	arguments: Dict[str, Any]
	call_id: str


@dataclass
class Credential:
	"""Short-lived token used to open exactly one realtime connection."""

	token: str
	expires_at: Optional[int] = None
