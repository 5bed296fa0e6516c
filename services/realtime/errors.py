"""Error taxonomy for the realtime session adapter."""

from __future__ import annotations


class RealtimeError(Exception):
	"""Base class for every error the realtime session reports."""


class RealtimeConnectionError(RealtimeError, ConnectionError):
	"""The session could not be established or was lost."""


class CredentialError(RealtimeConnectionError):
	"""The ephemeral credential could not be obtained."""


class TransportError(RealtimeConnectionError):
	"""The websocket rejected the handshake or failed mid-session."""


class MicrophoneError(RealtimeError):
	"""The capture device could not be opened."""


class ProtocolError(RealtimeError):
	"""The service reported an error event on an open session."""

	def __init__(self, message: str, code: str | None = None, event_id: str | None = None) -> None:
		super().__init__(message)
		self.code = code
		self.event_id = event_id


class FunctionExecutionError(RealtimeError):
	"""A tool call could not be executed."""

	def __init__(self, name: str, message: str) -> None:
		super().__init__(f"Function '{name}' failed: {message}")
		self.name = name


class SessionStateError(RealtimeError):
	"""The requested operation is not legal in the current session state."""
