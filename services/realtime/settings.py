"""Environment-driven settings for realtime voice sessions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

REALTIME_URL = "wss://api.openai.com/v1/realtime"
SERVICE_SAMPLE_RATE = 24000
FRAME_SIZE = 4096


def _env_float(name: str, default: float) -> float:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	try:
		return float(raw)
	except ValueError as exc:
		raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	try:
		return int(raw)
	except ValueError as exc:
		raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass
class RealtimeSettings:
	"""Options sent in the session configuration and used by the audio pipelines."""

	model: str = "gpt-4o-realtime-preview-2024-12-17"
	voice: str = "sage"
	temperature: float = 0.8
	max_output_tokens: int = 4096
	transcription_model: str = "whisper-1"
	base_url: str = "http://localhost:8000"
	realtime_url: str = REALTIME_URL
	sample_rate: int = SERVICE_SAMPLE_RATE
	frame_size: int = FRAME_SIZE
	input_device: Optional[str] = None
	surface_function_errors: bool = True

	@property
	def websocket_url(self) -> str:
		return f"{self.realtime_url}?model={self.model}"

	@classmethod
	def from_env(cls) -> "RealtimeSettings":
		"""Build settings from environment variables, falling back to defaults."""
		defaults = cls()
		surface = os.getenv("REALTIME_SURFACE_FUNCTION_ERRORS", "true").strip().lower()
		return cls(
			model=os.getenv("OPENAI_REALTIME_MODEL") or defaults.model,
			voice=os.getenv("REALTIME_VOICE") or defaults.voice,
			temperature=_env_float("REALTIME_TEMPERATURE", defaults.temperature),
			max_output_tokens=_env_int("REALTIME_MAX_OUTPUT_TOKENS", defaults.max_output_tokens),
			transcription_model=os.getenv("REALTIME_TRANSCRIPTION_MODEL") or defaults.transcription_model,
			base_url=(os.getenv("TUTORFLOW_BASE_URL") or defaults.base_url).rstrip("/"),
			input_device=os.getenv("REALTIME_INPUT_DEVICE") or None,
			surface_function_errors=surface not in {"0", "false", "no", "off"},
		)
