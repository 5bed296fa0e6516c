"""Microphone capture feeding fixed-size frames into the event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

import numpy as np

from services.realtime.errors import MicrophoneError

FrameHandler = Callable[[np.ndarray, int], None]


class MicrophoneCapture:
	"""Read mono float32 frames from an input device at its native rate.

	``on_frame(samples, sample_rate)`` is invoked on the event loop that
	called :meth:`start`, never on the PortAudio thread.
	"""

	def __init__(self, device: Optional[str] = None, frame_size: int = 4096) -> None:
		self.device = device
		self.frame_size = frame_size
		self.sample_rate: Optional[int] = None
		self._stream: Any = None

	def start(self, on_frame: FrameHandler) -> None:
		"""Open the device and begin delivering frames to ``on_frame``."""
		if self._stream is not None:
			return
		try:
			import sounddevice as sd
		except Exception as exc:  # pragma: no cover - environment-dependent
			raise MicrophoneError("sounddevice is required for microphone capture.") from exc

		loop = asyncio.get_running_loop()
		try:
			info = sd.query_devices(self.device, "input")
			sample_rate = int(info["default_samplerate"])
		except Exception as exc:
			raise MicrophoneError(f"No usable input device: {exc}") from exc

		def _callback(indata, _frames, _time, status):
			if status:
				logging.debug("Microphone status: %s", status)
			frame = indata[:, 0].copy()
			loop.call_soon_threadsafe(on_frame, frame, sample_rate)

		try:
			stream = sd.InputStream(
				samplerate=sample_rate,
				channels=1,
				dtype="float32",
				blocksize=self.frame_size,
				device=self.device,
				callback=_callback,
			)
			stream.start()
		except Exception as exc:
			raise MicrophoneError(f"Failed to access microphone: {exc}") from exc

		self.sample_rate = sample_rate
		self._stream = stream
		logging.info("Microphone capture started at %d Hz", sample_rate)

	def stop(self) -> None:
		"""Stop and release the input stream. Safe to call repeatedly."""
		stream, self._stream = self._stream, None
		if stream is None:
			return
		try:
			stream.stop()
			stream.close()
		except Exception as exc:
			logging.warning("Error while closing microphone stream: %s", exc)
