"""Gap-free scheduling of streamed audio chunks."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, List, Optional, Protocol, Tuple

import numpy as np


class AudioOutput(Protocol):
	"""Sink that plays float samples at a scheduled time on its own clock."""

	sample_rate: int

	@property
	def current_time(self) -> float: ...

	def play(self, samples: np.ndarray, start_time: float) -> None: ...

	def stop(self) -> None: ...

	def close(self) -> None: ...


@dataclass
class ScheduledChunk:
	"""One decoded buffer placed on the playback timeline."""

	start: float
	duration: float

	@property
	def end(self) -> float:
		return self.start + self.duration


class PlaybackScheduler:
	"""Chain decoded buffers back to back on a per-session playback cursor.

	Each buffer starts at ``max(cursor, now)`` and the cursor advances by
	the buffer's duration, so consecutive chunks never overlap and never
	leave a gap while audio keeps arriving.
	"""

	def __init__(self, output: AudioOutput) -> None:
		self.output = output
		self.next_play_time = 0.0
		self.queue: List[ScheduledChunk] = []

	def schedule(self, samples: np.ndarray) -> ScheduledChunk:
		"""Queue ``samples`` right after the previously scheduled buffer."""
		now = self.output.current_time
		self._prune(now)
		if self.next_play_time < now:
			self.next_play_time = now
		chunk = ScheduledChunk(start=self.next_play_time, duration=len(samples) / float(self.output.sample_rate))
		self.output.play(samples, chunk.start)
		self.next_play_time = chunk.end
		self.queue.append(chunk)
		return chunk

	def _prune(self, now: float) -> None:
		self.queue = [chunk for chunk in self.queue if chunk.end > now]

	@property
	def playing(self) -> bool:
		self._prune(self.output.current_time)
		return bool(self.queue)

	def stop(self) -> None:
		"""Silence everything queued and rewind the cursor."""
		self.output.stop()
		self.queue.clear()
		self.next_play_time = 0.0

	def close(self) -> None:
		self.stop()
		self.output.close()


class SoundDeviceOutput:
	"""Render scheduled chunks through a ``sounddevice`` output stream.

	The clock counts frames handed to the device, so ``current_time`` is
	the playback position in seconds since the stream was opened. The
	stream is opened lazily on the first :meth:`play`.
	"""

	def __init__(self, sample_rate: int = 24000, device: Optional[str] = None, blocksize: int = 1024) -> None:
		self.sample_rate = sample_rate
		self.device = device
		self.blocksize = blocksize
		self._stream: Any = None
		self._frames = 0
		self._pending: Deque[Tuple[int, np.ndarray]] = deque()
		self._lock = threading.Lock()

	@property
	def current_time(self) -> float:
		with self._lock:
			return self._frames / float(self.sample_rate)

	def _ensure_stream(self) -> None:
		if self._stream is not None:
			return
		try:
			import sounddevice as sd
		except Exception as exc:  # pragma: no cover - environment-dependent
			raise RuntimeError("sounddevice is required for audio playback.") from exc

		stream = sd.OutputStream(
			samplerate=self.sample_rate,
			channels=1,
			dtype="float32",
			blocksize=self.blocksize,
			device=self.device,
			callback=self._callback,
		)
		stream.start()
		self._stream = stream

	def play(self, samples: np.ndarray, start_time: float) -> None:
		self._ensure_stream()
		start_frame = int(round(start_time * self.sample_rate))
		with self._lock:
			self._pending.append((start_frame, np.asarray(samples, dtype=np.float32)))

	def _callback(self, outdata, frames, _time, status):
		if status:
			logging.debug("Playback status: %s", status)
		out = np.zeros(frames, dtype=np.float32)
		with self._lock:
			window_start = self._frames
			window_end = window_start + frames
			while self._pending:
				chunk_start, samples = self._pending[0]
				chunk_end = chunk_start + samples.shape[0]
				if chunk_end <= window_start:
					self._pending.popleft()
					continue
				if chunk_start >= window_end:
					break
				lo = max(chunk_start, window_start)
				hi = min(chunk_end, window_end)
				out[lo - window_start:hi - window_start] = samples[lo - chunk_start:hi - chunk_start]
				if chunk_end > window_end:
					break
				self._pending.popleft()
			self._frames = window_end
		outdata[:, 0] = out

	def stop(self) -> None:
		with self._lock:
			self._pending.clear()

	def close(self) -> None:
		self.stop()
		stream, self._stream = self._stream, None
		if stream is None:
			return
		try:
			stream.stop()
			stream.close()
		except Exception as exc:
			logging.warning("Error while closing playback stream: %s", exc)
