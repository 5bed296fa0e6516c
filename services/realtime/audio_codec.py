"""PCM16 conversion and resampling helpers for realtime audio."""

from __future__ import annotations

import base64
import math

import numpy as np


def resample_linear(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
	"""Resample mono float samples with linear interpolation.

	The output holds ``len(samples) * target_rate / source_rate`` samples,
	rounded half up. Output sample ``i`` sits at input position ``i * ratio`` and
	blends the two neighbouring input samples; past the last pair it
	repeats the final input sample. Equal rates return ``samples`` as is.
	"""
	if source_rate == target_rate:
		return samples
	if source_rate <= 0 or target_rate <= 0:
		raise ValueError("Sample rates must be positive.")

	data = np.asarray(samples, dtype=np.float32)
	ratio = source_rate / target_rate
	length = int(math.floor(data.shape[0] / ratio + 0.5))
	if length <= 0 or data.size == 0:
		return np.empty((0,), dtype=np.float32)

	positions = np.arange(length, dtype=np.float64) * ratio
	index = np.floor(positions).astype(np.int64)
	index = np.minimum(index, data.shape[0] - 1)
	fraction = (positions - index).astype(np.float32)
	following = np.minimum(index + 1, data.shape[0] - 1)
	blended = data[index] * (1.0 - fraction) + data[following] * fraction
	# The last input sample has no neighbour to blend with.
	edge = index + 1 >= data.shape[0]
	blended[edge] = data[index[edge]]
	return blended.astype(np.float32)


def float_to_pcm16(samples: np.ndarray) -> bytes:
	"""Quantize float samples in [-1, 1] to little-endian signed 16-bit PCM."""
	clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
	scaled = np.where(clipped < 0, clipped * 0x8000, clipped * 0x7FFF)
	return scaled.astype("<i2").tobytes()


def pcm16_to_float(data: bytes) -> np.ndarray:
	"""Convert little-endian 16-bit PCM bytes to floats in [-1, 1)."""
	if len(data) % 2:
		data = data[:-1]
	pcm = np.frombuffer(data, dtype="<i2")
	return (pcm.astype(np.float32) / 32768.0).astype(np.float32)


def encode_audio(data: bytes) -> str:
	return base64.b64encode(data).decode("ascii")


def decode_audio(payload: str) -> bytes:
	return base64.b64decode(payload)
