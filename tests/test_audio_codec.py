import base64

import numpy as np
import pytest

from services.realtime.audio_codec import decode_audio, encode_audio, float_to_pcm16, pcm16_to_float, resample_linear


@pytest.mark.parametrize("length", [4096, 1000, 480])
def test_resample_halves_48k_to_24k(length):
    samples = np.linspace(-1.0, 1.0, length, dtype=np.float32)
    resampled = resample_linear(samples, 48000, 24000)
    assert resampled.shape[0] == round(length / 2)
    assert resampled[0] == pytest.approx(samples[0])
    assert resampled[1] == pytest.approx(samples[2])


def test_resample_equal_rates_returns_input():
    samples = np.array([0.1, -0.2, 0.3], dtype=np.float32)
    assert resample_linear(samples, 24000, 24000) is samples


def test_resample_interpolates_and_holds_last_sample():
    samples = np.array([0.0, 1.0], dtype=np.float32)
    resampled = resample_linear(samples, 1, 2)
    assert resampled.tolist() == pytest.approx([0.0, 0.5, 1.0, 1.0])


def test_resample_44k1_frame_length():
    samples = np.zeros(4096, dtype=np.float32)
    assert resample_linear(samples, 44100, 24000).shape[0] == 2229


def test_resample_rejects_bad_rates():
    with pytest.raises(ValueError):
        resample_linear(np.zeros(4, dtype=np.float32), 0, 24000)


def test_float_to_pcm16_clamps_and_scales():
    data = float_to_pcm16(np.array([-1.5, -1.0, 0.0, 1.0, 2.0], dtype=np.float32))
    assert np.frombuffer(data, dtype="<i2").tolist() == [-32768, -32768, 0, 32767, 32767]


def test_pcm16_to_float_normalizes():
    data = np.array([-32768, 0, 16384], dtype="<i2").tobytes()
    assert pcm16_to_float(data).tolist() == pytest.approx([-1.0, 0.0, 0.5])


def test_pcm16_to_float_ignores_trailing_odd_byte():
    data = np.array([16384], dtype="<i2").tobytes() + b"\x01"
    assert pcm16_to_float(data).tolist() == pytest.approx([0.5])


def test_base64_payload_matches_standard_encoding():
    raw = b"\x00\x01\xfe\xff"
    assert encode_audio(raw) == base64.b64encode(raw).decode("ascii")
    assert decode_audio(encode_audio(raw)) == raw
