import numpy as np
import pytest

from conftest import FakeOutput
from services.realtime.playback import PlaybackScheduler, SoundDeviceOutput


def test_chunks_never_overlap_as_clock_advances():
    output = FakeOutput()
    scheduler = PlaybackScheduler(output)
    arrivals = [(0.0, 2400), (0.01, 4800), (0.02, 1200), (0.5, 2400), (0.55, 600), (2.0, 2400)]
    chunks = []
    for now, size in arrivals:
        output.now = now
        chunks.append(scheduler.schedule(np.zeros(size, dtype=np.float32)))

    for previous, current in zip(chunks, chunks[1:]):
        assert current.start >= previous.start + previous.duration - 1e-9
    assert chunks[1].start == pytest.approx(chunks[0].end)
    assert chunks[4].start == pytest.approx(chunks[3].end)
    assert chunks[5].start == pytest.approx(2.0)


def test_finished_chunks_leave_the_queue():
    output = FakeOutput()
    scheduler = PlaybackScheduler(output)
    scheduler.schedule(np.zeros(2400, dtype=np.float32))
    scheduler.schedule(np.zeros(2400, dtype=np.float32))
    assert scheduler.playing
    output.now = 0.15
    assert len([c for c in scheduler.queue if c.end > output.now]) == 1
    output.now = 0.2
    assert not scheduler.playing


def test_stop_rewinds_cursor():
    output = FakeOutput()
    scheduler = PlaybackScheduler(output)
    scheduler.schedule(np.zeros(24000, dtype=np.float32))
    scheduler.stop()
    assert scheduler.next_play_time == 0.0
    assert scheduler.queue == []
    assert output.stops == 1

    output.now = 0.3
    chunk = scheduler.schedule(np.zeros(240, dtype=np.float32))
    assert chunk.start == pytest.approx(0.3)


def test_sound_device_output_renders_scheduled_chunks():
    output = SoundDeviceOutput(sample_rate=4)
    output._stream = object()  # skip opening a real device
    output.play(np.ones(3, dtype=np.float32), 0.0)
    output.play(np.full(2, 2.0, dtype=np.float32), 0.75)

    block = np.zeros((4, 1), dtype=np.float32)
    output._callback(block, 4, None, None)
    assert block[:, 0].tolist() == [1.0, 1.0, 1.0, 2.0]
    assert output.current_time == pytest.approx(1.0)

    output._callback(block, 4, None, None)
    assert block[:, 0].tolist() == [2.0, 0.0, 0.0, 0.0]


def test_sound_device_output_stop_drops_pending_audio():
    output = SoundDeviceOutput(sample_rate=4)
    output._stream = object()
    output.play(np.ones(8, dtype=np.float32), 0.0)
    output.stop()
    block = np.zeros((4, 1), dtype=np.float32)
    output._callback(block, 4, None, None)
    assert block[:, 0].tolist() == [0.0, 0.0, 0.0, 0.0]
