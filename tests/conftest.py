import asyncio
import json

import pytest

from models.session_models import Credential
from services.realtime.errors import MicrophoneError
from services.realtime.session_adapter import RealtimeSession
from services.realtime.settings import RealtimeSettings


class FakeWebSocket:
    """Records outbound frames and replays queued inbound events."""

    def __init__(self):
        self.sent = []
        self.inbox = asyncio.Queue()
        self.closed = False

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        self.closed = True
        self.inbox.put_nowait(None)

    def push(self, item):
        self.inbox.put_nowait(item)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.inbox.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return json.dumps(item)

    def types(self):
        return [event["type"] for event in self.sent]


class FakeMicrophone:
    def __init__(self, error=None):
        self.error = error
        self.on_frame = None
        self.started = 0
        self.stopped = 0

    @property
    def active(self):
        return self.on_frame is not None

    def start(self, on_frame):
        if self.error is not None:
            raise MicrophoneError(self.error)
        self.started += 1
        self.on_frame = on_frame

    def stop(self):
        if self.on_frame is not None:
            self.stopped += 1
        self.on_frame = None

    def emit(self, frame, sample_rate):
        self.on_frame(frame, sample_rate)


class FakeOutput:
    sample_rate = 24000

    def __init__(self):
        self.now = 0.0
        self.played = []
        self.stops = 0
        self.closes = 0

    @property
    def current_time(self):
        return self.now

    def play(self, samples, start_time):
        self.played.append((start_time, len(samples)))

    def stop(self):
        self.stops += 1

    def close(self):
        self.closes += 1


async def settle(rounds=10):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def harness():
    """Build a session wired to fakes; returns a namespace of its parts."""

    class Harness:
        def __init__(self):
            self.ws = FakeWebSocket()
            self.microphone = FakeMicrophone()
            self.output = FakeOutput()
            self.messages = []
            self.errors = []
            self.function_calls = []
            self.executed = []
            self.connector_calls = []
            self.settings = RealtimeSettings(model="test-model")
            self.function_result = {"ok": True}
            self.function_error = None
            self.token_error = None

        async def token_provider(self):
            if self.token_error is not None:
                raise self.token_error
            return Credential(token="ek_test", expires_at=1700000000)

        async def connector(self, url, token):
            self.connector_calls.append((url, token))
            return self.ws

        async def executor(self, name, arguments):
            self.executed.append((name, arguments))
            if self.function_error is not None:
                raise self.function_error
            return self.function_result

        def build(self):
            return RealtimeSession(
                self.settings,
                self.token_provider,
                self.executor,
                on_message=self.messages.append,
                on_function_call=lambda name, args: self.function_calls.append((name, args)),
                on_error=self.errors.append,
                microphone=self.microphone,
                audio_output=self.output,
                connector=self.connector,
            )

    return Harness()
