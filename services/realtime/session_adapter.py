"""Bidirectional realtime voice session with the OpenAI Realtime API.

One :class:`RealtimeSession` owns one websocket. Microphone frames are
resampled to the service rate, quantized to PCM16 and streamed as append
events; inbound audio is decoded and chained on the session's playback
cursor; transcript fragments are buffered until a completion event; tool
calls are executed and answered on the same socket. Everything runs on a
single asyncio loop, so no locks guard the session's own state.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
from uuid import uuid4

import numpy as np
import websockets
from websockets.exceptions import ConnectionClosed

from models.session_models import Credential, FunctionCallRecord, RealtimeMessage, SessionState
from services.realtime import protocol
from services.realtime.audio_codec import decode_audio, encode_audio, float_to_pcm16, pcm16_to_float, resample_linear
from services.realtime.capture import MicrophoneCapture
from services.realtime.errors import (
	CredentialError,
	FunctionExecutionError,
	MicrophoneError,
	ProtocolError,
	RealtimeError,
	SessionStateError,
	TransportError,
)
from services.realtime.playback import AudioOutput, PlaybackScheduler, SoundDeviceOutput
from services.realtime.prompts import tutor_instructions
from services.realtime.settings import RealtimeSettings
from services.realtime.tools import TUTOR_TOOLS
from services.realtime.transcript import TranscriptAccumulator, UserTranscripts

TokenProvider = Callable[[], Awaitable[Credential]]
FunctionExecutor = Callable[[str, Dict[str, Any]], Awaitable[Any]]
Connector = Callable[[str, str], Awaitable[Any]]


async def open_realtime_socket(url: str, token: str) -> Any:
	"""Open the service websocket authenticated with an ephemeral token."""
	return await websockets.connect(
		url,
		additional_headers={"Authorization": f"Bearer {token}"},
		max_size=20_000_000,
	)


class RealtimeSession:
	"""Manage one realtime voice conversation.

	Args:
		settings: Model, voice and audio options.
		token_provider: Coroutine function returning a fresh :class:`Credential`.
		function_executor: Coroutine function ``(name, args) -> result`` for tool calls.
		on_message: Called with each completed :class:`RealtimeMessage`.
		on_function_call: Called with ``(name, args)`` before a tool call executes.
		on_error: Called with every :class:`RealtimeError` the session reports.
		microphone: Capture device, a :class:`MicrophoneCapture` by default.
		audio_output: Playback sink, a :class:`SoundDeviceOutput` by default.
		connector: Coroutine function ``(url, token) -> websocket``.

	Callbacks may be plain functions or coroutine functions.
	"""

	def __init__(
		self,
		settings: RealtimeSettings,
		token_provider: TokenProvider,
		function_executor: Optional[FunctionExecutor] = None,
		*,
		on_message: Optional[Callable[[RealtimeMessage], Any]] = None,
		on_function_call: Optional[Callable[[str, Dict[str, Any]], Any]] = None,
		on_error: Optional[Callable[[RealtimeError], Any]] = None,
		instructions: Optional[str] = None,
		tools: Optional[List[Dict[str, Any]]] = None,
		microphone: Optional[MicrophoneCapture] = None,
		audio_output: Optional[AudioOutput] = None,
		connector: Optional[Connector] = None,
	) -> None:
		if token_provider is None:
			raise ValueError("A token provider is required.")
		self.settings = settings
		self.token_provider = token_provider
		self.function_executor = function_executor
		self.on_message = on_message
		self.on_function_call = on_function_call
		self.on_error = on_error
		self.instructions = instructions if instructions is not None else tutor_instructions()
		self.tools = tools if tools is not None else TUTOR_TOOLS
		self.microphone = microphone or MicrophoneCapture(settings.input_device, settings.frame_size)
		self.playback = PlaybackScheduler(audio_output or SoundDeviceOutput(settings.sample_rate))
		self._connector = connector or open_realtime_socket

		self.state = SessionState.IDLE
		self.last_error: Optional[RealtimeError] = None
		self.response_id: Optional[str] = None
		self.transcript = TranscriptAccumulator()
		self._user_transcripts = UserTranscripts()
		self._cancelled: Set[str] = set()

		self._ws: Any = None
		self._generation = 0
		self._receiver: Optional[asyncio.Task] = None
		self._audio_queue: Optional[asyncio.Queue] = None
		self._audio_sender: Optional[asyncio.Task] = None

		self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
			protocol.RESPONSE_CREATED: self._on_response_created,
			protocol.RESPONSE_DONE: self._on_response_done,
			protocol.AUDIO_TRANSCRIPT_DELTA: self._on_assistant_delta,
			protocol.TEXT_DELTA: self._on_assistant_delta,
			protocol.AUDIO_TRANSCRIPT_DONE: self._on_assistant_done,
			protocol.TEXT_DONE: self._on_assistant_done,
			protocol.OUTPUT_ITEM_DONE: self._on_output_item_done,
			protocol.INPUT_TRANSCRIPTION_DELTA: self._on_user_delta,
			protocol.INPUT_TRANSCRIPTION_COMPLETED: self._on_user_transcript,
			protocol.ITEM_CREATED: self._on_item_created,
			protocol.AUDIO_DELTA: self._on_audio_delta,
			protocol.FUNCTION_CALL_ARGUMENTS_DONE: self._on_function_call,
			protocol.ERROR: self._on_error_event,
		}

	@property
	def connected(self) -> bool:
		return self.state in (SessionState.CONNECTED, SessionState.RECORDING)

	@property
	def recording(self) -> bool:
		return self.state is SessionState.RECORDING

	def _set_state(self, state: SessionState) -> None:
		if state is not self.state:
			logging.debug("Realtime session %s -> %s", self.state.value, state.value)
			self.state = state

	# -- lifecycle -----------------------------------------------------------

	async def connect(self) -> None:
		"""Fetch a credential, open the socket and send the session configuration.

		If :meth:`disconnect` is called before this finishes, the attempt is
		abandoned and the session stays disconnected.

		Raises:
			CredentialError: The token collaborator failed.
			TransportError: The websocket handshake or first send failed.
			SessionStateError: The session is already connecting or connected.
		"""
		if self.state in (SessionState.CONNECTING, SessionState.CONNECTED, SessionState.RECORDING):
			raise SessionStateError(f"Cannot connect while {self.state.value}.")
		self._generation += 1
		generation = self._generation
		self._set_state(SessionState.CONNECTING)
		self.last_error = None
		self.transcript = TranscriptAccumulator()
		self._user_transcripts = UserTranscripts()
		self._cancelled.clear()

		# A disconnect() during any await below bumps the generation; the
		# attempt then stops quietly and closes whatever it opened.
		try:
			credential = await self.token_provider()
		except Exception as exc:
			if generation != self._generation:
				return
			error = exc if isinstance(exc, CredentialError) else CredentialError(f"Failed to get session token: {exc}")
			await self._fail_connect(error)
			if error is exc:
				raise
			raise error from exc
		if generation != self._generation:
			logging.info("Realtime connect abandoned after disconnect")
			return

		try:
			ws = await self._connector(self.settings.websocket_url, credential.token)
		except Exception as exc:
			if generation != self._generation:
				return
			error = TransportError(f"Realtime handshake failed: {exc}")
			await self._fail_connect(error)
			raise error from exc
		if generation != self._generation:
			logging.info("Realtime connect abandoned after disconnect")
			try:
				await ws.close()
			except Exception as exc:
				logging.debug("Error while closing realtime socket: %s", exc)
			return

		self._ws = ws
		self._set_state(SessionState.CONNECTED)
		logging.info("Connected to OpenAI Realtime API (%s)", self.settings.model)
		try:
			await self._send(protocol.session_update(self.settings, self.instructions, self.tools))
		except TransportError as exc:
			if generation != self._generation:
				return
			self._ws = None
			await self._fail_connect(exc)
			raise
		if generation != self._generation:
			return
		self._receiver = asyncio.create_task(self._receive_loop(ws))

	async def _fail_connect(self, error: RealtimeError) -> None:
		self._set_state(SessionState.DISCONNECTED)
		logging.error("Realtime connection error: %s", error)
		await self._report(error)

	async def disconnect(self) -> None:
		"""Close the socket and release capture and playback. Idempotent."""
		if self.state in (SessionState.IDLE, SessionState.DISCONNECTED) and self._ws is None:
			return
		self._generation += 1
		ws, self._ws = self._ws, None
		receiver, self._receiver = self._receiver, None
		self._halt_capture()
		if receiver is not None and receiver is not asyncio.current_task():
			receiver.cancel()
			await asyncio.gather(receiver, return_exceptions=True)
		if ws is not None:
			try:
				await ws.close()
			except Exception as exc:
				logging.debug("Error while closing realtime socket: %s", exc)
		self.playback.close()
		self.response_id = None
		self._set_state(SessionState.DISCONNECTED)
		logging.info("Disconnected from OpenAI Realtime API")

	# -- user actions --------------------------------------------------------

	async def start_recording(self) -> None:
		"""Interrupt any in-flight response and start streaming the microphone.

		Raises:
			SessionStateError: The session is not connected.
			MicrophoneError: The capture device could not be opened.
		"""
		if self.state is SessionState.RECORDING:
			return
		if self.state is not SessionState.CONNECTED:
			raise SessionStateError("Connect before recording.")

		if self.response_id is not None:
			self._cancelled.add(self.response_id)
			await self._send(protocol.response_cancel(self.response_id))
			self.response_id = None
			self.transcript.reset()
		await self._send(protocol.input_audio_clear())
		if self.playback.playing:
			self.playback.stop()

		queue: asyncio.Queue = asyncio.Queue()
		self._audio_queue = queue
		try:
			self.microphone.start(lambda frame, rate: self._on_frame(queue, frame, rate))
		except MicrophoneError as exc:
			self._audio_queue = None
			logging.error("Microphone error: %s", exc)
			await self._report(exc)
			raise
		self._audio_sender = asyncio.create_task(self._pump_audio(queue))
		self._set_state(SessionState.RECORDING)

	async def stop_recording(self) -> None:
		"""Stop capture, commit the buffered input and request a response.

		Only the first call of a recording cycle does anything.
		"""
		if self.state is not SessionState.RECORDING:
			return
		sender = self._audio_sender
		self._halt_capture(flush=True)
		if sender is not None:
			await asyncio.gather(sender, return_exceptions=True)
		if self._ws is None:
			return
		await self._send(protocol.input_audio_commit())
		await self._send(protocol.response_create())

	async def send_message(self, text: str) -> None:
		"""Add a user text turn and request a response."""
		if not self.connected:
			raise SessionStateError("Connect before sending messages.")
		text = (text or "").strip()
		if not text:
			raise ValueError("Message text is required.")
		await self._send(protocol.user_text_message(text))
		await self._send(protocol.response_create())

	# -- capture pipeline ----------------------------------------------------

	def _on_frame(self, queue: asyncio.Queue, frame: np.ndarray, sample_rate: int) -> None:
		# Frames scheduled before the capture stopped belong to a finished cycle.
		if queue is not self._audio_queue:
			return
		resampled = resample_linear(frame, sample_rate, self.settings.sample_rate)
		queue.put_nowait(encode_audio(float_to_pcm16(resampled)))

	async def _pump_audio(self, queue: asyncio.Queue) -> None:
		while True:
			payload = await queue.get()
			if payload is None:
				return
			try:
				await self._send(protocol.input_audio_append(payload))
			except (TransportError, SessionStateError) as exc:
				logging.warning("Dropping captured audio: %s", exc)
				return

	def _halt_capture(self, flush: bool = False) -> None:
		if self.state is not SessionState.RECORDING:
			return
		self._set_state(SessionState.CONNECTED)
		self.microphone.stop()
		queue, self._audio_queue = self._audio_queue, None
		sender, self._audio_sender = self._audio_sender, None
		if queue is not None:
			queue.put_nowait(None)
		if sender is not None and not flush:
			sender.cancel()

	# -- transport -----------------------------------------------------------

	async def _send(self, event: Dict[str, Any]) -> None:
		ws = self._ws
		if ws is None:
			raise SessionStateError("Session is not connected.")
		try:
			await ws.send(json.dumps(event))
		except ConnectionClosed as exc:
			raise TransportError(f"Connection closed while sending {event.get('type')}: {exc}") from exc

	async def _receive_loop(self, ws: Any) -> None:
		error: Optional[RealtimeError] = None
		try:
			async for raw in ws:
				await self._handle_raw(raw)
		except ConnectionClosed as exc:
			error = TransportError(f"Connection lost: {exc}")
		except OSError as exc:
			error = TransportError(f"Connection error: {exc}")
		if ws is self._ws:
			await self._handle_close(error)

	async def _handle_close(self, error: Optional[RealtimeError]) -> None:
		self._ws = None
		self._receiver = None
		self._halt_capture()
		self.playback.close()
		self.response_id = None
		self._set_state(SessionState.DISCONNECTED)
		if error is not None:
			logging.error("Realtime transport error: %s", error)
			await self._report(error)
		else:
			logging.info("Realtime connection closed by server")

	async def _handle_raw(self, raw: Any) -> None:
		try:
			event = json.loads(raw)
		except (TypeError, ValueError) as exc:
			logging.warning("Ignoring malformed realtime frame: %s", exc)
			return
		try:
			await self.dispatch(event)
		except (TransportError, SessionStateError) as exc:
			logging.warning("Could not answer %s: %s", event.get("type"), exc)
		except Exception:
			logging.exception("Failed to handle realtime event %s", event.get("type"))

	async def dispatch(self, event: Dict[str, Any]) -> None:
		"""Route one inbound event to its handler."""
		event_type = protocol.normalize_event_type(event.get("type"))
		handler = self._handlers.get(event_type)
		if handler is None:
			logging.debug("Ignoring realtime event %s", event_type)
			return
		await handler(event)

	# -- inbound handlers ----------------------------------------------------

	def _is_cancelled(self, event: Dict[str, Any]) -> bool:
		return event.get("response_id") in self._cancelled

	async def _on_response_created(self, event: Dict[str, Any]) -> None:
		response_id = (event.get("response") or {}).get("id") or uuid4().hex
		self.response_id = response_id
		self.transcript.reset(response_id)

	async def _on_response_done(self, event: Dict[str, Any]) -> None:
		response_id = (event.get("response") or {}).get("id")
		if response_id is None or response_id == self.response_id:
			self.response_id = None
		self._cancelled.discard(response_id)
		self.transcript.forget(response_id)

	async def _on_assistant_delta(self, event: Dict[str, Any]) -> None:
		if self._is_cancelled(event):
			return
		self.transcript.append(event.get("delta") or "")

	async def _on_assistant_done(self, event: Dict[str, Any]) -> None:
		if self._is_cancelled(event):
			return
		text = self.transcript.complete(event.get("response_id"), event.get("transcript") or event.get("text"))
		if text:
			await self._emit(RealtimeMessage(role="assistant", content=text))

	async def _on_output_item_done(self, event: Dict[str, Any]) -> None:
		# Compatibility path for protocol versions that only report the
		# transcript on the finished item; the per-response guard drops it
		# when the transcript done event already delivered the message.
		item = event.get("item") or {}
		if item.get("type") != "message" or item.get("role") != "assistant" or self._is_cancelled(event):
			return
		transcript = None
		for content_type in ("output_audio", "audio", "output_text", "text"):
			transcript = protocol.item_transcript(item, content_type)
			if transcript:
				break
		text = self.transcript.complete(event.get("response_id"), transcript)
		if text:
			await self._emit(RealtimeMessage(role="assistant", content=text))

	async def _on_user_delta(self, event: Dict[str, Any]) -> None:
		self._user_transcripts.append(event.get("item_id") or "", event.get("delta") or "")

	async def _on_user_transcript(self, event: Dict[str, Any]) -> None:
		text = self._user_transcripts.complete(event.get("item_id") or "", event.get("transcript"))
		if text:
			await self._emit(RealtimeMessage(role="user", content=text))

	async def _on_item_created(self, event: Dict[str, Any]) -> None:
		item = event.get("item") or {}
		if item.get("type") != "message" or item.get("role") != "user":
			return
		transcript = protocol.item_transcript(item, "input_audio")
		if not transcript:
			return
		text = self._user_transcripts.complete(item.get("id") or "", transcript)
		if text:
			await self._emit(RealtimeMessage(role="user", content=text))

	async def _on_audio_delta(self, event: Dict[str, Any]) -> None:
		delta = event.get("delta")
		if not delta or self._is_cancelled(event):
			return
		try:
			samples = pcm16_to_float(decode_audio(delta))
			self.playback.schedule(samples)
		except Exception as exc:
			logging.error("Audio playback error: %s", exc)

	async def _on_function_call(self, event: Dict[str, Any]) -> None:
		name = event.get("name") or ""
		call_id = event.get("call_id") or ""
		error: Optional[FunctionExecutionError] = None
		result: Any = None
		try:
			arguments = json.loads(event.get("arguments") or "{}")
		except ValueError as exc:
			arguments = {}
			error = FunctionExecutionError(name, f"invalid arguments: {exc}")

		if error is None:
			record = FunctionCallRecord(name=name, arguments=arguments, call_id=call_id)
			await self._invoke(self.on_function_call, record.name, record.arguments)
			if self.function_executor is None:
				error = FunctionExecutionError(name, "no function executor configured")
			else:
				try:
					result = await self.function_executor(record.name, record.arguments)
				except FunctionExecutionError as exc:
					error = exc
				except Exception as exc:
					error = FunctionExecutionError(name, str(exc))

		if error is not None:
			logging.error("Function call error: %s", error)
			await self._report(error)
			if not self.settings.surface_function_errors:
				return
			result = {"error": str(error)}

		await self._send(protocol.function_call_output(call_id, result))
		await self._send(protocol.response_create())

	async def _on_error_event(self, event: Dict[str, Any]) -> None:
		detail = event.get("error") or {}
		error = ProtocolError(
			detail.get("message") or "Realtime API error",
			code=detail.get("code"),
			event_id=detail.get("event_id"),
		)
		logging.error("Realtime API error: %s", error)
		await self._report(error)

	# -- callbacks -----------------------------------------------------------

	async def _emit(self, message: RealtimeMessage) -> None:
		await self._invoke(self.on_message, message)

	async def _report(self, error: RealtimeError) -> None:
		self.last_error = error
		await self._invoke(self.on_error, error)

	async def _invoke(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
		if callback is None:
			return
		try:
			result = callback(*args)
			if inspect.isawaitable(result):
				await result
		except Exception:
			logging.exception("Realtime session callback failed")
