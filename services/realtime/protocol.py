"""Builders and names for realtime wire-protocol events."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from services.realtime.settings import RealtimeSettings

JsonDict = Dict[str, Any]

RESPONSE_CREATED = "response.created"
RESPONSE_DONE = "response.done"
AUDIO_DELTA = "response.output_audio.delta"
AUDIO_TRANSCRIPT_DELTA = "response.output_audio_transcript.delta"
AUDIO_TRANSCRIPT_DONE = "response.output_audio_transcript.done"
TEXT_DELTA = "response.output_text.delta"
TEXT_DONE = "response.output_text.done"
OUTPUT_ITEM_DONE = "response.output_item.done"
FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
ITEM_CREATED = "conversation.item.created"
INPUT_TRANSCRIPTION_DELTA = "conversation.item.input_audio_transcription.delta"
INPUT_TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
ERROR = "error"

# Beta event names still emitted by preview models.
LEGACY_EVENT_ALIASES = {
	"response.audio.delta": AUDIO_DELTA,
	"response.audio_transcript.delta": AUDIO_TRANSCRIPT_DELTA,
	"response.audio_transcript.done": AUDIO_TRANSCRIPT_DONE,
	"response.text.delta": TEXT_DELTA,
	"response.text.done": TEXT_DONE,
}


def normalize_event_type(event_type: Optional[str]) -> str:
	return LEGACY_EVENT_ALIASES.get(event_type or "", event_type or "")


def session_update(settings: RealtimeSettings, instructions: str, tools: List[JsonDict]) -> JsonDict:
	"""Return the configuration sent once the socket opens."""
	session: JsonDict = {
		"modalities": ["text", "audio"],
		"instructions": instructions,
		"voice": settings.voice,
		"temperature": settings.temperature,
		"max_response_output_tokens": settings.max_output_tokens,
		# Manual turn-taking: the client commits audio and asks for responses.
		"turn_detection": None,
		"input_audio_transcription": {"model": settings.transcription_model},
	}
	if tools:
		session["tools"] = tools
		session["tool_choice"] = "auto"
	return {"type": "session.update", "session": session}


def input_audio_append(audio_b64: str) -> JsonDict:
	return {"type": "input_audio_buffer.append", "audio": audio_b64}


def input_audio_commit() -> JsonDict:
	return {"type": "input_audio_buffer.commit"}


def input_audio_clear() -> JsonDict:
	return {"type": "input_audio_buffer.clear"}


def user_text_message(text: str) -> JsonDict:
	return {
		"type": "conversation.item.create",
		"item": {
			"type": "message",
			"role": "user",
			"content": [{"type": "input_text", "text": text}],
		},
	}


def function_call_output(call_id: str, output: Any) -> JsonDict:
	return {
		"type": "conversation.item.create",
		"item": {
			"type": "function_call_output",
			"call_id": call_id,
			"output": json.dumps(output),
		},
	}


def response_create() -> JsonDict:
	return {"type": "response.create"}


def response_cancel(response_id: Optional[str] = None) -> JsonDict:
	event: JsonDict = {"type": "response.cancel"}
	if response_id:
		event["response_id"] = response_id
	return event


def item_transcript(item: Optional[JsonDict], content_type: str) -> Optional[str]:
	"""Return the transcript of the first ``content_type`` part of an item."""
	for part in (item or {}).get("content") or []:
		if part.get("type") != content_type:
			continue
		text = part.get("transcript") or part.get("text")
		if text:
			return text
	return None
