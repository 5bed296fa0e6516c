"""Conversation message log helpers."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from fastapi import HTTPException, Request

from dal.message_dal import MessageDAL
from models.message_record import MessageRecord

ALLOWED_ROLES = {"user", "assistant", "system"}


def _message_dal(request: Request) -> MessageDAL:
	db_initializer = getattr(request.app.state, "db_initializer", None)
	if db_initializer is None:
		raise HTTPException(status_code=500, detail="Database not initialized")
	return MessageDAL(db_initializer)


async def append_message(request: Request, conversation_id: str, role: str, content: str) -> Dict[str, Any]:
	"""Store a completed message and return it."""
	role = (role or "").strip().lower()
	if role not in ALLOWED_ROLES:
		raise HTTPException(status_code=422, detail=f"Unsupported role: {role!r}")
	content = (content or "").strip()
	if not content:
		raise HTTPException(status_code=400, detail="Message content is required.")
	record = await _message_dal(request).create_message(
		MessageRecord(id=None, conversation_id=conversation_id, role=role, content=content)
	)
	return asdict(record)


async def list_messages(request: Request, conversation_id: str, limit: int = 200) -> Dict[str, Any]:
	"""Return the conversation's messages oldest first."""
	records: List[MessageRecord] = await _message_dal(request).list_messages(conversation_id, limit=limit)
	return {"conversation_id": conversation_id, "messages": [asdict(r) for r in records]}
