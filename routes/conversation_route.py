"""FastAPI routes for conversation message logs."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.conversation_controller import append_message, list_messages

router = APIRouter(prefix="/api/conversations")


class MessagePayload(BaseModel):
	role: str
	content: str


@router.post("/{conversation_id}/messages")
async def post_message_route(request: Request, conversation_id: str, payload: MessagePayload):
	try:
		return await append_message(request, conversation_id, payload.role, payload.content)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{conversation_id}/messages")
async def get_messages_route(request: Request, conversation_id: str, limit: int = 200):
	try:
		return await list_messages(request, conversation_id, limit)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
