"""Issue ephemeral credentials for browser and CLI realtime clients."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import HTTPException, Request
from openai import APIStatusError


async def create_client_secret(request: Request) -> Dict[str, Any]:
	"""Mint a short-lived realtime client secret with the server's API key.

	Returns:
		``{"token": ..., "expiresAt": ...}``; the token opens exactly one
		realtime connection.

	Raises:
		HTTPException(500) if the OpenAI client is unavailable, or the
		upstream status code if OpenAI rejects the request.
	"""
	openai_client = getattr(request.app.state, "openai_client", None)
	if openai_client is None:
		raise HTTPException(status_code=500, detail="OpenAI API key not configured")

	try:
		secret = await openai_client.realtime.client_secrets.create()
	except APIStatusError as exc:
		logging.error("OpenAI API error: %s", exc)
		raise HTTPException(status_code=exc.status_code, detail=f"Failed to create session: {exc.message}") from exc
	except Exception as exc:
		logging.error("Error creating realtime session: %s", exc)
		raise HTTPException(status_code=500, detail="Failed to create session") from exc

	token = getattr(secret, "value", None)
	if not token:
		raise HTTPException(status_code=502, detail="OpenAI returned no client secret")
	return {"token": token, "expiresAt": getattr(secret, "expires_at", None)}
