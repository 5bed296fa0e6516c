"""HTTP clients for the services a realtime session depends on."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aiohttp

from models.session_models import Credential, RealtimeMessage
from services.realtime.errors import CredentialError, FunctionExecutionError


class HttpTokenProvider:
	"""Fetch an ephemeral realtime credential from the application server."""

	def __init__(self, base_url: str, path: str = "/api/realtime") -> None:
		self.url = f"{base_url.rstrip('/')}{path}"

	async def __call__(self) -> Credential:
		try:
			async with aiohttp.ClientSession() as http:
				async with http.post(self.url) as resp:
					if resp.status != 200:
						detail = await resp.text()
						raise CredentialError(f"Failed to get session token ({resp.status}): {detail}")
					data = await resp.json()
		except CredentialError:
			raise
		except (aiohttp.ClientError, ValueError) as exc:
			raise CredentialError(f"Failed to get session token: {exc}") from exc

		token = (data or {}).get("token")
		if not token:
			raise CredentialError("Token endpoint returned no token.")
		return Credential(token=token, expires_at=data.get("expiresAt"))


class HttpFunctionExecutor:
	"""Execute tool calls through the application's function endpoint."""

	def __init__(self, base_url: str, conversation_id: Optional[str] = None, path: str = "/api/functions") -> None:
		self.url = f"{base_url.rstrip('/')}{path}"
		self.conversation_id = conversation_id

	async def __call__(self, name: str, arguments: Dict[str, Any]) -> Any:
		body = {"name": name, "arguments": arguments, "conversationId": self.conversation_id}
		try:
			async with aiohttp.ClientSession() as http:
				async with http.post(self.url, json=body) as resp:
					data = await resp.json(content_type=None)
					if resp.status != 200:
						detail = (data or {}).get("details") or (data or {}).get("error") or resp.reason
						raise FunctionExecutionError(name, f"HTTP {resp.status}: {detail}")
		except FunctionExecutionError:
			raise
		except (aiohttp.ClientError, ValueError) as exc:
			raise FunctionExecutionError(name, str(exc)) from exc
		return (data or {}).get("result")


class HttpMessageRecorder:
	"""Append completed messages to a conversation's message log."""

	def __init__(self, base_url: str, conversation_id: str) -> None:
		self.url = f"{base_url.rstrip('/')}/api/conversations/{conversation_id}/messages"

	async def __call__(self, message: RealtimeMessage) -> None:
		body = {"role": message.role, "content": message.content}
		try:
			async with aiohttp.ClientSession() as http:
				async with http.post(self.url, json=body) as resp:
					if resp.status >= 400:
						logging.warning("Message log rejected %s message: HTTP %s", message.role, resp.status)
		except aiohttp.ClientError as exc:
			logging.warning("Failed to record %s message: %s", message.role, exc)
