"""FastAPI route issuing realtime session credentials."""

from fastapi import APIRouter, HTTPException, Request

from controllers.realtime_controller import create_client_secret

router = APIRouter(prefix="/api")


@router.post("/realtime")
async def post_realtime_token(request: Request):
	"""Return an ephemeral token for the OpenAI Realtime API."""
	try:
		return await create_client_secret(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
