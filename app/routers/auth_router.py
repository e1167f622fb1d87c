"""Google OAuth routes: consent URL, callback, refresh and disconnect."""
import logging
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from app.errors import ProxyError
from app.services.token_service import TokenError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/google", tags=["auth"])

# Global references - set during startup
_token_service = None
_frontend_url = "http://localhost:3000"


def set_auth_dependencies(token_service, frontend_url: str):
    """Set the dependencies for auth routes (called during startup)."""
    global _token_service, _frontend_url
    _token_service = token_service
    _frontend_url = frontend_url.rstrip("/")
    logger.info("[AuthRouter] Dependencies injected")


def get_token_service():
    if _token_service is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return _token_service


class CallbackRequest(BaseModel):
    code: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


@router.get("/url", summary="Get the Google consent URL")
def get_auth_url(state: Optional[str] = Query(None)) -> dict:
    token_service = get_token_service()
    return {"authUrl": token_service.build_authorization_url(state)}


@router.post("/callback", summary="Exchange an authorization code for tokens")
async def post_callback(body: Optional[CallbackRequest] = None) -> dict:
    token_service = get_token_service()
    code = body.code if body else None
    if not code:
        raise ProxyError(400, "Authorization code is required")

    try:
        tokens, user_info = await token_service.handle_callback(code)
    except (TokenError, httpx.HTTPError) as e:
        logger.error(f"[AuthRouter] OAuth callback failed: {e}")
        raise ProxyError(500, "Authentication failed", message=str(e))

    return {
        "success": True,
        "tokens": tokens.public_dict(),
        "user": user_info.model_dump(),
    }


@router.get("/callback", summary="OAuth redirect target")
async def get_callback(
    code: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
) -> RedirectResponse:
    """Completes the flow for Google's redirect and sends the browser back to the dashboard."""
    if error:
        logger.warning(f"[AuthRouter] Google returned OAuth error: {error}")
        return RedirectResponse(f"{_frontend_url}?error={quote(error)}")
    if not code:
        return RedirectResponse(f"{_frontend_url}?error=missing_code")

    token_service = get_token_service()
    try:
        await token_service.handle_callback(code)
    except (TokenError, httpx.HTTPError) as e:
        logger.error(f"[AuthRouter] OAuth callback failed: {e}")
        return RedirectResponse(f"{_frontend_url}?error=authentication_failed")

    return RedirectResponse(f"{_frontend_url}?auth=success")


@router.post("/refresh", summary="Refresh an access token")
async def refresh_token(body: Optional[RefreshRequest] = None) -> dict:
    token_service = get_token_service()
    try:
        tokens = await token_service.refresh(body.refresh_token if body else None)
    except TokenError as e:
        raise ProxyError(400, str(e))
    except httpx.HTTPError as e:
        logger.error(f"[AuthRouter] Token refresh failed: {e}")
        raise ProxyError(500, "Token refresh failed", message=str(e))

    return {"success": True, "tokens": tokens.public_dict()}


@router.post("/disconnect", summary="Forget the stored Google tokens")
def disconnect() -> dict:
    token_service = get_token_service()
    removed = token_service.disconnect()
    return {
        "success": True,
        "message": "Google account disconnected" if removed else "No Google account connected",
    }
