"""FastAPI routes proxying the Google Business Profile APIs."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from app.errors import ProxyError
from app.models import CreatePostRequest, ReviewReplyRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["business"])

# Global handler reference - set during startup
_business_handler = None


def set_business_handler(handler):
    """Set the business handler instance (called during startup)."""
    global _business_handler
    _business_handler = handler
    logger.info("[BusinessRouter] Handler injected successfully")


def get_handler():
    """Get the business handler, raising error if not initialized."""
    if _business_handler is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return _business_handler


def require_access_token(authorization: Optional[str] = Header(None)) -> str:
    """Bearer token from the Authorization header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise ProxyError(401, "Access token required")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise ProxyError(401, "Access token required")
    return token


@router.get("/accounts", summary="List Business Profile accounts")
async def get_accounts(access_token: str = Depends(require_access_token)) -> dict:
    try:
        handler = get_handler()
        return await handler.get_accounts(access_token)
    except (HTTPException, ProxyError):
        raise
    except Exception as e:
        logger.error(f"[BusinessRouter] Error in get_accounts: {e}")
        raise ProxyError(500, "Failed to fetch accounts", message=str(e))


@router.get("/accounts/{account_id}/locations", summary="List an account's locations")
async def get_locations(
    account_id: str,
    access_token: str = Depends(require_access_token),
) -> dict:
    try:
        handler = get_handler()
        return await handler.get_locations(access_token, account_id)
    except (HTTPException, ProxyError):
        raise
    except Exception as e:
        logger.error(f"[BusinessRouter] Error in get_locations: {e}")
        raise ProxyError(500, "Failed to fetch locations", message=str(e))


@router.get("/locations/{location_id}/posts", summary="List a location's posts")
async def get_posts(
    location_id: str,
    account_id: Optional[str] = Query(None, alias="accountId"),
    access_token: str = Depends(require_access_token),
) -> dict:
    handler = get_handler()
    return await handler.get_posts(access_token, location_id, account_id)


@router.post("/locations/{location_name:path}/posts", summary="Create a local post")
async def create_post(
    location_name: str,
    body: CreatePostRequest,
    access_token: str = Depends(require_access_token),
) -> dict:
    """Create a post; location_name may be a bare id or a full accounts/.../locations/... name."""
    try:
        handler = get_handler()
        return await handler.create_post(access_token, location_name, body)
    except (HTTPException, ProxyError):
        raise
    except Exception as e:
        logger.error(f"[BusinessRouter] Error in create_post: {e}")
        raise ProxyError(500, "Failed to create post", message=str(e))


@router.get("/locations/{location_id}/reviews", summary="List a location's reviews")
async def get_reviews(
    location_id: str,
    page_size: int = Query(50, alias="pageSize", ge=1, le=50),
    page_token: Optional[str] = Query(None, alias="pageToken"),
    account_id: Optional[str] = Query(None, alias="accountId"),
    access_token: str = Depends(require_access_token),
) -> dict:
    handler = get_handler()
    return await handler.get_reviews(access_token, location_id, page_size, page_token, account_id)


@router.put(
    "/locations/{location_id}/reviews/{review_id}/reply",
    summary="Reply to a review",
)
async def reply_to_review(
    location_id: str,
    review_id: str,
    body: Optional[ReviewReplyRequest] = None,
    account_id: Optional[str] = Query(None, alias="accountId"),
    access_token: str = Depends(require_access_token),
) -> dict:
    handler = get_handler()
    return await handler.reply_to_review(
        access_token, location_id, review_id, body or ReviewReplyRequest(), account_id
    )
