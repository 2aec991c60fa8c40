"""
Caller Identity (v2.0.0)
Resolves the acting user from the gateway-supplied header.

Session handling happens upstream; this service only trusts the user id the
gateway forwards.
"""
import logging
from typing import Optional

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
MAX_USER_ID_LENGTH = 128


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER)
) -> str:
    """
    FastAPI dependency returning the caller's user id.

    Usage:
        @router.post("/endpoint")
        async def endpoint(user_id: str = Depends(get_current_user_id)):
            ...

    Raises:
        HTTPException 401: Header missing or blank
    """
    user_id = (x_user_id or "").strip()

    if not user_id:
        logger.warning(f"Request without {USER_ID_HEADER}")
        raise HTTPException(
            status_code=401,
            detail=f"Missing {USER_ID_HEADER} header",
        )

    if len(user_id) > MAX_USER_ID_LENGTH:
        raise HTTPException(status_code=401, detail=f"Invalid {USER_ID_HEADER} header")

    return user_id
