"""Caller authentication for API requests."""

from fastapi import HTTPException, Request, status

from core.config import settings
from core.security import verify_body_signature


async def caller_auth(request: Request) -> int:
    """
    Authenticate gateway->API requests using HMAC signature.

    Expects headers:
    - X-User-Id: ID of the user making the request
    - X-Signature: hex HMAC-SHA256 of the raw request body

    Args:
        request: FastAPI request object

    Returns:
        Caller user ID

    Raises:
        HTTPException: If authentication fails
    """
    caller_str = request.headers.get("X-User-Id")
    signature = request.headers.get("X-Signature")

    if not caller_str or not signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing auth headers (X-User-Id, X-Signature)"
        )

    body = await request.body()

    if not verify_body_signature(body, settings.internal_api_secret, signature):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        return int(caller_str)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid X-User-Id format") from None
