from typing import Optional

from fastapi import Header, HTTPException, status

from memocare.core.config import settings


def verify_api_key(api_key: str) -> bool:
    """
    Verify API key against configured valid keys
    """
    return api_key in settings.api_keys


def verify_api_key_dependency(
    x_api_key: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None)
) -> bool:
    """
    Dependency to verify API key for the reminder and recognition routers
    """
    if not settings.REQUIRE_API_KEY:
        return True

    # Extract API key from headers
    api_key = None
    if x_api_key:
        api_key = x_api_key
    elif authorization and authorization.startswith("Bearer "):
        api_key = authorization.split(" ")[1]

    if not api_key or not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )

    return True
