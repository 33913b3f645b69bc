from typing import Optional

from fastapi import HTTPException, status, Header

from medilink.core import security
from medilink.core.config import settings


def verify_api_key_dependency(
    x_api_key: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
) -> bool:
    """Guard for the reminders router; a no-op unless REQUIRE_API_KEY is set."""
    if not settings.REQUIRE_API_KEY:
        return True

    api_key = security.extract_api_key(x_api_key, authorization)
    if api_key is None or not security.verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
    return True
