import hmac
from typing import Optional

from medilink.core.config import settings


def extract_api_key(x_api_key: Optional[str] = None, authorization: Optional[str] = None) -> Optional[str]:
    """
    Pull the API key from ``X-API-Key`` or, failing that, a ``Bearer`` authorization header
    """
    if x_api_key:
        return x_api_key
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return None


def verify_api_key(api_key: str) -> bool:
    """
    Verify API key against configured valid keys
    """
    return any(hmac.compare_digest(api_key, valid) for valid in settings.api_keys)
