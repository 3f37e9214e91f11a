"""API authentication using API keys"""
import os
import logging
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_api_keys(env_var: str = "API_KEYS") -> list[str]:
    """Load comma-separated API keys from an environment variable"""
    api_keys_str = os.getenv(env_var, "")
    if not api_keys_str:
        logger.warning(f"No {env_var} configured in environment")
        return []
    return [key.strip() for key in api_keys_str.split(",") if key.strip()]


def _check_key(api_key: str, valid_keys: list[str]) -> str:
    if not valid_keys:
        logger.error("No API keys configured - rejecting all requests")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API authentication not configured"
        )

    if api_key not in valid_keys:
        logger.warning(f"Invalid API key attempt: {api_key[:10]}...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )

    logger.debug(f"API key validated: {api_key[:10]}...")
    return api_key


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    Verify API key from Authorization header

    Raises:
        HTTPException: 401 for an unknown key, 503 when no keys are configured
    """
    return _check_key(credentials.credentials, get_api_keys())


async def verify_admin_key(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    Verify an admin API key for level configuration writes

    Keys come from ADMIN_API_KEYS; when unset, regular API_KEYS are accepted.
    """
    admin_keys = get_api_keys("ADMIN_API_KEYS") if os.getenv("ADMIN_API_KEYS") else get_api_keys()
    return _check_key(credentials.credentials, admin_keys)
