"""
Admin token check and CORS headers

authorize() is a pure function of the request headers and the configured
secret. require_admin wraps it as a FastAPI dependency for the write routes.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from fastapi import Request

from errors import AuthError

logger = logging.getLogger(__name__)

GRANTED = "granted"
MISCONFIGURED = "misconfigured"
MISSING_HEADER = "missing-header"
FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AuthResult:
    authorized: bool
    reason: str
    status_code: int = 200
    message: str = ""


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def extract_token(value: str) -> str:
    """Accepts both 'Bearer <token>' and a bare '<token>'."""
    value = value.strip()
    if value[:7].lower() == "bearer ":
        return value[7:].strip()
    return value


def authorize(headers: Mapping[str, str], secret: Optional[str]) -> AuthResult:
    if not secret:
        return AuthResult(
            False, MISCONFIGURED, 500,
            "Server configuration error: ADMIN_TOKEN not set. "
            "Please configure ADMIN_TOKEN in environment variables.",
        )

    header = _header(headers, "authorization")
    if not header:
        return AuthResult(
            False, MISSING_HEADER, 401,
            "Unauthorized: Missing Authorization header. Please provide admin token.",
        )

    token = extract_token(header)
    if not hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8")):
        return AuthResult(False, FORBIDDEN, 403, "Forbidden: Invalid admin token")

    return AuthResult(True, GRANTED)


def require_admin(request: Request) -> None:
    result = authorize(request.headers, request.app.state.settings.admin_token)
    if not result.authorized:
        logger.warning("Rejected admin request to %s: %s", request.url.path, result.reason)
        raise AuthError(result.message, result.status_code, result.reason)


def cors_headers() -> Dict[str, str]:
    """Headers for the public read endpoints."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Content-Type, If-None-Match",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Expose-Headers": "ETag",
    }


def secured_cors_headers(allowed_origin: str = "*") -> Dict[str, str]:
    """Headers for the admin endpoints."""
    return {
        "Access-Control-Allow-Origin": allowed_origin or "*",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }
