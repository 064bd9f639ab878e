"""
Basic-Auth credential extraction.
"""

from typing import Optional
from fastapi import HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette.requests import Request

_basic = HTTPBasic(auto_error=False)


async def extract_basic_credentials(request: Request) -> Optional[HTTPBasicCredentials]:
    """
    Read a Basic-Auth username/password pair from the Authorization header.

    Args:
        request: Incoming request

    Returns:
        The credentials, or None when the header is absent, uses another
        scheme, or is malformed
    """
    try:
        return await _basic(request)
    except HTTPException:
        # malformed base64 or missing ":" separator
        return None
