from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from cellkom.core.config import get_settings


security = HTTPBasic(auto_error=False)

_CHALLENGE = {"WWW-Authenticate": 'Basic realm="cellkom"'}


def _matches(given: str, expected: str) -> bool:
    # compare_digest only accepts ASCII str; staff names may not be.
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def require_basic_auth(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    """Return the authenticated username, used as the audit actor."""
    settings = get_settings()
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentication required", headers=_CHALLENGE)

    valid_user = _matches(credentials.username, settings.basic_auth_username)
    valid_pass = _matches(credentials.password, settings.basic_auth_password)
    if not (valid_user and valid_pass):
        raise HTTPException(status_code=401, detail="Invalid credentials", headers=_CHALLENGE)
    return credentials.username
