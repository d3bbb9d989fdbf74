"""
Request identity.

Token issuance and verification live in front of this service; by the
time a request arrives here the session layer has resolved the acting
user and forwards it in the ``X-User-Id`` header.  Administrator routes
use HTTP Basic credentials from settings.
"""
import secrets

from fastapi import Depends, Header
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.config import settings
from app.exceptions import Unauthorized

basic_scheme = HTTPBasic(auto_error=False)


async def get_current_user_id_optional(
    x_user_id: int | None = Header(None, alias="X-User-Id"),
) -> int | None:
    """
    Acting user id if present, None for anonymous readers.

    Used by read endpoints whose output depends on the viewer (``myStatus``).
    """
    return x_user_id


async def get_current_user_id(
    user_id: int | None = Depends(get_current_user_id_optional),
) -> int:
    if user_id is None:
        raise Unauthorized()
    return user_id


def require_admin(
    credentials: HTTPBasicCredentials | None = Depends(basic_scheme),
) -> None:
    """Require the configured administrator credentials."""
    if credentials is None:
        raise Unauthorized()
    login_ok = secrets.compare_digest(credentials.username, settings.ADMIN_LOGIN)
    password_ok = secrets.compare_digest(credentials.password, settings.ADMIN_PASSWORD)
    if not (login_ok and password_ok):
        raise Unauthorized("Invalid administrator credentials")
