"""JWT bearer authentication.

Tokens are issued by the identity service; this module only verifies them.
The ``sub`` claim carries the user id and ``role`` the user's role.
"""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from workstay.config import AuthSettings, get_settings
from workstay.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

ROLE_ADMIN = "ADMIN"
ROLE_HOST = "HOST"
ROLE_USER = "USER"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def decode_token(token: str, settings: AuthSettings) -> CurrentUser:
    try:
        payload = jwt.decode(token, settings.secret, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.warning("Invalid or expired JWT token: %s", e)
        raise UnauthorizedError(detail="Could not validate credentials") from e

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise UnauthorizedError(detail="Invalid authentication credentials")
    return CurrentUser(user_id=str(user_id), role=str(role).upper())


def get_auth_settings() -> AuthSettings:
    return get_settings().auth


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[AuthSettings, Depends(get_auth_settings)],
) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError()
    return decode_token(credentials.credentials, settings)


def require_admin(user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenError(detail="admin access required")
    return user


AuthUser = Annotated[CurrentUser, Depends(get_current_user)]
AdminUser = Annotated[CurrentUser, Depends(require_admin)]
