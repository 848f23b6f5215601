import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from database import get_db
from errors import AuthenticationError, MissingTokenError, TokenError
from security import decode_access_token
from users import UserStore

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is a 403, not FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


def require_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise MissingTokenError("Access denied: no token provided")
    return credentials.credentials


def get_current_user(
    request: Request,
    token: str = Depends(require_bearer_token),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    """Resolve the caller from ``Authorization: Bearer <token>``.

    No bearer header -> 403, decided before the database is touched. Bad or
    expired token, or a token for a user that no longer exists -> 401. On
    success the user (without password) is returned and attached to
    ``request.state.user``.
    """
    try:
        user_id = decode_access_token(token)
    except TokenError as e:
        logger.warning("Auth failure on %s: %s", request.url.path, e)
        raise AuthenticationError("Not authorized: token verification failed") from e

    user = UserStore(db).find_by_id(user_id)
    if user is None:
        logger.warning("Auth failure on %s: user %s not found", request.url.path, user_id)
        raise AuthenticationError("Not authorized: user not found")

    request.state.user = user
    return user
