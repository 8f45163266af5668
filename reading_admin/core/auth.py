# reading_admin/core/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from reading_admin.database import get_db
from reading_admin.models.user import User
from reading_admin.config import settings

reusable_oauth2 = HTTPBearer()

def _decode_subject(token: str) -> int:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("token has no subject")
    return int(subject)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: HTTPAuthorizationCredentials = Depends(reusable_oauth2)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = _decode_subject(token.credentials)
    except (JWTError, ValueError):
        raise credentials_exception

    user = await db.get(User, user_id)
    if user is None:
        raise credentials_exception
    return user


def require_roles(*roles: str):
    """Dependency that lets through only users holding one of `roles`."""
    async def _check(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(403, f"Requires role: {', '.join(roles)}")
        return current_user
    return _check


# analytics dashboards
get_current_admin = require_roles("admin")

# rating / reading-history write paths used by the editorial tools
get_current_editor = require_roles("admin", "editor")
