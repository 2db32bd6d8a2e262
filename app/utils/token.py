from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.models.user import User

# tokens come from the school's auth provider; this service only checks them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    user_id: int,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a token the way the auth provider does (local runs and tests)."""
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(user_id), "exp": expire}
    if role:
        claims["role"] = role

    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_user_id(token: str) -> int:
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError:
        raise _unauthorized("Could not validate credentials")

    # older provider tokens carry user_id instead of sub
    subject = payload.get("sub") or payload.get("user_id")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> User:
    user = session.get(User, decode_user_id(token))

    if user is None:
        raise _unauthorized("User not found")

    if not user.can_login:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user
