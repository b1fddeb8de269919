"""
Authentication boundary — verify JWTs issued by the external auth provider.

Sign-in itself happens at the provider; this service only decodes the
HS256 token it hands out (``sub`` = user id), from the ``Authorization:
Bearer`` header or the ``access_token`` cookie.

Endpoints (non-production only):
    GET  /auth/dev-token/{user_id} → mint a token for local testing
    GET  /auth/logout              → clear the JWT cookie
"""

from typing import Optional

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.config import settings
from codehire.database import get_db
from codehire.models.user import User, UserRole

router = APIRouter(prefix="/auth", tags=["auth"])

COOKIE_KEY = "access_token"


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════

def create_access_token(data: dict) -> str:
    """Create a signed JWT with an expiry claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(COOKIE_KEY)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Extract the JWT from the request, decode it, and return the User.
    Returns None when no valid token is present (allows public pages).
    """
    token = _token_from_request(request)
    if not token:
        return None
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        user_id: int = int(payload.get("sub", 0))
        if not user_id:
            return None
    except (JWTError, ValueError):
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def require_user(current_user: Optional[User] = Depends(get_current_user)) -> User:
    if not current_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return current_user


def require_role(role: UserRole):
    """Dependency factory: the authenticated user must hold ``role``."""

    async def dependency(current_user: User = Depends(require_user)) -> User:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {role.value}s can do this.",
            )
        return current_user

    return dependency


# ═══════════════════════════════════════════════════════════════
#  Routes
# ═══════════════════════════════════════════════════════════════

@router.get("/dev-token/{user_id}")
async def dev_token(user_id: int, db: AsyncSession = Depends(get_db)):
    """Mint a token for a local user; disabled in production."""
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    token = create_access_token({"sub": str(user.id)})
    response = JSONResponse({"access_token": token, "token_type": "bearer"})
    response.set_cookie(
        key=COOKIE_KEY,
        value=token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
    )
    return response


@router.get("/logout")
async def logout():
    """Clear the auth cookie."""
    response = JSONResponse({"ok": True})
    response.delete_cookie(key=COOKIE_KEY)
    return response
