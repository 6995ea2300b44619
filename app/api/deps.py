from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.security import decode_session_token
from app.db.database import get_db
from app.models.user import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict | None:
    if credentials is None:
        return None
    return decode_session_token(credentials.credentials)


def get_clerk_id(claims: dict | None = Depends(get_token_claims)) -> str:
    """Clerk user id (``sub``) of a valid session token, else 401."""
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims["sub"]


def get_current_user(
    clerk_id: str = Depends(get_clerk_id),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.clerk_id == clerk_id).first()
    if user is None:
        # Signed in with Clerk but not yet synced by webhook or /users/sync
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def get_optional_user(
    claims: dict | None = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> User | None:
    if not claims:
        return None
    return db.query(User).filter(User.clerk_id == claims["sub"]).first()


def require_role(*roles: UserRole):
    """Dependency factory that checks the current user has one of the required roles."""
    def checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required" if UserRole.ADMIN in roles else "Insufficient permissions",
            )
        return current_user
    return checker


require_admin = require_role(UserRole.ADMIN)
