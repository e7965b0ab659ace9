from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select

from app.core.security import verify_token
from app.db.session import get_session
from app.models.user import User
from app.schemas.user import UserResponseSchema

router = APIRouter()

# Tokens are issued by the registry's login service; this API only checks them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_session)
) -> User:
    """Get current authenticated user."""
    payload = verify_token(token)
    email: str = payload.get("sub")

    user = db.exec(select(User).where(User.email == email)).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or deactivated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.user_id = user.id
    return user


async def get_current_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """Get current authenticated sys admin."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


@router.get("/me", response_model=UserResponseSchema)
async def read_users_me(
    current_user: User = Depends(get_current_user)
):
    """Get current user profile."""
    return UserResponseSchema.model_validate(current_user)
