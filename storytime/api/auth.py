"""Auth API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storytime.api.deps import get_bearer_token, get_current_user
from storytime.database import get_db
from storytime.models.user import User as UserModel
from storytime.schemas.envelope import ApiResponse, Message, ok
from storytime.schemas.user import AuthToken, Credentials, User
from storytime.services.auth import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=ApiResponse[User], status_code=201)
def register(credentials: Credentials, db: Session = Depends(get_db)) -> dict:
    """Create a new parent account."""
    user = AuthService(db).register(credentials.email, credentials.password)
    return ok(user)


@router.post("/login", response_model=ApiResponse[AuthToken])
def login(credentials: Credentials, db: Session = Depends(get_db)) -> dict:
    """Exchange email and password for a bearer token."""
    token = AuthService(db).login(credentials.email, credentials.password)
    return ok(
        {
            "user": token.user,
            "token": token.token,
            "expires_at": token.expires_at,
        }
    )


@router.post("/logout", response_model=ApiResponse[Message])
def logout(
    token: str = Depends(get_bearer_token),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Revoke the bearer token used for this request."""
    AuthService(db).logout(token)
    return ok({"message": "Logged out successfully"})


@router.get("/me", response_model=ApiResponse[User])
def me(user: UserModel = Depends(get_current_user)) -> dict:
    """Get the current user."""
    return ok(user)
