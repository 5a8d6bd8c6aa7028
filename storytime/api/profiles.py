"""Child profile API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storytime.api.deps import get_current_user
from storytime.database import get_db
from storytime.errors import NotFoundError
from storytime.models.user import User
from storytime.schemas.child_profile import ChildProfile, ChildProfileCreate, ChildProfileUpdate
from storytime.schemas.envelope import ApiResponse, Message, ok
from storytime.services.profiles import ProfileStore

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("", response_model=ApiResponse[list[ChildProfile]])
def list_profiles(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """List the caller's child profiles, newest first."""
    return ok(ProfileStore(db).list(user.id))


@router.get("/active", response_model=ApiResponse[ChildProfile])
def get_active_profile(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Get the caller's active child profile."""
    profile = ProfileStore(db).get_active(user.id)
    if profile is None:
        raise NotFoundError("No active child profile found")
    return ok(profile)


@router.post("", response_model=ApiResponse[ChildProfile], status_code=201)
def create_profile(
    profile: ChildProfileCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Create a child profile. New profiles start inactive."""
    return ok(ProfileStore(db).create(user.id, profile.model_dump()))


@router.get("/{profile_id}", response_model=ApiResponse[ChildProfile])
def get_profile(
    profile_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Get a child profile by ID."""
    return ok(ProfileStore(db).get(user.id, profile_id))


@router.put("/{profile_id}", response_model=ApiResponse[ChildProfile])
def update_profile(
    profile_id: str,
    profile_update: ChildProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Update a child profile."""
    update_data = profile_update.model_dump(exclude_unset=True)
    return ok(ProfileStore(db).update(user.id, profile_id, update_data))


@router.delete("/{profile_id}", response_model=ApiResponse[Message])
def delete_profile(
    profile_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Delete a child profile. Its stories are kept."""
    ProfileStore(db).delete(user.id, profile_id)
    return ok({"message": "Child profile deleted successfully"})


@router.post("/{profile_id}/activate", response_model=ApiResponse[ChildProfile])
def activate_profile(
    profile_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Make this the caller's only active child profile."""
    return ok(ProfileStore(db).activate(user.id, profile_id))
