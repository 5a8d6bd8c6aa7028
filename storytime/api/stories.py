"""Story API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storytime.api.deps import get_current_user
from storytime.database import get_db
from storytime.models.user import User
from storytime.schemas.envelope import ApiResponse, Message, ok
from storytime.schemas.story import Story, StoryCreate, StoryUpdate
from storytime.services.stories import StoryStore

router = APIRouter(prefix="/api/stories", tags=["stories"])


@router.get("", response_model=ApiResponse[list[Story]])
def list_stories(
    child_profile_id: str | None = None,
    favorites: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """List the caller's stories with optional filtering."""
    stories = StoryStore(db).list(
        user.id,
        child_profile_id=child_profile_id,
        favorites_only=favorites,
        skip=skip,
        limit=limit,
    )
    return ok(stories)


@router.post("", response_model=ApiResponse[Story], status_code=201)
def create_story(
    story: StoryCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Save a hand-written story."""
    return ok(StoryStore(db).create(user.id, story.model_dump()))


@router.get("/{story_id}", response_model=ApiResponse[Story])
def get_story(
    story_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Get a story by ID."""
    return ok(StoryStore(db).get(user.id, story_id))


@router.put("/{story_id}", response_model=ApiResponse[Story])
def update_story(
    story_id: str,
    story_update: StoryUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Update a story. Word count follows the content."""
    update_data = story_update.model_dump(exclude_unset=True)
    return ok(StoryStore(db).update(user.id, story_id, update_data))


@router.delete("/{story_id}", response_model=ApiResponse[Message])
def delete_story(
    story_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Delete a story."""
    StoryStore(db).delete(user.id, story_id)
    return ok({"message": "Story deleted successfully"})


@router.post("/{story_id}/favorite", response_model=ApiResponse[Story])
def toggle_favorite(
    story_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Flip a story's favorite flag."""
    return ok(StoryStore(db).toggle_favorite(user.id, story_id))


@router.post("/{story_id}/read", response_model=ApiResponse[Story])
def mark_as_read(
    story_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict:
    """Record that a story has been read. Only the first read is kept."""
    return ok(StoryStore(db).mark_as_read(user.id, story_id))
