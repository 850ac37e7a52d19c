"""User search endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from chatapi.api.deps import get_profile_service
from chatapi.api.v1.auth import CurrentUserDep
from chatapi.core.database import get_db
from chatapi.schemas.profile import UserSearchResponse, UserSearchResult
from chatapi.services.profiles import SEARCH_LIMIT_DEFAULT, SEARCH_LIMIT_MAX, ProfileService

router = APIRouter()


@router.get("/search", response_model=UserSearchResponse)
def search_users(
    _user: CurrentUserDep,
    profiles: Annotated[ProfileService, Depends(get_profile_service)],
    db: Annotated[Session, Depends(get_db)],
    query: Annotated[str, Query(min_length=1, max_length=100)],
    limit: Annotated[int, Query(ge=1, le=SEARCH_LIMIT_MAX)] = SEARCH_LIMIT_DEFAULT,
) -> UserSearchResponse:
    """Find users whose name or email contains `query` (case-insensitive)."""
    users, total = profiles.search_users(db, query, limit)
    return UserSearchResponse(
        users=[UserSearchResult.model_validate(u) for u in users],
        total=total,
    )
