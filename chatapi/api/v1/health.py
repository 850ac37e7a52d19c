"""Health check endpoint with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from chatapi import __version__
from chatapi.api.deps import SettingsDep
from chatapi.core.database import check_db_connected, get_db
from chatapi.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    settings: SettingsDep,
    db: Annotated[Session, Depends(get_db)],
) -> HealthResponse:
    """Always 200 while the process serves requests; a lost database only degrades status."""
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        version=__version__,
    )
