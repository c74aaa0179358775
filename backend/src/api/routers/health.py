"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_async_session
from models.post import STORY_POST_TYPE, Post


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    stories: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """Check that the content store answers a story count."""
    try:
        result = await db.execute(
            select(func.count(Post.id)).where(Post.post_type == STORY_POST_TYPE),
        )
        story_count = result.scalar_one()
    except SQLAlchemyError:
        logger.exception("Content store health check failed")
        return HealthResponse(status="degraded", database="unhealthy")

    return HealthResponse(status="healthy", database="healthy", stories=story_count)
