"""Recommendation generation API routes."""

from typing import Any

from fastapi import APIRouter, Depends

from cloudops.api.dependencies import get_json_body
from cloudops.api.services.recommendation_service import RecommendationGenerator
from cloudops.core.auth import User, get_current_user
from cloudops.core.store import RowStore, get_store
from cloudops.schemas.recommendation import GenerationResult

router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"],
)


@router.post("/run", response_model=GenerationResult)
async def run_recommendations(
    current_user: User = Depends(get_current_user),
    body: dict[str, Any] = Depends(get_json_body),
    store: RowStore = Depends(get_store),
):
    """Generate idle, rightsizing and anomaly recommendations.

    Body: ``{"modes": ["idle", "rightsizing", "anomaly"]}`` (optional, defaults to all).
    """
    generator = RecommendationGenerator(store, current_user.id)
    return await generator.generate(body.get("modes"))
