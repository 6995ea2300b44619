from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.logging_config import get_logger
from app.core.rate_limit import limiter
from app.db.database import get_db
from app.models.recommendation import Recommendation
from app.schemas.common import ok
from app.schemas.recommendation import RecommendationCreate, RecommendationResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


@router.post("")
@limiter.limit("5/minute")
def create_recommendation(
    request: Request,
    data: RecommendationCreate,
    db: Session = Depends(get_db),
):
    """Public feedback form. Values arrive already trimmed by the schema."""
    recommendation = Recommendation(name=data.name, email=data.email, message=data.message)
    db.add(recommendation)
    db.commit()
    db.refresh(recommendation)
    logger.info(f"Recommendation {recommendation.id} received")
    return ok(
        RecommendationResponse.model_validate(recommendation),
        message="Thank you for your recommendation!",
    )
