"""
Public API Endpoints

Thin HTTP surface over the engine: resolves the store, validates that the
user exists, calls one core function and serializes the result.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finsight.api.models import (
    ClassificationResponse, CurrentPersonaResponse, ErrorResponse, TimelineResponse,
    RecommendationRequest, RecommendationResponse, RecommendationItem
)
from finsight.debt.planner import plan_debt_payoff
from finsight.exceptions import UserNotFoundError
from finsight.features.analysis import get_spending_analysis
from finsight.features.signals import extract_signals
from finsight.ingest.database import get_session
from finsight.ingest.store import FinancialStore
from finsight.personas.assignment import assign_persona
from finsight.personas.history import get_current_persona
from finsight.personas.timeline import build_persona_timeline
from finsight.recommend.engine import synthesize_recommendations


router = APIRouter(
    prefix="/api",
    tags=["public"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        404: {"model": ErrorResponse, "description": "Unknown user or no debts"},
        422: {"model": ErrorResponse, "description": "Request validation failed or payoff cannot converge"},
    }
)


def get_db_session() -> Session:
    """Dependency to get database session."""
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def get_store(session: Session = Depends(get_db_session)) -> FinancialStore:
    """Dependency wrapping the request session in a FinancialStore."""
    return FinancialStore(session)


def _require_user(user_id: str, store: FinancialStore) -> None:
    if store.get_user(user_id) is None:
        raise UserNotFoundError(user_id)


@router.get("/users/{user_id}/signals")
def get_signals(
    user_id: str,
    window_days: Optional[int] = None,
    store: FinancialStore = Depends(get_store)
) -> dict:
    """Compute the user's signal bundle for a trailing window."""
    _require_user(user_id, store)
    bundle = extract_signals(user_id, store, window_days=window_days)
    return {**bundle.to_dict(), 'is_empty': bundle.is_empty}


@router.post("/users/{user_id}/persona", response_model=ClassificationResponse)
def classify_user(
    user_id: str,
    window_days: Optional[int] = None,
    store: FinancialStore = Depends(get_store)
) -> ClassificationResponse:
    """
    Classify the user and record the assignment.

    Returns primary = null when no persona matches.
    """
    _require_user(user_id, store)
    outcome = assign_persona(user_id, store, window_days=window_days)
    return ClassificationResponse(**outcome.to_dict())


@router.get("/users/{user_id}/persona", response_model=CurrentPersonaResponse)
def current_persona(
    user_id: str,
    store: FinancialStore = Depends(get_store)
) -> CurrentPersonaResponse:
    """Latest stored persona assignment."""
    _require_user(user_id, store)
    record = get_current_persona(user_id, store)
    if record is None:
        return CurrentPersonaResponse(user_id=user_id, persona_type=None)
    return CurrentPersonaResponse.model_validate(record)


@router.get("/users/{user_id}/persona/timeline", response_model=TimelineResponse)
def persona_timeline(
    user_id: str,
    months: int = 12,
    store: FinancialStore = Depends(get_store)
) -> TimelineResponse:
    """Month-by-month persona history."""
    _require_user(user_id, store)
    timeline = build_persona_timeline(user_id, store, months=months)
    return TimelineResponse(**timeline.to_dict())


@router.get("/users/{user_id}/spending-analysis")
def spending_analysis(
    user_id: str,
    months: Optional[int] = None,
    store: FinancialStore = Depends(get_store)
) -> dict:
    """Category breakdown, monthly trend, top merchants and unusual purchases."""
    _require_user(user_id, store)
    return get_spending_analysis(user_id, store, months=months).to_dict()


@router.get("/users/{user_id}/debt-plan")
def debt_plan(
    user_id: str,
    monthly_surplus: Optional[float] = None,
    include_timeline: bool = True,
    store: FinancialStore = Depends(get_store)
) -> dict:
    """Avalanche vs snowball payoff plans."""
    _require_user(user_id, store)
    comparison = plan_debt_payoff(user_id, store, monthly_surplus=monthly_surplus)
    return comparison.to_dict(include_timeline=include_timeline)


@router.post("/recommendations", response_model=RecommendationResponse)
def recommendations(request: RecommendationRequest) -> RecommendationResponse:
    """Prioritized action items for a persona and its signals."""
    items = synthesize_recommendations(request.persona, request.signals, request.secondary)
    return RecommendationResponse(
        persona=request.persona,
        recommendations=[RecommendationItem(**item.to_dict()) for item in items]
    )
