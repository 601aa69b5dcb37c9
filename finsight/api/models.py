"""
Pydantic Models for API Request/Response
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Request Models

class RecommendationRequest(BaseModel):
    """Request model for synthesizing recommendations."""
    persona: Optional[str] = Field(None, description="Primary persona type, null when unclassified")
    secondary: List[str] = Field(default_factory=list, description="Secondary persona types")
    signals: Optional[Dict[str, Any]] = Field(None, description="Signal bundle as returned by /signals")


# Response Models

class RuleMatch(BaseModel):
    """One matched persona rule-set."""
    persona_type: str
    matched: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    criteria_met: List[str]


class ClassificationResponse(BaseModel):
    """Response model for a classification run."""
    user_id: str
    primary: Optional[RuleMatch]
    primary_name: Optional[str]
    secondary: List[RuleMatch]
    assigned_at: Optional[str]
    events: List[Dict[str, Any]]


class CurrentPersonaResponse(BaseModel):
    """Response model for the stored current persona."""
    user_id: str
    persona_type: Optional[str]
    confidence: Optional[float] = None
    criteria_met: List[str] = Field(default_factory=list)
    secondary_personas: List[str] = Field(default_factory=list)
    window_days: Optional[int] = None
    assigned_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TimelineEntryResponse(BaseModel):
    year: int
    month: int
    label: str
    persona_type: str
    persona_name: str


class TimelineResponse(BaseModel):
    """Response model for the persona timeline."""
    user_id: str
    entries: List[TimelineEntryResponse]
    narrative: str


class RecommendationItem(BaseModel):
    """Single recommendation item."""
    title: str
    description: str
    priority: str
    persona_type: Optional[str] = None
    is_anchor: bool = False


class RecommendationResponse(BaseModel):
    """Response model for recommendations."""
    persona: Optional[str]
    recommendations: List[RecommendationItem]


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str
    detail: Any
