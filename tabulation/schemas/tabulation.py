"""
Pydantic Schemas for the Tabulation API

Request and response models for lifecycle, scoring, lock and ranking
operations.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Lifecycle Schemas
# ============================================================================

class EventResponse(BaseModel):
    """Schema for event status response."""
    id: int
    name: str
    status: str


class SegmentResponse(BaseModel):
    """Schema for segment status response."""
    id: int
    name: str
    order: int
    weight: float
    scoring_mode: str
    status: str
    advancement_type: str
    advancement_value: Optional[float] = None


class LifecycleResponse(BaseModel):
    success: bool = True
    message: str
    event: Optional[EventResponse] = None
    segment: Optional[SegmentResponse] = None


# ============================================================================
# Score Schemas
# ============================================================================

class ScoreWrite(BaseModel):
    """Schema for creating or updating a score."""
    # Type is checked by the admission rules so that a bad value gets the domain message
    value: Any = Field(..., description="Score value")
    participant_id: int = Field(..., description="Participant being scored")
    category_id: int = Field(..., description="Category within the segment")
    judge_id: int = Field(..., description="Judge submitting the score")
    segment_id: int = Field(..., description="Segment the category belongs to")


class ScoreResponse(BaseModel):
    """Schema for score response."""
    id: int
    value: float
    participant_id: int
    category_id: int
    judge_id: int
    segment_id: int
    event_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Lock Schemas
# ============================================================================

class StandingResponse(BaseModel):
    participant_id: int
    participant_number: int
    name: str
    gender: str
    total_score: float


class LockResponse(BaseModel):
    """Schema for segment lock response."""
    success: bool = True
    message: str
    segment: SegmentResponse
    advanced: List[StandingResponse]
    eliminated: List[StandingResponse]
    tie_detected: bool
    resumed: bool
    applied: List[Dict[str, Any]]


# ============================================================================
# Ranking Schemas
# ============================================================================

class RankingEntry(BaseModel):
    """One row of a leaderboard."""
    participant_id: int
    participant_number: int
    name: str
    department: Optional[str] = None
    gender: str
    averaged_score: float
    raw_averaged_score: float
    rank: int
    judge_scores: Optional[Dict[str, Optional[float]]] = None
    category_scores: Optional[Dict[str, Optional[float]]] = None
    segment_scores: Optional[Dict[str, float]] = None


class GenderResults(BaseModel):
    male: List[RankingEntry] = Field(default_factory=list)
    female: List[RankingEntry] = Field(default_factory=list)


class RankingResponse(BaseModel):
    """Schema for category, segment and final ranking reports."""
    event: EventResponse
    segment: Optional[SegmentResponse] = None
    segments: Optional[List[SegmentResponse]] = None
    category: Optional[Dict[str, Any]] = None
    categories: Optional[List[Dict[str, Any]]] = None
    results: GenderResults
