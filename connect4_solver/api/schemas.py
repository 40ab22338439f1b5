"""API request/response schemas"""

from pydantic import BaseModel, Field
from typing import List, Optional

from ..engine.position import WIDTH


class AnalyzeRequest(BaseModel):
    """Request for position analysis"""
    moves: str = Field("", max_length=64, description="1-based columns played so far, e.g. '4453'")
    weak: Optional[bool] = Field(None, description="Only tell win / draw / loss apart")


class AnalyzeResponse(BaseModel):
    """Per-column scores for the side to move"""
    moves: str
    scores: List[int]
    score: int
    best_column: int
    exact: bool = Field(True, description="False when the scores come from the depth-limited fallback search")
    depth: int = Field(0, description="Search depth in moves")
    nodes: int
    time_ms: int


class PlayRequest(BaseModel):
    """Play one column after a move sequence"""
    moves: str = Field("", max_length=64, description="1-based columns played so far")
    column: int = Field(..., ge=0, lt=WIDTH, description="0-based column to play")


class PlayResponse(BaseModel):
    """Game state after the move"""
    moves: str
    status: str
    winner: Optional[int] = None
    winning_cells: List[List[int]]
    can_play: List[bool]
    label: str


class HealthResponse(BaseModel):
    """Health check response"""
    ok: bool
    version: str
    uptime_seconds: float
    book_depth: Optional[int] = None


class ErrorResponse(BaseModel):
    """Error response"""
    error: str
    details: Optional[str] = None
    code: Optional[str] = None
