"""
Pydantic schemas for request/response models
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, EmailStr, field_validator


class OracleCardModel(BaseModel):
    """Oracle card model."""
    name: str
    meaning: str
    image: str = ""


class ConsultationRequest(BaseModel):
    """Request model for an oracle consultation."""
    # Optional here so a missing question is answered with 400, not 422
    question: Optional[str] = None
    card: Optional[OracleCardModel] = None
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    timestamp: Optional[datetime] = None  # client clock, informational only

    @field_validator("email", "name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value


class ConsultationResponse(BaseModel):
    """Response model for a consultation."""
    response: str


class ErrorResponse(BaseModel):
    error: str


class DrawResponse(BaseModel):
    mode: str
    card: OracleCardModel


class DeckResponse(BaseModel):
    count: int
    cards: List[OracleCardModel]


class EligibilityResponse(BaseModel):
    email: str
    eligible: bool
