"""
Oracle consultation endpoints
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import EmailStr

from app.core.dependencies import get_checker, get_engine, get_orchestrator
from app.core.exceptions import OracleError
from app.models.schemas import (
    ConsultationRequest,
    ConsultationResponse,
    DeckResponse,
    DrawResponse,
    EligibilityResponse,
    ErrorResponse,
    OracleCardModel,
)
from app.services.oracle.deck import OracleCard, get_card_by_name
from app.services.oracle.eligibility import EligibilityChecker
from app.services.oracle.orchestrator import ConsultationOrchestrator
from app.services.oracle.shuffle import ShuffleEngine

logger = logging.getLogger(__name__)

router = APIRouter()


def error_response(error: OracleError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


def _to_card(card: Optional[OracleCardModel]) -> Optional[OracleCard]:
    if card is None:
        return None
    # Catalog cards keep their canonical meaning; anything else is used as sent
    return get_card_by_name(card.name) or OracleCard(name=card.name, meaning=card.meaning, image=card.image)


@router.post(
    "",
    response_model=ConsultationResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def consult_oracle(
    request: ConsultationRequest,
    orchestrator: ConsultationOrchestrator = Depends(get_orchestrator)
):
    """
    Consult the oracle.

    - **question**: question for the oracle (required)
    - **card**: card already drawn by the client (optional, drawn here otherwise)
    - **email**: limits consultations to one per day and receives the reading by email
    - **name**: seeker's name
    """
    try:
        result = await orchestrator.consult(
            question=request.question,
            email=request.email,
            name=request.name,
            card=_to_card(request.card),
            client_timestamp=request.timestamp
        )
    except OracleError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Oracle API error: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to consult the oracle"})

    return ConsultationResponse(response=result.reading)


@router.get("/cards", response_model=DeckResponse)
async def list_cards(engine: ShuffleEngine = Depends(get_engine)):
    """The oracle deck in its declared order."""
    cards = [OracleCardModel(**card.to_dict()) for card in engine.deck]
    return DeckResponse(count=len(cards), cards=cards)


@router.get("/draw", response_model=DrawResponse)
async def draw_card(
    mode: str = Query("shuffle", pattern="^(shuffle|single)$"),
    engine: ShuffleEngine = Depends(get_engine)
):
    """
    Draw one card.

    - **mode**: `shuffle` runs the full three-pile shuffle and takes the top card,
      `single` picks one card directly
    """
    card = engine.draw() if mode == "shuffle" else engine.draw_single()
    return DrawResponse(mode=mode, card=OracleCardModel(**card.to_dict()))


@router.get("/eligibility", response_model=EligibilityResponse)
async def check_eligibility(
    email: EmailStr,
    checker: EligibilityChecker = Depends(get_checker)
):
    """Whether this email may consult the oracle today."""
    eligible = await checker.is_eligible(email)
    return EligibilityResponse(email=email, eligible=eligible)
