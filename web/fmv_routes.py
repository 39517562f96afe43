"""
FMV Routes - Web API for Price Guesses and Fair Market Value

Public JSON endpoints:
- GET  /api/properties/{property_id}/fmv
- GET  /api/properties/{property_id}/guesses
- POST /api/properties/{property_id}/guesses
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from core.guesses import (
    FmvService,
    GuessCooldownError,
    GuessValidationError,
    PropertyNotFoundError,
    get_guess_repository,
)
from utils.config import Config


logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api/properties", tags=["fmv"])

_service_instance: Optional[FmvService] = None


def get_fmv_service() -> FmvService:
    """Get the FMV service singleton, configured from the environment."""
    global _service_instance
    if _service_instance is None:
        config = Config.load()
        _service_instance = FmvService(
            repository=get_guess_repository(config.repository_path),
            cooldown=config.guess_cooldown,
        )
    return _service_instance


class GuessRequest(BaseModel):
    """Request body for submitting a price guess."""
    user_id: str
    guessed_price: int


# =============================================================================
# Routes
# =============================================================================


@router.get("/{property_id}/fmv")
def get_property_fmv(property_id: str, service: FmvService = Depends(get_fmv_service)):
    """Fair Market Value, confidence and distribution for a property."""
    try:
        result = service.calculate_for_property(property_id)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return result.to_dict()


@router.get("/{property_id}/guesses")
def list_property_guesses(
    property_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: FmvService = Depends(get_fmv_service),
):
    """Paginated guesses with guesser karma and rank, plus the current FMV."""
    try:
        guess_page = service.list_guesses(property_id, page=page, limit=limit)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "data": [entry.to_dict() for entry in guess_page.entries],
        "meta": {
            "page": guess_page.page,
            "limit": guess_page.limit,
            "total": guess_page.total,
            "totalPages": guess_page.total_pages,
        },
        "fmv": service.calculate_for_property(property_id).to_dict(),
    }


@router.post("/{property_id}/guesses", status_code=201)
def submit_guess(
    property_id: str,
    request_data: GuessRequest,
    response: Response,
    service: FmvService = Depends(get_fmv_service),
):
    """
    Submit or update a price guess.

    Returns 201 for a new guess and 200 for an update. Updates are
    subject to the cooldown period; the refreshed FMV is returned
    alongside the stored guess.
    """
    try:
        submission = service.submit_guess(
            property_id=property_id,
            user_id=request_data.user_id,
            guessed_price=request_data.guessed_price,
        )
    except GuessValidationError as e:
        raise HTTPException(status_code=400, detail={"field": e.field, "message": e.message})
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GuessCooldownError as e:
        logger.info("Guess on %s by %s rejected: cooldown active", property_id, request_data.user_id)
        raise HTTPException(
            status_code=400,
            detail={
                "error": "COOLDOWN_ACTIVE",
                "message": "You must wait before updating your guess.",
                "cooldownEndsAt": e.cooldown_ends_at.isoformat(),
            },
        )

    if submission.created:
        message = "Price guess submitted successfully"
    else:
        response.status_code = 200
        message = "Price guess updated successfully"

    return {
        "message": message,
        "guess": submission.guess.to_dict(),
        "fmv": service.calculate_for_property(property_id).to_dict(),
    }
