"""
Review API Routes

Exposes the rating / voting / enrollment core via REST API.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from utils.auth_utils import current_user_id
from .logic import (
    AuthenticationError,
    DocumentStore,
    NotFoundError,
    OnboardingSelection,
    ProfessorRating,
    RatingSubmission,
    ReviewsError,
    StoreError,
    ValidationError,
    VoteAction,
    cast_vote,
    commit_onboarding,
    get_course_options,
    get_professor_ratings,
    get_store,
    has_completed_onboarding,
    submit_rating,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reviews"])


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class VoteRequest(BaseModel):
    """Request body for the vote endpoint."""
    action: VoteAction = Field(
        ...,
        description="'upvote', 'downvote' or 'remove'",
    )


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_review_store() -> DocumentStore:
    return get_store()


def require_user(authorization: Optional[str] = Header(default=None)) -> str:
    user_id = current_user_id(authorization)
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing or invalid token")
    return user_id


def _http_error(e: ReviewsError) -> HTTPException:
    if isinstance(e, ValidationError):
        logger.warning("Rejected request: %s", e)
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, AuthenticationError):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, StoreError):
        return HTTPException(status_code=502, detail=f"Database error: {e}")
    return HTTPException(status_code=500, detail=str(e))


def _server_error(e: Exception) -> JSONResponse:
    logger.exception("Unhandled error in review routes")
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": str(e)},
    )


def _serialize_rating(rating: ProfessorRating) -> Dict[str, Any]:
    """ProfessorRating as JSON, with its net score."""
    data = rating.model_dump(mode="json")
    data["upvotes"] = sorted(rating.upvotes)
    data["downvotes"] = sorted(rating.downvotes)
    data["score"] = rating.score
    return data


# =============================================================================
# PROFESSOR RATINGS
# =============================================================================

@router.get("/professors/{professor_id}/ratings", summary="Professor rollup and ratings")
async def list_ratings(professor_id: str, store: DocumentStore = Depends(get_review_store)):
    """
    Aggregate rating of a professor plus every rating, best-voted first.

    `aggregate.rating_count` is 0 when there are no ratings; the other
    aggregate fields are then absent.
    """
    try:
        view = await get_professor_ratings(store, professor_id)
        return {
            "professor": view.professor.model_dump(mode="json"),
            "aggregate": view.aggregate.model_dump(mode="json"),
            "ratings": [_serialize_rating(r) for r in view.ratings],
        }
    except ReviewsError as e:
        raise _http_error(e)
    except Exception as e:
        return _server_error(e)


@router.post("/professors/{professor_id}/ratings", status_code=201, summary="Rate a professor")
async def create_rating(
    professor_id: str,
    submission: RatingSubmission,
    user_id: str = Depends(require_user),
    store: DocumentStore = Depends(get_review_store),
):
    """
    Submit a review. Course, the three 1-5 ratings, the retake answer
    and a non-empty text are all required.
    """
    try:
        rating = await submit_rating(store, professor_id, user_id, submission)
        return _serialize_rating(rating)
    except ReviewsError as e:
        raise _http_error(e)
    except Exception as e:
        return _server_error(e)


@router.post("/professors/{professor_id}/ratings/{rating_id}/vote", summary="Vote on a rating")
async def vote_rating(
    professor_id: str,
    rating_id: str,
    request: VoteRequest,
    user_id: str = Depends(require_user),
    store: DocumentStore = Depends(get_review_store),
):
    try:
        votes = await cast_vote(store, professor_id, rating_id, user_id, request.action)
        return {
            "rating_id": rating_id,
            "upvotes": sorted(votes.upvotes),
            "downvotes": sorted(votes.downvotes),
            "score": votes.score,
        }
    except ReviewsError as e:
        raise _http_error(e)
    except Exception as e:
        return _server_error(e)


@router.get("/professors/{professor_id}/courses", summary="Courses to pick when rating")
async def course_options(
    professor_id: str,
    university_id: Optional[str] = Query(default=None),
    store: DocumentStore = Depends(get_review_store),
):
    """
    Courses taught by the professor, or the whole catalog when none are
    linked to them (`fallback` is then true).
    """
    try:
        resolution = await get_course_options(store, professor_id, university_id)
        return resolution.model_dump(mode="json")
    except ReviewsError as e:
        raise _http_error(e)
    except Exception as e:
        return _server_error(e)


# =============================================================================
# ONBOARDING
# =============================================================================

@router.post("/onboarding", summary="Complete onboarding")
async def complete_onboarding(
    selection: OnboardingSelection,
    user_id: str = Depends(require_user),
    store: DocumentStore = Depends(get_review_store),
):
    """
    Save the chosen university, courses and organizations and join their
    member lists. A failed call can be sent again as-is.
    """
    try:
        outcome = await commit_onboarding(store, user_id, selection)
    except ReviewsError as e:
        raise _http_error(e)
    except Exception as e:
        return _server_error(e)

    if not outcome.ok:
        return JSONResponse(
            status_code=502,
            content={"status": outcome.state.value, "reason": outcome.reason},
        )
    return {"status": outcome.state.value}


@router.get("/onboarding/status", summary="Has the caller completed onboarding")
async def onboarding_status(
    user_id: str = Depends(require_user),
    store: DocumentStore = Depends(get_review_store),
):
    try:
        return {"completed": await has_completed_onboarding(store, user_id)}
    except ReviewsError as e:
        raise _http_error(e)
    except Exception as e:
        return _server_error(e)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/reviews/health", summary="Review core health check")
def health_check():
    """Check if the review core is operational."""
    return {"status": "ok", "engine": "reviews", "version": "1.0.0"}
