"""
Review Service

Orchestrates the core against the document store:
reads what a component needs, runs it, writes the result.
No scoring rules live here.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from .adapter import DocumentStore
from .composite import validate_submission
from .constants import (
    COURSES_COLLECTION,
    DOWNVOTES_FIELD,
    PROFESSORS_COLLECTION,
    RATINGS_COLLECTION,
    UPVOTES_FIELD,
    USERS_COLLECTION,
    VoteAction,
    WriteMode,
)
from .contracts import (
    Course,
    CourseResolution,
    Professor,
    ProfessorRating,
    ProfessorRatingsView,
    RatingSubmission,
    VoteSets,
)
from .course_resolver import resolve_courses
from .errors import AuthenticationError, NotFoundError, ValidationError
from .rollup import display_order, rollup
from .vote_ledger import apply_vote, vote_delta

logger = logging.getLogger(__name__)


def _rating_document(rating: ProfessorRating) -> Dict[str, Any]:
    """Store representation of a rating: id is the key, vote sets are arrays."""
    doc = rating.model_dump(exclude={"id"}, exclude_none=True)
    doc[UPVOTES_FIELD] = sorted(rating.upvotes)
    doc[DOWNVOTES_FIELD] = sorted(rating.downvotes)
    return doc


async def get_professor(store: DocumentStore, professor_id: str) -> Professor:
    doc = await store.read_document(PROFESSORS_COLLECTION, professor_id)
    return Professor(**doc)


async def load_ratings(store: DocumentStore, professor_id: str) -> List[ProfessorRating]:
    docs = await store.query_documents(RATINGS_COLLECTION, {"professor_id": professor_id})
    return [ProfessorRating(**d) for d in docs]


async def get_professor_ratings(store: DocumentStore, professor_id: str) -> ProfessorRatingsView:
    """
    Professor page data: the rollup and the ratings in display order,
    both computed from a fresh read of the rating set.
    """
    professor = await get_professor(store, professor_id)
    ratings = await load_ratings(store, professor_id)
    return ProfessorRatingsView(
        professor=professor,
        aggregate=rollup(ratings),
        ratings=display_order(ratings),
    )


async def submit_rating(
    store: DocumentStore,
    professor_id: str,
    user_id: Optional[str],
    submission: RatingSubmission,
    now: Optional[datetime] = None,
) -> ProfessorRating:
    """
    Validate and store a new review.

    The author id is left out of the stored review when it is posted
    anonymously.

    Raises:
        AuthenticationError: no acting user
        ValidationError: incomplete or out-of-range form
        NotFoundError: unknown professor or course
    """
    if not user_id:
        raise AuthenticationError("You must be logged in to rate a professor")

    total = validate_submission(submission)

    await get_professor(store, professor_id)
    await store.read_document(COURSES_COLLECTION, submission.course_id)

    rating = ProfessorRating(
        id=uuid.uuid4().hex,
        professor_id=professor_id,
        course_id=submission.course_id,
        user_id=None if submission.anonymous else user_id,
        anonymous=submission.anonymous,
        difficulty=submission.difficulty,
        enjoyment=submission.enjoyment,
        understandability=submission.understandability,
        retake=submission.retake,
        text=submission.text.strip(),
        total_rating=total,
        created_at=now or datetime.now(timezone.utc),
    )

    await store.write_document(RATINGS_COLLECTION, rating.id, _rating_document(rating), mode=WriteMode.SET)
    logger.info(
        "Rating %s created for professor %s (total %.2f, anonymous=%s)",
        rating.id, professor_id, total, rating.anonymous,
    )
    return rating


async def cast_vote(
    store: DocumentStore,
    professor_id: str,
    rating_id: str,
    voter: Optional[str],
    action: Union[VoteAction, str],
) -> VoteSets:
    """
    Apply a vote to one review with a single atomic update of its vote sets.

    The professor's rollup is not touched; callers re-read it if needed.

    Returns:
        The vote sets as they are after this vote
    """
    # Rejects unknown voters and actions before any store call
    delta = vote_delta(voter, action)
    action = VoteAction(action)

    doc = await store.read_document(RATINGS_COLLECTION, rating_id)
    if doc.get("professor_id") != professor_id:
        raise NotFoundError(RATINGS_COLLECTION, rating_id)

    current = VoteSets(
        upvotes=doc.get(UPVOTES_FIELD) or [],
        downvotes=doc.get(DOWNVOTES_FIELD) or [],
    )
    updated = apply_vote(current, voter, action)

    await store.apply_set_delta(RATINGS_COLLECTION, rating_id, delta)
    logger.info("Vote %s by %s on rating %s (score %d)", action.value, voter, rating_id, updated.score)
    return updated


async def get_course_options(
    store: DocumentStore,
    professor_id: str,
    university_id: Optional[str] = None,
) -> CourseResolution:
    """
    Courses to offer when reviewing `professor_id`.
    The catalog is the one of `university_id`, or of the professor's own
    institution when none is given.

    Raises:
        ValidationError: neither the request nor the professor names an institution
    """
    professor = await get_professor(store, professor_id)
    university_id = university_id or professor.university_id
    if not university_id:
        raise ValidationError("Please select a university")
    docs = await store.query_documents(COURSES_COLLECTION, {"university_id": university_id})
    catalog = [Course(**d) for d in docs]
    return resolve_courses(professor.id, professor.name, catalog)


async def has_completed_onboarding(store: DocumentStore, user_id: str) -> bool:
    """A user is onboarded once they have an institution and at least one course."""
    try:
        doc = await store.read_document(USERS_COLLECTION, user_id)
    except NotFoundError:
        return False
    return bool(doc.get("university")) and bool(doc.get("courses"))
