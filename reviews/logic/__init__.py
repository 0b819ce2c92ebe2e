"""
Review Logic Module

Rating, voting and enrollment core for professor reviews.
"""

from .adapter import DocumentStore, MongoDocumentStore, get_store
from .composite import compute_total_rating, validate_submission
from .constants import EnrollmentState, VoteAction, WriteMode
from .contracts import (
    AggregateRating,
    BatchPlan,
    Course,
    CourseResolution,
    EnrollmentOutcome,
    NoData,
    OnboardingSelection,
    Professor,
    ProfessorRating,
    ProfessorRatingsView,
    RatingSubmission,
    VoteSets,
    WriteOperation,
)
from .course_resolver import resolve_courses
from .enrollment import BatchedEnrollmentCommitter, commit_onboarding, plan_onboarding
from .errors import AuthenticationError, NotFoundError, ReviewsError, StoreError, ValidationError
from .rollup import NO_DATA, display_order, rollup
from .service import (
    cast_vote,
    get_course_options,
    get_professor_ratings,
    has_completed_onboarding,
    submit_rating,
)
from .vote_ledger import apply_vote, score, vote_delta

__all__ = [
    # Core operations
    "compute_total_rating",
    "validate_submission",
    "apply_vote",
    "vote_delta",
    "score",
    "rollup",
    "display_order",
    "NO_DATA",
    "resolve_courses",
    "plan_onboarding",
    "commit_onboarding",
    "BatchedEnrollmentCommitter",

    # Service
    "submit_rating",
    "cast_vote",
    "get_professor_ratings",
    "get_course_options",
    "has_completed_onboarding",

    # Store
    "DocumentStore",
    "MongoDocumentStore",
    "get_store",

    # Contracts
    "AggregateRating",
    "BatchPlan",
    "Course",
    "CourseResolution",
    "EnrollmentOutcome",
    "NoData",
    "OnboardingSelection",
    "Professor",
    "ProfessorRating",
    "ProfessorRatingsView",
    "RatingSubmission",
    "VoteSets",
    "WriteOperation",

    # Enums
    "EnrollmentState",
    "VoteAction",
    "WriteMode",

    # Errors
    "ReviewsError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "StoreError",
]
