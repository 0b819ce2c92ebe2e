"""
Data Contracts for the Review Core

Pydantic models for reviews, vote sets, rollups, course options and
onboarding plans. These contracts are the boundary between the core,
the store adapter and the API routes.
"""

from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    EnrollmentState,
    OperationKind,
    RATING_MAX,
    RATING_MIN,
)


# =============================================================================
# PROFESSORS & RATINGS
# =============================================================================

class Professor(BaseModel):
    """A professor document. Ratings are stored separately."""
    id: str
    name: str
    email: Optional[str] = None
    image: Optional[str] = None
    university_id: Optional[str] = None


class VoteSets(BaseModel):
    """
    The vote ledger of one review: who up-voted it and who down-voted it.
    A voter is never in both sets.
    """
    upvotes: FrozenSet[str] = frozenset()
    downvotes: FrozenSet[str] = frozenset()

    @model_validator(mode="after")
    def _disjoint(self) -> "VoteSets":
        both = self.upvotes & self.downvotes
        if both:
            raise ValueError(f"voters in both vote sets: {sorted(both)}")
        return self

    @property
    def score(self) -> int:
        return len(self.upvotes) - len(self.downvotes)


class VoteDelta(BaseModel):
    """Array-field additions and removals for one atomic document update."""
    add: Dict[str, List[str]] = Field(default_factory=dict)
    remove: Dict[str, List[str]] = Field(default_factory=dict)


class RatingSubmission(BaseModel):
    """
    Raw input of the "rate a professor" form.
    Every field is optional here so that missing answers reach
    validate_submission and get a proper message instead of a parse error.
    The ratings and the retake answer are kept exactly as sent (no coercion
    of true to 1 or "yes" to True); validate_submission rejects wrong types.
    """
    course_id: Optional[str] = None
    difficulty: Any = None
    enjoyment: Any = None
    understandability: Any = None
    retake: Any = None
    text: Optional[str] = None
    anonymous: bool = False


class ProfessorRating(BaseModel):
    """A stored review of a professor."""
    id: str
    professor_id: str
    course_id: str
    user_id: Optional[str] = None  # absent when posted anonymously
    anonymous: bool = False
    difficulty: int = Field(ge=RATING_MIN, le=RATING_MAX)
    enjoyment: int = Field(ge=RATING_MIN, le=RATING_MAX)
    understandability: int = Field(ge=RATING_MIN, le=RATING_MAX)
    retake: bool
    text: str = ""
    total_rating: float = Field(ge=RATING_MIN, le=RATING_MAX)
    upvotes: FrozenSet[str] = frozenset()
    downvotes: FrozenSet[str] = frozenset()
    created_at: datetime

    @model_validator(mode="after")
    def _votes_disjoint(self) -> "ProfessorRating":
        both = self.upvotes & self.downvotes
        if both:
            raise ValueError(f"voters in both vote sets: {sorted(both)}")
        return self

    @property
    def votes(self) -> VoteSets:
        return VoteSets(upvotes=self.upvotes, downvotes=self.downvotes)

    @property
    def score(self) -> int:
        return len(self.upvotes) - len(self.downvotes)


# =============================================================================
# ROLLUP
# =============================================================================

class AggregateRating(BaseModel):
    """Summary statistics over all ratings of one professor. Never stored."""
    rating_count: int = Field(ge=1)
    difficulty: float
    enjoyment: float
    understandability: float
    total_rating: float
    retake_percentage: float = Field(ge=0.0, le=100.0)


class NoData(BaseModel):
    """Rollup result for a professor with no ratings."""
    rating_count: Literal[0] = 0


class ProfessorRatingsView(BaseModel):
    """What a reader sees on a professor page."""
    professor: Professor
    aggregate: Union[AggregateRating, NoData]
    ratings: List[ProfessorRating] = Field(default_factory=list)


# =============================================================================
# COURSES
# =============================================================================

class CourseInstructor(BaseModel):
    """One entry of a course's taught-by list."""
    id: Optional[str] = None
    name: Optional[str] = None


class Course(BaseModel):
    id: str
    code: str = ""
    name: str = ""
    description: Optional[str] = None
    university_id: Optional[str] = None
    professors: List[CourseInstructor] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list)

    @field_validator("professors", mode="before")
    @classmethod
    def _coerce_instructors(cls, value: Any) -> Any:
        # Older course documents store bare professor ids
        if value is None:
            return []
        return [{"id": entry} if isinstance(entry, str) else entry for entry in value]


class CourseResolution(BaseModel):
    """Courses offered when writing a review for one professor."""
    courses: List[Course] = Field(default_factory=list)
    fallback: bool = False  # True when no course matched and the whole catalog is offered
    preselected_course_id: Optional[str] = None


# =============================================================================
# ONBOARDING
# =============================================================================

class OnboardingSelection(BaseModel):
    """Institution, courses and organizations picked during onboarding."""
    university_id: str = ""
    course_ids: List[str] = Field(default_factory=list)
    organization_ids: List[str] = Field(default_factory=list)

    @field_validator("course_ids", "organization_ids", mode="after")
    @classmethod
    def _unique_ids(cls, value: List[str]) -> List[str]:
        seen: List[str] = []
        for item in value:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        return seen


class WriteOperation(BaseModel):
    """
    One planned mutation.
    MERGE writes `changes` onto the document; UNION adds `values`
    into `array_field` without duplicating existing entries.
    """
    kind: OperationKind
    collection: str
    document_id: str
    changes: Dict[str, Any] = Field(default_factory=dict)
    array_field: Optional[str] = None
    values: List[str] = Field(default_factory=list)


class BatchPlan(BaseModel):
    """Write-groups in commit order, each within the store's ceiling."""
    groups: List[List[WriteOperation]] = Field(default_factory=list)
    max_operations: int = Field(ge=1)

    @property
    def operation_count(self) -> int:
        return sum(len(group) for group in self.groups)


class EnrollmentOutcome(BaseModel):
    """Result of commit_onboarding: DONE, or FAILED with a reason."""
    state: EnrollmentState
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == EnrollmentState.DONE
