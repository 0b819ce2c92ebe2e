"""
Review Core Constants

Rating bounds, composite weights, vote actions, enrollment states and
collection names shared by the rating / voting / enrollment core.
"""

from enum import Enum
from typing import Dict

# =============================================================================
# RATING BOUNDS
# =============================================================================

RATING_MIN = 1
RATING_MAX = 5

# Difficulty is inverted before averaging: a low difficulty is a good signal.
DIFFICULTY_INVERSION_BASE = RATING_MIN + RATING_MAX  # 6 - difficulty

# Score contributed by the "would you retake" answer
RETAKE_SCORE: Dict[bool, int] = {
    True: RATING_MAX,
    False: RATING_MIN,
}

# Number of components averaged into the composite rating
COMPOSITE_COMPONENTS = 4


# =============================================================================
# ENUMS
# =============================================================================

class VoteAction(str, Enum):
    """What a voter does to a review."""
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"
    REMOVE = "remove"


class EnrollmentState(str, Enum):
    """Lifecycle of one onboarding commit."""
    PLANNING = "planning"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


class WriteMode(str, Enum):
    """How write_document applies its fields."""
    SET = "set"
    MERGE = "merge"


class OperationKind(str, Enum):
    """Kinds of mutation a batch plan may contain."""
    MERGE = "merge"
    UNION = "union"


# =============================================================================
# COLLECTIONS
# =============================================================================

USERS_COLLECTION = "users"
PROFESSORS_COLLECTION = "professors"
RATINGS_COLLECTION = "professor_ratings"
COURSES_COLLECTION = "courses"
ORGANIZATIONS_COLLECTION = "organizations"

MEMBERS_FIELD = "members"
UPVOTES_FIELD = "upvotes"
DOWNVOTES_FIELD = "downvotes"

# Per-commit operation ceiling of the document store the app was built on.
DEFAULT_MAX_BATCH_OPERATIONS = 500
