"""
Composite Rating Calculator

Turns the three sub-ratings and the retake answer of one review into
its total rating. Difficulty is inverted first, so an easy course
counts in the professor's favour.
"""

from typing import Any, Optional

from .constants import (
    COMPOSITE_COMPONENTS,
    DIFFICULTY_INVERSION_BASE,
    RATING_MAX,
    RATING_MIN,
    RETAKE_SCORE,
)
from .contracts import RatingSubmission
from .errors import ValidationError


def _check_rating(name: str, value: Any) -> int:
    # bool is an int subclass but never a rating
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Please provide a {name} rating ({RATING_MIN}-{RATING_MAX})")
    if not RATING_MIN <= value <= RATING_MAX:
        raise ValidationError(f"Please provide a {name} rating ({RATING_MIN}-{RATING_MAX})")
    return value


def compute_total_rating(
    difficulty: Optional[int],
    enjoyment: Optional[int],
    understandability: Optional[int],
    retake: Optional[bool],
) -> float:
    """
    Compute the composite rating of a single review.

    total = ((6 - difficulty) + enjoyment + understandability + retake_score) / 4
    where retake_score is 5 for "yes" and 1 for "no".

    Args:
        difficulty: 1 (easy) to 5 (hard)
        enjoyment: 1 to 5
        understandability: 1 to 5
        retake: Would the reviewer take this professor again

    Returns:
        Total rating in [1, 5]

    Raises:
        ValidationError: if any input is missing or out of range
    """
    difficulty = _check_rating("difficulty", difficulty)
    enjoyment = _check_rating("enjoyment", enjoyment)
    understandability = _check_rating("understandability", understandability)
    if not isinstance(retake, bool):
        raise ValidationError("Please indicate whether you would retake this course")

    inverted_difficulty = DIFFICULTY_INVERSION_BASE - difficulty
    retake_score = RETAKE_SCORE[retake]

    return (inverted_difficulty + enjoyment + understandability + retake_score) / COMPOSITE_COMPONENTS


def validate_submission(submission: RatingSubmission) -> float:
    """
    Check a whole review form before anything is sent to the store.

    Checks run in the order the form shows them, so the first missing
    answer is the one reported.

    Returns:
        The composite rating of the submission
    """
    if not submission.course_id or not submission.course_id.strip():
        raise ValidationError("Please select a course")

    total = compute_total_rating(
        submission.difficulty,
        submission.enjoyment,
        submission.understandability,
        submission.retake,
    )

    if not submission.text or not submission.text.strip():
        raise ValidationError("Please provide a review")

    return total
