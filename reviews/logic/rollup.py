"""
Aggregate Rollup

Combines every rating of a professor into summary statistics and
decides the order ratings are shown in. Both are recomputed on each
read; nothing here is persisted.
"""

from typing import List, Sequence, Union

from .contracts import AggregateRating, NoData, ProfessorRating

NO_DATA = NoData()


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def rollup(ratings: Sequence[ProfessorRating]) -> Union[AggregateRating, NoData]:
    """
    Average each metric over all ratings.

    Args:
        ratings: The full, current rating set of one professor

    Returns:
        AggregateRating, or NO_DATA when there are no ratings.
        Callers branch on `rating_count` before reading the numbers.
    """
    if not ratings:
        return NO_DATA

    count = len(ratings)
    retakes = sum(1 for r in ratings if r.retake)

    return AggregateRating(
        rating_count=count,
        difficulty=_mean([r.difficulty for r in ratings]),
        enjoyment=_mean([r.enjoyment for r in ratings]),
        understandability=_mean([r.understandability for r in ratings]),
        total_rating=_mean([r.total_rating for r in ratings]),
        retake_percentage=100.0 * retakes / count,
    )


def display_order(ratings: Sequence[ProfessorRating]) -> List[ProfessorRating]:
    """
    Order ratings for a reader: highest net score first, then most recent first.
    """
    return sorted(
        ratings,
        key=lambda r: (r.score, r.created_at),
        reverse=True,
    )
