"""
Course-Professor Association Resolver

Picks the courses offered in the "which course are you reviewing" step.
"""

import logging
from typing import List, Optional, Sequence

from .contracts import Course, CourseResolution

logger = logging.getLogger(__name__)


def _teaches(course: Course, professor_id: str, professor_name: Optional[str]) -> bool:
    for instructor in course.professors:
        if instructor.id and instructor.id == professor_id:
            return True
        # Name match covers courses created before professors had ids
        if professor_name and instructor.name and instructor.name == professor_name:
            return True
    return False


def resolve_courses(
    professor_id: str,
    professor_name: Optional[str],
    catalog: Sequence[Course],
) -> CourseResolution:
    """
    Courses relevant to a review of one professor.

    A course matches when its taught-by list holds the professor's id or
    the professor's display name. When nothing matches the whole catalog
    is returned, so an unlinked professor can still be reviewed. When the
    result is a single course it is preselected.

    Args:
        professor_id: Professor being reviewed
        professor_name: Their display name
        catalog: All courses of the institution

    Returns:
        CourseResolution
    """
    matched: List[Course] = [c for c in catalog if _teaches(c, professor_id, professor_name)]
    fallback = not matched

    if fallback:
        logger.info(
            "No course lists professor %s; offering full catalog of %d courses",
            professor_id, len(catalog),
        )
        matched = list(catalog)

    preselected = matched[0].id if len(matched) == 1 else None

    return CourseResolution(
        courses=matched,
        fallback=fallback,
        preselected_course_id=preselected,
    )
