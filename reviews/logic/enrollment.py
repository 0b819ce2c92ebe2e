"""
Batched Enrollment Committer

Applies a user's onboarding choices to the user record and to the member
lists of every selected course and organization.

Two stages:
1. plan_onboarding   - enumerate the writes, pack them into groups no
                       larger than the store's per-commit ceiling
2. commit            - submit the groups one at a time, in plan order

A failed group stops the run. Groups already committed stay committed;
every write is a merge or a set-union, so the caller can replay the
whole call.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from .adapter import DocumentStore
from .constants import (
    COURSES_COLLECTION,
    EnrollmentState,
    MEMBERS_FIELD,
    OperationKind,
    ORGANIZATIONS_COLLECTION,
    USERS_COLLECTION,
)
from .contracts import BatchPlan, EnrollmentOutcome, OnboardingSelection, WriteOperation
from .errors import AuthenticationError, NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)


def _enumerate_operations(
    user_id: str,
    selection: OnboardingSelection,
    now: datetime,
) -> List[WriteOperation]:
    operations = [
        WriteOperation(
            kind=OperationKind.MERGE,
            collection=USERS_COLLECTION,
            document_id=user_id,
            changes={
                "university": selection.university_id,
                "courses": list(selection.course_ids),
                "clubs": list(selection.organization_ids),
                "updated_at": now,
            },
        )
    ]
    operations.extend(
        WriteOperation(
            kind=OperationKind.UNION,
            collection=COURSES_COLLECTION,
            document_id=course_id,
            array_field=MEMBERS_FIELD,
            values=[user_id],
        )
        for course_id in selection.course_ids
    )
    operations.extend(
        WriteOperation(
            kind=OperationKind.UNION,
            collection=ORGANIZATIONS_COLLECTION,
            document_id=org_id,
            array_field=MEMBERS_FIELD,
            values=[user_id],
        )
        for org_id in selection.organization_ids
    )
    return operations


def plan_onboarding(
    user_id: Optional[str],
    selection: OnboardingSelection,
    max_operations: int,
    now: Optional[datetime] = None,
) -> BatchPlan:
    """
    Build the write-groups for one onboarding.

    Order: the user-record merge, then one membership union per course,
    then one per organization. Groups are consecutive slices of that
    order, so there are ceil((1 + courses + organizations) / max_operations).

    Args:
        user_id: The onboarding user
        selection: Institution, courses, organizations
        max_operations: The store's per-commit operation ceiling
        now: Timestamp written to the user record

    Returns:
        BatchPlan

    Raises:
        AuthenticationError: no user id
        ValidationError: no institution selected
    """
    if not user_id:
        raise AuthenticationError("You must be logged in to complete onboarding")
    if not selection.university_id or not selection.university_id.strip():
        raise ValidationError("Please select a university")
    if max_operations < 1:
        raise ValueError("max_operations must be at least 1")

    operations = _enumerate_operations(user_id, selection, now or datetime.now(timezone.utc))
    groups = [
        operations[start:start + max_operations]
        for start in range(0, len(operations), max_operations)
    ]
    return BatchPlan(groups=groups, max_operations=max_operations)


class BatchedEnrollmentCommitter:
    """
    Runs one onboarding through PLANNING -> COMMITTING -> DONE | FAILED.

    The instance keeps the plan and state of its last run for inspection;
    nothing is carried between runs.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.state = EnrollmentState.PLANNING
        self.plan: Optional[BatchPlan] = None

    async def commit(self, user_id: Optional[str], selection: OnboardingSelection) -> EnrollmentOutcome:
        """
        Plan and commit an onboarding.

        Validation problems raise before any store call. Store failures
        end the run as FAILED with the store's message.
        """
        self.state = EnrollmentState.PLANNING
        self.plan = plan_onboarding(user_id, selection, self.store.max_batch_operations)

        self.state = EnrollmentState.COMMITTING
        total = len(self.plan.groups)
        for index, group in enumerate(self.plan.groups, start=1):
            try:
                await self.store.commit_batch(group)
            except (StoreError, NotFoundError) as e:
                self.state = EnrollmentState.FAILED
                logger.error(
                    "Onboarding for user %s failed at group %d/%d: %s",
                    user_id, index, total, e,
                )
                return EnrollmentOutcome(state=EnrollmentState.FAILED, reason=str(e))

        self.state = EnrollmentState.DONE
        logger.info(
            "Onboarding for user %s committed: %d operations in %d groups",
            user_id, self.plan.operation_count, total,
        )
        return EnrollmentOutcome(state=EnrollmentState.DONE)


async def commit_onboarding(
    store: DocumentStore,
    user_id: Optional[str],
    selection: OnboardingSelection,
) -> EnrollmentOutcome:
    """Convenience wrapper: plan and commit with a fresh committer."""
    return await BatchedEnrollmentCommitter(store).commit(user_id, selection)
