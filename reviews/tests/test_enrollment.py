"""
Tests for onboarding planning and the batched enrollment committer.
"""

import asyncio
import math

import pytest

from reviews.logic import (
    AuthenticationError,
    BatchedEnrollmentCommitter,
    EnrollmentState,
    OnboardingSelection,
    ValidationError,
    commit_onboarding,
    plan_onboarding,
)
from reviews.logic.constants import OperationKind


def _selection(courses, orgs, university="uni-1"):
    return OnboardingSelection(university_id=university, course_ids=courses, organization_ids=orgs)


# =============================================================================
# PLANNING
# =============================================================================

@pytest.mark.parametrize(
    "k, m, n",
    [(0, 0, 500), (2, 1, 500), (499, 0, 500), (500, 0, 500), (3, 2, 2), (10, 7, 3), (4, 0, 1)],
)
def test_group_count_is_ceiling(k, m, n):
    selection = _selection([f"c{i}" for i in range(k)], [f"o{i}" for i in range(m)])
    plan = plan_onboarding("user-1", selection, n)

    assert len(plan.groups) == math.ceil((1 + k + m) / n)
    assert plan.operation_count == 1 + k + m
    assert all(1 <= len(group) <= n for group in plan.groups)


def test_plan_order_user_then_courses_then_orgs():
    plan = plan_onboarding("user-1", _selection(["c1", "c2"], ["o1"]), 2)
    flat = [op for group in plan.groups for op in group]

    assert [(op.collection, op.document_id) for op in flat] == [
        ("users", "user-1"),
        ("courses", "c1"),
        ("courses", "c2"),
        ("organizations", "o1"),
    ]
    assert flat[0].kind == OperationKind.MERGE
    assert flat[0].changes["university"] == "uni-1"
    assert flat[0].changes["courses"] == ["c1", "c2"]
    assert flat[0].changes["clubs"] == ["o1"]
    assert all(op.kind == OperationKind.UNION for op in flat[1:])
    assert all(op.array_field == "members" and op.values == ["user-1"] for op in flat[1:])


def test_duplicate_selections_planned_once():
    selection = _selection(["c1", "c1", " c2 ", ""], ["o1", "o1"])
    assert selection.course_ids == ["c1", "c2"]
    plan = plan_onboarding("user-1", selection, 500)
    assert plan.operation_count == 4


def test_plan_requires_university():
    with pytest.raises(ValidationError):
        plan_onboarding("user-1", _selection(["c1"], [], university=""), 500)


def test_plan_requires_user():
    with pytest.raises(AuthenticationError):
        plan_onboarding(None, _selection(["c1"], []), 500)


# =============================================================================
# COMMITTING
# =============================================================================

@pytest.mark.asyncio
async def test_commit_applies_all_memberships(store):
    outcome = await commit_onboarding(store, "user-1", _selection(["course-1", "course-2"], ["org-1"]))

    assert outcome.ok
    assert outcome.state == EnrollmentState.DONE
    assert store.get("courses", "course-1")["members"] == ["user-1"]
    assert store.get("courses", "course-2")["members"] == ["user-1"]
    assert store.get("organizations", "org-1")["members"] == ["user-1"]
    user = store.get("users", "user-1")
    assert user["university"] == "uni-1"
    assert user["courses"] == ["course-1", "course-2"]
    assert user["clubs"] == ["org-1"]


@pytest.mark.asyncio
async def test_groups_committed_in_plan_order(store_factory):
    store = store_factory(max_batch_operations=2)
    committer = BatchedEnrollmentCommitter(store)
    outcome = await committer.commit("user-1", _selection(["course-1", "course-2"], ["org-1"]))

    assert outcome.ok
    assert committer.state == EnrollmentState.DONE
    assert [[op.document_id for op in group] for group in store.committed] == [
        ["user-1", "course-1"],
        ["course-2", "org-1"],
    ]


@pytest.mark.asyncio
async def test_replay_after_success_changes_no_membership(store):
    selection = _selection(["course-1"], ["org-1"])
    await commit_onboarding(store, "user-1", selection)
    before = (list(store.get("courses", "course-1")["members"]), list(store.get("organizations", "org-1")["members"]))

    outcome = await commit_onboarding(store, "user-1", selection)

    assert outcome.ok
    after = (store.get("courses", "course-1")["members"], store.get("organizations", "org-1")["members"])
    assert after == before == (["user-1"], ["user-1"])


@pytest.mark.asyncio
async def test_concurrent_users_both_kept(store):
    await asyncio.gather(
        commit_onboarding(store, "user-1", _selection(["course-1"], [])),
        commit_onboarding(store, "user-2", _selection(["course-1"], [])),
    )
    assert sorted(store.get("courses", "course-1")["members"]) == ["user-1", "user-2"]


@pytest.mark.asyncio
async def test_failed_group_stops_run_without_rollback(store_factory):
    store = store_factory(max_batch_operations=1, fail_on_commit=2)
    committer = BatchedEnrollmentCommitter(store)

    outcome = await committer.commit("user-1", _selection(["course-1", "course-2"], []))

    assert outcome.state == EnrollmentState.FAILED
    assert committer.state == EnrollmentState.FAILED
    assert outcome.reason == "store unavailable"
    # group 1 stays, group 2 failed, group 3 never attempted
    assert store.commit_attempts == 2
    assert store.get("users", "user-1")["university"] == "uni-1"
    assert store.get("courses", "course-1")["members"] == []
    assert store.get("courses", "course-2")["members"] == []


@pytest.mark.asyncio
async def test_replay_after_failure_completes(store_factory):
    store = store_factory(max_batch_operations=1, fail_on_commit=2)
    selection = _selection(["course-1", "course-2"], ["org-1"])

    first = await commit_onboarding(store, "user-1", selection)
    second = await commit_onboarding(store, "user-1", selection)

    assert not first.ok
    assert second.ok
    assert store.get("courses", "course-1")["members"] == ["user-1"]
    assert store.get("courses", "course-2")["members"] == ["user-1"]
    assert store.get("organizations", "org-1")["members"] == ["user-1"]


@pytest.mark.asyncio
async def test_unknown_course_fails_the_run(store):
    outcome = await commit_onboarding(store, "user-1", _selection(["course-1", "nope"], []))
    assert outcome.state == EnrollmentState.FAILED
    assert "nope" in outcome.reason
    # single group, rejected as a whole
    assert store.get("courses", "course-1")["members"] == []


@pytest.mark.asyncio
async def test_validation_error_reaches_no_store(store):
    with pytest.raises(ValidationError):
        await commit_onboarding(store, "user-1", _selection(["course-1"], [], university=" "))
    assert store.commit_attempts == 0


@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed():
    class CancellingStore:
        max_batch_operations = 500

        async def commit_batch(self, operations):
            raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await commit_onboarding(CancellingStore(), "user-1", _selection(["course-1"], []))
