"""
Shared fixtures for the review core tests.

FakeDocumentStore keeps collections in dicts and honours the same
contract as MongoDocumentStore, including all-or-nothing batch commits.
"""

import copy
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from reviews.logic.constants import OperationKind, WriteMode
from reviews.logic.contracts import ProfessorRating, VoteDelta, WriteOperation
from reviews.logic.errors import NotFoundError, StoreError


class FakeDocumentStore:
    def __init__(self, max_batch_operations: int = 500, fail_on_commit: Optional[int] = None):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.max_batch_operations = max_batch_operations
        self.fail_on_commit = fail_on_commit  # 1-based commit attempt that raises StoreError
        self.commit_attempts = 0
        self.committed: List[List[WriteOperation]] = []
        self.writes = 0

    def seed(self, collection: str, document_id: str, **fields) -> None:
        self.collections[collection][document_id] = copy.deepcopy(fields)

    def get(self, collection: str, document_id: str) -> Dict[str, Any]:
        return self.collections[collection][document_id]

    async def read_document(self, collection: str, document_id: str) -> Dict[str, Any]:
        doc = self.collections[collection].get(document_id)
        if doc is None:
            raise NotFoundError(collection, document_id)
        return {"id": document_id, **copy.deepcopy(doc)}

    async def query_documents(self, collection: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [
            {"id": doc_id, **copy.deepcopy(doc)}
            for doc_id, doc in self.collections[collection].items()
            if all(doc.get(k) == v for k, v in filters.items())
        ]

    async def write_document(self, collection, document_id, fields, mode=WriteMode.MERGE) -> None:
        self.writes += 1
        if mode == WriteMode.SET:
            self.collections[collection][document_id] = copy.deepcopy(dict(fields))
        else:
            self.collections[collection].setdefault(document_id, {}).update(copy.deepcopy(dict(fields)))

    def _union(self, collection: str, document_id: str, field: str, values: Sequence[str]) -> None:
        array = self.collections[collection][document_id].setdefault(field, [])
        for value in values:
            if value not in array:
                array.append(value)

    async def set_union_append(self, collection, document_id, field, values) -> None:
        if document_id not in self.collections[collection]:
            raise NotFoundError(collection, document_id)
        self.writes += 1
        self._union(collection, document_id, field, values)

    async def apply_set_delta(self, collection: str, document_id: str, delta: VoteDelta) -> None:
        doc = self.collections[collection].get(document_id)
        if doc is None:
            raise NotFoundError(collection, document_id)
        self.writes += 1
        for field, values in delta.remove.items():
            doc[field] = [v for v in doc.get(field, []) if v not in values]
        for field, values in delta.add.items():
            self._union(collection, document_id, field, values)

    async def commit_batch(self, operations: Sequence[WriteOperation]) -> None:
        if len(operations) > self.max_batch_operations:
            raise ValueError("batch too large")
        self.commit_attempts += 1
        if self.commit_attempts == self.fail_on_commit:
            raise StoreError("store unavailable")
        for op in operations:
            if op.kind == OperationKind.UNION and op.document_id not in self.collections[op.collection]:
                raise NotFoundError(op.collection, op.document_id)

        for op in operations:
            if op.kind == OperationKind.MERGE:
                self.collections[op.collection].setdefault(op.document_id, {}).update(copy.deepcopy(op.changes))
            else:
                self._union(op.collection, op.document_id, op.array_field, op.values)
        self.committed.append(list(operations))


BASE_TIME = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


def make_rating(rating_id: str = "r1", age_hours: int = 0, **overrides) -> ProfessorRating:
    fields = dict(
        id=rating_id,
        professor_id="prof-1",
        course_id="course-1",
        user_id="author-1",
        difficulty=3,
        enjoyment=4,
        understandability=4,
        retake=True,
        text="Clear lectures, fair exams.",
        total_rating=4.0,
        created_at=BASE_TIME - timedelta(hours=age_hours),
    )
    fields.update(overrides)
    return ProfessorRating(**fields)


@pytest.fixture
def rating_factory():
    return make_rating


def seeded_store(**kwargs) -> FakeDocumentStore:
    s = FakeDocumentStore(**kwargs)
    s.seed("professors", "prof-1", name="Ada Lovelace", university_id="uni-1")
    s.seed("courses", "course-1", code="CS 101", name="Intro to CS", university_id="uni-1",
           professors=[{"id": "prof-1", "name": "Ada Lovelace"}], members=[])
    s.seed("courses", "course-2", code="CS 201", name="Data Structures", university_id="uni-1",
           professors=[], members=[])
    s.seed("organizations", "org-1", name="Chess Club", university_id="uni-1", members=[])
    return s


@pytest.fixture
def store() -> FakeDocumentStore:
    return seeded_store()


@pytest.fixture
def store_factory():
    return seeded_store
