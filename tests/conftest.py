# tests/conftest.py

import asyncio
import copy
import itertools
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from gradeflow.core.dependencies import get_workspace
from gradeflow.core.errors import PersistenceError, PersistenceFailure, RecordNotFoundError
from gradeflow.db.store import RecordStore
from gradeflow.main import app
from gradeflow.services.workspace import Workspace

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryRecordStore(RecordStore):
    """RecordStore double with call recording, failure injection and gates."""

    def __init__(self):
        self.tables = defaultdict(dict)
        self.calls = []
        self.failures = {}
        self.gates = {}
        self._ids = itertools.count(1)
        self._ticks = itertools.count(1)

    def seed(self, table, row):
        self.tables[table][row["id"]] = dict(row)

    def row(self, table, record_id):
        return copy.deepcopy(self.tables[table][record_id])

    def fail(self, op, table, error=None):
        self.failures[(op, table)] = error or PersistenceError(
            "Network request failed", table, PersistenceFailure.NETWORK
        )

    def hold(self, op, table):
        gate = asyncio.Event()
        self.gates[(op, table)] = gate
        return gate

    async def _enter(self, op, table):
        self.calls.append((op, table))
        if (op, table) in self.failures:
            raise self.failures[(op, table)]

    async def _wait(self, op, table):
        gate = self.gates.pop((op, table), None)
        if gate is not None:
            await gate.wait()

    async def fetch(self, table, record_id):
        await self._enter("fetch", table)
        if record_id not in self.tables[table]:
            raise RecordNotFoundError(table, record_id)
        row = self.row(table, record_id)
        # reads are taken before a held call resumes, so a held call returns stale data
        await self._wait("fetch", table)
        return row

    async def select(self, table, filters=None, order_by=None, descending=False, limit=None):
        await self._enter("select", table)
        rows = [
            copy.deepcopy(row)
            for row in self.tables[table].values()
            if all(row.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        await self._wait("select", table)
        return rows[:limit] if limit is not None else rows

    async def update(self, table, record_id, values):
        await self._enter("update", table)
        await self._wait("update", table)
        if record_id not in self.tables[table]:
            raise RecordNotFoundError(table, record_id)
        self.tables[table][record_id].update(copy.deepcopy(values))
        return self.row(table, record_id)

    async def insert(self, table, values):
        await self._enter("insert", table)
        await self._wait("insert", table)
        record_id = f"sub-{next(self._ids)}"
        created = BASE_TIME + timedelta(minutes=next(self._ticks))
        row = {"id": record_id, "created_at": created.isoformat(), **copy.deepcopy(values)}
        self.tables[table][record_id] = row
        return self.row(table, record_id)


def make_submission_row(record_id, minutes, status="grading", assignment_id="asg-1", batch_name=None, file_count=2):
    return {
        "id": record_id,
        "assignment_id": assignment_id,
        "batch_name": batch_name,
        "file_count": file_count,
        "status": status,
        "created_at": (BASE_TIME - timedelta(days=1) + timedelta(minutes=minutes)).isoformat(),
    }


@pytest.fixture
def submission_row():
    return make_submission_row


@pytest.fixture
def class_row():
    return {
        "id": "class-1",
        "title": "Intro to Programming",
        "description": "Fundamentals of programming with Python",
        "department": "Computer Science",
        "code": "CS101",
        "schedule": "Mon, Wed 2-3:30 PM",
        "term": "Spring 2025",
        "status": "active",
        "created_at": "2025-01-10T09:00:00+00:00",
        "updated_at": "2025-01-10T09:00:00+00:00",
    }


@pytest.fixture
def assignment_row():
    return {
        "id": "asg-1",
        "class_id": "class-1",
        "title": "Essay on Recursion",
        "description": "Explain recursion with two examples",
        "type": "essay",
        "points": 10,
        "grading_criteria": "Clarity and correctness",
        "created_at": "2025-02-01T08:00:00+00:00",
        "updated_at": "2025-02-01T08:00:00+00:00",
    }


@pytest.fixture
def voice_assignment_row(assignment_row):
    return {**assignment_row, "id": "asg-voice", "title": "Pronunciation drill", "type": "voice"}


@pytest.fixture
def store(class_row, assignment_row, voice_assignment_row):
    store = InMemoryRecordStore()
    store.seed("classes", class_row)
    store.seed("assignments", assignment_row)
    store.seed("assignments", voice_assignment_row)
    store.seed("submissions", make_submission_row("sub-a", 1, status="completed", batch_name="Week 1"))
    store.seed("submissions", make_submission_row("sub-b", 2, status="grading"))
    return store


@pytest.fixture
def workspace(store):
    return Workspace(store)


@pytest.fixture
def notices(workspace):
    received = []
    workspace.notices.subscribe(received.append)
    return received


@pytest.fixture
def client(workspace):
    app.dependency_overrides[get_workspace] = lambda: workspace
    yield TestClient(app)
    app.dependency_overrides.clear()
