"""
Pytest configuration shared across the test suite

Provides an in-memory stand-in for the Supabase client so services can be
exercised without a network. Rows are plain dicts; joined relations used by
the select strings must be stored on the rows already nested.
"""

import copy
import itertools
from datetime import datetime, timezone

import pytest

from mvo.modules.auth.service import clear_auth_cache


class FakeResult:
    def __init__(self, data=None, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.filters = []
        self.operation = "select"
        self.payload = None
        self.count_mode = None
        self.ordering = []
        self.limit_to = None
        self.offset_by = 0
        self.single_mode = None

    # building

    def select(self, columns="*", count=None):
        self.count_mode = count
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def is_(self, column, value):
        if value in (None, "null"):
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) == value)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, n):
        self.limit_to = n
        return self

    def range(self, start, end):
        self.offset_by = start
        self.limit_to = end - start + 1
        return self

    def offset(self, n):
        self.offset_by = n
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    # running

    def _matching(self):
        rows = self.db.tables.setdefault(self.table, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    def execute(self):
        self.db.queries.append((self.table, self.operation))
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"{self.table} unavailable")
        if self.operation == "insert":
            return FakeResult(self.db.insert_rows(self.table, self.payload))
        if self.operation == "update":
            updated = []
            for row in self._matching():
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
            return FakeResult(updated)
        if self.operation == "delete":
            rows = self._matching()
            self.db.tables[self.table] = [r for r in self.db.tables[self.table] if r not in rows]
            return FakeResult(copy.deepcopy(rows))

        rows = self._matching()
        for column, desc in reversed(self.ordering):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        total = len(rows)
        rows = rows[self.offset_by:]
        if self.limit_to is not None:
            rows = rows[:self.limit_to]
        rows = copy.deepcopy(rows)
        count = total if self.count_mode else None
        if self.single_mode:
            if not rows:
                if self.single_mode == "single":
                    raise RuntimeError("JSON object requested, multiple (or no) rows returned")
                return FakeResult(None, count)
            return FakeResult(rows[0], count)
        return FakeResult(rows, count)


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise RuntimeError(f"function {self.name} does not exist")
        return FakeResult(handler(self.params))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.rpc_handlers = {}
        self.rpc_calls = []
        self.queries = []
        self.failing_tables = set()
        self._ids = itertools.count(1)

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def seed(self, table, *rows):
        self.tables.setdefault(table, []).extend(copy.deepcopy(list(rows)))

    def insert_rows(self, table, payload):
        rows = payload if isinstance(payload, list) else [payload]
        inserted = []
        for row in rows:
            row = copy.deepcopy(row)
            row.setdefault("id", f"{table}-{next(self._ids)}")
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            self.tables.setdefault(table, []).append(row)
            inserted.append(copy.deepcopy(row))
        return inserted


@pytest.fixture
def fake_supabase():
    """Fresh in-memory Supabase client"""
    return FakeSupabase()


@pytest.fixture
def user():
    return {"id": "user-1", "email": "ana@example.com", "user_metadata": {}, "app_metadata": {}}


@pytest.fixture
def super_user():
    return {"id": "admin-1", "email": "ops@example.com", "user_metadata": {}, "app_metadata": {"type": "super_user"}}


@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def voting_db(fake_supabase):
    """toggle_idea_vote backed by the in-memory idea_votes table, returning the RPC's flat row"""

    def toggle(params):
        votes = fake_supabase.tables.setdefault("idea_votes", [])
        mine = [
            v for v in votes
            if v["idea_id"] == params["p_idea_id"] and v["voter_id"] == "user-1" and v["vote_type"] == params["p_vote_type"]
        ]
        if mine:
            votes.remove(mine[0])
        else:
            votes.append({"idea_id": params["p_idea_id"], "voter_id": "user-1", "vote_type": params["p_vote_type"]})
        counts = {t: 0 for t in ("use", "dislike", "pay")}
        for v in votes:
            if v["idea_id"] == params["p_idea_id"]:
                counts[v["vote_type"]] += 1
        return [{
            "id": params["p_idea_id"],
            "title": "Solar kettle",
            "content": {"blocks": []},
            "use_votes": counts["use"],
            "dislike_votes": counts["dislike"],
            "pay_votes": counts["pay"],
            "score": counts["pay"] * 3 + counts["use"] * 2 - counts["dislike"],
            "comment_count": 0,
        }]

    fake_supabase.rpc_handlers["toggle_idea_vote"] = toggle
    return fake_supabase
