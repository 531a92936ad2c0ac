from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from app.config import Settings

PROFILE_ID = "11111111-1111-1111-1111-111111111111"
AUTH_ID = "22222222-2222-2222-2222-222222222222"
OTHER_PROFILE_ID = "33333333-3333-3333-3333-333333333333"
OTHER_AUTH_ID = "44444444-4444-4444-4444-444444444444"
UNKNOWN_ID = "99999999-9999-9999-9999-999999999999"


class FakeQuery:
    """Subset of the postgrest request builder used by the app."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.columns = "*"
        self.count = None
        self.head = False
        self.filters: List[tuple] = []
        self.or_filters: List[str] = []
        self.order_by: Optional[tuple] = None
        self.limit_n: Optional[int] = None
        self.range_: Optional[tuple] = None

    def select(self, *columns, count=None, head=None):
        self.columns = ",".join(columns) or "*"
        self.count = count
        self.head = bool(head)
        return self

    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def gt(self, column, value):
        self.filters.append(("gt", column, value))
        return self

    def or_(self, filters: str):
        self.or_filters.append(filters)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def range(self, start, end):
        self.range_ = (start, end)
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        for op, column, value in self.filters:
            actual = row.get(column)
            if op == "eq" and (actual is None or str(actual) != str(value)):
                return False
            if op == "gt" and (actual is None or not actual > value):
                return False
        for expr in self.or_filters:
            alternatives = []
            for part in expr.split(","):
                column, op, value = part.split(".", 2)
                assert op == "eq"
                alternatives.append((column, value.strip('"')))
            if not any(
                row.get(c) is not None and str(row.get(c)) == v for c, v in alternatives
            ):
                return False
        return True

    def execute(self):
        self.db.calls.append(self)
        if self.table in self.db.failing:
            raise Exception(f"connection refused while reading {self.table}")
        rows = [r for r in self.db.tables.get(self.table, []) if self._matches(r)]
        if self.order_by:
            column, desc = self.order_by
            # Postgres default: NULLS LAST ascending, NULLS FIRST descending
            present = sorted((r for r in rows if r.get(column) is not None), key=lambda r: r[column], reverse=desc)
            nulls = [r for r in rows if r.get(column) is None]
            rows = nulls + present if desc else present + nulls
        if self.range_:
            rows = rows[self.range_[0]:self.range_[1] + 1]
        if self.limit_n is not None:
            rows = rows[:self.limit_n]
        count = len(rows) if self.count == "exact" else None
        data = [] if self.head else [dict(r) for r in rows]
        return SimpleNamespace(data=data, count=count)


class FakeAuth:
    def __init__(self):
        self.tokens: Dict[str, SimpleNamespace] = {}
        self.calls = 0

    def get_user(self, jwt=None):
        self.calls += 1
        if jwt not in self.tokens:
            raise Exception("invalid JWT: signature is invalid")
        return SimpleNamespace(user=self.tokens[jwt])


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = tables or {}
        self.calls: List[FakeQuery] = []
        self.failing = set()
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def calls_to(self, table: str) -> List[FakeQuery]:
        return [c for c in self.calls if c.table == table]


def make_profile(profile_id=PROFILE_ID, auth_id=AUTH_ID, **extra):
    row = {
        "id": profile_id,
        "auth_id": auth_id,
        "email": "maria@example.com",
        "role": "user",
        "points": 40,
        "level": 2,
        "created_at": "2024-03-01T12:00:00+00:00",
        "city": "Curitiba",
        "state": "PR",
    }
    row.update(extra)
    return row


@pytest.fixture
def test_settings():
    return Settings(
        supabase_url="http://localhost:54321",
        supabase_key="anon",
        stats_missing_profile_policy="not_found",
        _env_file=None,
    )


@pytest.fixture
def supabase():
    return FakeSupabase({
        "users": [
            make_profile(),
            make_profile(
                OTHER_PROFILE_ID, OTHER_AUTH_ID,
                email="admin@example.com", role="admin", points=90, city="Recife", state="PE",
            ),
        ],
        "checkins": [
            {"id": "c1", "user_id": PROFILE_ID, "created_at": "2024-05-01T10:00:00+00:00",
             "events": {"title": "Ato na Paulista", "location": "Sao Paulo"}},
            {"id": "c2", "user_id": PROFILE_ID, "created_at": "2024-05-03T10:00:00+00:00",
             "events": {"title": "Debate", "location": "Curitiba"}},
            {"id": "c3", "user_id": PROFILE_ID, "created_at": "2024-05-05T10:00:00+00:00",
             "events": None},
            {"id": "c4", "user_id": OTHER_PROFILE_ID, "created_at": "2024-05-06T10:00:00+00:00"},
            {"id": "c5", "user_id": None, "created_at": "2024-05-07T10:00:00+00:00"},
        ],
        "geographic_checkins": [
            {"id": "g1", "user_id": AUTH_ID, "created_at": "2024-05-04T10:00:00+00:00",
             "checked_in_at": "2024-05-04T10:00:00+00:00",
             "manifestations": {"name": "Marcha", "city": "Curitiba", "state": "PR"}},
            {"id": "g2", "user_id": AUTH_ID, "created_at": None,
             "checked_in_at": "2024-05-02T10:00:00+00:00", "manifestations": None},
        ],
        "ai_conversations": [
            {"id": "a1", "user_id": AUTH_ID},
            {"id": "a2", "user_id": OTHER_AUTH_ID},
        ],
        "ai_messages": [
            {"id": "m1", "user_id": PROFILE_ID},
            {"id": "m2", "user_id": AUTH_ID},
            {"id": "m3", "user_id": AUTH_ID},
        ],
    })
