"""In-memory stand-in for the Supabase client (auth + one table)."""
import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest


class FakeQuery:
    def __init__(self, store, name):
        self.store = store
        self.name = name
        self.action = "select"
        self.payload = None
        self.filters = []
        self.order_by = None

    def insert(self, row):
        self.action = "insert"
        self.payload = row
        return self

    def select(self, *columns):
        self.action = "select"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def execute(self):
        if self.store.fail_next:
            message, self.store.fail_next = self.store.fail_next, None
            raise RuntimeError(message)
        rows = self.store.tables.setdefault(self.name, [])
        if self.action == "insert":
            row = dict(self.payload)
            row["id"] = str(uuid4())
            row["created_at"] = self.store.next_timestamp()
            rows.append(row)
            return SimpleNamespace(data=[dict(row)], count=None)
        out = [dict(r) for r in rows if all(r.get(c) == v for c, v in self.filters)]
        if self.order_by:
            column, desc = self.order_by
            out.sort(key=lambda r: r[column], reverse=desc)
        return SimpleNamespace(data=out, count=None)


class FakeAuth:
    def __init__(self, store):
        self.store = store
        self.users = {}
        self.current = None
        self.confirm_email = False

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.users:
            raise RuntimeError("User already registered")
        user = SimpleNamespace(id=str(uuid4()), email=email)
        self.users[email] = (user, credentials["password"])
        if self.confirm_email:
            return SimpleNamespace(user=user, session=None)
        self.current = user
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token="token"))

    def sign_in_with_password(self, credentials):
        user, password = self.users.get(credentials["email"], (None, None))
        if user is None or password != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        self.current = user
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token="token"))

    def sign_out(self):
        self.current = None

    def get_user(self, jwt=None):
        if self.current is None:
            return None
        return SimpleNamespace(user=self.current)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.fail_next = None
        self.auth = FakeAuth(self)
        self._clock = itertools.count()
        self._start = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return FakeQuery(self, name)

    def next_timestamp(self):
        return (self._start + timedelta(days=next(self._clock))).isoformat()


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def db(fake_supabase):
    from tracker.database import DatabaseClient
    return DatabaseClient(fake_supabase, table="exams")
