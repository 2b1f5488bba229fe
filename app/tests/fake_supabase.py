"""In-memory stand-in for the slice of the Supabase client the services use."""

import copy
import itertools
import threading
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)

_TABLE_DEFAULTS = {
    "notifications": {"is_read": False, "email_sent": False, "data": {}, "priority": "medium"},
    "notification_preferences": {
        "email_notifications": True,
        "in_app_notifications": True,
        "notification_types": {},
    },
}


class StoreError(Exception):
    pass


class FakeResult:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = None
        self.payload = None
        self.on_conflict = "id"
        self.filters: List[tuple] = []
        self.order_by: Optional[tuple] = None
        self.bounds: Optional[tuple] = None
        self.single = False
        self.count_mode = None

    def select(self, *columns, count=None):
        self.op = "select"
        self.count_mode = count
        return self

    def insert(self, row):
        self.op = "insert"
        self.payload = row if isinstance(row, list) else [row]
        return self

    def update(self, values):
        self.op = "update"
        self.payload = values
        return self

    def upsert(self, row, on_conflict="id"):
        self.op = "upsert"
        self.payload = row
        self.on_conflict = on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def maybe_single(self):
        self.single = True
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        if (self.table_name, self.op) in self.db.failures:
            raise StoreError(f"{self.op} on {self.table_name} failed")
        with self.db.lock:
            return getattr(self, f"_{self.op}")(self.db.tables.setdefault(self.table_name, []))

    def _select(self, rows):
        found = [copy.deepcopy(row) for row in rows if self._matches(row)]
        if self.order_by:
            column, desc = self.order_by
            found.sort(key=lambda row: row[column], reverse=desc)
        total = len(found)
        if self.bounds:
            start, end = self.bounds
            found = found[start:end + 1]
        if self.single:
            return FakeResult(found[0]) if found else None
        return FakeResult(found, count=total if self.count_mode else None)

    def _insert(self, rows):
        created = []
        for payload in self.payload:
            row = copy.deepcopy(_TABLE_DEFAULTS.get(self.table_name, {}))
            row.update(copy.deepcopy(payload))
            row.setdefault("id", str(uuid.uuid4()))
            stamp = self.db.next_timestamp()
            row.setdefault("created_at", stamp)
            row.setdefault("updated_at", stamp)
            rows.append(row)
            created.append(copy.deepcopy(row))
            self.db.inserted(self.table_name, row)
        return FakeResult(created)

    def _update(self, rows):
        changed = []
        for row in rows:
            if self._matches(row):
                row.update(copy.deepcopy(self.payload))
                changed.append(copy.deepcopy(row))
        return FakeResult(changed)

    def _upsert(self, rows):
        key = self.payload[self.on_conflict]
        for row in rows:
            if row.get(self.on_conflict) == key:
                row.update(copy.deepcopy(self.payload))
                return FakeResult([copy.deepcopy(row)])
        self.payload = [self.payload]
        return self._insert(rows)

    def _delete(self, rows):
        removed = [row for row in rows if self._matches(row)]
        rows[:] = [row for row in rows if not self._matches(row)]
        return FakeResult(removed)


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, Any] = {}

    def add_user(self, token: str, user_id: str, super_user: bool = False, email: Optional[str] = None):
        self.users[token] = SimpleNamespace(
            id=user_id,
            email=email or f"{user_id}@example.com",
            user_metadata={},
            app_metadata={"type": "super_user"} if super_user else {},
        )

    def get_user(self, jwt=None):
        if jwt not in self.users:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self.users[jwt])


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures = set()
        self.lock = threading.RLock()
        self.auth = FakeAuth()
        self.on_insert = []
        self._clock = itertools.count()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, op: str) -> None:
        self.failures.add((table, op))

    def recover(self) -> None:
        self.failures.clear()

    def next_timestamp(self) -> str:
        return (_EPOCH + timedelta(seconds=next(self._clock))).isoformat()

    def inserted(self, table: str, row: Dict[str, Any]) -> None:
        for listener in self.on_insert:
            listener(table, copy.deepcopy(row))

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])
