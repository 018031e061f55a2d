"""
In-memory stand-in for the Supabase query builder.

Supports the subset of the PostgREST chain the app uses:
select/insert/update/delete, eq/neq/gt/gte/lt/lte/ilike/in_/is_, not_,
order, limit, range and execute.
"""

import copy
import re
from types import SimpleNamespace


def _like_to_regex(pattern):
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _compare(op, left, right):
    if left is None or right is None:
        return False
    return {
        "gt": left > right,
        "gte": left >= right,
        "lt": left < right,
        "lte": left <= right,
    }[op]


class FakeQuery:
    def __init__(self, store, table):
        self._store = store
        self._table = table
        self._mode = "select"
        self._payload = None
        self._count = None
        self._preds = []
        self._orders = []
        self._limit = None
        self._offset = 0
        self._negate = False

    # --- verbs ---
    def select(self, columns="*", count=None):
        self._mode = "select"
        self._count = count
        return self

    def insert(self, payload):
        self._mode = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._mode = "update"
        self._payload = payload
        return self

    def delete(self):
        self._mode = "delete"
        return self

    # --- filters ---
    @property
    def not_(self):
        self._negate = True
        return self

    def _add(self, pred):
        negate, self._negate = self._negate, False
        self._preds.append((lambda row: not pred(row)) if negate else pred)
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._add(lambda row: row.get(column) != value)

    def gt(self, column, value):
        return self._add(lambda row: _compare("gt", row.get(column), value))

    def gte(self, column, value):
        return self._add(lambda row: _compare("gte", row.get(column), value))

    def lt(self, column, value):
        return self._add(lambda row: _compare("lt", row.get(column), value))

    def lte(self, column, value):
        return self._add(lambda row: _compare("lte", row.get(column), value))

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda row: row.get(column) in values)

    def is_(self, column, value):
        if value == "null":
            return self._add(lambda row: row.get(column) is None)
        return self._add(lambda row: row.get(column) is value)

    def ilike(self, column, pattern):
        regex = _like_to_regex(pattern)
        return self._add(lambda row: regex.match(str(row.get(column) or "")) is not None)

    # --- modifiers ---
    def order(self, column, desc=False):
        self._orders.append((column, desc))
        return self

    def limit(self, n):
        self._limit = n
        return self

    def range(self, start, end):
        self._offset = start
        self._limit = end - start + 1
        return self

    # --- execution ---
    def _matches(self):
        rows = self._store.rows(self._table)
        return [r for r in rows if all(p(r) for p in self._preds)]

    def execute(self):
        if self._store.fail_tables and self._table in self._store.fail_tables:
            raise RuntimeError(f"simulated failure on {self._table}")

        if self._mode == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = [self._store.add(self._table, p) for p in payloads]
            return SimpleNamespace(data=copy.deepcopy(inserted), count=None)

        matched = self._matches()

        if self._mode == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        if self._mode == "delete":
            ids = {id(r) for r in matched}
            self._store.tables[self._table] = [
                r for r in self._store.rows(self._table) if id(r) not in ids
            ]
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        for column, desc in reversed(self._orders):
            present = [r for r in matched if r.get(column) is not None]
            missing = [r for r in matched if r.get(column) is None]
            present.sort(key=lambda r: r.get(column), reverse=desc)
            matched = missing + present if desc else present + missing
        total = len(matched)
        if self._limit is not None:
            matched = matched[self._offset : self._offset + self._limit]
        count = total if self._count else None
        return SimpleNamespace(data=copy.deepcopy(matched), count=count)


class FakeSupabase:
    """Dict-of-lists database with auto-increment ids per table."""

    def __init__(self):
        self.tables = {}
        self._ids = {}
        self.fail_tables = set()

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def add(self, table, payload):
        row = copy.deepcopy(payload)
        if row.get("id") is None:
            self._ids[table] = self._ids.get(table, 0) + 1
            row["id"] = self._ids[table]
        else:
            self._ids[table] = max(self._ids.get(table, 0), row["id"])
        row.setdefault("deleted_at", None)
        self.rows(table).append(row)
        return row

    def table(self, name):
        return FakeQuery(self, name)
