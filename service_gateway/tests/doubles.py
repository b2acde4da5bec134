"""
In-memory doubles and seed data for Gateway tests.

``InMemoryStore`` and ``StubAuthClient`` stand in for the external store and
identity provider so route tests can observe side effects without a network.
"""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from service_gateway.app.adapters.auth_client import UserIdentity
from service_gateway.app.adapters.store_client import (
    SINGLE_ROW_MISMATCH,
    StoreFailure,
    StoreResult,
)

UNIQUE_VIOLATION = "23505"

# Embedded relation name -> foreign key column on the parent row
RELATION_KEYS = {
    "categories": "category_id",
    "games": "game_id",
    "users": "user_id",
}

UNIQUE_KEYS = {
    "wishlist": ("user_id", "game_id"),
}

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestDataFactory:
    """Factory for creating test data."""

    __test__ = False

    @staticmethod
    def create_test_users() -> List[Dict[str, Any]]:
        return [
            {"id": "user-1", "full_name": "Ada Player", "email": "ada@example.com"},
            {"id": "user-2", "full_name": "Bo Gamer", "email": "bo@example.com"},
        ]

    @staticmethod
    def create_test_categories() -> List[Dict[str, Any]]:
        return [
            {"id": 1, "name": "Action"},
            {"id": 2, "name": "Strategy"},
        ]

    @staticmethod
    def create_test_games() -> List[Dict[str, Any]]:
        return [
            {"id": 1, "title": "Star Raiders", "price": 19.99, "category_id": 1},
            {"id": 2, "title": "Empire Builder", "price": 39.5, "category_id": 2},
            {"id": 3, "title": "Night Drive", "price": 9.0, "category_id": 1},
        ]

    @classmethod
    def create_store(cls) -> "InMemoryStore":
        """An in-memory store seeded with users, categories and games."""
        return InMemoryStore({
            "users": cls.create_test_users(),
            "categories": cls.create_test_categories(),
            "games": cls.create_test_games(),
            "wishlist": [],
            "reviews": [],
            "orders": [],
            "contact_message": [],
        })

    @staticmethod
    def create_identities() -> Dict[str, UserIdentity]:
        """Bearer token -> identity for the seeded users."""
        return {
            "token-user-1": UserIdentity(id="user-1", email="ada@example.com"),
            "token-user-2": UserIdentity(id="user-2", email="bo@example.com"),
        }


def _split_columns(columns: str) -> List[str]:
    """Split a select list on top-level commas."""
    parts, depth, current = [], 0, ""
    for char in columns:
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def _matches(row: Mapping[str, Any], filters: Optional[Mapping[str, Any]]) -> bool:
    return all(str(row.get(column)) == str(value) for column, value in (filters or {}).items())


class InMemoryStore:
    """Store double with the same call surface as ``StoreClient``.

    Filters compare by string value, the way the REST dialect receives them.
    Every call is appended to ``calls``; ``fail_with`` makes every
    operation on a table fail.
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables or {})
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.failures: Dict[str, StoreFailure] = {}
        self._next_ids: Dict[str, int] = {}
        self._clock = 0

    def fail_with(self, table: str, failure: Optional[StoreFailure] = None):
        self.failures[table] = failure or StoreFailure(message="connection reset", status_code=503)

    def rows(self, table: str, **filters) -> List[Dict[str, Any]]:
        return [row for row in self.tables.get(table, []) if _matches(row, filters)]

    async def select(self, table: str, columns: str = "*", *, filters=None, order=None,
                     single: bool = False) -> StoreResult:
        self.calls.append(("select", table, {"columns": columns, "filters": filters, "order": order}))
        if table in self.failures:
            return StoreResult(error=self.failures[table])

        rows = self.rows(table, **(filters or {}))
        if order is not None:
            column, ascending = order
            rows = sorted(rows, key=lambda row: row.get(column) or "", reverse=not ascending)

        projected = [self._project(row, columns) for row in rows]
        return self._shape(projected, single)

    async def insert(self, table: str, rows, *, returning: bool = False,
                     single: bool = False) -> StoreResult:
        self.calls.append(("insert", table, {"rows": rows}))
        if table in self.failures:
            return StoreResult(error=self.failures[table])

        created = []
        for row in rows if isinstance(rows, list) else [rows]:
            row = dict(row)
            if self._violates_unique(table, row):
                return StoreResult(error=StoreFailure(
                    message="duplicate key value violates unique constraint",
                    code=UNIQUE_VIOLATION,
                    status_code=409,
                ))
            row.setdefault("id", self._next_id(table))
            row.setdefault("created_at", self._tick())
            created.append(row)

        self.tables.setdefault(table, []).extend(created)
        if not returning:
            return StoreResult()
        return self._shape(copy.deepcopy(created), single)

    async def update(self, table: str, values, *, filters, returning: bool = False,
                     single: bool = False) -> StoreResult:
        self.calls.append(("update", table, {"values": values, "filters": filters}))
        if table in self.failures:
            return StoreResult(error=self.failures[table])

        matched = self.rows(table, **filters)
        if single and len(matched) != 1:
            return self._shape(matched, single)
        for row in matched:
            row.update(values)
        if not returning:
            return StoreResult()
        return self._shape(copy.deepcopy(matched), single)

    async def delete(self, table: str, *, filters) -> StoreResult:
        self.calls.append(("delete", table, {"filters": filters}))
        if table in self.failures:
            return StoreResult(error=self.failures[table])

        self.tables[table] = [row for row in self.tables.get(table, []) if not _matches(row, filters)]
        return StoreResult()

    async def ping(self) -> bool:
        return True

    def _project(self, row: Dict[str, Any], columns: str) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for column in _split_columns(columns):
            if column == "*":
                result.update(copy.deepcopy(row))
            elif "(" in column:
                relation, inner = column[:-1].split("(", 1)
                key = RELATION_KEYS[relation]
                related = self.rows(relation, id=row.get(key))
                result[relation] = self._project(related[0], inner) if related else None
            else:
                result[column] = row.get(column)
        return result

    @staticmethod
    def _shape(rows: List[Dict[str, Any]], single: bool) -> StoreResult:
        if not single:
            return StoreResult(data=rows)
        if len(rows) != 1:
            return StoreResult(error=StoreFailure(
                message="JSON object requested, multiple (or no) rows returned",
                code=SINGLE_ROW_MISMATCH,
                status_code=406,
            ))
        return StoreResult(data=rows[0])

    def _violates_unique(self, table: str, row: Dict[str, Any]) -> bool:
        key = UNIQUE_KEYS.get(table)
        if key is None:
            return False
        return bool(self.rows(table, **{column: row.get(column) for column in key}))

    def _next_id(self, table: str) -> int:
        existing = [row["id"] for row in self.tables.get(table, []) if isinstance(row.get("id"), int)]
        next_id = max([self._next_ids.get(table, 0), *existing]) + 1
        self._next_ids[table] = next_id
        return next_id

    def _tick(self) -> str:
        self._clock += 1
        return (BASE_TIME + timedelta(seconds=self._clock)).isoformat()


class StubAuthClient:
    """Identity provider double resolving a fixed token table."""

    def __init__(self, identities: Optional[Dict[str, UserIdentity]] = None,
                 error: Optional[Exception] = None):
        self.identities = identities if identities is not None else TestDataFactory.create_identities()
        self.error = error
        self.calls: List[str] = []

    async def get_user(self, token: str) -> Optional[UserIdentity]:
        self.calls.append(token)
        if self.error is not None:
            raise self.error
        return self.identities.get(token)


def auth_headers(token: str = "token-user-1") -> Dict[str, str]:
    """Authorization header for a seeded user."""
    return {"Authorization": f"Bearer {token}"}
