"""In-memory record store used in place of MongoDB during tests."""

from __future__ import annotations

import copy
from typing import Any

from app.errors import DuplicateUnitCode, StoreUnavailable


class InMemoryUnitRepository:
    """Dict-backed stand-in for UnitRepository with the same async surface."""

    def __init__(self, units: list[dict[str, Any]] | None = None) -> None:
        self.units: list[dict[str, Any]] = [copy.deepcopy(u) for u in units or []]
        self.history: list[dict[str, Any]] = []

    async def fetch_all(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.units)

    async def find_by_code(self, code: str) -> dict[str, Any] | None:
        for unit in self.units:
            if unit.get("code") == code:
                return copy.deepcopy(unit)
        return None

    async def find_many(
        self,
        level: str | None = None,
        parent_code: str | None = None,
        code: str | None = None,
        name: str | None = None,
    ) -> list[dict[str, Any]]:
        rows = self.units
        if level:
            rows = [u for u in rows if u.get("level") == level]
        if parent_code:
            rows = [u for u in rows if u.get("parentCode") == parent_code]
        if code:
            rows = [u for u in rows if u.get("code") == code]
        if name:
            rows = [u for u in rows if name.lower() in str(u.get("name", "")).lower()]
        return copy.deepcopy(rows)

    async def insert(self, record: dict[str, Any]) -> dict[str, Any]:
        if any(u.get("code") == record.get("code") for u in self.units):
            raise DuplicateUnitCode(record["code"])
        stored = {"metadata": {}, **copy.deepcopy(record)}
        self.units.append(stored)
        return copy.deepcopy(stored)

    async def update(self, code: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        for unit in self.units:
            if unit.get("code") == code:
                unit.update(copy.deepcopy(changes))
                return copy.deepcopy(unit)
        return None

    async def delete(self, code: str) -> dict[str, Any] | None:
        for index, unit in enumerate(self.units):
            if unit.get("code") == code:
                return self.units.pop(index)
        return None

    async def add_history(self, entry: dict[str, Any]) -> dict[str, Any]:
        self.history.append(copy.deepcopy(entry))
        return copy.deepcopy(entry)

    async def list_history(self, code: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(e) for e in self.history if e["code"] == code]


class UnavailableRepository(InMemoryUnitRepository):
    """Every read fails the way a lost database connection does."""

    async def fetch_all(self) -> list[dict[str, Any]]:
        raise StoreUnavailable("connection refused")

    async def find_by_code(self, code: str) -> dict[str, Any] | None:
        raise StoreUnavailable("connection refused")


def make_unit(code: str, level: str, name: str, parent_code: str | None = None) -> dict[str, Any]:
    return {"code": code, "level": level, "name": name, "parentCode": parent_code, "metadata": {}}

