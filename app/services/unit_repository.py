# app/services/unit_repository.py
import functools
import logging
import re
from typing import Any, Dict, List, Optional

import pymongo
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.errors import DuplicateUnitCode, StoreUnavailable
from app.models.unit import Unit, UnitHistory

logger = logging.getLogger(__name__)


def _to_record(document) -> Dict[str, Any]:
    """Plain dict in wire shape (camelCase keys), without Mongo identifiers."""
    return document.model_dump(
        by_alias=True, mode="json", exclude={"id", "revision_id"}
    )


def _store_call(func):
    """Translates driver failures into StoreUnavailable."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            logger.error(f"Record store call {func.__name__} failed: {e}")
            raise StoreUnavailable(str(e)) from e

    return wrapper


class UnitRepository:
    """MongoDB-backed record store for units and their change history."""

    @_store_call
    async def fetch_all(self) -> List[Dict[str, Any]]:
        """Fetches every unit in natural store order."""
        units = await Unit.find_all().to_list()
        return [_to_record(unit) for unit in units]

    @_store_call
    async def find_by_code(self, code: str) -> Optional[Dict[str, Any]]:
        unit = await Unit.find_one({"code": code})
        return _to_record(unit) if unit else None

    @_store_call
    async def find_many(
        self,
        level: Optional[str] = None,
        parent_code: Optional[str] = None,
        code: Optional[str] = None,
        name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Fetches units matching every given filter. `name` matches a substring, ignoring case."""
        query: Dict[str, Any] = {}
        if level:
            query["level"] = level
        if parent_code:
            query["parentCode"] = parent_code
        if code:
            query["code"] = code
        if name:
            query["name"] = {"$regex": re.escape(name), "$options": "i"}
        units = await Unit.find(query).to_list()
        return [_to_record(unit) for unit in units]

    @_store_call
    async def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        unit = Unit.model_validate(record)
        try:
            await unit.insert()
        except DuplicateKeyError as e:
            raise DuplicateUnitCode(record.get("code")) from e
        return _to_record(unit)

    @_store_call
    async def update(
        self, code: str, changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        unit = await Unit.find_one({"code": code})
        if not unit:
            return None
        await unit.set(changes)
        return await self.find_by_code(code)

    @_store_call
    async def delete(self, code: str) -> Optional[Dict[str, Any]]:
        unit = await Unit.find_one({"code": code})
        if not unit:
            return None
        record = _to_record(unit)
        await unit.delete()
        return record

    @_store_call
    async def add_history(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        history = UnitHistory.model_validate(entry)
        await history.insert()
        return _to_record(history)

    @_store_call
    async def list_history(self, code: str) -> List[Dict[str, Any]]:
        """History entries of a unit, oldest first."""
        entries = (
            await UnitHistory.find({"code": code})
            .sort([("changedAt", pymongo.ASCENDING)])
            .to_list()
        )
        return [_to_record(entry) for entry in entries]
