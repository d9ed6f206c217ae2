# app/models/unit.py
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import pymongo
from beanie import Document, Indexed
from pydantic import ConfigDict, Field
from pymongo import IndexModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Administrative Unit Levels ---
class UnitLevel(str, Enum):
    """Administrative tiers, from the top of the hierarchy down."""

    PROVINCE = "province"
    DISTRICT = "district"
    COMMUNE = "commune"


class HistoryAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"


# --- Unit Model ---
class Unit(Document):
    """
    A flat administrative unit record. The hierarchy is encoded only through
    `parentCode`; trees are derived on read and never stored.
    """

    code: Indexed(str, unique=True)
    name: str
    level: UnitLevel
    parent_code: Optional[str] = Field(default=None, alias="parentCode")

    # Descriptive fields, carried through untouched
    english_name: Optional[str] = Field(default=None, alias="englishName")
    administrative_level: Optional[str] = Field(
        default=None, alias="administrativeLevel"
    )
    decree: Optional[str] = None
    province_code: Optional[str] = Field(default=None, alias="provinceCode")
    province_name: Optional[str] = Field(default=None, alias="provinceName")
    boundary: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    class Settings:
        name = "units"
        indexes = [IndexModel([("parentCode", pymongo.ASCENDING)])]


# --- Unit History Model ---
class UnitHistory(Document):
    """One audit entry per change made to a unit."""

    code: Indexed(str)
    action: HistoryAction
    old_data: Optional[Dict[str, Any]] = Field(default=None, alias="oldData")
    new_data: Optional[Dict[str, Any]] = Field(default=None, alias="newData")
    changed_at: datetime = Field(default_factory=utcnow, alias="changedAt")
    changed_by: str = Field(default="system", alias="changedBy")

    model_config = ConfigDict(populate_by_name=True)

    class Settings:
        name = "unit_histories"
        indexes = [
            IndexModel([("code", pymongo.ASCENDING), ("changedAt", pymongo.DESCENDING)])
        ]
