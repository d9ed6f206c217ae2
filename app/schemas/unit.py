# app/schemas/unit.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.unit import HistoryAction, UnitLevel


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        return None
    return value


class UnitDetails(BaseModel):
    """Descriptive fields shared by every unit payload."""

    english_name: Optional[str] = Field(default=None, alias="englishName")
    administrative_level: Optional[str] = Field(
        default=None, alias="administrativeLevel"
    )
    decree: Optional[str] = None
    province_code: Optional[str] = Field(default=None, alias="provinceCode")
    province_name: Optional[str] = Field(default=None, alias="provinceName")
    boundary: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class UnitBase(UnitDetails):
    code: str
    name: str
    level: UnitLevel
    parent_code: Optional[str] = Field(default=None, alias="parentCode")

    @field_validator("code", "name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)

    @field_validator("parent_code")
    @classmethod
    def empty_parent_is_none(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)


class UnitCreate(UnitBase):
    pass


class UnitUpdate(BaseModel):
    # `code` is the identity of a unit and cannot be changed
    name: Optional[str] = None
    level: Optional[UnitLevel] = None
    parent_code: Optional[str] = Field(default=None, alias="parentCode")
    english_name: Optional[str] = Field(default=None, alias="englishName")
    administrative_level: Optional[str] = Field(
        default=None, alias="administrativeLevel"
    )
    decree: Optional[str] = None
    province_code: Optional[str] = Field(default=None, alias="provinceCode")
    province_name: Optional[str] = Field(default=None, alias="provinceName")
    boundary: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        # null is dropped by the service, the stored name stays
        if value is None:
            return value
        return _require_text(value)

    @field_validator("parent_code")
    @classmethod
    def empty_parent_is_none(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)


class UnitPublic(UnitBase):
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


# --- Province / District / Commune views ---


class DivisionCreate(UnitDetails):
    code: str
    name: str

    @field_validator("code", "name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)


class ProvinceCreate(DivisionCreate):
    pass


class ChildDivisionCreate(DivisionCreate):
    parent_code: str = Field(alias="parentCode")

    @field_validator("parent_code")
    @classmethod
    def parent_not_blank(cls, value: str) -> str:
        return _require_text(value)


class DistrictCreate(ChildDivisionCreate):
    pass


class CommuneCreate(ChildDivisionCreate):
    pass


class ProvinceSummary(BaseModel):
    code: str
    name: str


class ProvinceDetail(UnitPublic):
    wards: List[UnitPublic] = Field(default_factory=list)


# --- History ---


class HistoryEntry(BaseModel):
    code: str
    action: HistoryAction
    old_data: Optional[Dict[str, Any]] = Field(default=None, alias="oldData")
    new_data: Optional[Dict[str, Any]] = Field(default=None, alias="newData")
    changed_at: datetime = Field(alias="changedAt")
    changed_by: str = Field(default="system", alias="changedBy")

    model_config = ConfigDict(populate_by_name=True)


class RestoreRequest(BaseModel):
    index: int = Field(ge=0)


# --- Tree ---


class TreeNode(BaseModel):
    """A unit with its resolved children. Unknown record fields pass through."""

    code: str
    level: Optional[str] = None
    name: Optional[str] = None
    parent_code: Optional[str] = Field(default=None, alias="parentCode")
    children: List["TreeNode"] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")


# --- Address conversion ---


class ConvertRequest(BaseModel):
    address: str = Field(min_length=1)


class AddressParts(BaseModel):
    province: Optional[str] = None
    district: Optional[str] = None
    commune: Optional[str] = None


class ConvertResult(BaseModel):
    original: str
    matched: AddressParts
    codes: AddressParts
    found: bool


# --- Dataset import ---


class ImportSummary(BaseModel):
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
