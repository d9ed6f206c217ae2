# app/routes/units.py
from fastapi import APIRouter, Body, Depends, status
from typing import Any, Dict, List, Optional

from app.dependencies.units import get_unit_service
from app.models.unit import UnitLevel
from app.schemas.misc import Message
from app.schemas.unit import (
    HistoryEntry,
    ImportSummary,
    RestoreRequest,
    UnitCreate,
    UnitPublic,
    UnitUpdate,
)
from app.services.unit_service import UnitService

router = APIRouter()


@router.get("/", response_model=List[UnitPublic])
async def get_all_units(service: UnitService = Depends(get_unit_service)):
    """Retrieves every administrative unit as a flat list."""
    return await service.list_units()


@router.get("/search", response_model=List[UnitPublic])
async def search_units(
    name: Optional[str] = None,
    code: Optional[str] = None,
    level: Optional[UnitLevel] = None,
    service: UnitService = Depends(get_unit_service),
):
    """Filters units by name (substring, case-insensitive), exact code and level."""
    return await service.search_units(name=name, code=code, level=level)


@router.post("/", response_model=UnitPublic, status_code=status.HTTP_201_CREATED)
async def create_unit(
    unit_create: UnitCreate, service: UnitService = Depends(get_unit_service)
):
    return await service.create_unit(unit_create)


@router.post("/import", response_model=ImportSummary)
async def import_units(
    dataset: List[Dict[str, Any]] = Body(...),
    service: UnitService = Depends(get_unit_service),
):
    """
    Upserts a dataset of units by code. Accepts provinces nested with their
    districts and communes, provinces holding `wards` directly, or flat records.
    """
    return await service.import_dataset(dataset)


@router.get("/{code}", response_model=UnitPublic)
async def get_unit(code: str, service: UnitService = Depends(get_unit_service)):
    return await service.get_unit(code)


@router.put("/{code}", response_model=UnitPublic)
async def update_unit(
    code: str,
    unit_update: UnitUpdate,
    service: UnitService = Depends(get_unit_service),
):
    return await service.update_unit(code, unit_update)


@router.delete("/{code}", response_model=Message)
async def delete_unit(code: str, service: UnitService = Depends(get_unit_service)):
    """Deletes a unit. Its children keep their parentCode and drop out of the tree."""
    await service.delete_unit(code)
    return Message(message="Unit deleted.", code=code)


@router.get("/{code}/history", response_model=List[HistoryEntry])
async def get_unit_history(
    code: str, service: UnitService = Depends(get_unit_service)
):
    return await service.get_history(code)


@router.post("/{code}/restore", response_model=UnitPublic)
async def restore_unit(
    code: str,
    restore: RestoreRequest,
    service: UnitService = Depends(get_unit_service),
):
    """Restores a unit from one of its history entries."""
    return await service.restore_unit(code, restore.index)
