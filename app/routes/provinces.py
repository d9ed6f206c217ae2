# app/routes/provinces.py
from fastapi import APIRouter, Depends, status
from typing import List

from app.dependencies.units import get_unit_service
from app.schemas.misc import Message
from app.schemas.unit import (
    ProvinceCreate,
    ProvinceDetail,
    ProvinceSummary,
    UnitPublic,
    UnitUpdate,
)
from app.services.unit_service import UnitService

router = APIRouter()


@router.get("/", response_model=List[ProvinceSummary])
async def get_provinces(service: UnitService = Depends(get_unit_service)):
    return await service.list_provinces()


@router.get("/{province_code}", response_model=ProvinceDetail)
async def get_province(
    province_code: str, service: UnitService = Depends(get_unit_service)
):
    """Retrieves a province with its communes listed under `wards`."""
    return await service.get_province(province_code)


@router.get("/{province_code}/communes", response_model=List[UnitPublic])
async def get_province_communes(
    province_code: str, service: UnitService = Depends(get_unit_service)
):
    await service.get_province(province_code)
    return await service.list_communes(province_code=province_code)


@router.post("/", response_model=UnitPublic, status_code=status.HTTP_201_CREATED)
async def create_province(
    province: ProvinceCreate, service: UnitService = Depends(get_unit_service)
):
    return await service.create_province(province)


@router.put("/{province_code}", response_model=UnitPublic)
async def update_province(
    province_code: str,
    unit_update: UnitUpdate,
    service: UnitService = Depends(get_unit_service),
):
    return await service.update_province(province_code, unit_update)


@router.delete("/{province_code}", response_model=Message)
async def delete_province(
    province_code: str, service: UnitService = Depends(get_unit_service)
):
    """Deletes the province record only; its communes are not touched."""
    await service.delete_province(province_code)
    return Message(message="Province deleted.", code=province_code)
