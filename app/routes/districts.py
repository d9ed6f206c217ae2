# app/routes/districts.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from app.dependencies.units import get_unit_service
from app.schemas.misc import Message
from app.schemas.unit import DistrictCreate, UnitPublic, UnitUpdate
from app.services.unit_service import UnitService

router = APIRouter()


@router.get("/", response_model=List[UnitPublic])
async def get_districts(
    province_code: Optional[str] = Query(default=None, alias="provinceCode"),
    service: UnitService = Depends(get_unit_service),
):
    """Lists districts, optionally only those of one province."""
    return await service.list_districts(province_code=province_code)


@router.get("/{district_code}", response_model=UnitPublic)
async def get_district(
    district_code: str, service: UnitService = Depends(get_unit_service)
):
    return await service.get_district(district_code)


@router.post("/", response_model=UnitPublic, status_code=status.HTTP_201_CREATED)
async def create_district(
    district: DistrictCreate, service: UnitService = Depends(get_unit_service)
):
    return await service.create_district(district)


@router.put("/{district_code}", response_model=UnitPublic)
async def update_district(
    district_code: str,
    unit_update: UnitUpdate,
    service: UnitService = Depends(get_unit_service),
):
    return await service.update_district(district_code, unit_update)


@router.delete("/{district_code}", response_model=Message)
async def delete_district(
    district_code: str, service: UnitService = Depends(get_unit_service)
):
    """Deletes the district record only; its communes keep their parentCode."""
    await service.delete_district(district_code)
    return Message(message="District deleted.", code=district_code)
