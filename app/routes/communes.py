# app/routes/communes.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from app.dependencies.units import get_unit_service
from app.schemas.misc import Message
from app.schemas.unit import CommuneCreate, UnitPublic, UnitUpdate
from app.services.unit_service import UnitService

router = APIRouter()


@router.get("/", response_model=List[UnitPublic])
async def get_communes(
    province_code: Optional[str] = Query(default=None, alias="provinceCode"),
    service: UnitService = Depends(get_unit_service),
):
    """Lists communes, optionally only those directly under one province."""
    return await service.list_communes(province_code=province_code)


@router.get("/{commune_code}", response_model=UnitPublic)
async def get_commune(
    commune_code: str, service: UnitService = Depends(get_unit_service)
):
    return await service.get_commune(commune_code)


@router.post("/", response_model=UnitPublic, status_code=status.HTTP_201_CREATED)
async def create_commune(
    commune: CommuneCreate, service: UnitService = Depends(get_unit_service)
):
    return await service.create_commune(commune)


@router.put("/{commune_code}", response_model=UnitPublic)
async def update_commune(
    commune_code: str,
    unit_update: UnitUpdate,
    service: UnitService = Depends(get_unit_service),
):
    return await service.update_commune(commune_code, unit_update)


@router.delete("/{commune_code}", response_model=Message)
async def delete_commune(
    commune_code: str, service: UnitService = Depends(get_unit_service)
):
    await service.delete_commune(commune_code)
    return Message(message="Commune deleted.", code=commune_code)
