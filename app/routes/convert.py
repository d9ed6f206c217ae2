# app/routes/convert.py
from fastapi import APIRouter, Depends

from app.dependencies.units import get_unit_service
from app.schemas.unit import ConvertRequest, ConvertResult
from app.services.address_converter import convert_address
from app.services.unit_service import UnitService

router = APIRouter()


@router.post("/", response_model=ConvertResult)
async def convert(
    request: ConvertRequest, service: UnitService = Depends(get_unit_service)
):
    """Matches a 'province, district, commune' address against stored units."""
    return await convert_address(service.repository, request.address)
