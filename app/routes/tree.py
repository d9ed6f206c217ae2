# app/routes/tree.py
from fastapi import APIRouter, Depends
from typing import List

from app.dependencies.units import get_unit_service
from app.schemas.unit import TreeNode
from app.services.unit_service import UnitService

router = APIRouter()


@router.get("/", response_model=List[TreeNode])
async def get_tree(service: UnitService = Depends(get_unit_service)):
    """
    Builds the administrative tree from all stored units. Root-level units
    without a parent form the top of the forest; units whose parent cannot be
    found and which are not root-level are left out.
    """
    return await service.get_tree()
