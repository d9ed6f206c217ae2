# app/dependencies/units.py
from app.configs import get_setting
from app.services.tree_builder import DEFAULT_ROOT_LEVEL
from app.services.unit_repository import UnitRepository
from app.services.unit_service import UnitService

unit_service = UnitService(
    UnitRepository(),
    root_level=get_setting("ROOT_LEVEL", "tree", "root_level", DEFAULT_ROOT_LEVEL),
)


def get_unit_service() -> UnitService:
    """Shared UnitService backed by MongoDB. Tests override this dependency."""
    return unit_service
