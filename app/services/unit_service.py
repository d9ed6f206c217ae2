# app/services/unit_service.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from app.models.unit import HistoryAction, UnitLevel, utcnow
from app.schemas.unit import (
    CommuneCreate,
    DistrictCreate,
    ProvinceCreate,
    UnitCreate,
    UnitUpdate,
)
from app.services.tree_builder import (
    DEFAULT_ROOT_LEVEL,
    assemble_tree,
    serialize_forest,
)
from app.services.unit_importer import import_units

logger = logging.getLogger(__name__)

# Fields a unit must always carry; an explicit null in an update is ignored.
_REQUIRED_FIELDS = ("name", "level", "metadata")
_TIMESTAMP_FIELDS = ("createdAt", "updatedAt")


class UnitService:
    def __init__(self, repository, root_level: str = DEFAULT_ROOT_LEVEL):
        self.repository = repository
        self.root_level = root_level

    # --- Units ---

    async def list_units(self) -> List[Dict[str, Any]]:
        """Fetches all units."""
        return await self.repository.fetch_all()

    async def get_unit(self, code: str) -> Dict[str, Any]:
        """Fetches a unit by code, 404 if it does not exist."""
        unit = await self.repository.find_by_code(code)
        if not unit:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Unit not found."
            )
        return unit

    async def search_units(
        self,
        name: Optional[str] = None,
        code: Optional[str] = None,
        level: Optional[UnitLevel] = None,
    ) -> List[Dict[str, Any]]:
        return await self.repository.find_many(
            level=level.value if level else None, code=code, name=name
        )

    async def _check_parent(
        self, code: str, parent_code: Optional[str], level: str
    ) -> None:
        if parent_code is None:
            if level != self.root_level:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"A {level} unit requires a parentCode.",
                )
            return
        if parent_code == code:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A unit cannot be its own parent.",
            )
        parent = await self.repository.find_by_code(parent_code)
        if not parent:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Parent unit '{parent_code}' not found.",
            )

    async def _record_history(
        self,
        code: str,
        action: HistoryAction,
        old_data: Optional[Dict[str, Any]],
        new_data: Optional[Dict[str, Any]],
    ) -> None:
        await self.repository.add_history(
            {
                "code": code,
                "action": action.value,
                "oldData": old_data,
                "newData": new_data,
                "changedAt": utcnow(),
                "changedBy": "system",
            }
        )

    async def create_unit(self, unit_create: UnitCreate) -> Dict[str, Any]:
        """Creates a unit and records a `create` history entry."""
        if await self.repository.find_by_code(unit_create.code):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Unit code already exists.",
            )
        await self._check_parent(
            unit_create.code, unit_create.parent_code, unit_create.level.value
        )

        now = utcnow()
        record = unit_create.model_dump(by_alias=True, mode="json")
        record.update(createdAt=now, updatedAt=now)
        unit = await self.repository.insert(record)
        await self._record_history(unit_create.code, HistoryAction.CREATE, None, unit)
        logger.info(f"Created {unit_create.level.value} unit '{unit_create.code}'.")
        return unit

    async def update_unit(self, code: str, unit_update: UnitUpdate) -> Dict[str, Any]:
        """Applies the fields set in `unit_update` and records the previous state."""
        existing = await self.get_unit(code)
        changes = unit_update.model_dump(exclude_unset=True, by_alias=True, mode="json")
        for field_name in _REQUIRED_FIELDS:
            if field_name in changes and changes[field_name] is None:
                changes.pop(field_name)
        if not changes:
            return existing

        if "parentCode" in changes or "level" in changes:
            await self._check_parent(
                code,
                changes.get("parentCode", existing.get("parentCode")),
                changes.get("level", existing.get("level")),
            )

        changes["updatedAt"] = utcnow()
        updated = await self.repository.update(code, changes)
        if not updated:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Unit not found or update failed.",
            )
        await self._record_history(code, HistoryAction.UPDATE, existing, updated)
        return updated

    async def delete_unit(self, code: str) -> Dict[str, Any]:
        """Deletes a single unit. Children are left in place."""
        existing = await self.get_unit(code)
        await self.repository.delete(code)
        await self._record_history(code, HistoryAction.DELETE, existing, None)
        logger.info(f"Deleted unit '{code}'.")
        return existing

    async def get_history(self, code: str) -> List[Dict[str, Any]]:
        """Change history of a unit, oldest first. Deleted units keep theirs."""
        entries = await self.repository.list_history(code)
        if not entries and not await self.repository.find_by_code(code):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Unit not found."
            )
        return entries

    async def restore_unit(self, code: str, index: int) -> Dict[str, Any]:
        """
        Brings a unit back to the state captured by its history entry at
        `index`: the state before the change, or the created state for a
        `create` entry. A deleted unit is inserted again.
        """
        entries = await self.get_history(code)
        if index < 0 or index >= len(entries):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid history index.",
            )
        entry = entries[index]
        snapshot = entry.get("oldData") or entry.get("newData")
        if not snapshot:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="History entry holds no unit data to restore.",
            )

        now = utcnow()
        existing = await self.repository.find_by_code(code)
        if existing:
            changes = {
                key: value
                for key, value in snapshot.items()
                if key != "code" and key not in _TIMESTAMP_FIELDS
            }
            changes["updatedAt"] = now
            restored = await self.repository.update(code, changes)
        else:
            restored = await self.repository.insert(
                {**snapshot, "code": code, "updatedAt": now}
            )
        await self._record_history(code, HistoryAction.RESTORE, existing, restored)
        logger.info(f"Restored unit '{code}' from history entry {index}.")
        return restored

    # --- Provinces ---

    async def _get_unit_of_level(
        self, code: str, level: UnitLevel, detail: str
    ) -> Dict[str, Any]:
        unit = await self.repository.find_by_code(code)
        if not unit or unit.get("level") != level.value:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
        return unit

    async def list_provinces(self) -> List[Dict[str, Any]]:
        provinces = await self.repository.find_many(level=UnitLevel.PROVINCE.value)
        return [{"code": p["code"], "name": p["name"]} for p in provinces]

    async def get_province(self, code: str) -> Dict[str, Any]:
        """A province together with its communes under `wards`."""
        province = await self._get_unit_of_level(
            code, UnitLevel.PROVINCE, "Province not found."
        )
        wards = await self.repository.find_many(
            level=UnitLevel.COMMUNE.value, parent_code=code
        )
        return {**province, "wards": wards}

    async def create_province(self, province: ProvinceCreate) -> Dict[str, Any]:
        return await self.create_unit(
            UnitCreate(
                **province.model_dump(by_alias=True),
                level=UnitLevel.PROVINCE,
                parentCode=None,
            )
        )

    async def update_province(
        self, code: str, unit_update: UnitUpdate
    ) -> Dict[str, Any]:
        await self._get_unit_of_level(code, UnitLevel.PROVINCE, "Province not found.")
        return await self.update_unit(code, unit_update)

    async def delete_province(self, code: str) -> Dict[str, Any]:
        await self._get_unit_of_level(code, UnitLevel.PROVINCE, "Province not found.")
        return await self.delete_unit(code)

    # --- Districts ---

    async def list_districts(
        self, province_code: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.repository.find_many(
            level=UnitLevel.DISTRICT.value, parent_code=province_code
        )

    async def get_district(self, code: str) -> Dict[str, Any]:
        return await self._get_unit_of_level(
            code, UnitLevel.DISTRICT, "District not found."
        )

    async def create_district(self, district: DistrictCreate) -> Dict[str, Any]:
        """Creates a district. `administrativeLevel` defaults to "Huyện"."""
        payload = district.model_dump(by_alias=True)
        if not payload.get("administrativeLevel"):
            payload["administrativeLevel"] = "Huyện"
        return await self.create_unit(
            UnitCreate(**payload, level=UnitLevel.DISTRICT)
        )

    async def update_district(
        self, code: str, unit_update: UnitUpdate
    ) -> Dict[str, Any]:
        await self.get_district(code)
        return await self.update_unit(code, unit_update)

    async def delete_district(self, code: str) -> Dict[str, Any]:
        """Deletes the district record only; communes under it are not touched."""
        await self.get_district(code)
        return await self.delete_unit(code)

    # --- Communes ---

    async def list_communes(
        self, province_code: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.repository.find_many(
            level=UnitLevel.COMMUNE.value, parent_code=province_code
        )

    async def get_commune(self, code: str) -> Dict[str, Any]:
        return await self._get_unit_of_level(
            code, UnitLevel.COMMUNE, "Commune not found."
        )

    async def create_commune(self, commune: CommuneCreate) -> Dict[str, Any]:
        return await self.create_unit(
            UnitCreate(**commune.model_dump(by_alias=True), level=UnitLevel.COMMUNE)
        )

    async def update_commune(
        self, code: str, unit_update: UnitUpdate
    ) -> Dict[str, Any]:
        await self.get_commune(code)
        return await self.update_unit(code, unit_update)

    async def delete_commune(self, code: str) -> Dict[str, Any]:
        await self.get_commune(code)
        return await self.delete_unit(code)

    # --- Import ---

    async def import_dataset(self, data) -> Dict[str, int]:
        return await import_units(self.repository, data, root_level=self.root_level)

    # --- Tree ---

    async def get_tree(self) -> List[Dict[str, Any]]:
        """Rebuilds the administrative tree from the current full record set."""
        records = await self.repository.fetch_all()
        assembly = assemble_tree(records, self.root_level)
        for cycle in assembly.cycles:
            logger.warning(
                f"Units {cycle} form a parent cycle and are missing from the tree."
            )
        if assembly.skipped:
            logger.warning(
                f"Skipped {len(assembly.skipped)} unit records without a code."
            )
        return serialize_forest(assembly.forest)
