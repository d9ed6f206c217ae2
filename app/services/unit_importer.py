# app/services/unit_importer.py
"""
Loads administrative-unit datasets into the record store.

A dataset is a JSON list in one of three shapes, which may be mixed:

- nested by district: province objects with `districts`, each district
  holding its `communes` (or `wards`)
- two-tier: province objects holding `wards` (or `communes`) directly
- flat: unit records that already carry `level` and `parentCode`

Records are upserted by `code`. Nothing is deleted.
"""
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from pydantic import ValidationError

from app.errors import MalformedRecord
from app.models.unit import UnitLevel, utcnow
from app.schemas.unit import UnitCreate
from app.services.tree_builder import DEFAULT_ROOT_LEVEL

logger = logging.getLogger(__name__)

# Optional fields copied from a dataset item when present
_DESCRIPTIVE_FIELDS = (
    "englishName",
    "administrativeLevel",
    "decree",
    "provinceCode",
    "provinceName",
    "boundary",
    "metadata",
)
_COMMUNE_KEYS = ("communes", "wards")
_NESTED_KEYS = ("districts",) + _COMMUNE_KEYS


def _as_code(value: Any) -> Optional[str]:
    # Source files store codes as numbers as often as strings
    return None if value is None else str(value)


def _unit_record(
    item: Mapping[str, Any],
    level: str,
    parent_code: Optional[str],
    province: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    record = {
        "code": _as_code(item.get("code")),
        "name": item.get("name"),
        "level": level,
        "parentCode": parent_code,
    }
    for key in _DESCRIPTIVE_FIELDS:
        if item.get(key) is not None:
            record[key] = item[key]
    if province is not None:
        record.setdefault("provinceCode", province["code"])
        record.setdefault("provinceName", province["name"])
    return record


def _communes_of(item: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    for key in _COMMUNE_KEYS:
        yield from item.get(key) or []


def flatten_dataset(data: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Turns a nested or flat dataset into unit records, parents first."""
    records = []
    for item in data:
        if "level" in item and not any(key in item for key in _NESTED_KEYS):
            records.append(
                _unit_record(item, item["level"], _as_code(item.get("parentCode")))
            )
            continue

        province = _unit_record(item, UnitLevel.PROVINCE.value, None)
        records.append(province)
        for district_item in item.get("districts") or []:
            district = _unit_record(
                district_item, UnitLevel.DISTRICT.value, province["code"], province
            )
            records.append(district)
            for commune in _communes_of(district_item):
                records.append(
                    _unit_record(
                        commune, UnitLevel.COMMUNE.value, district["code"], province
                    )
                )
        for commune in _communes_of(item):
            records.append(
                _unit_record(commune, UnitLevel.COMMUNE.value, province["code"], province)
            )
    return records


async def import_units(
    repository,
    data: Iterable[Mapping[str, Any]],
    root_level: str = DEFAULT_ROOT_LEVEL,
) -> Dict[str, int]:
    """
    Upserts every record of `data` through `repository`.

    Invalid records, non-root records without a parent, and repeated codes
    within the dataset are skipped and logged; the first occurrence of a
    code wins. Returns the counts of inserted, updated and skipped records.
    """
    summary = {"inserted": 0, "updated": 0, "skipped": 0}
    seen = set()
    now = utcnow()
    for raw in flatten_dataset(data):
        try:
            unit = UnitCreate.model_validate(raw)
        except ValidationError as e:
            skipped = MalformedRecord(raw, f"{e.error_count()} invalid field(s)")
            logger.warning(f"Skipping unit record {skipped.record}: {skipped.reason}")
            summary["skipped"] += 1
            continue
        if unit.parent_code is None and unit.level.value != root_level:
            logger.warning(
                f"Skipping {unit.level.value} unit '{unit.code}' without a parentCode."
            )
            summary["skipped"] += 1
            continue
        if unit.code in seen:
            logger.warning(f"Duplicate unit code '{unit.code}' in dataset, skipped.")
            summary["skipped"] += 1
            continue
        seen.add(unit.code)

        record = unit.model_dump(by_alias=True, mode="json", exclude_unset=True)
        if await repository.find_by_code(unit.code):
            await repository.update(unit.code, {**record, "updatedAt": now})
            summary["updated"] += 1
        else:
            await repository.insert({**record, "createdAt": now, "updatedAt": now})
            summary["inserted"] += 1

    logger.info(
        f"Imported units: {summary['inserted']} inserted, "
        f"{summary['updated']} updated, {summary['skipped']} skipped."
    )
    return summary
