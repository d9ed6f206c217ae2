# app/services/address_converter.py
import logging
import re
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from app.models.unit import UnitLevel

logger = logging.getLogger(__name__)

# Longer prefixes first so "Thành phố" is not eaten piecewise.
ADMINISTRATIVE_PREFIXES = re.compile(
    r"Thành phố|Thị trấn|Thị xã|Tỉnh|TP\.?|Huyện|Quận|Xã|Phường",
    re.IGNORECASE,
)


def clean_name(text: str) -> str:
    """Strips administrative prefixes such as 'Tỉnh' or 'Phường' from a name."""
    return re.sub(r"\s+", " ", ADMINISTRATIVE_PREFIXES.sub("", text)).strip()


async def _first_match(
    repository, name: str, level: UnitLevel, parent_code: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    if not name:
        return None
    matches = await repository.find_many(
        level=level.value, parent_code=parent_code, name=name
    )
    return matches[0] if matches else None


async def convert_address(repository, address: str) -> Dict[str, Any]:
    """
    Resolves a "province, district, commune" address to unit names and codes.

    The district is looked up under the province and the commune under the
    district. When no district matches, the commune is looked up directly under
    the province, which is how two-tier (province/commune) data is organised.
    """
    parts = [part.strip() for part in address.split(",")]
    if len(parts) < 3:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Address must have at least 3 levels (province, district, commune).",
        )
    province_name, district_name, commune_name = (clean_name(p) for p in parts[:3])

    province = await _first_match(repository, province_name, UnitLevel.PROVINCE)
    district = None
    commune = None
    if province:
        district = await _first_match(
            repository, district_name, UnitLevel.DISTRICT, province["code"]
        )
        commune_parent = district or province
        commune = await _first_match(
            repository, commune_name, UnitLevel.COMMUNE, commune_parent["code"]
        )

    logger.info(
        f"Converted address '{address}': province={bool(province)}, "
        f"district={bool(district)}, commune={bool(commune)}"
    )
    return {
        "original": address,
        "matched": {
            "province": province["name"] if province else None,
            "district": district["name"] if district else None,
            "commune": commune["name"] if commune else None,
        },
        "codes": {
            "province": province["code"] if province else None,
            "district": district["code"] if district else None,
            "commune": commune["code"] if commune else None,
        },
        "found": bool(province or district or commune),
    }
