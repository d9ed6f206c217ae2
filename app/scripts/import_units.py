# app/scripts/import_units.py
"""
Imports an administrative-unit JSON dataset into MongoDB.

    addresskit-import data/vietnam-provinces.json
"""
import argparse
import asyncio
import json
import logging
from typing import List, Optional

from app.configs import get_setting
from app.services.db import close_database, init_database
from app.services.tree_builder import DEFAULT_ROOT_LEVEL
from app.services.unit_importer import import_units
from app.services.unit_repository import UnitRepository

logger = logging.getLogger(__name__)


def load_dataset(path: str) -> list:
    with open(path, "r", encoding="utf-8-sig") as file:
        data = json.load(file)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of provinces or units")
    return data


async def run_import(path: str) -> dict:
    data = load_dataset(path)
    await init_database()
    try:
        return await import_units(
            UnitRepository(),
            data,
            root_level=get_setting("ROOT_LEVEL", "tree", "root_level", DEFAULT_ROOT_LEVEL),
        )
    finally:
        await close_database()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Import administrative units from a JSON dataset."
    )
    parser.add_argument("path", help="JSON file: nested provinces or flat unit records")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=str(get_setting("LOG_LEVEL", "app", "log_level", "INFO")).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    summary = asyncio.run(run_import(args.path))
    print(
        f"Inserted {summary['inserted']}, updated {summary['updated']}, "
        f"skipped {summary['skipped']} units"
    )


if __name__ == "__main__":
    main()
