"""Unit tests for dataset flattening, upsert import and the import command."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from app.scripts import import_units as import_command
from app.services.unit_importer import flatten_dataset, import_units
from app.tests.fakes import InMemoryUnitRepository, make_unit


NESTED = [
    {
        "code": "01",
        "name": "Thành phố Hà Nội",
        "englishName": "Ha Noi City",
        "districts": [
            {
                "code": "001",
                "name": "Quận Ba Đình",
                "communes": [
                    {"code": "00001", "name": "Phường Phúc Xá"},
                    {"code": "00004", "name": "Phường Trúc Bạch"},
                ],
            }
        ],
    }
]

TWO_TIER = [
    {
        "code": "79",
        "name": "Thành phố Hồ Chí Minh",
        "wards": [
            {"code": "26734", "name": "Phường Sài Gòn", "decree": "1685/NQ-UBTVQH15"}
        ],
    }
]


def _levels(records) -> list[tuple[str, str, str | None]]:
    return [(r["code"], r["level"], r["parentCode"]) for r in records]


def test_flatten_nested_dataset_links_each_tier() -> None:
    records = flatten_dataset(NESTED)

    assert _levels(records) == [
        ("01", "province", None),
        ("001", "district", "01"),
        ("00001", "commune", "001"),
        ("00004", "commune", "001"),
    ]
    assert records[0]["englishName"] == "Ha Noi City"
    assert records[3]["provinceCode"] == "01"
    assert records[3]["provinceName"] == "Thành phố Hà Nội"


def test_flatten_two_tier_dataset_puts_wards_under_province() -> None:
    records = flatten_dataset(TWO_TIER)

    assert _levels(records) == [("79", "province", None), ("26734", "commune", "79")]
    assert records[1]["decree"] == "1685/NQ-UBTVQH15"
    assert "provinceCode" not in records[0]


def test_flatten_keeps_flat_records() -> None:
    # Numeric codes in source files come out as strings
    flat = [
        {
            "code": 760,
            "name": "Quận 1",
            "level": "district",
            "parentCode": 79,
            "boundary": {"type": "Polygon"},
        }
    ]

    assert flatten_dataset(flat) == [
        {
            "code": "760",
            "name": "Quận 1",
            "level": "district",
            "parentCode": "79",
            "boundary": {"type": "Polygon"},
        }
    ]


def test_import_inserts_then_updates() -> None:
    repository = InMemoryUnitRepository()

    first = asyncio.run(import_units(repository, TWO_TIER))
    assert first == {"inserted": 2, "updated": 0, "skipped": 0}
    stored = asyncio.run(repository.find_by_code("26734"))
    assert stored["parentCode"] == "79"
    assert stored["createdAt"] == stored["updatedAt"]

    renamed = [{**TWO_TIER[0], "name": "TP. Hồ Chí Minh", "wards": []}]
    second = asyncio.run(import_units(repository, renamed))
    assert second == {"inserted": 0, "updated": 1, "skipped": 0}
    assert asyncio.run(repository.find_by_code("79"))["name"] == "TP. Hồ Chí Minh"
    assert len(repository.units) == 2
    # Imports do not write change history
    assert repository.history == []


def test_import_skips_invalid_orphan_and_repeated_records() -> None:
    repository = InMemoryUnitRepository([make_unit("79", "province", "Hồ Chí Minh")])
    dataset = [
        {"code": "26734", "name": "Phường Sài Gòn", "level": "commune", "parentCode": "79"},
        {"code": "26734", "name": "Phường Bến Nghé", "level": "commune", "parentCode": "79"},
        {"code": "26737", "name": "  ", "level": "commune", "parentCode": "79"},
        {"code": "26740", "name": "Phường Tân Định", "level": "hamlet", "parentCode": "79"},
        {"name": "Phường không mã", "level": "commune", "parentCode": "79"},
        {"code": "26743", "name": "Phường Đa Kao", "level": "commune"},
    ]

    summary = asyncio.run(import_units(repository, dataset))

    assert summary == {"inserted": 1, "updated": 0, "skipped": 5}
    assert asyncio.run(repository.find_by_code("26734"))["name"] == "Phường Sài Gòn"
    assert asyncio.run(repository.find_by_code("26743")) is None


def test_import_respects_root_level() -> None:
    repository = InMemoryUnitRepository()
    dataset = [{"code": "760", "name": "Quận 1", "level": "district"}]

    assert asyncio.run(import_units(repository, dataset))["skipped"] == 1
    assert asyncio.run(import_units(repository, dataset, root_level="district"))["inserted"] == 1


def test_load_dataset_requires_a_list(tmp_path: Path) -> None:
    path = tmp_path / "units.json"
    path.write_text(json.dumps({"code": "79"}), encoding="utf-8")

    with pytest.raises(ValueError):
        import_command.load_dataset(str(path))


def test_import_command(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    path = tmp_path / "units.json"
    path.write_text(json.dumps(TWO_TIER, ensure_ascii=False), encoding="utf-8")
    repository = InMemoryUnitRepository()
    calls: list[str] = []

    async def fake_init() -> None:
        calls.append("init")

    async def fake_close() -> None:
        calls.append("close")

    monkeypatch.setattr(import_command, "init_database", fake_init)
    monkeypatch.setattr(import_command, "close_database", fake_close)
    monkeypatch.setattr(import_command, "UnitRepository", lambda: repository)

    import_command.main([str(path)])

    assert calls == ["init", "close"]
    assert [u["code"] for u in repository.units] == ["79", "26734"]
    assert "Inserted 2, updated 0, skipped 0 units" in capsys.readouterr().out
