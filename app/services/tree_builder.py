# app/services/tree_builder.py
"""
Rebuilds the administrative hierarchy from a flat list of unit records.

Records are linked through `parentCode`. The tree is a derived view: it is
recomputed from the complete record set on every call and shares no state
between calls.
"""
import logging
import warnings
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Union

from pydantic import BaseModel

from app.errors import (
    CycleDetectedWarning,
    CyclicTreeError,
    DuplicateUnitCode,
    MalformedRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_ROOT_LEVEL = "province"

UnitRecord = Union[Mapping[str, Any], BaseModel]
TreeNode = Dict[str, Any]


class TreeAssembly(NamedTuple):
    forest: List[TreeNode]
    nodes: Dict[str, TreeNode]
    skipped: List[MalformedRecord]
    cycles: List[List[str]]


def _as_mapping(unit: UnitRecord) -> Mapping[str, Any]:
    if isinstance(unit, BaseModel):
        return unit.model_dump(by_alias=True)
    return unit


def _level_value(level: Any) -> Any:
    return getattr(level, "value", level)


def find_cycles(parents: Mapping[str, str]) -> List[List[str]]:
    """
    Returns every cycle in a child -> parent mapping, each as the list of
    codes in walk order. Each code is visited once.
    """
    done = set()
    cycles = []
    for start in parents:
        path: List[str] = []
        on_path: Dict[str, int] = {}
        code: Optional[str] = start
        while code is not None and code not in done and code not in on_path:
            on_path[code] = len(path)
            path.append(code)
            code = parents.get(code)
        if code is not None and code in on_path:
            cycles.append(path[on_path[code]:])
        done.update(path)
    return cycles


def assemble_tree(
    units: Optional[Iterable[UnitRecord]],
    root_level: str = DEFAULT_ROOT_LEVEL,
) -> TreeAssembly:
    """
    Links unit records into a forest.

    Every node is a shallow copy of its record plus a `children` list, owned
    by the returned `nodes` mapping; the forest and all `children` lists hold
    references into it. A unit is attached under its parent when `parentCode`
    resolves to another unit, becomes a root when its level is `root_level`,
    and is left out of the forest otherwise. Sibling order follows input order.

    Cycles in the parent links are kept as they are (the nodes involved end up
    as each other's children and are unreachable from the forest); they are
    reported in `cycles` and through a CycleDetectedWarning.

    Raises DuplicateUnitCode if two records share a code.
    """
    records: List[Mapping[str, Any]] = []
    nodes: Dict[str, TreeNode] = {}
    skipped: List[MalformedRecord] = []

    for unit in units or ():
        record = _as_mapping(unit)
        code = record.get("code") if record is not None else None
        if code is None or (isinstance(code, str) and not code.strip()):
            note = MalformedRecord(record, "unit record has no code")
            logger.warning(f"Skipping malformed unit record: {record!r}")
            skipped.append(note)
            continue
        if code in nodes:
            raise DuplicateUnitCode(code)
        nodes[code] = {**record, "children": []}
        records.append(record)

    forest: List[TreeNode] = []
    parents: Dict[str, str] = {}
    root_level = _level_value(root_level)

    for record in records:
        code = record["code"]
        parent_code = record.get("parentCode")
        node = nodes[code]
        if parent_code and parent_code != code and parent_code in nodes:
            nodes[parent_code]["children"].append(node)
            parents[code] = parent_code
        elif _level_value(record.get("level")) == root_level:
            forest.append(node)
        else:
            logger.debug(
                f"Unit '{code}' left out of the tree: parent '{parent_code}' "
                f"is unresolved and level '{record.get('level')}' is not a root level."
            )

    cycles = find_cycles(parents)
    for cycle in cycles:
        warnings.warn(
            f"Parent links form a cycle: {' -> '.join(cycle)} -> {cycle[0]}",
            CycleDetectedWarning,
            stacklevel=2,
        )

    return TreeAssembly(forest=forest, nodes=nodes, skipped=skipped, cycles=cycles)


def build_tree(
    units: Optional[Iterable[UnitRecord]],
    root_level: str = DEFAULT_ROOT_LEVEL,
) -> List[TreeNode]:
    """Returns only the forest of `assemble_tree`."""
    return assemble_tree(units, root_level).forest


def serialize_forest(forest: Iterable[TreeNode]) -> List[Dict[str, Any]]:
    """
    Copies a forest into plain nested dicts. Raises CyclicTreeError when a node
    is reached again below itself instead of recursing forever.
    """
    ancestors: set = set()

    def _copy(node: TreeNode) -> Dict[str, Any]:
        if id(node) in ancestors:
            raise CyclicTreeError(node.get("code"))
        ancestors.add(id(node))
        try:
            copied = {key: value for key, value in node.items() if key != "children"}
            copied["children"] = [_copy(child) for child in node.get("children", [])]
        finally:
            ancestors.discard(id(node))
        return copied

    return [_copy(root) for root in forest]
