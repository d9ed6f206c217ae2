# app/errors.py
from typing import Any, Mapping, Optional


class AddressKitError(Exception):
    """Base class for errors raised by the AddressKit service."""


class StoreUnavailable(AddressKitError):
    """The record store could not be reached or failed to answer."""


class MalformedRecord(AddressKitError):
    """A unit record is missing a field the tree builder cannot do without."""

    def __init__(self, record: Optional[Mapping[str, Any]], reason: str):
        super().__init__(reason)
        self.record = record
        self.reason = reason


class DuplicateUnitCode(AddressKitError):
    def __init__(self, code: str):
        super().__init__(f"Duplicate unit code '{code}'.")
        self.code = code


class CyclicTreeError(AddressKitError):
    """A tree node was reached again while walking its own descendants."""

    def __init__(self, code: Any):
        super().__init__(f"Unit '{code}' is its own descendant.")
        self.code = code


class CycleDetectedWarning(UserWarning):
    """Emitted when the parent links of a record set form a cycle."""
