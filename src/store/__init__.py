"""Record stores: the snapshot source and write target for resolved actions."""

from .base import RecordNotFoundError, RecordPatch, RecordStore, StoreError
from .http_store import HttpRecordStore
from .json_store import JsonRecordStore

__all__ = [
    "HttpRecordStore",
    "JsonRecordStore",
    "RecordNotFoundError",
    "RecordPatch",
    "RecordStore",
    "StoreError",
]
