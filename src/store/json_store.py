"""JSON-file record store at ~/taskresolver/tasks.json."""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Sequence

import structlog

from matching.errors import RecordValidationError
from matching.models import CandidateRecord, parse_record, parse_snapshot
from shared_types import RecordKind

from .base import RecordNotFoundError, RecordPatch, RecordStore, StoreError, check_kind, patch_to_store

logger = structlog.get_logger()


def _empty_document() -> dict:
    doc: dict = {kind.value: [] for kind in RecordKind}
    doc["lastUpdated"] = datetime.now().isoformat()
    return doc


class JsonRecordStore(RecordStore):
    """Single JSON document {work: [...], personal: [...], lastUpdated}.

    Every call re-reads the file; writes replace it whole.
    """

    def __init__(self, path: str | Path = "~/taskresolver/tasks.json"):
        self.path = Path(path).expanduser()

    def _load(self) -> dict:
        if not self.path.exists():
            self._save(_empty_document())
        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read().strip()
        except OSError as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e
        if not content:
            return _empty_document()
        try:
            doc = json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreError(f"Task file {self.path} is not valid JSON: {e}") from e
        if not isinstance(doc, dict):
            raise StoreError(f"Task file {self.path} must hold a JSON object")
        for kind in RecordKind:
            entries = doc.get(kind.value)
            if entries is None:
                doc[kind.value] = []
                continue
            if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
                raise StoreError(f"Task file {self.path}: '{kind.value}' must be a list of task objects")
        return doc

    def _save(self, doc: dict) -> None:
        doc["lastUpdated"] = datetime.now().isoformat()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e

    def _locate(self, doc: dict, kind: RecordKind, record_id: str) -> int:
        for i, raw in enumerate(doc[kind.value]):
            if str(raw.get("id")) == record_id:
                return i
        raise RecordNotFoundError(f"No {kind} record with id {record_id}")

    def _parse(self, raw: dict, kind: RecordKind) -> CandidateRecord:
        try:
            return parse_record(raw, kind)
        except RecordValidationError as e:
            raise StoreError(str(e)) from e

    def fetch_all(self) -> dict[RecordKind, list[CandidateRecord]]:
        doc = self._load()
        try:
            return parse_snapshot(doc)
        except RecordValidationError as e:
            raise StoreError(str(e)) from e

    def create(self, kind: RecordKind | str, text: str, sub_items: Sequence[str] = ()) -> CandidateRecord:
        kind = check_kind(kind)
        now = datetime.now().isoformat()
        raw = {
            "id": uuid.uuid4().hex,
            "text": text,
            "completed": False,
            "subItems": [
                {"id": uuid.uuid4().hex, "text": item, "completed": False, "addedAt": now}
                for item in sub_items
            ],
            "created": now,
        }
        record = self._parse(raw, kind)

        doc = self._load()
        doc[kind.value].append(record.to_store())
        self._save(doc)
        logger.info("record_created", kind=str(kind), record_id=record.id, items=len(sub_items))
        return record

    def mutate(self, kind: RecordKind | str, record_id: str, patch: RecordPatch) -> CandidateRecord:
        kind = check_kind(kind)
        doc = self._load()
        idx = self._locate(doc, kind, record_id)

        raw = {**doc[kind.value][idx], **patch_to_store(patch)}
        raw["lastModified"] = datetime.now().isoformat()
        record = self._parse(raw, kind)

        doc[kind.value][idx] = record.to_store()
        self._save(doc)
        logger.debug("record_mutated", kind=str(kind), record_id=record_id, fields=sorted(patch))
        return record

    def delete(self, kind: RecordKind | str, record_id: str) -> CandidateRecord:
        kind = check_kind(kind)
        doc = self._load()
        idx = self._locate(doc, kind, record_id)

        record = self._parse(doc[kind.value].pop(idx), kind)
        self._save(doc)
        logger.info("record_deleted", kind=str(kind), record_id=record_id)
        return record
