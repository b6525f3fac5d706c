#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Record Store

Storage boundary for investigation records. ``update`` is applied atomically
per record: the read, the caller's changes and the version bump happen under a
per-record lock, and an optional expected version turns it into a
compare-and-swap.
"""

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from wardcare.core.models import Investigation, InvestigationStatus
from wardcare.exceptions import NotFound, WardcareError

logger = logging.getLogger(__name__)

Changes = Union[Dict[str, Any], Callable[[Investigation], Dict[str, Any]]]


class VersionConflict(WardcareError):
    """Raised when an update's expected version no longer matches the stored record."""

    def __init__(self, record_id: str, expected: int, actual: int):
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Record {record_id} is at version {actual}, expected {expected}")


class RecordStore(ABC):
    """Minimal record store consumed by the investigation workflow."""

    def _snapshot(self) -> List[Investigation]:
        with self._registry_lock:
            return list(self._records.values())

    @abstractmethod
    def get(self, record_id: str) -> Investigation:
        """Return the latest committed record, raising NotFound when absent."""

    @abstractmethod
    def add(self, record: Investigation) -> Investigation:
        pass

    @abstractmethod
    def update(self, record_id: str, changes: Changes, expected_version: Optional[int] = None) -> Investigation:
        """
        Apply changes to one record atomically and return the new record.

        ``changes`` is either a field mapping or a function receiving the
        current record and returning one; the function runs under the
        record's lock so validation against the current state cannot race.
        """

    @abstractmethod
    def find(
        self, patient_id: Optional[str] = None, status: Optional[InvestigationStatus] = None
    ) -> List[Investigation]:
        pass


class InMemoryRecordStore(RecordStore):
    def __init__(self):
        self._records: Dict[str, Investigation] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, record_id: str) -> threading.Lock:
        with self._registry_lock:
            if record_id not in self._locks:
                self._locks[record_id] = threading.Lock()
            return self._locks[record_id]

    def get(self, record_id: str) -> Investigation:
        record = self._records.get(record_id)
        if record is None:
            raise NotFound(record_id)
        return record

    def add(self, record: Investigation) -> Investigation:
        with self._registry_lock:
            if record.id in self._records:
                raise WardcareError(f"Record already exists: {record.id}")
            self._records[record.id] = record
        self._persist()
        return record

    def update(self, record_id: str, changes: Changes, expected_version: Optional[int] = None) -> Investigation:
        with self._lock_for(record_id):
            current = self.get(record_id)
            if expected_version is not None and current.version != expected_version:
                raise VersionConflict(record_id, expected_version, current.version)

            values = changes(current) if callable(changes) else dict(changes)
            values["version"] = current.version + 1
            # Round-trip through validation so stored records are always well formed
            updated = Investigation.model_validate({**current.model_dump(), **values})
            self._records[record_id] = updated
        self._persist()
        return updated

    def find(
        self, patient_id: Optional[str] = None, status: Optional[InvestigationStatus] = None
    ) -> List[Investigation]:
        records = self._snapshot()
        if patient_id is not None:
            records = [r for r in records if r.patient_id == patient_id]
        if status is not None:
            records = [r for r in records if r.status == InvestigationStatus(status)]
        return records

    def _persist(self) -> None:
        """Hook for durable subclasses."""


class JsonFileRecordStore(InMemoryRecordStore):
    """In-memory store mirrored to a JSON file after every write."""

    def __init__(self, file_path: Union[str, Path]):
        super().__init__()
        self.file_path = Path(file_path)
        self._file_lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        if not self.file_path.exists():
            logger.info(f"No record file at {self.file_path}, starting empty")
            return
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Error decoding record file {self.file_path}: {e}")
            raise
        for raw in data.get("investigations", []):
            record = Investigation.model_validate(raw)
            self._records[record.id] = record
        logger.debug(f"Loaded {len(self._records)} investigations from {self.file_path}")

    def _persist(self) -> None:
        with self._file_lock:
            payload = {"investigations": [r.model_dump(mode="json") for r in self._snapshot()]}
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.file_path)
