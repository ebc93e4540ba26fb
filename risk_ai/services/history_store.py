"""
Assessment history persistence

The whole history is one JSON document holding a single list under a
well-known key, most recent record first. Nothing else writes this file.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter

from risk_ai.schemas.assessment import AssessmentRecord

log = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[AssessmentRecord])


class HistoryStore:
    """Ordered collection of assessment records backed by a JSON file"""

    def __init__(self, path, key: str = "assessment_history"):
        self.path = Path(path)
        self.key = key
        self._lock = threading.Lock()

    def load(self) -> List[AssessmentRecord]:
        """
        Read the stored collection

        A missing file is an empty history. An unreadable one is moved aside
        to ``<name>.corrupt`` and also reads as empty, so the next write does
        not destroy what was there.
        """
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return _records_adapter.validate_python(payload.get(self.key, []))
        except (ValueError, AttributeError, OSError) as e:
            # ValueError covers JSONDecodeError, UnicodeDecodeError and ValidationError
            log.warning("history: unreadable %s, starting empty: %s", self.path, e)
            self._set_aside()
            return []

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_name(self.path.name + ".corrupt")

    def _set_aside(self) -> None:
        try:
            os.replace(self.path, self.corrupt_path)
        except OSError as e:
            log.error("history: could not move %s aside: %s", self.path, e)
            return
        log.warning("history: previous contents kept at %s", self.corrupt_path)

    def list_all(self) -> List[AssessmentRecord]:
        return self.load()

    def get(self, record_id: str) -> Optional[AssessmentRecord]:
        for record in self.load():
            if record.id == record_id:
                return record
        return None

    def upsert(self, record: AssessmentRecord) -> None:
        """Insert the record at the front, replacing any record with the same id"""
        with self._lock:
            records = [r for r in self.load() if r.id != record.id]
            self._save([record] + records)
        log.info("history: saved %s (%d hazards)", record.id, len(record.hazards))

    def delete(self, record_id: str) -> bool:
        with self._lock:
            records = self.load()
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) == len(records):
                return False
            self._save(remaining)
        log.info("history: deleted %s", record_id)
        return True

    def clear(self) -> None:
        with self._lock:
            self._save([])

    def _save(self, records: List[AssessmentRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {self.key: _records_adapter.dump_python(records, mode="json")}
        # Write to a sibling temp file and swap it in
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
