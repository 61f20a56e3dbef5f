"""Persisted, append-only log of completed assessment runs."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from cognigen.exceptions import HistoryStoreError
from cognigen.models import AssessmentRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(List[AssessmentRecord])


class HistoryStore:
    """JSON-file backed history of AssessmentRecords.

    The file is read once on construction. Records are only ever appended;
    every append rewrites the file atomically.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._records: List[AssessmentRecord] = self._read()

    def _read(self) -> List[AssessmentRecord]:
        if not self.path.exists():
            return []
        try:
            return _RECORDS.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error(f"Failed to parse history file {self.path}: {e}")
            return []

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> List[AssessmentRecord]:
        """All records, newest first."""
        return list(reversed(self._records))

    def get(self, record_id: str) -> Optional[AssessmentRecord]:
        """Look up a record by its session id."""
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def append(self, record: AssessmentRecord) -> None:
        """Append a record and persist the whole log.

        Raises:
            HistoryStoreError: If the file cannot be written
        """
        records = self._records + [record]
        payload = json.dumps(
            _RECORDS.dump_python(records, mode="json"), indent=2
        )
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise HistoryStoreError(f"Failed to write history file {self.path}: {e}") from e

        self._records = records
        logger.info(
            f"Recorded {record.mode.value} assessment {record.id} "
            f"({record.score}%, {record.total_questions} questions)"
        )
