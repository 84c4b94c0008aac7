"""The discovery index: one decision record per JSON line."""

from pathlib import Path
from typing import Iterable, List

from loguru import logger

from fosdecisions.core.dedupe import dedupe_by_key, record_identity
from fosdecisions.models.decision import DecisionRecord
from fosdecisions.utils.file_utils import read_jsonl, write_jsonl


class DecisionIndexStore:
    """Reads and writes decisions-index.jsonl."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> List[DecisionRecord]:
        """All valid records; malformed lines and rows are skipped with a warning."""
        records: List[DecisionRecord] = []
        for line_number, row in enumerate(read_jsonl(self.path), start=1):
            try:
                records.append(DecisionRecord.model_validate(row))
            except Exception as e:
                logger.warning(f"Skipping invalid index row {line_number} in {self.path}: {e}")
        return records

    def write(self, records: Iterable[DecisionRecord], append: bool = False) -> int:
        count = write_jsonl(self.path, (record.to_json_dict() for record in records), append=append)
        logger.info(f"{'Appended' if append else 'Wrote'} {count} rows to {self.path}")
        return count

    def dedupe(self) -> int:
        """Rewrite the index keeping the first row per identity; returns the row count."""
        records = dedupe_by_key(self.read(), record_identity)
        self.write(records)
        return len(records)
