from dataclasses import dataclass, field
from typing import List

from loguru import logger
from neopipe import Result


@dataclass
class StageReport:
    """Per-record outcome tally for one stage run."""
    stage: str
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def record(self, result: Result) -> None:
        if result.is_ok():
            self.processed += 1
        else:
            self.failed += 1
            self.errors.append(str(result.unwrap_err()))

    def skip(self) -> None:
        self.skipped += 1

    def log_summary(self) -> None:
        logger.info(
            f"{self.stage} complete: {self.processed} processed, "
            f"{self.skipped} skipped, {self.failed} failed"
        )
