"""Persisted state for the windowed backfill runner."""

from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field
from loguru import logger

from fosdecisions.models.decision import utc_now
from fosdecisions.utils.file_utils import read_json, write_json


class WindowStatus(StrEnum):
    pending = "pending"
    running = "running"
    done = "done"
    failed = "failed"


class BackfillWindow(BaseModel):
    """One [start, end] date window, both ends inclusive (YYYY-MM-DD)."""
    start: str
    end: str
    status: WindowStatus = WindowStatus.pending
    attempts: int = 0
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.start, self.end)

    def mark(self, status: WindowStatus, error: Optional[str] = None) -> None:
        self.status = status
        self.last_error = error
        self.updated_at = utc_now()


class BackfillState(BaseModel):
    """Backfill progress, saved after every window transition."""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    config: Dict[str, Any] = Field(default_factory=dict)
    windows: List[BackfillWindow] = Field(default_factory=list)

    @classmethod
    def fresh(cls, windows: List[Tuple[str, str]], config: Dict[str, Any]) -> "BackfillState":
        return cls(config=config, windows=[BackfillWindow(start=s, end=e) for s, e in windows])

    def matches(self, windows: List[Tuple[str, str]]) -> bool:
        return [w.key for w in self.windows] == list(windows)

    def save(self, file_path: str | Path) -> None:
        self.updated_at = utc_now()
        write_json(file_path, self.model_dump(mode="json"))

    @classmethod
    def load(cls, file_path: str | Path) -> Optional["BackfillState"]:
        """Load saved state; None when the file is missing or unreadable."""
        path = Path(file_path)
        if not path.exists():
            return None
        try:
            return cls.model_validate(read_json(path))
        except Exception as e:
            logger.warning(f"Ignoring unreadable backfill state {path}: {e}")
            return None
