from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from neopipe import Result


class AbstractDecisionRepository(ABC):
    """Relational sink for fully processed decisions."""

    @abstractmethod
    def upsert(self, row: Dict[str, Any]) -> Result[str, str]:
        """Insert or refresh one row keyed by decision_reference"""
        pass

    @abstractmethod
    def get(self, decision_reference: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass
