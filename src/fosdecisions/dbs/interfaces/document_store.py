from abc import ABC, abstractmethod
from typing import Any, Dict, List


class AbstractDocumentStore(ABC):
    """Keyed store of one JSON document per decision."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys in sorted order"""
        pass

    @abstractmethod
    def read(self, key: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def write(self, key: str, document: Dict[str, Any]) -> None:
        pass

    def count(self) -> int:
        return len(self.keys())
