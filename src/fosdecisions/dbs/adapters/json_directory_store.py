"""One pretty-printed JSON file per decision in a flat directory."""

from pathlib import Path
from typing import Any, Dict, List

from fosdecisions.dbs.interfaces.document_store import AbstractDocumentStore
from fosdecisions.utils.file_utils import read_json, write_json


class JsonDirectoryStore(AbstractDocumentStore):
    """Stage output directory (parsed/, enriched/, vectors/)."""

    suffix = ".json"

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}{self.suffix}"

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(path.stem for path in self.directory.glob(f"*{self.suffix}") if path.is_file())

    def read(self, key: str) -> Dict[str, Any]:
        return read_json(self.path_for(key))

    def write(self, key: str, document: Dict[str, Any]) -> None:
        write_json(self.path_for(key), document)
