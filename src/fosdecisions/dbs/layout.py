"""On-disk layout of one dataset under the data root."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fosdecisions.utils.settings.core import AppSettings
from fosdecisions.utils.settings.factory import settings_factory

INDEX_FILENAME = "decisions-index.jsonl"


@dataclass(frozen=True)
class DatasetLayout:
    """
    Paths for every stage's files:

        <data_root>/<dataset>/decisions-index.jsonl
        <data_root>/<dataset>/pdfs/
        <data_root>/<dataset>/parsed/
        <data_root>/<dataset>/enriched/
        <data_root>/<dataset>/vectors/
        <data_root>/<dataset>/state/
    """
    root: Path
    index_path: Path
    pdf_dir: Path

    @property
    def parsed_dir(self) -> Path:
        return self.root / "parsed"

    @property
    def enriched_dir(self) -> Path:
        return self.root / "enriched"

    @property
    def vectors_dir(self) -> Path:
        return self.root / "vectors"

    @property
    def state_dir(self) -> Path:
        return self.root / "state"

    @property
    def backfill_state_path(self) -> Path:
        return self.state_dir / "backfill.json"

    def ensure_dirs(self) -> None:
        for path in (
            self.root,
            self.index_path.parent,
            self.pdf_dir,
            self.parsed_dir,
            self.enriched_dir,
            self.vectors_dir,
            self.state_dir,
        ):
            path.mkdir(parents=True, exist_ok=True)

    @classmethod
    def at(cls, root: str | Path, index_path: Optional[Path] = None, pdf_dir: Optional[Path] = None) -> "DatasetLayout":
        root = Path(root)
        return cls(
            root=root,
            index_path=Path(index_path) if index_path else root / INDEX_FILENAME,
            pdf_dir=Path(pdf_dir) if pdf_dir else root / "pdfs",
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[AppSettings] = None,
        index_path: Optional[Path] = None,
        pdf_dir: Optional[Path] = None,
    ) -> "DatasetLayout":
        settings = settings or settings_factory.create_app_settings()
        return cls.at(Path(settings.data_root) / settings.dataset, index_path=index_path, pdf_dir=pdf_dir)
