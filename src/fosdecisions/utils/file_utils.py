"""File utility functions for reading and writing pipeline files."""

import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from loguru import logger


def read_json(file_path: str | Path) -> Any:
    """Read a JSON document from a file.

    Args:
        file_path: Path to the JSON file (can be string or Path object)

    Returns:
        The decoded JSON value

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the path is not a file
    """
    path = Path(file_path)

    if not path.exists():
        logger.error(f"File not found: {path}")
        raise FileNotFoundError(f"JSON file not found: {path}")

    if not path.is_file():
        logger.error(f"Path is not a file: {path}")
        raise ValueError(f"Path is not a file: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(file_path: str | Path, data: Any) -> Path:
    """Write ``data`` as pretty JSON (2-space indent, trailing newline).

    Parent directories are created as needed. The document is written to a
    sibling temp file and moved into place, so readers never see a partial file.
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug(f"Wrote JSON file: {path}")
    return path


def read_jsonl(file_path: str | Path) -> List[Dict[str, Any]]:
    """Read JSON lines, skipping blank and malformed lines.

    A missing file reads as an empty list.
    """
    path = Path(file_path)
    if not path.exists():
        return []

    rows: List[Dict[str, Any]] = []
    with open(path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping malformed line {line_number} in {path}: {e}")
    return rows


def write_jsonl(file_path: str | Path, rows: Iterable[Dict[str, Any]], append: bool = False) -> int:
    """Write one compact JSON object per line and return the number written."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(path, 'a' if append else 'w', encoding='utf-8') as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False, default=str))
            f.write("\n")
            count += 1
    return count


def read_bytes_safe(file_path: str | Path) -> Optional[bytes]:
    """Read a file's bytes, returning None when it is missing or unreadable."""
    try:
        return Path(file_path).read_bytes()
    except OSError as e:
        logger.debug(f"Could not read {file_path}: {e}")
        return None


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def relative_to_cwd(path: str | Path) -> str:
    """Path relative to the working directory when beneath it, else absolute."""
    resolved = Path(path).resolve()
    try:
        return str(resolved.relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(resolved)
