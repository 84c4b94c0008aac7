"""Order-preserving de-duplication of decision records."""

from typing import Any, Callable, Hashable, Iterable, List, Mapping, Optional, TypeVar

T = TypeVar("T")


def dedupe_by_key(items: Iterable[T], key_fn: Callable[[T], Optional[Hashable]]) -> List[T]:
    """
    Keep the first item for every key, preserving input order.

    Items whose key is falsy are dropped.
    """
    seen = set()
    result: List[T] = []
    for item in items:
        key = key_fn(item)
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def record_identity(record: Any) -> Optional[str]:
    """Natural key of a record: pdf_url, then source_url, then decision_reference."""
    return (
        _field(record, "pdf_url")
        or _field(record, "source_url")
        or _field(record, "decision_reference")
    )


def record_url(record: Any) -> Optional[str]:
    """Key used while crawling, before references are known."""
    return _field(record, "pdf_url") or _field(record, "source_url")
