"""Ordered fallback strategies for best-effort browser interactions."""

from typing import Callable, Iterable, Tuple

from loguru import logger

Strategy = Tuple[Callable[[], bool], Callable[[], None]]


def run_first(strategies: Iterable[Strategy], label: str = "strategy") -> bool:
    """
    Run the action of the first strategy whose predicate holds.

    Predicates and actions may raise; those errors are logged at DEBUG and
    the next strategy is tried. Returns True once an action completes.
    """
    for predicate, action in strategies:
        try:
            if not predicate():
                continue
            action()
            return True
        except Exception as e:
            logger.debug(f"{label} attempt failed: {e}")
    return False
