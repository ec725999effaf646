"""Ordered fallback evaluation."""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Tuple, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

Attempt = Tuple[str, Callable[[], Optional[T]]]


def first_present(attempts: Iterable[Attempt]) -> Optional[T]:
    """Run labelled attempts in order and return the first non-None value.

    Attempts signal absence by returning None. Exceptions are not caught
    here; an attempt that may fail must map its failure to None itself.
    """
    for label, attempt in attempts:
        value = attempt()
        if value is not None:
            logger.debug("Fallback chain satisfied by %s", label)
            return value
        logger.debug("Fallback attempt %s returned nothing", label)
    return None
