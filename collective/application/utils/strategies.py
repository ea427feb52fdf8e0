from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from collective.application.exceptions import CRMUpstreamError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strategy(Generic[T]):
    name: str
    run: Callable[[], T | None]


def first_result(strategies: list[Strategy[T]]) -> tuple[str, T] | None:
    """
    Try each strategy in order and return (name, result) for the first one that
    yields something. A strategy that fails with a CRM error is logged and
    skipped; any other exception propagates.
    """
    for strategy in strategies:
        try:
            result = strategy.run()
        except CRMUpstreamError as e:
            logger.warning("Strategy failed", extra={"strategy": strategy.name, "error": str(e)})
            continue
        if result is not None:
            logger.info("Strategy matched", extra={"strategy": strategy.name})
            return strategy.name, result
    return None
