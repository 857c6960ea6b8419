"""Ordered fallback helpers shared by the locator, extractor and classifier.

A strategy is a named zero-argument coroutine factory returning one of
``Accepted``, ``Insufficient`` or ``Failed``. ``first_acceptable`` walks the
list and stops at the first ``Accepted``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
O = TypeVar("O")


@dataclass(frozen=True)
class Accepted(Generic[T]):
    value: T


@dataclass(frozen=True)
class Insufficient:
    reason: str = ""
    partial: Any = None


@dataclass(frozen=True)
class Failed:
    reason: str
    error: Exception | None = None


StrategyResult = Accepted | Insufficient | Failed
Strategy = tuple[str, Callable[[], Awaitable[StrategyResult]]]


async def first_acceptable(
    strategies: Sequence[Strategy],
) -> tuple[Accepted | None, list[tuple[str, StrategyResult]]]:
    """Run strategies in order; return the first Accepted plus the outcome trail."""
    trail: list[tuple[str, StrategyResult]] = []
    for name, run in strategies:
        try:
            result = await run()
        except Exception as exc:
            logger.exception("Strategy %s raised", name)
            result = Failed(reason=str(exc) or type(exc).__name__, error=exc)
        trail.append((name, result))
        if isinstance(result, Accepted):
            return result, trail
        logger.debug("Strategy %s not accepted: %s", name, result)
    return None, trail


async def attempt_in_order(
    options: Sequence[O],
    call: Callable[[O], Awaitable[T]],
    is_terminal: Callable[[Exception], bool] = lambda _exc: False,
) -> T:
    """Try ``call`` with each option until one succeeds.

    Re-raises the last error once every option failed, or immediately when
    ``is_terminal`` says no other option can succeed.
    """
    if not options:
        raise ValueError("attempt_in_order needs at least one option")

    last_error: Exception | None = None
    for option in options:
        try:
            return await call(option)
        except Exception as exc:
            last_error = exc
            if is_terminal(exc):
                logger.warning("Attempt %s failed terminally: %s", option, exc)
                break
            logger.warning("Attempt %s failed: %s", option, exc)
    assert last_error is not None
    raise last_error
