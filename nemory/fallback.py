"""Ordered fallback: try strategies in order and keep the first acceptable result.

Used for both the AI backend chain and the content window widening.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Strategy(Generic[T]):
    """A named zero-argument coroutine factory."""

    name: str
    run: Callable[[], Awaitable[T]]


@dataclass
class Attempt:
    """Outcome of one strategy that did not produce an accepted result."""

    name: str
    reason: str
    error: Exception | None = None


@dataclass
class FallbackResult(Generic[T]):
    value: T | None
    strategy: str | None
    attempts: list[Attempt] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.strategy is not None


async def first_success(
    strategies: Sequence[Strategy[T]],
    accept: Callable[[T], bool] = bool,
    catch: tuple[type[Exception], ...] = (Exception,),
) -> FallbackResult[T]:
    """Run *strategies* in order and return the first result satisfying *accept*.

    Exceptions listed in *catch* are recorded and the next strategy is tried;
    anything else propagates. Never raises on exhaustion: the returned result
    has ``succeeded == False`` and the recorded attempts.
    """
    attempts: list[Attempt] = []
    last_value: T | None = None

    for strategy in strategies:
        try:
            value = await strategy.run()
        except catch as e:
            logger.warning("Strategy %s failed: %s", strategy.name, e)
            attempts.append(Attempt(strategy.name, str(e) or type(e).__name__, e))
            continue

        if accept(value):
            return FallbackResult(value=value, strategy=strategy.name, attempts=attempts)

        logger.info("Strategy %s produced no acceptable result", strategy.name)
        attempts.append(Attempt(strategy.name, "rejected"))
        last_value = value

    return FallbackResult(value=last_value, strategy=None, attempts=attempts)
