"""
Fan-out/fan-in helper shared by the dependency resolver and the hook runner.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

T = TypeVar("T")


async def gather_all(
    awaitables: Iterable[Awaitable[T]],
    on_error: Callable[[Exception], T],
) -> List[T]:
    """
    Run the awaitables concurrently and return once every one of them has finished.

    A failing awaitable never cuts the join short: its exception is handed to
    on_error, whose return value takes its place in the results. Results keep the
    order of the awaitables.
    """
    outcomes = await asyncio.gather(*awaitables, return_exceptions=True)

    results: List[T] = []
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            results.append(on_error(outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results.append(outcome)
    return results
