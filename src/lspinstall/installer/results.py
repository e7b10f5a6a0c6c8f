"""
Outcome of ensuring a package (and its dependencies) is installed.
"""

import dataclasses
from typing import Iterable, Iterator


@dataclasses.dataclass(frozen=True)
class InstallResult:
    """
    success: every step of the traversal succeeded
    was_updated: the installed version of at least one package changed
    """

    success: bool
    was_updated: bool

    def __iter__(self) -> Iterator[bool]:
        yield self.success
        yield self.was_updated


def aggregate(results: Iterable[InstallResult]) -> InstallResult:
    """
    Combine sibling results: success is the AND, was_updated the OR.

    No results aggregate to (True, False).
    """
    success = True
    was_updated = False
    for result in results:
        success = success and result.success
        was_updated = was_updated or result.was_updated
    return InstallResult(success, was_updated)
