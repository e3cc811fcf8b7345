"""Named criteria and their aggregate assessment."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List

from .errors import PluginCodeError
from .results import Result

LOGGER = logging.getLogger(__name__)


class Criterion(ABC):
    """A single independently checkable grading rule.

    Expected failures (missing files, wrong answers, broken submitted code)
    should come back as a non-passing ``Result``. Raising is reserved for faults
    that make the whole run meaningless.
    """

    @abstractmethod
    def check(self) -> Result:
        raise NotImplementedError


class CriterionRegistry:
    """Holds criteria under unique names, in registration order."""

    def __init__(self) -> None:
        self._criteria: Dict[str, Criterion] = {}

    def register(self, name: str, criterion: Criterion) -> None:
        if name in self._criteria:
            raise PluginCodeError(f"Cannot add criterion with same name twice ({name})")
        self._criteria[name] = criterion

    def get(self, name: str) -> Criterion:
        return self._criteria[name]

    def names(self) -> List[str]:
        return list(self._criteria)

    def __contains__(self, name: object) -> bool:
        return name in self._criteria

    def __len__(self) -> int:
        return len(self._criteria)

    def __iter__(self) -> Iterator[str]:
        return iter(self._criteria)

    def assess_all(self) -> Dict[str, Result]:
        """Check every criterion in order; the first raised fault aborts the whole assessment."""
        results: Dict[str, Result] = {}
        for name, criterion in self._criteria.items():
            LOGGER.debug("Checking criterion %s", name)
            result = criterion.check()
            if not isinstance(result, Result):
                raise PluginCodeError(
                    f"Criterion {name} returned {type(result).__name__} instead of a Result"
                )
            results[name] = result
        return results


__all__ = ["Criterion", "CriterionRegistry"]
