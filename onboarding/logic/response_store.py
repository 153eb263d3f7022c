"""Answer storage keyed by canonical (string) question id."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, Mapping, Optional

from onboarding.logic.catalog import QuestionId, canonical_id


class ResponseStore:
    """Mutable mapping of question id -> answer value.

    `set` replaces the whole value; structured answers are never deep-merged.
    """

    def __init__(
        self,
        responses: Optional[Mapping[Any, Any]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._defaults: Dict[str, Any] = {
            canonical_id(k): v for k, v in (defaults or {}).items()
        }
        self._data: Dict[str, Any] = {}
        if responses is None:
            self.seed_defaults()
        else:
            self.merge(responses)

    def seed_defaults(self) -> None:
        """Replace the contents with a fresh copy of the seeded defaults."""
        self._data = copy.deepcopy(self._defaults)

    def get(self, qid: QuestionId, default: Any = None) -> Any:
        return self._data.get(canonical_id(qid), default)

    def set(self, qid: QuestionId, value: Any) -> None:
        self._data[canonical_id(qid)] = copy.deepcopy(value)

    def discard(self, qid: QuestionId) -> None:
        self._data.pop(canonical_id(qid), None)

    def merge(self, other: Mapping[Any, Any]) -> None:
        """Last-write-wins key update from another response map."""
        if isinstance(other, ResponseStore):
            other = other.snapshot()
        for k, v in other.items():
            self._data[canonical_id(k)] = copy.deepcopy(v)

    def replace(self, responses: Mapping[Any, Any]) -> None:
        """Drop every answer and load `responses` as-is (no defaults)."""
        self._data = {}
        self.merge(responses)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def copy(self) -> "ResponseStore":
        clone = ResponseStore(responses={}, defaults=self._defaults)
        clone._data = self.snapshot()
        return clone

    @property
    def defaults(self) -> Dict[str, Any]:
        return copy.deepcopy(self._defaults)

    def __contains__(self, qid: object) -> bool:
        try:
            return canonical_id(qid) in self._data  # type: ignore[arg-type]
        except ValueError:
            return False

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def items(self):
        return self.snapshot().items()


__all__ = ["ResponseStore"]
