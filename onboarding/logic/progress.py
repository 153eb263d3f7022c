"""Progress percentage for the active flow.

Terminal questions count toward neither side of the ratio. The denominator is
the set of countable ids on the projected path through the catalog; the
numerator is the visited ids that lie on that path.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from onboarding.logic.catalog import QuestionCatalog
from onboarding.logic.navigation import active_flows, is_countable, projected_path


def _round_half_up(x: float) -> int:
    return int(x + 0.5)


def calculate_progress(
    catalog: QuestionCatalog,
    responses: Mapping[str, Any],
    visited: Iterable[int],
) -> int:
    flows = active_flows(catalog, responses)
    denominator = {
        qid for qid in projected_path(catalog, responses) if is_countable(catalog.get(qid), flows)
    }
    if not denominator:
        return 0
    numerator = {qid for qid in visited if qid in denominator}
    return _round_half_up(len(numerator) * 100 / len(denominator))


__all__ = ["calculate_progress"]
