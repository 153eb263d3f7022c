"""Flow-switch resetter.

Fires only when the flow-selector answer changes to a different value.
Responses are rebuilt from the seeded defaults, then shared answers and
answers of the newly selected flow are re-applied. Visited ids and history
are filtered with the same membership test and the user is returned to the
flow selector.
"""

from __future__ import annotations

import logging
from typing import Any

from onboarding.logic.catalog import QuestionCatalog
from onboarding.logic.navigation import NavigationState
from onboarding.logic.response_store import ResponseStore

logger = logging.getLogger(__name__)


def selector_changed(catalog: QuestionCatalog, store: ResponseStore, new_value: Any) -> bool:
    return store.get(catalog.flow_selector_id) != new_value


def apply_flow_switch(
    catalog: QuestionCatalog,
    store: ResponseStore,
    nav: NavigationState,
    new_value: Any,
) -> None:
    """Record the new selector value and prune state belonging to other flows."""
    flows = catalog.flows_for(new_value)
    previous = store.snapshot()
    previous[str(catalog.flow_selector_id)] = new_value

    store.seed_defaults()
    kept = 0
    for key, value in previous.items():
        if catalog.in_flows(key, flows):
            store.set(key, value)
            kept += 1

    history = [h for h in nav.history if catalog.in_flows(h, flows)]
    visited = {v for v in nav.visited if catalog.in_flows(v, flows)}
    selector = catalog.flow_selector_id
    if selector not in history:
        history.append(selector)
    visited.add(selector)
    nav.history = history
    nav.visited = visited
    nav.current_id = selector
    logger.info(
        "flow_switch value=%s kept_responses=%s history=%s",
        new_value,
        kept,
        len(history),
    )


__all__ = ["apply_flow_switch", "selector_changed"]
