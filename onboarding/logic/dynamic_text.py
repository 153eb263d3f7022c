"""Presentation helpers: placeholder substitution, initials, option lists."""

from __future__ import annotations

import calendar
import datetime as _dt
from typing import Any, Dict, List, Mapping, Optional

from onboarding.logic.catalog import QuestionCatalog, canonical_id
from onboarding.models.question import Flow, Question

CO_FIRST_NAME_TOKEN = "[coFirstName]"
CO_SIGNER_FALLBACK = "Co-signer"
EARLIEST_BIRTH_YEAR = 1940


def _record(responses: Mapping[str, Any], qid: Optional[int]) -> Dict[str, Any]:
    if qid is None:
        return {}
    value = responses.get(canonical_id(qid))
    return value if isinstance(value, dict) else {}


def _co_details_id(catalog: QuestionCatalog) -> Optional[int]:
    sources = catalog.summary_sources.co_applicant
    return sources.details if sources is not None else None


def co_signer_first_name(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> str:
    details = _record(responses, _co_details_id(catalog))
    name = details.get("coFirstName") or details.get("firstName")
    return str(name).strip() if name and str(name).strip() else CO_SIGNER_FALLBACK


def process_dynamic_text(catalog: QuestionCatalog, text: Optional[str], responses: Mapping[str, Any]) -> str:
    if not text:
        return ""
    if CO_FIRST_NAME_TOKEN not in text:
        return text
    return text.replace(CO_FIRST_NAME_TOKEN, co_signer_first_name(catalog, responses))


def _initials(first: Any, last: Any) -> str:
    out = ""
    for part in (first, last):
        if isinstance(part, str) and part.strip():
            out += part.strip()[0].upper()
    return out


def profile_initials(
    catalog: QuestionCatalog,
    responses: Mapping[str, Any],
    question: Optional[Question],
) -> Dict[str, Any]:
    """Initials shown in the question header.

    Co-applicant questions show the co-signer's initials; everything else
    shows the primary applicant's.
    """
    is_co_signer = question is not None and question.flow == Flow.CO_APPLICANT
    if is_co_signer:
        details = _record(responses, _co_details_id(catalog))
        initials = _initials(
            details.get("coFirstName") or details.get("firstName"),
            details.get("coLastName") or details.get("lastName"),
        )
        return {"initials": initials, "is_co_signer": True}
    for sources in catalog.summary_sources.applicants.values():
        details = _record(responses, sources.name)
        initials = _initials(details.get("firstName"), details.get("lastName"))
        if initials:
            return {"initials": initials, "is_co_signer": False}
    return {"initials": "", "is_co_signer": False}


def month_options() -> List[Dict[str, str]]:
    return [{"value": str(i), "label": calendar.month_name[i]} for i in range(1, 13)]


def day_options() -> List[Dict[str, str]]:
    return [{"value": str(i), "label": str(i)} for i in range(1, 32)]


def year_options(today: Optional[_dt.date] = None) -> List[Dict[str, str]]:
    current = (today or _dt.date.today()).year
    return [{"value": str(y), "label": str(y)} for y in range(current, EARLIEST_BIRTH_YEAR - 1, -1)]


def dependents_options() -> List[Dict[str, str]]:
    return [{"value": v, "label": v} for v in ("0", "1", "2", "3", "4+")]


__all__ = [
    "co_signer_first_name",
    "day_options",
    "dependents_options",
    "month_options",
    "process_dynamic_text",
    "profile_initials",
    "year_options",
]
