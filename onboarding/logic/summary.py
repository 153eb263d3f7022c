"""Derived summary fields and the submission payload.

The backend stores the raw response map together with three pre-reduced
fields: the applicant's employment status, whether they own another property,
and a co-signer contact block. The question ids each field is read from are
declared under `summary_sources` in the catalog. All functions here are pure
mappings over the canonical (string-keyed) response map.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from onboarding.logic.catalog import QuestionCatalog, canonical_id
from onboarding.models.question import Flow

logger = logging.getLogger(__name__)

_EMPLOYMENT_LABELS = {
    "employed": "Employed",
    "self_employed": "Self-employed",
}


def _record(responses: Mapping[str, Any], qid: int) -> Dict[str, Any]:
    value = responses.get(canonical_id(qid))
    return value if isinstance(value, dict) else {}


def _selector(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> Any:
    return responses.get(canonical_id(catalog.flow_selector_id))


def _employment_label(value: Any) -> str:
    return _EMPLOYMENT_LABELS.get(value, "Unemployed")


def _property_label(record: Dict[str, Any], has_key: str, mortgage_key: str) -> Optional[str]:
    has = record.get(has_key)
    if has == "no":
        return "No"
    if has == "yes":
        mortgage = record.get(mortgage_key)
        if mortgage == "no":
            return "Yes - All paid off"
        if mortgage == "yes":
            return "Yes - with a mortgage"
    return None


def employment_status(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> str:
    sources = catalog.summary_sources.applicants.get(_selector(catalog, responses))
    if sources is None:
        logger.info("summary_employment_undetermined")
        return ""
    return _employment_label(responses.get(canonical_id(sources.employment)))


def own_other_property(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> str:
    selector = _selector(catalog, responses)
    sources = catalog.summary_sources.applicants.get(selector)
    if sources is None:
        logger.info("summary_property_undetermined")
        return ""
    label = _property_label(_record(responses, sources.properties), "hasOtherProperties", "hasMortgage")
    if label is not None:
        return label
    if selector == catalog.selector_value_for(Flow.SOLO):
        return "No"
    logger.warning("summary_property_incomplete question_id=%s", sources.properties)
    return ""


def co_signer_employment_status(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> str:
    sources = catalog.summary_sources.co_applicant
    value = responses.get(canonical_id(sources.employment)) if sources is not None else None
    if not isinstance(value, str) or not value:
        logger.info("summary_co_employment_missing")
        return ""
    return _employment_label(value)


def co_signer_own_other_property(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> str:
    sources = catalog.summary_sources.co_applicant
    record = _record(responses, sources.properties) if sources is not None else {}
    label = _property_label(record, "coHasOtherProperties", "coHasMortgage")
    if label is None:
        logger.info("summary_co_property_incomplete")
        return ""
    return label


def co_signer_details(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> Dict[str, str]:
    sources = catalog.summary_sources.co_applicant
    if sources is None or _selector(catalog, responses) != catalog.selector_value_for(Flow.CO_APPLICANT):
        return {}
    details = _record(responses, sources.details)
    name = " ".join(
        part for part in (details.get("coFirstName") or "", details.get("coLastName") or "") if part
    )
    return {
        "name": name,
        "email": details.get("coEmail") or "",
        "phone": details.get("coPhone") or "",
        "employmentStatus": co_signer_employment_status(catalog, responses),
        "ownAnotherProperty": co_signer_own_other_property(catalog, responses),
    }


def build_submission_payload(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> Dict[str, Any]:
    """Full snapshot payload: raw answers plus the derived summary fields."""
    raw = {str(k): v for k, v in responses.items()}
    is_self = _selector(catalog, raw) == catalog.selector_value_for(Flow.SOLO)
    return {
        "applyingbehalf": "Self" if is_self else "other",
        "employmentStatus": employment_status(catalog, raw),
        "ownAnotherProperty": own_other_property(catalog, raw),
        "otherDetails": co_signer_details(catalog, raw),
        "responses": raw,
    }


def serialize_payload(payload: Mapping[str, Any]) -> str:
    """Deterministic JSON text for a payload (sorted keys, no timestamps)."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


__all__ = [
    "build_submission_payload",
    "co_signer_details",
    "co_signer_employment_status",
    "co_signer_own_other_property",
    "employment_status",
    "own_other_property",
    "serialize_payload",
]
