"""Functional tests for derived summary fields and the submission payload.

Payloads are validated against docs/schemas/QuestionnaireSubmission.schema.json
with jsonschema (Draft 2020-12).
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from jsonschema import Draft202012Validator

from onboarding.logic.catalog import parse_catalog
from onboarding.logic.summary import (
    build_submission_payload,
    co_signer_details,
    co_signer_employment_status,
    employment_status,
    own_other_property,
    serialize_payload,
)
from onboarding.models.snapshot import SubmissionPayload

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "docs" / "schemas" / "QuestionnaireSubmission.schema.json"


@pytest.fixture(scope="module")
def validator() -> Draft202012Validator:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    return Draft202012Validator(schema)


def _co_signer_responses() -> dict:
    return {
        "5": "co_signer",
        "106": "self_employed",
        "118": {"hasOtherProperties": "yes", "hasMortgage": "no"},
        "101": {"coFirstName": "Bob", "coLastName": "Smith", "coEmail": "bob@example.com", "coPhone": "4165550100"},
        "110": "pension",
        "119": {"coHasOtherProperties": "yes", "coHasMortgage": "yes"},
    }


@pytest.mark.parametrize(
    "answer,label",
    [("employed", "Employed"), ("self_employed", "Self-employed"), ("pension", "Unemployed"), ("other", "Unemployed")],
)
def test_solo_employment_status(catalog, answer, label):
    assert employment_status(catalog, {"5": "just_me", "9": answer}) == label


def test_employment_status_is_blank_until_flow_chosen(catalog):
    assert employment_status(catalog, {"9": "employed"}) == ""


def test_co_flow_reads_co_primary_employment(catalog):
    assert employment_status(catalog, _co_signer_responses()) == "Self-employed"


@pytest.mark.parametrize(
    "record,label",
    [
        ({"hasOtherProperties": "no"}, "No"),
        ({"hasOtherProperties": "yes", "hasMortgage": "no"}, "Yes - All paid off"),
        ({"hasOtherProperties": "yes", "hasMortgage": "yes"}, "Yes - with a mortgage"),
        ({"hasOtherProperties": "yes"}, "No"),
        (None, "No"),
    ],
)
def test_solo_own_other_property(catalog, record, label):
    responses = {"5": "just_me"}
    if record is not None:
        responses["14"] = record
    assert own_other_property(catalog, responses) == label


def test_incomplete_co_flow_property_answer_is_blank(catalog):
    assert own_other_property(catalog, {"5": "co_signer", "118": {"hasOtherProperties": "yes"}}) == ""
    assert own_other_property(catalog, _co_signer_responses()) == "Yes - All paid off"


def test_co_signer_employment_status_requires_an_answer(catalog):
    assert co_signer_employment_status(catalog, {}) == ""
    assert co_signer_employment_status(catalog, {"110": "employed"}) == "Employed"
    assert co_signer_employment_status(catalog, {"110": "other"}) == "Unemployed"


def test_co_signer_details_block(catalog):
    assert co_signer_details(catalog, {"5": "just_me"}) == {}
    assert co_signer_details(catalog, _co_signer_responses()) == {
        "name": "Bob Smith",
        "email": "bob@example.com",
        "phone": "4165550100",
        "employmentStatus": "Unemployed",
        "ownAnotherProperty": "Yes - with a mortgage",
    }


def test_solo_payload_matches_schema(catalog, validator):
    responses = {"5": "just_me", "9": "employed", "14": {"hasOtherProperties": "no"}}
    payload = build_submission_payload(catalog, responses)
    assert sorted(e.message for e in validator.iter_errors(payload)) == []
    assert payload["applyingbehalf"] == "Self"
    assert payload["otherDetails"] == {}
    SubmissionPayload.model_validate(payload)


def test_co_signer_payload_matches_schema(catalog, validator):
    payload = build_submission_payload(catalog, _co_signer_responses())
    assert sorted(e.message for e in validator.iter_errors(payload)) == []
    assert payload["applyingbehalf"] == "other"
    assert payload["otherDetails"]["name"] == "Bob Smith"


def test_payload_keys_are_canonical_strings(catalog):
    payload = build_submission_payload(catalog, {5: "just_me", 9: "employed"})
    assert set(payload["responses"]) == {"5", "9"}


def test_resaving_unchanged_responses_is_byte_identical(catalog):
    responses = _co_signer_responses()
    first = serialize_payload(build_submission_payload(catalog, responses))
    second = serialize_payload(build_submission_payload(catalog, responses))
    assert first == second
    assert json.loads(first)["responses"] == responses


def test_summary_reads_the_sources_the_catalog_declares():
    cat = parse_catalog(
        {
            "first_question": 1,
            "flow_selector": {"question": 2, "flows": {"alone": ["solo"], "together": ["co_primary"]}},
            "summary_sources": {"applicants": {"alone": {"name": 3, "employment": 1, "properties": 3}}},
            "questions": [
                {"id": 1, "flow": "shared", "category": "work", "type": "text_area", "next_question": 2},
                {
                    "id": 2,
                    "flow": "shared",
                    "category": "flow_choice",
                    "type": "multiple_choice",
                    "options": [{"value": "alone", "label": "Alone"}, {"value": "together", "label": "Together"}],
                    "next_question_map": {"alone": 3, "together": 4},
                },
                {"id": 3, "flow": "solo", "category": "home", "type": "text_area", "next_question": 9},
                {"id": 4, "flow": "co_primary", "category": "home", "type": "text_area", "next_question": 9},
                {"id": 9, "flow": "shared", "category": "submission", "type": "final_step"},
            ],
        }
    )
    responses = {"1": "self_employed", "2": "alone", "3": {"hasOtherProperties": "yes", "hasMortgage": "yes"}}
    payload = build_submission_payload(cat, responses)
    assert payload["applyingbehalf"] == "Self"
    assert payload["employmentStatus"] == "Self-employed"
    assert payload["ownAnotherProperty"] == "Yes - with a mortgage"
    assert payload["otherDetails"] == {}
    assert employment_status(cat, {"2": "together", "1": "employed"}) == ""
