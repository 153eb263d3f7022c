"""Functional tests for the canonical-key response store."""

from __future__ import annotations

from onboarding.logic.response_store import ResponseStore


def test_new_store_is_seeded_with_defaults():
    store = ResponseStore(defaults={11: {"bonuses": "no"}})
    assert store.get("11") == {"bonuses": "no"}
    assert len(store) == 1


def test_explicit_responses_skip_default_seeding():
    store = ResponseStore({"5": "just_me"}, defaults={11: {"bonuses": "no"}})
    assert "11" not in store
    assert store.get(5) == "just_me"


def test_int_and_str_keys_address_the_same_answer():
    store = ResponseStore({})
    store.set(5, "co_signer")
    assert store.get("5") == "co_signer"
    store.set("5", "just_me")
    assert store.snapshot() == {"5": "just_me"}


def test_set_replaces_structured_values_whole():
    store = ResponseStore({})
    store.set(11, {"income": "80000", "bonuses": "no"})
    store.set(11, {"income": "90000"})
    assert store.get(11) == {"income": "90000"}


def test_snapshot_and_set_are_isolated_from_callers():
    store = ResponseStore({})
    value = {"items": []}
    store.set(13, value)
    value["items"].append("car")
    snap = store.snapshot()
    snap["13"]["items"].append("boat")
    assert store.get(13) == {"items": []}


def test_merge_is_last_write_wins():
    store = ResponseStore({"1": "still_looking", "2": {"purchaseAmount": "1"}})
    store.merge({2: {"purchaseAmount": "2"}, "4": "living_here"})
    assert store.snapshot() == {
        "1": "still_looking",
        "2": {"purchaseAmount": "2"},
        "4": "living_here",
    }


def test_copy_is_independent_and_merges_back():
    store = ResponseStore({"1": "yes"}, defaults={"14": {"hasOtherProperties": "no"}})
    working = store.copy()
    working.set(4, "secondary_home")
    assert "4" not in store
    store.merge(working)
    assert store.get(4) == "secondary_home"
    assert working.defaults == {"14": {"hasOtherProperties": "no"}}


def test_seed_defaults_and_replace_drop_prior_answers():
    store = ResponseStore({"1": "yes"}, defaults={"14": {"hasOtherProperties": "no"}})
    store.seed_defaults()
    assert store.snapshot() == {"14": {"hasOtherProperties": "no"}}
    store.replace({"6": {"firstName": "Ann"}})
    assert store.snapshot() == {"6": {"firstName": "Ann"}}


def test_discard_and_membership():
    store = ResponseStore({"1": "yes"})
    store.discard(1)
    store.discard(1)
    assert 1 not in store
    assert "not-an-id" not in store
