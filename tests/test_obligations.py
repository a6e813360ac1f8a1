"""Tests for obligation collection and the sensitivity vocabulary partition."""

from itertools import permutations
from types import SimpleNamespace

from pcm.services.codes import SensitivityPolicyCode
from pcm.services.obligations import collect_obligation_codes, partition_sensitivity_codes


def _codes(*values):
    return [SimpleNamespace(code=v) for v in values]


def _make_consent(document_types=(), sensitivity=(), concepts=()):
    return SimpleNamespace(
        do_not_share_clinical_document_type_codes=_codes(*document_types),
        do_not_share_sensitivity_policy_codes=_codes(*sensitivity),
        do_not_share_clinical_concept_codes=_codes(*concepts),
    )


def test_union_of_three_lists_is_deduplicated():
    consent = _make_consent(["34133-9", "HIV"], ["HIV", "ETH"], ["ETH", "F11.20"])
    assert collect_obligation_codes(consent) == {"34133-9", "HIV", "ETH", "F11.20"}


def test_empty_and_missing_lists_contribute_nothing():
    assert collect_obligation_codes(_make_consent()) == set()
    consent = SimpleNamespace(
        do_not_share_clinical_document_type_codes=None,
        do_not_share_sensitivity_policy_codes=_codes("PSY"),
        do_not_share_clinical_concept_codes=None,
    )
    assert collect_obligation_codes(consent) == {"PSY"}


def test_collection_is_order_independent():
    lists = [["34133-9"], ["HIV", "ETH"], ["ETH"]]
    results = {
        frozenset(collect_obligation_codes(_make_consent(*order)))
        for order in permutations(lists)
    }
    assert len(results) == 1


def test_collection_is_idempotent():
    consent = _make_consent(["34133-9"], ["HIV"], [])
    assert collect_obligation_codes(consent) == collect_obligation_codes(consent)


def test_partition_is_complete():
    vocabulary = {entry.code for entry in SensitivityPolicyCode}
    for obligations in [set(), {"HIV"}, {"HIV", "ETH", "34133-9"}, vocabulary]:
        excluded, included = partition_sensitivity_codes(obligations)
        excluded_codes = {c["code"] for c in excluded}
        included_codes = {c["code"] for c in included}
        assert excluded_codes.isdisjoint(included_codes)
        assert excluded_codes | included_codes == vocabulary
        assert excluded_codes == obligations & vocabulary


def test_codes_outside_vocabulary_are_ignored():
    excluded, included = partition_sensitivity_codes({"34133-9"})
    assert excluded == []
    assert len(included) == len(SensitivityPolicyCode)
