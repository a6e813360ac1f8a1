"""Tests for XACML policy rendering."""

import xml.etree.ElementTree as ET
from datetime import date
from types import SimpleNamespace

import pytest

from pcm.exceptions import UnsupportedCodeError
from pcm.services.xacml import REDACT_OBLIGATION, XACML_NS, render_xacml_policy

NS = {"x": XACML_NS}


def _codes(*values):
    return [SimpleNamespace(code=v) for v in values]


def _make_consent(purposes=("TREATMENT",), sensitivity=("HIV",), document_types=()):
    return SimpleNamespace(
        consent_reference_id="MRN-100:&1.2.3&ISO:2222222222:1111111111:AB12CD",
        patient=SimpleNamespace(medical_record_number="MRN-100"),
        start_date=date(2024, 1, 1),
        end_date=date(2024, 6, 1),
        organizational_providers_permitted_to_disclose=[SimpleNamespace(npi="1111111111")],
        providers_permitted_to_disclose=[],
        organizational_providers_disclosure_is_made_to=[],
        providers_disclosure_is_made_to=[SimpleNamespace(npi="2222222222")],
        share_for_purpose_of_use_codes=[
            SimpleNamespace(purpose_of_use_code=SimpleNamespace(code=c)) for c in purposes
        ],
        do_not_share_clinical_document_type_codes=_codes(*document_types),
        do_not_share_sensitivity_policy_codes=_codes(*sensitivity),
        do_not_share_clinical_concept_codes=[],
    )


def _parse(consent):
    return ET.fromstring(render_xacml_policy(consent))


def test_policy_identified_by_reference_id():
    policy = _parse(_make_consent())
    assert policy.tag == f"{{{XACML_NS}}}Policy"
    assert policy.get("PolicyId") == "MRN-100:&1.2.3&ISO:2222222222:1111111111:AB12CD"
    assert "MRN-100" in policy.find("x:Description", NS).text


def test_rule_targets_providers_and_purposes():
    policy = _parse(_make_consent(purposes=("TREATMENT", "RESEARCH", "TREATMENT")))
    rule = policy.find("x:Rule", NS)
    assert rule.get("Effect") == "Permit"
    values = [v.text for v in rule.findall("x:Target/x:AnyOf/x:AllOf/x:Match/x:AttributeValue", NS)]
    assert values == ["2222222222", "1111111111", "HRESCH", "TREAT"]


def test_condition_spans_whole_days():
    policy = _parse(_make_consent())
    bounds = [v.text for v in policy.findall("x:Rule/x:Condition/x:Apply/x:Apply/x:AttributeValue", NS)]
    assert bounds == ["2024-01-01T00:00:00", "2024-06-01T23:59:59"]


def test_one_redaction_obligation_per_code():
    policy = _parse(_make_consent(sensitivity=("HIV", "ETH"), document_types=("34133-9", "HIV")))
    expressions = policy.findall("x:ObligationExpressions/x:ObligationExpression", NS)
    assert {e.get("ObligationId") for e in expressions} == {REDACT_OBLIGATION}
    codes = [e.find("x:AttributeAssignmentExpression/x:AttributeValue", NS).text for e in expressions]
    assert codes == ["34133-9", "ETH", "HIV"]


def test_no_obligations_when_nothing_withheld():
    policy = _parse(_make_consent(sensitivity=()))
    assert policy.find("x:ObligationExpressions", NS) is None


def test_unknown_purpose_rejected():
    with pytest.raises(UnsupportedCodeError):
        render_xacml_policy(_make_consent(purposes=("MARKETING",)))
