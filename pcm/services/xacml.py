"""
XACML 3.0 rendering of a consent directive.

One permit rule targets the disclosure recipients, the providers permitted
to disclose and the purposes of use; the consent period becomes the rule
condition and every obligation code becomes a redaction obligation.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Iterable

from pcm.services.codes import translate_purpose_of_use
from pcm.services.obligations import collect_obligation_codes

XACML_NS = "urn:oasis:names:tc:xacml:3.0:core:schema:wd-17"

STRING_EQUAL = "urn:oasis:names:tc:xacml:1.0:function:string-equal"
STRING_TYPE = "http://www.w3.org/2001/XMLSchema#string"
DATE_TIME_TYPE = "http://www.w3.org/2001/XMLSchema#dateTime"
RECIPIENT_CATEGORY = "urn:oasis:names:tc:xacml:1.0:subject-category:recipient-subject"
INTERMEDIARY_CATEGORY = "urn:oasis:names:tc:xacml:1.0:subject-category:intermediary-subject"
ACTION_CATEGORY = "urn:oasis:names:tc:xacml:3.0:attribute-category:action"
ENVIRONMENT_CATEGORY = "urn:oasis:names:tc:xacml:3.0:attribute-category:environment"
SUBJECT_ID = "urn:oasis:names:tc:xacml:1.0:subject:subject-id"
PURPOSE_OF_USE = "urn:oasis:names:tc:xspa:1.0:subject:purposeofuse"
CURRENT_DATE_TIME = "urn:oasis:names:tc:xacml:1.0:environment:current-dateTime"
REDACT_OBLIGATION = "urn:samhsa:names:tc:consent2share:1.0:obligation:redact-document-section-code"

ET.register_namespace("", XACML_NS)


def _q(tag: str) -> str:
    return f"{{{XACML_NS}}}{tag}"


def _any_of(target: ET.Element, values: Iterable[str], category: str, attribute_id: str) -> None:
    values = list(values)
    if not values:
        return
    any_of = ET.SubElement(target, _q("AnyOf"))
    for value in values:
        all_of = ET.SubElement(any_of, _q("AllOf"))
        match = ET.SubElement(all_of, _q("Match"), MatchId=STRING_EQUAL)
        ET.SubElement(match, _q("AttributeValue"), DataType=STRING_TYPE).text = value
        ET.SubElement(
            match,
            _q("AttributeDesignator"),
            Category=category,
            AttributeId=attribute_id,
            DataType=STRING_TYPE,
            MustBePresent="false",
        )


def _date_bound(parent: ET.Element, function: str, value: str) -> None:
    apply = ET.SubElement(parent, _q("Apply"), FunctionId=function)
    one = ET.SubElement(
        apply, _q("Apply"), FunctionId="urn:oasis:names:tc:xacml:1.0:function:dateTime-one-and-only"
    )
    ET.SubElement(
        one,
        _q("AttributeDesignator"),
        Category=ENVIRONMENT_CATEGORY,
        AttributeId=CURRENT_DATE_TIME,
        DataType=DATE_TIME_TYPE,
        MustBePresent="false",
    )
    ET.SubElement(apply, _q("AttributeValue"), DataType=DATE_TIME_TYPE).text = value


def render_xacml_policy(consent: Any) -> str:
    policy_id = consent.consent_reference_id
    policy = ET.Element(
        _q("Policy"),
        PolicyId=policy_id,
        RuleCombiningAlgId="urn:oasis:names:tc:xacml:3.0:rule-combining-algorithm:deny-overrides",
        Version="1.0",
    )
    ET.SubElement(policy, _q("Description")).text = (
        f"Consent {policy_id} for patient {consent.patient.medical_record_number}"
    )
    ET.SubElement(policy, _q("Target"))

    rule = ET.SubElement(policy, _q("Rule"), RuleId=f"{policy_id}_PERMIT", Effect="Permit")
    target = ET.SubElement(rule, _q("Target"))
    recipients = [p.npi for p in consent.organizational_providers_disclosure_is_made_to] + [
        p.npi for p in consent.providers_disclosure_is_made_to
    ]
    authors = [p.npi for p in consent.organizational_providers_permitted_to_disclose] + [
        p.npi for p in consent.providers_permitted_to_disclose
    ]
    purposes = sorted(
        {translate_purpose_of_use(s.purpose_of_use_code.code) for s in consent.share_for_purpose_of_use_codes}
    )
    _any_of(target, recipients, RECIPIENT_CATEGORY, SUBJECT_ID)
    _any_of(target, authors, INTERMEDIARY_CATEGORY, SUBJECT_ID)
    _any_of(target, purposes, RECIPIENT_CATEGORY, PURPOSE_OF_USE)

    condition = ET.SubElement(rule, _q("Condition"))
    both = ET.SubElement(condition, _q("Apply"), FunctionId="urn:oasis:names:tc:xacml:1.0:function:and")
    _date_bound(
        both,
        "urn:oasis:names:tc:xacml:1.0:function:dateTime-greater-than-or-equal",
        f"{consent.start_date.isoformat()}T00:00:00",
    )
    _date_bound(
        both,
        "urn:oasis:names:tc:xacml:1.0:function:dateTime-less-than-or-equal",
        f"{consent.end_date.isoformat()}T23:59:59",
    )

    obligations = sorted(collect_obligation_codes(consent))
    if obligations:
        expressions = ET.SubElement(policy, _q("ObligationExpressions"))
        for code in obligations:
            expression = ET.SubElement(
                expressions, _q("ObligationExpression"), ObligationId=REDACT_OBLIGATION, FulfillOn="Permit"
            )
            assignment = ET.SubElement(
                expression, _q("AttributeAssignmentExpression"), AttributeId=REDACT_OBLIGATION
            )
            ET.SubElement(assignment, _q("AttributeValue"), DataType=STRING_TYPE).text = code

    return ET.tostring(policy, encoding="unicode")
