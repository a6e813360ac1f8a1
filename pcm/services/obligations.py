"""Obligation codes: what a consent says must not be shared."""

from __future__ import annotations

from typing import Any, Iterable

from pcm.services.codes import SensitivityPolicyCode


def collect_obligation_codes(consent: Any) -> set[str]:
    """Union the document-type, sensitivity-policy and clinical-concept codes."""
    codes: set[str] = set()
    for item in consent.do_not_share_clinical_document_type_codes or []:
        codes.add(item.code)
    for item in consent.do_not_share_sensitivity_policy_codes or []:
        codes.add(item.code)
    for item in consent.do_not_share_clinical_concept_codes or []:
        codes.add(item.code)
    return codes


def partition_sensitivity_codes(
    obligation_codes: Iterable[str],
    vocabulary: Iterable[SensitivityPolicyCode] = SensitivityPolicyCode,
) -> tuple[list[dict[str, str]], list[dict[str, str]]]:
    """
    Split the sensitivity vocabulary into (excluded, included) codings.

    Every vocabulary entry lands in exactly one bucket; obligation codes
    outside the vocabulary (document types, clinical concepts) are ignored.
    """
    obligations = set(obligation_codes)
    excluded: list[dict[str, str]] = []
    included: list[dict[str, str]] = []
    for entry in vocabulary:
        if entry.code in obligations:
            excluded.append(entry.to_coding())
        else:
            included.append(entry.to_coding())
    return excluded, included
