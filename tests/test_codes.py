"""Tests for internal -> FHIR code translation."""

import pytest

from pcm.exceptions import UnsupportedCodeError
from pcm.services.codes import (
    PURPOSE_OF_USE_CODES,
    SensitivityPolicyCode,
    translate_gender,
    translate_purpose_of_use,
)


@pytest.mark.parametrize(
    "code, expected",
    [("TREATMENT", "TREAT"), ("payment", "HPAYMT"), ("Research", "HRESCH")],
)
def test_purpose_of_use_translation(code, expected):
    assert translate_purpose_of_use(code) == expected


def test_purpose_of_use_is_deterministic():
    for code in PURPOSE_OF_USE_CODES:
        assert translate_purpose_of_use(code) == translate_purpose_of_use(code)


@pytest.mark.parametrize("code", ["MARKETING", "TREAT", "treatment ", None, ""])
def test_unknown_or_missing_purpose_is_rejected(code):
    with pytest.raises(UnsupportedCodeError):
        translate_purpose_of_use(code)


@pytest.mark.parametrize(
    "code, expected",
    [
        ("male", "male"),
        ("M", "male"),
        ("Female", "female"),
        ("f", "female"),
        ("OTHER", "other"),
        ("o", "other"),
        ("unknown", "unknown"),
        ("UN", "unknown"),
    ],
)
def test_gender_translation(code, expected):
    assert translate_gender(code) == expected


def test_missing_gender_is_optional():
    assert translate_gender(None) is None
    assert translate_gender("") is None


def test_unknown_gender_is_rejected():
    with pytest.raises(UnsupportedCodeError, match="AdministrativeGender"):
        translate_gender("X")


def test_sensitivity_vocabulary_codings():
    coding = SensitivityPolicyCode.HIV.to_coding()
    assert coding["code"] == "HIV"
    assert coding["system"] == "http://hl7.org/fhir/v3/ActCode"
    assert len({entry.code for entry in SensitivityPolicyCode}) == len(SensitivityPolicyCode)
