"""
Code translation between internal reference codes and FHIR vocabularies.

Plain lookup tables keyed by the upper-cased internal code. Unknown codes
raise ``UnsupportedCodeError``; they are never passed through.
"""

from __future__ import annotations

from enum import Enum

from pcm.exceptions import UnsupportedCodeError

# Internal purpose-of-use code -> HL7 v3 ActReason
PURPOSE_OF_USE_CODES: dict[str, str] = {
    "TREATMENT": "TREAT",
    "PAYMENT": "HPAYMT",
    "RESEARCH": "HRESCH",
}

# Internal gender code (long or abbreviated) -> FHIR AdministrativeGender
GENDER_CODES: dict[str, str] = {
    "MALE": "male",
    "M": "male",
    "FEMALE": "female",
    "F": "female",
    "OTHER": "other",
    "O": "other",
    "UNKNOWN": "unknown",
    "UN": "unknown",
}


class SensitivityPolicyCode(Enum):
    """The full sensitivity vocabulary a consent can deny or permit."""

    ETH = ("ETH", "Substance abuse information sensitivity")
    GDIS = ("GDIS", "Genetic disease information sensitivity")
    HIV = ("HIV", "HIV/AIDS information sensitivity")
    PSY = ("PSY", "Psychiatry information sensitivity")
    SDV = ("SDV", "Sexual assault, abuse, or domestic violence information sensitivity")
    SEX = ("SEX", "Sexuality and reproductive health information sensitivity")

    def __init__(self, code: str, display_name: str):
        self.code = code
        self.display_name = display_name

    @property
    def code_system(self) -> str:
        return "http://hl7.org/fhir/v3/ActCode"

    def to_coding(self) -> dict[str, str]:
        return {"system": self.code_system, "code": self.code, "display": self.display_name}


def translate_purpose_of_use(code: str | None) -> str:
    """Map an internal purpose-of-use code to its ActReason code.

    A consent is always shared for a purpose, so a missing code is as
    unsupported as an unknown one.
    """
    if not code:
        raise UnsupportedCodeError("Purpose of Use", code)
    try:
        return PURPOSE_OF_USE_CODES[code.upper()]
    except KeyError:
        raise UnsupportedCodeError("Purpose of Use", code) from None


def translate_gender(code: str | None) -> str | None:
    """Map an internal gender code to AdministrativeGender.

    Gender is optional on the FHIR Patient, so ``None`` or ``""`` yields ``None``.
    """
    if not code:
        return None
    try:
        return GENDER_CODES[code.upper()]
    except KeyError:
        raise UnsupportedCodeError("AdministrativeGender", code) from None
