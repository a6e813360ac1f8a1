"""Tests for schema validation and the consent business checks."""

from datetime import date

from pcm.schemas.fhir import FHIR_CONSENT_SCHEMA, FHIR_PATIENT_SCHEMA
from pcm.services.validation import (
    are_there_duplicates_in_two_sets,
    validate_against_schema,
    validate_consent_date,
)


def _make_patient_resource(**overrides):
    resource = {
        "resourceType": "Patient",
        "id": "MRN-001",
        "identifier": [{"system": "urn:oid:1.2.3", "value": "MRN-001"}],
        "name": [{"family": "Doe", "given": ["Jane"]}],
        "gender": "female",
        "birthDate": "1990-01-15",
    }
    resource.update(overrides)
    return resource


def test_valid_patient_resource():
    assert validate_against_schema(_make_patient_resource(), FHIR_PATIENT_SCHEMA) == []


def test_invalid_patient_gender_and_birth_date():
    resource = _make_patient_resource(gender="F", birthDate="01/15/1990")
    errors = validate_against_schema(resource, FHIR_PATIENT_SCHEMA)
    assert len(errors) == 2


def test_consent_missing_required_fields():
    errors = validate_against_schema({"resourceType": "Consent"}, FHIR_CONSENT_SCHEMA)
    assert any("patient" in e for e in errors)
    assert any("policyRule" in e for e in errors)
    assert any("except" in e for e in errors)


def test_consent_date_order():
    assert validate_consent_date(date(2024, 1, 1), date(2024, 6, 1)) is True
    assert validate_consent_date(date(2024, 6, 1), date(2024, 1, 1)) is False


def test_consent_date_same_day_is_valid():
    assert validate_consent_date(date(2024, 3, 1), date(2024, 3, 1)) is True


def test_duplicates_in_two_sets():
    assert are_there_duplicates_in_two_sets({"123"}, {"123"}) is True
    assert are_there_duplicates_in_two_sets({"123"}, {"456"}) is False
    assert are_there_duplicates_in_two_sets(set(), {"456"}) is False
    assert are_there_duplicates_in_two_sets(["1", "2"], ("3", "2")) is True
