"""Contained FHIR Patient built from the local patient record."""

from __future__ import annotations

from typing import Any

from pcm.config import Settings, settings
from pcm.exceptions import PreconditionViolation
from pcm.services.codes import translate_gender
from pcm.services.encryption import EncryptionService, encryption


def build_fhir_patient(
    patient: Any,
    config: Settings = settings,
    crypto: EncryptionService = encryption,
) -> dict[str, Any]:
    mrn = patient.medical_record_number
    if not mrn or not mrn.strip():
        raise PreconditionViolation("The patient must have a local identifier.")

    identifiers = [{"system": config.PID_DOMAIN_SYSTEM, "use": "official", "value": mrn}]
    ssn = crypto.decrypt(patient.encrypted_ssn)
    if ssn:
        identifiers.append({"system": config.SSN_SYSTEM, "value": ssn})

    resource: dict[str, Any] = {
        "resourceType": "Patient",
        "id": mrn,
        "active": True,
        "identifier": identifiers,
        "name": [{"family": patient.last_name, "given": [patient.first_name]}],
    }

    gender = translate_gender(patient.gender_code)
    if gender:
        resource["gender"] = gender
    if patient.birth_date:
        resource["birthDate"] = patient.birth_date.isoformat()

    telecom = []
    if patient.email:
        telecom.append({"system": "email", "value": patient.email})
    if patient.telephone:
        telecom.append({"system": "phone", "value": patient.telephone})
    if telecom:
        resource["telecom"] = telecom

    address: dict[str, Any] = {}
    if patient.address:
        address["line"] = [patient.address]
    if patient.city:
        address["city"] = patient.city
    if patient.state_code:
        address["state"] = patient.state_code
    if patient.zip:
        address["postalCode"] = patient.zip
    if address:
        resource["address"] = [address]
    return resource


def patient_display_name(patient: Any) -> str:
    return f"{patient.first_name} {patient.last_name}".strip()
