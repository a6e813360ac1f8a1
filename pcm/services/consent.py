"""
Consent lifecycle service.

Operations take the request's SQLAlchemy session and flush; committing is
left to the caller. Business rules enforced here:
- the consent period must not end before it starts
- no provider may be both permitted to disclose and a disclosure recipient
- each role names a single provider of its preferred kind
- only SAVED consents may be edited or deleted, only SAVED consents may be
  attested and only ACTIVE consents may be revoked
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

import httpx
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pcm.config import Settings, settings
from pcm.exceptions import (
    AmbiguousProviderError,
    ConsentStateError,
    DuplicateProviderError,
    InvalidConsentDatesError,
    NotFoundError,
    UniqueValueGenerationExhaustedError,
)
from pcm.models.consent import Consent, ConsentShareForPurposeOfUse, ConsentStatus
from pcm.models.patient import AuditLog, Patient
from pcm.models.provider import IndividualProvider, OrganizationalProvider
from pcm.models.reference import (
    ClinicalConceptCode,
    ClinicalDocumentTypeCode,
    PurposeOfUseCode,
    ValueSetCategory,
)
from pcm.schemas.api import ConsentRequest
from pcm.services.audit import history, log_action
from pcm.services.codes import translate_purpose_of_use
from pcm.services.fhir_consent import PublishResult, assemble_consent, publish_consent
from pcm.services.obligations import collect_obligation_codes
from pcm.services.policy_id import generate_policy_id
from pcm.services.validation import are_there_duplicates_in_two_sets, validate_consent_date
from pcm.services.xacml import render_xacml_policy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_patient(db: Session, patient_id: UUID) -> Patient:
    patient = db.get(Patient, patient_id)
    if patient is None:
        raise NotFoundError("Patient", patient_id)
    return patient


def find_consent(db: Session, consent_id: UUID) -> Consent:
    consent = db.get(Consent, consent_id)
    if consent is None:
        raise NotFoundError("Consent", consent_id)
    return consent


def list_consents_for_patient(
    db: Session, patient_id: UUID, page: int = 0, size: int | None = None
) -> list[Consent]:
    """A patient's consents, newest first; ``page`` is zero-based and ``size=None`` returns all."""
    get_patient(db, patient_id)
    stmt = (
        select(Consent)
        .where(Consent.patient_id == patient_id)
        .order_by(Consent.created_at.desc(), Consent.id)
    )
    if size is not None:
        stmt = stmt.limit(size).offset(page * size)
    return list(db.scalars(stmt))


def count_consents(db: Session, patient_id: UUID | None = None) -> int:
    stmt = select(func.count()).select_from(Consent)
    if patient_id is not None:
        stmt = stmt.where(Consent.patient_id == patient_id)
    return db.scalar(stmt) or 0


def get_consent_status(db: Session, consent_id: UUID) -> ConsentStatus:
    return find_consent(db, consent_id).status


def reference_id_exists(db: Session, consent_reference_id: str) -> bool:
    stmt = select(Consent.id).where(Consent.consent_reference_id == consent_reference_id)
    return db.scalars(stmt).first() is not None


def _by_code(db: Session, model, column, values: Sequence[str], entity: str) -> list:
    """Load rows matching each value, keeping request order; unknown values raise."""
    if not values:
        return []
    rows = {getattr(r, column.key): r for r in db.scalars(select(model).where(column.in_(values)))}
    missing = [v for v in values if v not in rows]
    if missing:
        raise NotFoundError(entity, missing[0])
    return [rows[v] for v in dict.fromkeys(values)]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_consent_request(request: ConsentRequest) -> None:
    if not validate_consent_date(request.start_date, request.end_date):
        raise InvalidConsentDatesError(
            f"Consent start date {request.start_date} is after end date {request.end_date}"
        )

    permitted = set(request.organizational_providers_permitted_to_disclose_npi) | set(
        request.providers_permitted_to_disclose_npi
    )
    recipients = set(request.organizational_providers_disclosure_is_made_to_npi) | set(
        request.providers_disclosure_is_made_to_npi
    )
    if are_there_duplicates_in_two_sets(permitted, recipients):
        raise DuplicateProviderError(permitted & recipients)

    for role, organizational, individual in (
        (
            "permitted-to-disclose",
            request.organizational_providers_permitted_to_disclose_npi,
            request.providers_permitted_to_disclose_npi,
        ),
        (
            "disclosure-recipient",
            request.organizational_providers_disclosure_is_made_to_npi,
            request.providers_disclosure_is_made_to_npi,
        ),
    ):
        chosen = organizational or individual
        if len(set(chosen)) > 1:
            raise AmbiguousProviderError(role, list(chosen))

    for code in request.purpose_of_use_codes:
        translate_purpose_of_use(code)


def _apply_request(db: Session, consent: Consent, request: ConsentRequest) -> None:
    consent.start_date = request.start_date
    consent.end_date = request.end_date
    consent.organizational_providers_permitted_to_disclose = _by_code(
        db, OrganizationalProvider, OrganizationalProvider.npi,
        request.organizational_providers_permitted_to_disclose_npi, "OrganizationalProvider",
    )
    consent.providers_permitted_to_disclose = _by_code(
        db, IndividualProvider, IndividualProvider.npi,
        request.providers_permitted_to_disclose_npi, "IndividualProvider",
    )
    consent.organizational_providers_disclosure_is_made_to = _by_code(
        db, OrganizationalProvider, OrganizationalProvider.npi,
        request.organizational_providers_disclosure_is_made_to_npi, "OrganizationalProvider",
    )
    consent.providers_disclosure_is_made_to = _by_code(
        db, IndividualProvider, IndividualProvider.npi,
        request.providers_disclosure_is_made_to_npi, "IndividualProvider",
    )

    # Purposes keep repeats, so look them up one by one
    purposes = {
        p.code.upper(): p
        for p in _by_code(
            db, PurposeOfUseCode, PurposeOfUseCode.code,
            [c.upper() for c in request.purpose_of_use_codes], "PurposeOfUseCode",
        )
    }
    consent.share_for_purpose_of_use_codes = [
        ConsentShareForPurposeOfUse(purpose_of_use_code=purposes[code.upper()], position=index)
        for index, code in enumerate(request.purpose_of_use_codes)
    ]

    consent.do_not_share_clinical_document_type_codes = _by_code(
        db, ClinicalDocumentTypeCode, ClinicalDocumentTypeCode.code,
        request.do_not_share_clinical_document_type_codes, "ClinicalDocumentTypeCode",
    )
    consent.do_not_share_sensitivity_policy_codes = _by_code(
        db, ValueSetCategory, ValueSetCategory.code,
        request.do_not_share_sensitivity_policy_codes, "ValueSetCategory",
    )
    consent.do_not_share_clinical_concept_codes = _by_code(
        db, ClinicalConceptCode, ClinicalConceptCode.code,
        request.do_not_share_clinical_concept_codes, "ClinicalConceptCode",
    )


def _require_status(consent: Consent, expected: ConsentStatus, operation: str) -> None:
    if consent.status != expected:
        raise ConsentStateError(
            f"Cannot {operation} consent {consent.consent_reference_id} in status {consent.status.value}"
        )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def create_consent(
    db: Session,
    patient_id: UUID,
    request: ConsentRequest,
    actor: str = "patient",
    config: Settings = settings,
    rng: random.Random | None = None,
) -> Consent:
    patient = get_patient(db, patient_id)
    validate_consent_request(request)

    # Stays transient until the reference id is known so lookups cannot flush it
    consent = Consent(status=ConsentStatus.SAVED)
    _apply_request(db, consent, request)
    consent.consent_reference_id = generate_policy_id(
        request,
        patient.medical_record_number,
        lambda candidate: reference_id_exists(db, candidate),
        config,
        rng,
    )

    consent.patient = patient
    db.add(consent)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.error("Consent reference id collided on insert: %s", consent.consent_reference_id)
        raise UniqueValueGenerationExhaustedError(config.POLICY_ID_MAX_ATTEMPTS) from exc

    log_action(
        db,
        actor=actor,
        action="create",
        resource_type="Consent",
        resource_id=consent.id,
        detail={"consent_reference_id": consent.consent_reference_id},
    )
    return consent


def update_consent(
    db: Session, consent_id: UUID, request: ConsentRequest, actor: str = "patient"
) -> Consent:
    consent = find_consent(db, consent_id)
    _require_status(consent, ConsentStatus.SAVED, "update")
    validate_consent_request(request)
    _apply_request(db, consent, request)
    db.flush()
    log_action(db, actor=actor, action="update", resource_type="Consent", resource_id=consent.id)
    return consent


def delete_consent(db: Session, consent_id: UUID, actor: str = "patient") -> None:
    consent = find_consent(db, consent_id)
    _require_status(consent, ConsentStatus.SAVED, "delete")
    log_action(
        db,
        actor=actor,
        action="delete",
        resource_type="Consent",
        resource_id=consent.id,
        detail={"consent_reference_id": consent.consent_reference_id},
    )
    db.delete(consent)
    db.flush()


def attest_consent(
    db: Session,
    consent_id: UUID,
    attester_ip: str | None,
    actor: str = "patient",
    config: Settings = settings,
    client: httpx.Client | None = None,
) -> tuple[Consent, PublishResult]:
    """
    Sign a saved consent and publish it to the exchange.

    An invalid FHIR resource aborts the attestation; a failed network call
    does not, it is reported in the returned ``PublishResult``.
    """
    consent = find_consent(db, consent_id)
    _require_status(consent, ConsentStatus.SAVED, "attest")

    resource = assemble_consent(consent, consent.patient, config)
    result = publish_consent(resource, config, client)

    consent.status = ConsentStatus.ACTIVE
    consent.attested_at = datetime.now(timezone.utc)
    consent.attester_ip = attester_ip
    db.flush()

    log_action(db, actor=actor, action="attest", resource_type="Consent", resource_id=consent.id,
               detail={"attester_ip": attester_ip})
    log_action(
        db,
        actor="pcm",
        action="publish",
        resource_type="Consent",
        resource_id=consent.id,
        detail={"success": result.success, "message": result.message, "skipped": result.skipped},
    )
    return consent, result


def revoke_consent(
    db: Session, consent_id: UUID, attester_ip: str | None, actor: str = "patient"
) -> Consent:
    consent = find_consent(db, consent_id)
    _require_status(consent, ConsentStatus.ACTIVE, "revoke")
    consent.status = ConsentStatus.REVOKED
    consent.revoked_at = datetime.now(timezone.utc)
    consent.revocation_attester_ip = attester_ip
    db.flush()
    log_action(db, actor=actor, action="revoke", resource_type="Consent", resource_id=consent.id,
               detail={"attester_ip": attester_ip})
    return consent


# ---------------------------------------------------------------------------
# Derived documents
# ---------------------------------------------------------------------------

def consent_history(db: Session, consent_id: UUID) -> list[AuditLog]:
    return history(db, "Consent", find_consent(db, consent_id).id)


def find_obligations(db: Session, consent_id: UUID) -> list[str]:
    return sorted(collect_obligation_codes(find_consent(db, consent_id)))


def get_fhir_consent(db: Session, consent_id: UUID, config: Settings = settings) -> dict[str, Any]:
    consent = find_consent(db, consent_id)
    return assemble_consent(consent, consent.patient, config)


def get_xacml_policy(db: Session, consent_id: UUID) -> str:
    return render_xacml_policy(find_consent(db, consent_id))
