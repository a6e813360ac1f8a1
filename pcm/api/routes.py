"""
FastAPI routes – thin delegation to the consent and reference services.

Each handler commits the session once the service call succeeds; service
errors propagate to the exception handlers registered in ``pcm.main``.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pcm.config import settings
from pcm.models.consent import Consent
from pcm.models.database import flush_unique, get_db
from pcm.models.patient import Patient
from pcm.models.provider import IndividualProvider, OrganizationalProvider
from pcm.schemas.api import (
    AttestationResponse,
    AuditEntryResponse,
    ConsentPage,
    ConsentRequest,
    ConsentResponse,
    ConsentStatusResponse,
    HealthResponse,
    IndividualProviderCreate,
    OrganizationalProviderCreate,
    PatientCreate,
    PatientResponse,
    ProviderResponse,
    ReferenceCodeResponse,
    ValueSetCategoryCreate,
    ValueSetCategoryResponse,
)
from pcm.services import consent as consent_service
from pcm.services import reference as reference_service
from pcm.services.audit import log_action
from pcm.services.encryption import encryption

logger = logging.getLogger(__name__)

router = APIRouter()


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def consent_to_response(consent: Consent) -> ConsentResponse:
    return ConsentResponse(
        id=consent.id,
        patient_id=consent.patient_id,
        consent_reference_id=consent.consent_reference_id,
        start_date=consent.start_date,
        end_date=consent.end_date,
        status=consent.status.value,
        created_at=consent.created_at,
        attested_at=consent.attested_at,
        revoked_at=consent.revoked_at,
        organizational_providers_permitted_to_disclose_npi=[
            p.npi for p in consent.organizational_providers_permitted_to_disclose
        ],
        providers_permitted_to_disclose_npi=[p.npi for p in consent.providers_permitted_to_disclose],
        organizational_providers_disclosure_is_made_to_npi=[
            p.npi for p in consent.organizational_providers_disclosure_is_made_to
        ],
        providers_disclosure_is_made_to_npi=[p.npi for p in consent.providers_disclosure_is_made_to],
        purpose_of_use_codes=[
            s.purpose_of_use_code.code for s in consent.share_for_purpose_of_use_codes
        ],
        do_not_share_clinical_document_type_codes=[
            c.code for c in consent.do_not_share_clinical_document_type_codes
        ],
        do_not_share_sensitivity_policy_codes=[
            c.code for c in consent.do_not_share_sensitivity_policy_codes
        ],
        do_not_share_clinical_concept_codes=[
            c.code for c in consent.do_not_share_clinical_concept_codes
        ],
    )


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        db_status = "disconnected"
    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        database=db_status,
    )


# ---------------------------------------------------------------------------
# Patients and providers
# ---------------------------------------------------------------------------

@router.post("/patients", response_model=PatientResponse, status_code=201)
def create_patient(payload: PatientCreate, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude={"ssn"})
    patient = Patient(**data, encrypted_ssn=encryption.encrypt(payload.ssn))
    db.add(patient)
    flush_unique(db, "Patient", payload.medical_record_number)
    log_action(db, actor="api_user", action="create", resource_type="Patient", resource_id=patient.id)
    db.commit()
    return patient


@router.get("/patients/{patient_id}", response_model=PatientResponse)
def get_patient(patient_id: UUID, db: Session = Depends(get_db)):
    return consent_service.get_patient(db, patient_id)


@router.post("/providers/organizational", response_model=ProviderResponse, status_code=201)
def create_organizational_provider(
    payload: OrganizationalProviderCreate, db: Session = Depends(get_db)
):
    provider = OrganizationalProvider(**payload.model_dump())
    db.add(provider)
    flush_unique(db, "OrganizationalProvider", payload.npi)
    db.commit()
    return provider


@router.post("/providers/individual", response_model=ProviderResponse, status_code=201)
def create_individual_provider(payload: IndividualProviderCreate, db: Session = Depends(get_db)):
    provider = IndividualProvider(**payload.model_dump())
    db.add(provider)
    flush_unique(db, "IndividualProvider", payload.npi)
    db.commit()
    return provider


# ---------------------------------------------------------------------------
# Consents
# ---------------------------------------------------------------------------

@router.post("/patients/{patient_id}/consents", response_model=ConsentResponse, status_code=201)
def create_consent(patient_id: UUID, payload: ConsentRequest, db: Session = Depends(get_db)):
    consent = consent_service.create_consent(db, patient_id, payload)
    db.commit()
    return consent_to_response(consent)


@router.get("/patients/{patient_id}/consents", response_model=ConsentPage)
def list_consents(
    patient_id: UUID,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    consents = consent_service.list_consents_for_patient(db, patient_id, page, size)
    return ConsentPage(
        items=[consent_to_response(c) for c in consents],
        total=consent_service.count_consents(db, patient_id),
        page=page,
        size=size,
    )


@router.get("/consents/{consent_id}", response_model=ConsentResponse)
def get_consent(consent_id: UUID, db: Session = Depends(get_db)):
    return consent_to_response(consent_service.find_consent(db, consent_id))


@router.get("/consents/{consent_id}/status", response_model=ConsentStatusResponse)
def get_consent_status(consent_id: UUID, db: Session = Depends(get_db)):
    status = consent_service.get_consent_status(db, consent_id)
    return ConsentStatusResponse(id=consent_id, status=status.value)


@router.put("/consents/{consent_id}", response_model=ConsentResponse)
def update_consent(consent_id: UUID, payload: ConsentRequest, db: Session = Depends(get_db)):
    consent = consent_service.update_consent(db, consent_id, payload)
    db.commit()
    return consent_to_response(consent)


@router.delete("/consents/{consent_id}", status_code=204)
def delete_consent(consent_id: UUID, db: Session = Depends(get_db)):
    consent_service.delete_consent(db, consent_id)
    db.commit()
    return Response(status_code=204)


@router.post("/consents/{consent_id}/attest", response_model=AttestationResponse)
def attest_consent(consent_id: UUID, request: Request, db: Session = Depends(get_db)):
    consent, result = consent_service.attest_consent(db, consent_id, _client_ip(request))
    db.commit()
    return AttestationResponse(
        consent=consent_to_response(consent),
        published=result.success,
        publish_message=result.message,
    )


@router.post("/consents/{consent_id}/revoke", response_model=ConsentResponse)
def revoke_consent(consent_id: UUID, request: Request, db: Session = Depends(get_db)):
    consent = consent_service.revoke_consent(db, consent_id, _client_ip(request))
    db.commit()
    return consent_to_response(consent)


@router.get("/consents/{consent_id}/history", response_model=list[AuditEntryResponse])
def get_consent_history(consent_id: UUID, db: Session = Depends(get_db)):
    return consent_service.consent_history(db, consent_id)


@router.get("/consents/{consent_id}/obligations", response_model=list[str])
def get_obligations(consent_id: UUID, db: Session = Depends(get_db)):
    return consent_service.find_obligations(db, consent_id)


@router.get("/consents/{consent_id}/fhir")
def get_fhir_consent(consent_id: UUID, db: Session = Depends(get_db)):
    return consent_service.get_fhir_consent(db, consent_id)


@router.get("/consents/{consent_id}/xacml")
def get_xacml(consent_id: UUID, db: Session = Depends(get_db)):
    return Response(
        content=consent_service.get_xacml_policy(db, consent_id),
        media_type="application/xml",
    )


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

@router.get("/reference/purposes-of-use", response_model=list[ReferenceCodeResponse])
def list_purposes_of_use(db: Session = Depends(get_db)):
    return reference_service.list_purpose_of_use_codes(db)


@router.get("/reference/document-types", response_model=list[ReferenceCodeResponse])
def list_document_types(db: Session = Depends(get_db)):
    return reference_service.list_clinical_document_type_codes(db)


@router.get("/valuesets/categories", response_model=list[ValueSetCategoryResponse])
def list_value_set_categories(db: Session = Depends(get_db)):
    return reference_service.list_value_set_categories(db)


@router.post("/valuesets/categories", response_model=ValueSetCategoryResponse, status_code=201)
def create_value_set_category(payload: ValueSetCategoryCreate, db: Session = Depends(get_db)):
    category = reference_service.create_value_set_category(db, payload)
    db.commit()
    return category


@router.get("/valuesets/categories/{category_id}", response_model=ValueSetCategoryResponse)
def get_value_set_category(category_id: UUID, db: Session = Depends(get_db)):
    return reference_service.get_value_set_category(db, category_id)


@router.put("/valuesets/categories/{category_id}", response_model=ValueSetCategoryResponse)
def update_value_set_category(
    category_id: UUID, payload: ValueSetCategoryCreate, db: Session = Depends(get_db)
):
    category = reference_service.update_value_set_category(db, category_id, payload)
    db.commit()
    return category


@router.delete("/valuesets/categories/{category_id}", response_model=ValueSetCategoryResponse)
def delete_value_set_category(category_id: UUID, db: Session = Depends(get_db)):
    category = reference_service.delete_value_set_category(db, category_id)
    response = ValueSetCategoryResponse.model_validate(category)
    db.commit()
    return response
