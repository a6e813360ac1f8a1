"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Patients and providers
# ---------------------------------------------------------------------------

class PatientCreate(BaseModel):
    medical_record_number: str = Field(..., min_length=1, pattern=r"\S")
    first_name: str
    last_name: str
    birth_date: date | None = None
    gender_code: str | None = None
    email: str | None = None
    telephone: str | None = None
    address: str | None = None
    city: str | None = None
    state_code: str | None = None
    zip: str | None = None
    ssn: str | None = Field(None, pattern=r"^\d{3}-?\d{2}-?\d{4}$")


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    medical_record_number: str
    first_name: str
    last_name: str
    gender_code: str | None
    created_at: datetime


class ProviderAddress(BaseModel):
    first_line_practice_location_address: str | None = None
    practice_location_address_city_name: str | None = None
    practice_location_address_state_name: str | None = None
    practice_location_address_postal_code: str | None = None


class OrganizationalProviderCreate(ProviderAddress):
    npi: str = Field(..., pattern=r"^\d{10}$")
    org_name: str


class IndividualProviderCreate(ProviderAddress):
    npi: str = Field(..., pattern=r"^\d{10}$")
    first_name: str
    last_name: str


class ProviderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    npi: str


# ---------------------------------------------------------------------------
# Consents
# ---------------------------------------------------------------------------

class ConsentRequest(BaseModel):
    """A consent directive as submitted by the patient, providers given by NPI."""
    start_date: date
    end_date: date
    organizational_providers_permitted_to_disclose_npi: list[str] = []
    providers_permitted_to_disclose_npi: list[str] = []
    organizational_providers_disclosure_is_made_to_npi: list[str] = []
    providers_disclosure_is_made_to_npi: list[str] = []
    purpose_of_use_codes: list[str] = Field(..., min_length=1)
    do_not_share_clinical_document_type_codes: list[str] = []
    do_not_share_sensitivity_policy_codes: list[str] = []
    do_not_share_clinical_concept_codes: list[str] = []

    @model_validator(mode="after")
    def _each_role_has_a_provider(self) -> "ConsentRequest":
        if not (
            self.organizational_providers_permitted_to_disclose_npi
            or self.providers_permitted_to_disclose_npi
        ):
            raise ValueError("at least one provider permitted to disclose is required")
        if not (
            self.organizational_providers_disclosure_is_made_to_npi
            or self.providers_disclosure_is_made_to_npi
        ):
            raise ValueError("at least one disclosure recipient is required")
        return self


class ConsentResponse(BaseModel):
    id: UUID
    patient_id: UUID
    consent_reference_id: str
    start_date: date
    end_date: date
    status: str
    created_at: datetime
    attested_at: datetime | None = None
    revoked_at: datetime | None = None
    organizational_providers_permitted_to_disclose_npi: list[str]
    providers_permitted_to_disclose_npi: list[str]
    organizational_providers_disclosure_is_made_to_npi: list[str]
    providers_disclosure_is_made_to_npi: list[str]
    purpose_of_use_codes: list[str]
    do_not_share_clinical_document_type_codes: list[str]
    do_not_share_sensitivity_policy_codes: list[str]
    do_not_share_clinical_concept_codes: list[str]


class ConsentPage(BaseModel):
    items: list[ConsentResponse]
    total: int
    page: int
    size: int


class ConsentStatusResponse(BaseModel):
    id: UUID
    status: str


class AttestationResponse(BaseModel):
    consent: ConsentResponse
    published: bool
    publish_message: str


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    actor: str
    action: str
    detail: dict | None = None
    timestamp: datetime


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class ReferenceCodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    display_name: str
    code_system: str


class ValueSetCategoryCreate(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str | None = None
    federal: bool = False
    display_order: int = 0
    user_name: str | None = None


class ValueSetCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: str | None
    federal: bool
    display_order: int


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
