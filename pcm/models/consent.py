"""
Consent directive model.

A consent names the providers permitted to disclose and the providers the
disclosure is made to (each either organizational or individual), the
purposes of use it is shared for, and three "do not share" lists that become
obligations when the directive is published.

Lifecycle: SAVED -> ACTIVE (attested) -> REVOKED. Attested consents are never
physically deleted.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Uuid,
)
from sqlalchemy.orm import relationship

from pcm.models import patient, provider, reference  # noqa: F401
from pcm.models.database import Base


class ConsentStatus(str, enum.Enum):
    SAVED = "SAVED"
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"


def _link_table(name: str, target_table: str) -> Table:
    return Table(
        name,
        Base.metadata,
        Column("consent_id", Uuid, ForeignKey("consents.id", ondelete="CASCADE"), primary_key=True),
        Column("target_id", Uuid, ForeignKey(f"{target_table}.id"), primary_key=True),
    )


consent_org_permitted_to_disclose = _link_table(
    "consent_org_permitted_to_disclose", "organizational_providers"
)
consent_ind_permitted_to_disclose = _link_table(
    "consent_ind_permitted_to_disclose", "individual_providers"
)
consent_org_disclosure_made_to = _link_table(
    "consent_org_disclosure_made_to", "organizational_providers"
)
consent_ind_disclosure_made_to = _link_table(
    "consent_ind_disclosure_made_to", "individual_providers"
)
consent_do_not_share_document_types = _link_table(
    "consent_do_not_share_document_types", "clinical_document_type_codes"
)
consent_do_not_share_sensitivity_policies = _link_table(
    "consent_do_not_share_sensitivity_policies", "value_set_categories"
)
consent_do_not_share_clinical_concepts = _link_table(
    "consent_do_not_share_clinical_concepts", "clinical_concept_codes"
)


# ---------------------------------------------------------------------------
# Consent
# ---------------------------------------------------------------------------
class Consent(Base):
    __tablename__ = "consents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid, ForeignKey("patients.id"), nullable=False)
    consent_reference_id = Column(
        String(256), unique=True, nullable=False, comment="Policy id shared with the HIE"
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(
        Enum(ConsentStatus, name="consent_status_enum"),
        default=ConsentStatus.SAVED,
        nullable=False,
    )
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    attested_at = Column(DateTime, nullable=True)
    attester_ip = Column(String(64), nullable=True)
    revoked_at = Column(DateTime, nullable=True)
    revocation_attester_ip = Column(String(64), nullable=True)

    patient = relationship("Patient", back_populates="consents")

    organizational_providers_permitted_to_disclose = relationship(
        "OrganizationalProvider", secondary=consent_org_permitted_to_disclose, lazy="selectin"
    )
    providers_permitted_to_disclose = relationship(
        "IndividualProvider", secondary=consent_ind_permitted_to_disclose, lazy="selectin"
    )
    organizational_providers_disclosure_is_made_to = relationship(
        "OrganizationalProvider", secondary=consent_org_disclosure_made_to, lazy="selectin"
    )
    providers_disclosure_is_made_to = relationship(
        "IndividualProvider", secondary=consent_ind_disclosure_made_to, lazy="selectin"
    )

    share_for_purpose_of_use_codes = relationship(
        "ConsentShareForPurposeOfUse",
        back_populates="consent",
        cascade="all, delete-orphan",
        order_by="ConsentShareForPurposeOfUse.position",
        lazy="selectin",
    )

    do_not_share_clinical_document_type_codes = relationship(
        "ClinicalDocumentTypeCode", secondary=consent_do_not_share_document_types, lazy="selectin"
    )
    do_not_share_sensitivity_policy_codes = relationship(
        "ValueSetCategory", secondary=consent_do_not_share_sensitivity_policies, lazy="selectin"
    )
    do_not_share_clinical_concept_codes = relationship(
        "ClinicalConceptCode", secondary=consent_do_not_share_clinical_concepts, lazy="selectin"
    )

    __table_args__ = (Index("ix_consents_patient", "patient_id"),)


# ---------------------------------------------------------------------------
# Purpose of use – one row per requested purpose, repeats allowed
# ---------------------------------------------------------------------------
class ConsentShareForPurposeOfUse(Base):
    __tablename__ = "consent_share_for_purpose_of_use"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    consent_id = Column(Uuid, ForeignKey("consents.id", ondelete="CASCADE"), nullable=False)
    purpose_of_use_code_id = Column(Uuid, ForeignKey("purpose_of_use_codes.id"), nullable=False)
    position = Column(Integer, default=0, nullable=False)

    consent = relationship("Consent", back_populates="share_for_purpose_of_use_codes")
    purpose_of_use_code = relationship("PurposeOfUseCode", lazy="joined")
