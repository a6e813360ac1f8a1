"""
Patient identity and the compliance audit trail.

The SSN is the only PHI column kept encrypted at rest; the remaining
demographics are needed in clear text to build the contained FHIR Patient.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from pcm.models.database import Base


# ---------------------------------------------------------------------------
# Patient – the consent owner
# ---------------------------------------------------------------------------
class Patient(Base):
    __tablename__ = "patients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    medical_record_number = Column(
        String(64), unique=True, nullable=False, comment="Local patient identifier"
    )
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)
    birth_date = Column(Date)
    gender_code = Column(String(16))
    email = Column(String(256))
    telephone = Column(String(32))
    address = Column(String(256))
    city = Column(String(128))
    state_code = Column(String(8))
    zip = Column(String(16))
    encrypted_ssn = Column(Text, nullable=True, comment="Fernet-encrypted SSN")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    consents = relationship("Consent", back_populates="patient", lazy="selectin")

    __table_args__ = (Index("ix_patients_mrn", "medical_record_number"),)


# ---------------------------------------------------------------------------
# Audit Log – immutable compliance trail
# ---------------------------------------------------------------------------
class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor = Column(String(128), nullable=False, comment="User or service identity")
    action = Column(
        String(64), nullable=False, comment="create | update | delete | attest | revoke | publish"
    )
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(Uuid, nullable=False)
    detail = Column(JSON, comment="Context for the action")
    timestamp = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (Index("ix_audit_timestamp", "timestamp"),)
