"""
Reference vocabularies.

These tables are lookup data: the consent workflow only reads them. Value
set categories are the one exception and are maintained through the value
set endpoints.
"""

import uuid

from sqlalchemy import Boolean, Column, Integer, String, Text, Uuid

from pcm.models.database import Base


class ClinicalDocumentTypeCode(Base):
    __tablename__ = "clinical_document_type_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(64), unique=True, nullable=False)
    display_name = Column(String(256), nullable=False)
    code_system = Column(String(256), nullable=False, default="http://loinc.org")


class PurposeOfUseCode(Base):
    __tablename__ = "purpose_of_use_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(64), unique=True, nullable=False, comment="e.g. TREATMENT")
    display_name = Column(String(256), nullable=False)
    code_system = Column(String(256), nullable=False, default="http://hl7.org/fhir/v3/ActReason")


class ValueSetCategory(Base):
    """A sensitivity policy category (ETH, HIV, PSY, ...)."""

    __tablename__ = "value_set_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(64), unique=True, nullable=False)
    name = Column(String(256), nullable=False)
    description = Column(Text, default="")
    federal = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    code_system = Column(String(256), nullable=False, default="http://hl7.org/fhir/v3/ActCode")
    user_name = Column(String(128), comment="Last modified by")


class ClinicalConceptCode(Base):
    __tablename__ = "clinical_concept_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(64), unique=True, nullable=False)
    display_name = Column(String(256), nullable=False)
    code_system = Column(String(256), nullable=False)
