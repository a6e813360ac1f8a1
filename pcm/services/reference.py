"""Reference vocabularies and value set category maintenance."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pcm.exceptions import CategoryInUseError, NotFoundError
from pcm.models.consent import consent_do_not_share_sensitivity_policies
from pcm.models.database import flush_unique
from pcm.models.reference import ClinicalDocumentTypeCode, PurposeOfUseCode, ValueSetCategory
from pcm.schemas.api import ValueSetCategoryCreate
from pcm.services.codes import SensitivityPolicyCode

logger = logging.getLogger(__name__)


def list_purpose_of_use_codes(db: Session) -> list[PurposeOfUseCode]:
    return list(db.scalars(select(PurposeOfUseCode).order_by(PurposeOfUseCode.code)))


def list_clinical_document_type_codes(db: Session) -> list[ClinicalDocumentTypeCode]:
    return list(db.scalars(select(ClinicalDocumentTypeCode).order_by(ClinicalDocumentTypeCode.code)))


def list_value_set_categories(db: Session) -> list[ValueSetCategory]:
    logger.debug("Finding all value set categories")
    stmt = select(ValueSetCategory).order_by(ValueSetCategory.display_order, ValueSetCategory.code)
    return list(db.scalars(stmt))


def get_value_set_category(db: Session, category_id: UUID) -> ValueSetCategory:
    category = db.get(ValueSetCategory, category_id)
    if category is None:
        logger.debug("No value set category found with id %s", category_id)
        raise NotFoundError("ValueSetCategory", category_id)
    return category


def create_value_set_category(db: Session, data: ValueSetCategoryCreate) -> ValueSetCategory:
    logger.debug("Creating value set category %s", data.code)
    category = ValueSetCategory(
        code=data.code,
        name=data.name,
        description=data.description or "",
        federal=data.federal,
        display_order=data.display_order,
        user_name=data.user_name,
    )
    db.add(category)
    flush_unique(db, "ValueSetCategory", data.code)
    return category


def update_value_set_category(
    db: Session, category_id: UUID, data: ValueSetCategoryCreate
) -> ValueSetCategory:
    category = get_value_set_category(db, category_id)
    category.code = data.code
    category.name = data.name
    category.description = data.description or ""
    category.federal = data.federal
    category.display_order = data.display_order
    category.user_name = data.user_name
    flush_unique(db, "ValueSetCategory", data.code)
    return category


def count_consents_using_category(db: Session, category_id: UUID) -> int:
    link = consent_do_not_share_sensitivity_policies
    stmt = select(func.count()).select_from(link).where(link.c.target_id == category_id)
    return db.scalar(stmt) or 0


def delete_value_set_category(db: Session, category_id: UUID) -> ValueSetCategory:
    """Delete a category no consent names; categories in use are kept."""
    category = get_value_set_category(db, category_id)
    in_use = count_consents_using_category(db, category_id)
    if in_use:
        raise CategoryInUseError(category.code, in_use)
    db.delete(category)
    db.flush()
    return category


# Purposes understood by the code translator
DEFAULT_PURPOSES_OF_USE = {
    "TREATMENT": "Treatment",
    "PAYMENT": "Payment",
    "RESEARCH": "Research",
}

DEFAULT_DOCUMENT_TYPES = {
    "34133-9": "Summarization of episode note",
    "11488-4": "Consult note",
    "18842-5": "Discharge summary",
}


def seed_reference_data(db: Session) -> None:
    """Insert the default vocabularies that are not present yet."""
    existing = {c for c in db.scalars(select(PurposeOfUseCode.code))}
    for code, display in DEFAULT_PURPOSES_OF_USE.items():
        if code not in existing:
            db.add(PurposeOfUseCode(code=code, display_name=display))

    existing = {c for c in db.scalars(select(ClinicalDocumentTypeCode.code))}
    for code, display in DEFAULT_DOCUMENT_TYPES.items():
        if code not in existing:
            db.add(ClinicalDocumentTypeCode(code=code, display_name=display))

    existing = {c for c in db.scalars(select(ValueSetCategory.code))}
    for order, entry in enumerate(SensitivityPolicyCode):
        if entry.code not in existing:
            db.add(
                ValueSetCategory(
                    code=entry.code,
                    name=entry.display_name,
                    federal=entry.code == "ETH",
                    display_order=order,
                    code_system=entry.code_system,
                )
            )
    db.flush()
