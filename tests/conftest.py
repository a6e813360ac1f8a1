"""Shared fixtures: an in-memory database seeded with reference data and sample records."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FHIR_PUBLISH_ENABLED"] = "false"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from pcm.main import app  # noqa: E402
from pcm.models.database import Base, get_db  # noqa: E402
from pcm.models.patient import Patient  # noqa: E402
from pcm.models.provider import IndividualProvider, OrganizationalProvider  # noqa: E402
from pcm.services.encryption import encryption  # noqa: E402
from pcm.services.reference import seed_reference_data  # noqa: E402

ORG_NPI = "1111111111"
OTHER_ORG_NPI = "3333333333"
IND_NPI = "2222222222"
OTHER_IND_NPI = "4444444444"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    seed_reference_data(session)
    session.commit()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def patient(db):
    record = Patient(
        medical_record_number="MRN-100",
        first_name="Jane",
        last_name="Doe",
        birth_date=date(1980, 5, 17),
        gender_code="F",
        email="jane@example.org",
        encrypted_ssn=encryption.encrypt("123-45-6789"),
    )
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def providers(db):
    records = {
        ORG_NPI: OrganizationalProvider(
            npi=ORG_NPI,
            org_name="Valley Behavioral Health",
            first_line_practice_location_address="1 Main St",
            practice_location_address_city_name="Columbia",
            practice_location_address_state_name="MD",
            practice_location_address_postal_code="21044",
        ),
        OTHER_ORG_NPI: OrganizationalProvider(npi=OTHER_ORG_NPI, org_name="County Hospital"),
        IND_NPI: IndividualProvider(npi=IND_NPI, first_name="Ana", last_name="Smith"),
        OTHER_IND_NPI: IndividualProvider(npi=OTHER_IND_NPI, first_name="Bo", last_name="Lee"),
    }
    db.add_all(records.values())
    db.commit()
    return records


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
