"""Healthcare providers a consent can name, keyed by NPI."""

import uuid

from sqlalchemy import Column, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from pcm.models.database import Base


class OrganizationalProvider(Base):
    __tablename__ = "organizational_providers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    npi = Column(String(10), unique=True, nullable=False, comment="National Provider Identifier")
    org_name = Column(String(256), nullable=False)
    first_line_practice_location_address = Column(String(256))
    practice_location_address_city_name = Column(String(128))
    practice_location_address_state_name = Column(String(64))
    practice_location_address_postal_code = Column(String(16))


class IndividualProvider(Base):
    __tablename__ = "individual_providers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    npi = Column(String(10), unique=True, nullable=False, comment="National Provider Identifier")
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)
    first_line_practice_location_address = Column(String(256))
    practice_location_address_city_name = Column(String(128))
    practice_location_address_state_name = Column(String(64))
    practice_location_address_postal_code = Column(String(16))


class StaffOrganizationalProvider(Base):
    """Staff-level attribution for an organization; all fields come from the wrapped provider."""

    __tablename__ = "staff_organizational_providers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organizational_provider_id = Column(
        Uuid, ForeignKey("organizational_providers.id"), unique=True, nullable=False
    )

    organizational_provider = relationship("OrganizationalProvider", lazy="joined")

    @property
    def npi(self):
        return self.organizational_provider.npi

    @property
    def org_name(self):
        return self.organizational_provider.org_name

    @property
    def first_line_practice_location_address(self):
        return self.organizational_provider.first_line_practice_location_address

    @property
    def practice_location_address_city_name(self):
        return self.organizational_provider.practice_location_address_city_name

    @property
    def practice_location_address_state_name(self):
        return self.organizational_provider.practice_location_address_state_name

    @property
    def practice_location_address_postal_code(self):
        return self.organizational_provider.practice_location_address_postal_code
