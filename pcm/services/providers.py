"""
Provider resolution: turn the providers named on a consent into the single
contained FHIR Organization or Practitioner for each role.

An organizational provider wins over an individual one for the same role.
Each role accepts exactly one provider of the chosen kind; extra entries are
rejected rather than silently dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pcm.config import Settings, settings
from pcm.exceptions import AmbiguousProviderError, PreconditionViolation

logger = logging.getLogger(__name__)


def _require_npi(provider: Any) -> str:
    npi = getattr(provider, "npi", None)
    if not npi:
        raise PreconditionViolation(f"{type(provider).__name__} has no NPI")
    return npi


def _address(provider: Any) -> dict[str, Any]:
    address: dict[str, Any] = {}
    if provider.first_line_practice_location_address:
        address["line"] = [provider.first_line_practice_location_address]
    if provider.practice_location_address_city_name:
        address["city"] = provider.practice_location_address_city_name
    if provider.practice_location_address_state_name:
        address["state"] = provider.practice_location_address_state_name
    if provider.practice_location_address_postal_code:
        address["postalCode"] = provider.practice_location_address_postal_code
    return address


def organization_resource(provider: Any, config: Settings = settings) -> dict[str, Any]:
    """Contained FHIR Organization for an organizational (or staff) provider."""
    npi = _require_npi(provider)
    resource: dict[str, Any] = {
        "resourceType": "Organization",
        "id": npi,
        "identifier": [{"system": config.NPI_SYSTEM, "value": npi}],
        "name": provider.org_name,
    }
    address = _address(provider)
    if address:
        resource["address"] = [address]
    return resource


def practitioner_resource(provider: Any, config: Settings = settings) -> dict[str, Any]:
    """Contained FHIR Practitioner for an individual provider."""
    npi = _require_npi(provider)
    resource: dict[str, Any] = {
        "resourceType": "Practitioner",
        "id": npi,
        "identifier": [{"system": config.NPI_SYSTEM, "value": npi}],
        "name": [{"family": provider.last_name, "given": [provider.first_name]}],
    }
    address = _address(provider)
    if address:
        resource["address"] = [address]
    return resource


def _single(providers: Sequence[Any], role: str) -> Any:
    if len(providers) > 1:
        raise AmbiguousProviderError(role, [_require_npi(p) for p in providers])
    return providers[0]


def resolve_provider(
    organizational: Sequence[Any] | None,
    individual: Sequence[Any] | None,
    role: str,
    config: Settings = settings,
) -> dict[str, Any] | None:
    """
    Resolve the FHIR resource for one consent role.

    Returns ``None`` when the role names no provider at all.
    """
    if organizational:
        resource = organization_resource(_single(organizational, role), config)
    elif individual:
        resource = practitioner_resource(_single(individual, role), config)
    else:
        return None
    logger.debug("Resolved %s provider to %s/%s", role, resource["resourceType"], resource["id"])
    return resource
