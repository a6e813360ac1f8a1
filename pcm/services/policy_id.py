"""
Consent reference (policy) id generation.

Format: ``<mrn>:&<domainId>&<domainType>:<recipientNpi>:<permittedNpi>:<suffix>``,
upper-cased, where the suffix is 6 random alphanumerics. A candidate is
checked against the store and regenerated on collision up to a fixed number
of attempts. The unique constraint on ``consents.consent_reference_id``
remains the real guarantee; this check only makes a violation unlikely.
"""

from __future__ import annotations

import logging
import random
import string
from typing import Callable, Sequence, TypeVar

from pcm.config import Settings, settings
from pcm.exceptions import PreconditionViolation, UniqueValueGenerationExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RANDOM_SUFFIX_LENGTH = 6
_ALPHANUMERIC = string.ascii_letters + string.digits
_system_random = random.SystemRandom()


def generate_unique_value(
    supplier: Callable[[], T],
    is_unique: Callable[[T], bool],
    max_attempts: int,
) -> T:
    """Draw values from ``supplier`` until one passes ``is_unique``."""
    for attempt in range(1, max_attempts + 1):
        candidate = supplier()
        if is_unique(candidate):
            return candidate
        logger.warning("Generated value collided (attempt %d/%d)", attempt, max_attempts)
    raise UniqueValueGenerationExhaustedError(max_attempts)


def random_suffix(rng: random.Random | None = None) -> str:
    rng = rng or _system_random
    return "".join(rng.choice(_ALPHANUMERIC) for _ in range(RANDOM_SUFFIX_LENGTH))


def first_npi(organizational_npis: Sequence[str] | None, individual_npis: Sequence[str] | None) -> str:
    """Organizational NPIs take precedence over individual ones."""
    if organizational_npis:
        return organizational_npis[0]
    if individual_npis:
        return individual_npis[0]
    raise PreconditionViolation("A consent must name at least one provider for each role.")


def build_policy_id(
    mrn: str,
    recipient_npi: str,
    permitted_npi: str,
    suffix: str,
    config: Settings = settings,
) -> str:
    if not mrn or not mrn.strip():
        raise PreconditionViolation("The patient must have a local identifier.")
    return (
        f"{mrn}:&{config.PID_DOMAIN_ID}&{config.PID_DOMAIN_TYPE}"
        f":{recipient_npi}:{permitted_npi}:{suffix}"
    ).upper()


def generate_policy_id(
    request,
    mrn: str,
    exists: Callable[[str], bool],
    config: Settings = settings,
    rng: random.Random | None = None,
) -> str:
    """
    Generate a consent reference id not yet known to ``exists``.

    ``request`` carries the four provider NPI lists of a consent
    (``organizational_providers_disclosure_is_made_to_npi`` and friends).
    """
    if not mrn or not mrn.strip():
        raise PreconditionViolation("The patient must have a local identifier.")
    recipient = first_npi(
        request.organizational_providers_disclosure_is_made_to_npi,
        request.providers_disclosure_is_made_to_npi,
    )
    permitted = first_npi(
        request.organizational_providers_permitted_to_disclose_npi,
        request.providers_permitted_to_disclose_npi,
    )
    return generate_unique_value(
        lambda: build_policy_id(mrn, recipient, permitted, random_suffix(rng), config),
        lambda candidate: not exists(candidate),
        config.POLICY_ID_MAX_ATTEMPTS,
    )
