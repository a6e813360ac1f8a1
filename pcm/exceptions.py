"""Error taxonomy for consent management.

Every error the service layer raises derives from ``PcmError`` so the API
layer can map it to an HTTP response in one place.
"""

from __future__ import annotations


class PcmError(Exception):
    """Base class for all consent management errors."""


class PreconditionViolation(PcmError, ValueError):
    """A caller passed data that can never be valid (e.g. a patient with no MRN)."""


class UnsupportedCodeError(PcmError, ValueError):
    """A code is outside the recognized vocabulary."""

    def __init__(self, vocabulary: str, code: str | None):
        self.vocabulary = vocabulary
        self.code = code
        super().__init__(f"Unknown {vocabulary} code '{code}'")


class AmbiguousProviderError(PcmError):
    """More than one provider was supplied for a role that accepts exactly one."""

    def __init__(self, role: str, npis: list[str]):
        self.role = role
        self.npis = npis
        super().__init__(
            f"Expected a single {role} provider, got {len(npis)}: {', '.join(npis)}"
        )


class UniqueValueGenerationExhaustedError(PcmError):
    """No unique value could be produced within the attempt limit."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique value after {attempts} attempts")


class ValidationFailedError(PcmError):
    """An assembled resource did not pass schema validation."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__("Consent validation is not successful: " + "; ".join(messages))


class NotFoundError(PcmError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} '{identifier}' not found")


class InvalidConsentDatesError(PcmError):
    """The consent start date falls after its end date."""


class DuplicateProviderError(PcmError):
    """A provider is both permitted to disclose and a disclosure recipient."""

    def __init__(self, npis: set[str]):
        self.npis = npis
        super().__init__(
            "Providers cannot be both permitted to disclose and disclosure "
            f"recipients: {', '.join(sorted(npis))}"
        )


class ConsentStateError(PcmError):
    """The requested lifecycle transition is not allowed from the current status."""


class DuplicateRecordError(PcmError):
    """A record with the same unique key (MRN, NPI, category code) already exists."""

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' already exists")


class CategoryInUseError(PcmError):
    """A value set category is still named by at least one consent."""

    def __init__(self, code: str, consent_count: int):
        self.code = code
        self.consent_count = consent_count
        super().__init__(
            f"Value set category '{code}' is referenced by {consent_count} consent(s)"
        )
