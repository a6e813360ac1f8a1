"""
Consent -> FHIR Consent translation and publication to the HIE.

Assembly:
- contained Patient, author and recipient resources
- purposes of use as ActReason codings, one per stored purpose
- an except clause carrying either the denied or the permitted sensitivity
  codes, chosen by ``KEEP_EXCLUDE_LIST``

Publication validates the resource first (fatal) and then POSTs it with a
bounded timeout; transport failures are reported, not raised.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from pcm.config import Settings, settings
from pcm.exceptions import ValidationFailedError
from pcm.schemas.fhir import FHIR_CONSENT_SCHEMA
from pcm.services.codes import translate_purpose_of_use
from pcm.services.fhir_patient import build_fhir_patient, patient_display_name
from pcm.services.obligations import collect_obligation_codes, partition_sensitivity_codes
from pcm.services.providers import resolve_provider
from pcm.services.validation import validate_against_schema

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    success: bool
    message: str
    status_code: int | None = None
    skipped: bool = False


def _purpose_codings(consent: Any, config: Settings) -> list[dict[str, str]]:
    codings = []
    for share in consent.share_for_purpose_of_use_codes:
        internal = share.purpose_of_use_code
        codings.append(
            {
                "system": config.POU_SYSTEM,
                "code": translate_purpose_of_use(internal.code),
                "display": internal.code,
            }
        )
    return codings


def assemble_consent(
    consent: Any,
    patient: Any,
    config: Settings = settings,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the FHIR Consent resource for a stored consent."""
    fhir_patient = build_fhir_patient(patient, config)
    patient_ref = {"reference": f"#{fhir_patient['id']}"}

    resource: dict[str, Any] = {
        "resourceType": "Consent",
        "id": str(consent.id or uuid.uuid4()),
        "contained": [fhir_patient],
        "identifier": {
            "system": config.PID_DOMAIN_SYSTEM,
            "value": consent.consent_reference_id,
        },
        "status": "active",
        "category": [
            {
                "coding": [
                    {
                        "system": config.CONSENT_TYPE_SYSTEM,
                        "code": config.CONSENT_TYPE_CODE,
                        "display": config.CONSENT_TYPE_LABEL,
                    }
                ]
            }
        ],
        "patient": patient_ref,
        "period": {
            "start": consent.start_date.isoformat(),
            "end": consent.end_date.isoformat(),
        },
        "dateTime": (now or datetime.now(timezone.utc)).isoformat(),
        "consentingParty": [dict(patient_ref, display=patient_display_name(patient))],
        "policyRule": consent.consent_reference_id,
        "purpose": _purpose_codings(consent, config),
    }

    author = resolve_provider(
        consent.organizational_providers_permitted_to_disclose,
        consent.providers_permitted_to_disclose,
        "permitted-to-disclose",
        config,
    )
    if author is not None:
        resource["contained"].append(author)
        resource["organization"] = [{"reference": f"#{author['id']}"}]

    recipient = resolve_provider(
        consent.organizational_providers_disclosure_is_made_to,
        consent.providers_disclosure_is_made_to,
        "disclosure-recipient",
        config,
    )
    if recipient is not None:
        resource["contained"].append(recipient)
        resource["recipient"] = [{"reference": f"#{recipient['id']}"}]

    excluded, included = partition_sensitivity_codes(collect_obligation_codes(consent))
    if config.KEEP_EXCLUDE_LIST:
        resource["except"] = [{"type": "deny", "securityLabel": excluded}]
    else:
        resource["except"] = [{"type": "permit", "securityLabel": included}]

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("FHIR consent:\n%s", json.dumps(resource, indent=2))
    return resource


def validate_consent_resource(resource: dict[str, Any]) -> None:
    errors = validate_against_schema(resource, FHIR_CONSENT_SCHEMA)
    logger.debug("Consent validation successful: %s", not errors)
    if errors:
        raise ValidationFailedError(errors)


def publish_consent(
    resource: dict[str, Any],
    config: Settings = settings,
    client: httpx.Client | None = None,
) -> PublishResult:
    """
    Validate and create the Consent on the exchange's FHIR endpoint.

    Raises ``ValidationFailedError`` for an invalid resource. Network errors,
    timeouts and non-2xx responses come back as an unsuccessful result.
    """
    validate_consent_resource(resource)

    if not config.FHIR_PUBLISH_ENABLED:
        logger.info("FHIR publishing disabled; consent %s not sent", resource["id"])
        return PublishResult(success=False, message="Publishing disabled", skipped=True)

    url = f"{config.FHIR_SERVER_URL.rstrip('/')}/Consent"
    own_client = client is None
    http = client or httpx.Client(timeout=config.FHIR_CLIENT_TIMEOUT_SECONDS)
    try:
        response = http.post(
            url,
            content=json.dumps(resource),
            headers={"Content-Type": "application/fhir+json"},
            timeout=config.FHIR_CLIENT_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error("HIE rejected consent %s: HTTP %s", resource["id"], exc.response.status_code)
        return PublishResult(
            success=False,
            message=f"HTTP {exc.response.status_code}",
            status_code=exc.response.status_code,
        )
    except httpx.HTTPError as exc:
        logger.error("Publishing consent %s failed: %s", resource["id"], exc)
        return PublishResult(success=False, message=str(exc) or type(exc).__name__)
    finally:
        if own_client:
            http.close()

    logger.info("Published consent %s to %s", resource["id"], url)
    return PublishResult(success=True, message="Published", status_code=response.status_code)
