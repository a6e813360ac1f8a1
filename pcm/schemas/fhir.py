"""
JSON schemas for the FHIR resources this module publishes.

Pragmatic STU3 subsets: they pin down the structure the health information
exchange relies on (identifiers, coded purposes, the except clause) without
reproducing the full FHIR structure definitions.
"""

CODING_SCHEMA: dict = {
    "type": "object",
    "required": ["system", "code"],
    "properties": {
        "system": {"type": "string", "minLength": 1},
        "code": {"type": "string", "minLength": 1},
        "display": {"type": "string"},
    },
}

REFERENCE_SCHEMA: dict = {
    "type": "object",
    "required": ["reference"],
    "properties": {
        "reference": {"type": "string", "pattern": "^#.+"},
        "display": {"type": "string"},
    },
}

IDENTIFIER_SCHEMA: dict = {
    "type": "object",
    "required": ["system", "value"],
    "properties": {
        "system": {"type": "string", "minLength": 1},
        "value": {"type": "string", "minLength": 1},
        "use": {"type": "string", "enum": ["usual", "official", "temp", "secondary"]},
    },
}

ADDRESS_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "line": {"type": "array", "items": {"type": "string"}},
        "city": {"type": "string"},
        "state": {"type": "string"},
        "postalCode": {"type": "string"},
    },
    "additionalProperties": False,
}


FHIR_PATIENT_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "FHIR Patient (contained)",
    "type": "object",
    "required": ["resourceType", "id", "identifier", "name"],
    "properties": {
        "resourceType": {"type": "string", "const": "Patient"},
        "id": {"type": "string", "minLength": 1},
        "active": {"type": "boolean"},
        "identifier": {"type": "array", "minItems": 1, "items": IDENTIFIER_SCHEMA},
        "name": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["family"],
                "properties": {
                    "family": {"type": "string"},
                    "given": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
        "gender": {"type": "string", "enum": ["male", "female", "other", "unknown"]},
        "birthDate": {"type": "string", "pattern": "^\\d{4}-\\d{2}-\\d{2}$"},
        "telecom": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["system", "value"],
                "properties": {
                    "system": {"type": "string", "enum": ["phone", "email"]},
                    "value": {"type": "string"},
                },
            },
        },
        "address": {"type": "array", "items": ADDRESS_SCHEMA},
    },
    "additionalProperties": False,
}


PROVIDER_RESOURCE_SCHEMA: dict = {
    "type": "object",
    "required": ["resourceType", "id", "identifier"],
    "properties": {
        "resourceType": {"type": "string", "enum": ["Organization", "Practitioner"]},
        "id": {"type": "string", "minLength": 1},
        "identifier": {"type": "array", "minItems": 1, "items": IDENTIFIER_SCHEMA},
        "name": {},
        "address": {"type": "array", "items": ADDRESS_SCHEMA},
    },
    "additionalProperties": False,
}


FHIR_CONSENT_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "FHIR Consent (STU3 subset)",
    "description": "Privacy consent directive published to the health information exchange.",
    "type": "object",
    "required": [
        "resourceType",
        "id",
        "status",
        "patient",
        "identifier",
        "policyRule",
        "period",
        "purpose",
        "except",
    ],
    "properties": {
        "resourceType": {"type": "string", "const": "Consent"},
        "id": {"type": "string", "minLength": 1},
        "contained": {
            "type": "array",
            "items": {
                "if": {"properties": {"resourceType": {"const": "Patient"}}},
                "then": FHIR_PATIENT_SCHEMA,
                "else": PROVIDER_RESOURCE_SCHEMA,
            },
        },
        "identifier": IDENTIFIER_SCHEMA,
        "status": {
            "type": "string",
            "enum": ["draft", "proposed", "active", "rejected", "inactive", "entered-in-error"],
        },
        "category": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["coding"],
                "properties": {"coding": {"type": "array", "minItems": 1, "items": CODING_SCHEMA}},
            },
        },
        "patient": REFERENCE_SCHEMA,
        "period": {
            "type": "object",
            "required": ["start", "end"],
            "properties": {
                "start": {"type": "string", "pattern": "^\\d{4}-\\d{2}-\\d{2}"},
                "end": {"type": "string", "pattern": "^\\d{4}-\\d{2}-\\d{2}"},
            },
        },
        "dateTime": {"type": "string"},
        "consentingParty": {"type": "array", "items": REFERENCE_SCHEMA},
        "organization": {"type": "array", "items": REFERENCE_SCHEMA},
        "recipient": {"type": "array", "items": REFERENCE_SCHEMA},
        "policyRule": {"type": "string", "minLength": 1},
        "purpose": {"type": "array", "minItems": 1, "items": CODING_SCHEMA},
        "except": {
            "type": "array",
            "minItems": 1,
            "maxItems": 1,
            "items": {
                "type": "object",
                "required": ["type", "securityLabel"],
                "properties": {
                    "type": {"type": "string", "enum": ["deny", "permit"]},
                    "securityLabel": {"type": "array", "items": CODING_SCHEMA},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}
