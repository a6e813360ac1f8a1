"""
Validation helpers.

- JSON Schema validation that collects every error rather than failing on
  the first one
- Business checks applied before a consent is stored
"""

from datetime import date
from typing import Any, Iterable

import jsonschema


def validate_against_schema(data: dict[str, Any], schema: dict[str, Any]) -> list[str]:
    """
    Validate a dict against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    validator = jsonschema.Draft7Validator(schema)
    return [error.message for error in validator.iter_errors(data)]


def validate_consent_date(start_date: date, end_date: date) -> bool:
    """A consent period is valid when it does not end before it starts."""
    return start_date <= end_date


def are_there_duplicates_in_two_sets(first: Iterable[Any], second: Iterable[Any]) -> bool:
    """True if any element appears in both collections."""
    return not set(first).isdisjoint(second)
