"""Tests for consent reference id generation and its retry loop."""

import random
import re
from types import SimpleNamespace

import pytest

from pcm.config import Settings
from pcm.exceptions import PreconditionViolation, UniqueValueGenerationExhaustedError
from pcm.services.policy_id import (
    build_policy_id,
    first_npi,
    generate_policy_id,
    generate_unique_value,
    random_suffix,
)


def _config(max_attempts=3):
    config = Settings()
    config.PID_DOMAIN_ID = "1.2.3.4"
    config.PID_DOMAIN_TYPE = "iso"
    config.POLICY_ID_MAX_ATTEMPTS = max_attempts
    return config


def _make_request(org_recipients=(), ind_recipients=("2222222222",), org_permitted=("1111111111",), ind_permitted=()):
    return SimpleNamespace(
        organizational_providers_disclosure_is_made_to_npi=list(org_recipients),
        providers_disclosure_is_made_to_npi=list(ind_recipients),
        organizational_providers_permitted_to_disclose_npi=list(org_permitted),
        providers_permitted_to_disclose_npi=list(ind_permitted),
    )


def _exists_until(attempt):
    """Report a collision for every candidate before ``attempt``."""
    seen = []

    def exists(candidate):
        seen.append(candidate)
        return len(seen) < attempt

    exists.seen = seen
    return exists


def test_policy_id_format():
    policy_id = generate_policy_id(
        _make_request(), "mrn-100", lambda c: False, _config(), random.Random(7)
    )
    prefix = "MRN-100:&1.2.3.4&ISO:2222222222:1111111111:"
    assert policy_id.startswith(prefix)
    assert re.fullmatch(r"[A-Z0-9]{6}", policy_id[len(prefix):])


def test_prefix_deterministic_and_seed_reproducible():
    first = generate_policy_id(_make_request(), "MRN-1", lambda c: False, _config(), random.Random(42))
    second = generate_policy_id(_make_request(), "MRN-1", lambda c: False, _config(), random.Random(42))
    assert first == second


def test_organizational_npi_takes_precedence():
    request = _make_request(org_recipients=["3333333333"], ind_recipients=["2222222222"])
    policy_id = generate_policy_id(request, "MRN-1", lambda c: False, _config(), random.Random(1))
    assert ":3333333333:1111111111:" in policy_id
    assert first_npi([], ["9"]) == "9"


def test_missing_mrn_fails_fast():
    with pytest.raises(PreconditionViolation):
        generate_policy_id(_make_request(), "", lambda c: False, _config())
    with pytest.raises(PreconditionViolation):
        build_policy_id(None, "1", "2", "ABCDEF", _config())
    with pytest.raises(PreconditionViolation):
        generate_policy_id(_make_request(), "   ", lambda c: False, _config())
    with pytest.raises(PreconditionViolation):
        build_policy_id(" \t", "1", "2", "ABCDEF", _config())


def test_role_without_provider_fails_fast():
    with pytest.raises(PreconditionViolation):
        first_npi([], [])


@pytest.mark.parametrize("attempt", [1, 2, 3])
def test_retry_succeeds_within_bound(attempt):
    exists = _exists_until(attempt)
    policy_id = generate_policy_id(_make_request(), "MRN-1", exists, _config(3), random.Random(3))
    assert len(exists.seen) == attempt
    assert policy_id == exists.seen[-1]


def test_retry_exhausted_beyond_bound():
    exists = _exists_until(4)
    with pytest.raises(UniqueValueGenerationExhaustedError) as excinfo:
        generate_policy_id(_make_request(), "MRN-1", exists, _config(3), random.Random(3))
    assert excinfo.value.attempts == 3
    assert len(exists.seen) == 3


def test_generate_unique_value_returns_first_unique():
    values = iter([1, 2, 3])
    assert generate_unique_value(lambda: next(values), lambda v: v >= 2, 3) == 2


def test_random_suffix_alphanumeric():
    suffix = random_suffix()
    assert len(suffix) == 6
    assert suffix.isalnum()
