"""
Unit tests for the One-Time Password module.

Tests:
- Secret creation, defaults and overrides
- Token generation (HMAC-based and time-based)
- Validation windows
- Enrollment URIs
"""

import dataclasses
import time
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from stein_mfa import (
    Algorithm, HotpSecret, TotpSecret, Token,
    enrollment_url, generate, new_hotp, new_totp, validate
)
from stein_mfa.core_crypto.random_secret import base32_to_secret
from stein_mfa.errors import (
    IncompleteSecretState, InvalidArgument, InvalidSecretLength, MalformedSecret
)
from stein_mfa.one_time_password.secret import Secret
from stein_mfa.one_time_password.validator import (
    validate_hotp, validate_totp, window_offsets
)


EXAMPLE_LABEL = "bob@example.com"
EXAMPLE_ISSUER = "SmartLogic"
RFC_KEY = b"12345678901234567890"

# Start of a 1-second step, so fractional offsets stay inside it
STEP_START = 1700000000.0
# Time-based tests use the minimum period of 1 second
TIME_BASED_TEST_PERIOD = 1


def other_code(code: str) -> str:
    """A code of the same length that differs from `code`."""
    return str((int(code) + 1) % 10 ** len(code)).zfill(len(code))


class TestSecretCreation:
    """Tests for new_totp / new_hotp."""

    def test_label_included(self):
        """Label is stored on both variants."""
        assert new_hotp(EXAMPLE_LABEL).label == EXAMPLE_LABEL
        assert new_totp(EXAMPLE_LABEL).label == EXAMPLE_LABEL

    def test_default_algorithm_sha1(self):
        """Default algorithm is SHA1."""
        assert new_hotp(EXAMPLE_LABEL).algorithm is Algorithm.SHA1
        assert new_totp(EXAMPLE_LABEL).algorithm is Algorithm.SHA1

    def test_algorithm_overrideable(self):
        """Algorithm can be overridden by name or enum."""
        assert new_hotp(EXAMPLE_LABEL, algorithm="SHA256").algorithm is Algorithm.SHA256
        assert new_totp(EXAMPLE_LABEL, algorithm=Algorithm.SHA512).algorithm is Algorithm.SHA512

    def test_default_digits(self):
        """Default digits is 6."""
        assert new_hotp(EXAMPLE_LABEL).digits == 6
        assert new_totp(EXAMPLE_LABEL).digits == 6

    def test_issuer_included_if_specified(self):
        """Issuer is optional and stored when given."""
        assert new_hotp(EXAMPLE_LABEL).issuer is None
        assert new_hotp(EXAMPLE_LABEL, issuer=EXAMPLE_ISSUER).issuer == EXAMPLE_ISSUER
        assert new_totp(EXAMPLE_LABEL, issuer=EXAMPLE_ISSUER).issuer == EXAMPLE_ISSUER

    def test_secret_default_bits(self):
        """Generated key is 160 bits by default."""
        assert len(new_hotp(EXAMPLE_LABEL).secret_value) * 8 == 160
        assert len(new_totp(EXAMPLE_LABEL).secret_value) * 8 == 160

    def test_secret_bits_overrideable(self):
        """Key length follows the bits option."""
        assert len(new_hotp(EXAMPLE_LABEL, bits=256).secret_value) * 8 == 256
        assert len(new_totp(EXAMPLE_LABEL, bits=256).secret_value) * 8 == 256

    def test_secret_base32_decodes(self):
        """The base32 form decodes to the raw key."""
        secret = new_totp(EXAMPLE_LABEL)
        assert base32_to_secret(secret.secret_base32) == secret.secret_value

    def test_too_few_bits_rejected(self):
        """bits must exceed 128."""
        with pytest.raises(InvalidSecretLength):
            new_totp(EXAMPLE_LABEL, bits=128)

    def test_totp_type_and_period(self):
        """TOTP secrets default to a 30 second period."""
        secret = new_totp(EXAMPLE_LABEL)
        assert isinstance(secret, TotpSecret)
        assert secret.otp_type == "totp"
        assert secret.period == 30
        assert new_totp(EXAMPLE_LABEL, period=50).period == 50

    def test_hotp_type_and_counter(self):
        """HOTP secrets default to counter 0."""
        secret = new_hotp(EXAMPLE_LABEL)
        assert isinstance(secret, HotpSecret)
        assert secret.otp_type == "hotp"
        assert secret.counter == 0
        assert new_hotp(EXAMPLE_LABEL, initial_counter=20).counter == 20

    def test_options_of_other_type_rejected(self):
        """period is TOTP only, initial_counter is HOTP only."""
        with pytest.raises(InvalidArgument):
            new_hotp(EXAMPLE_LABEL, period=30)
        with pytest.raises(InvalidArgument):
            new_totp(EXAMPLE_LABEL, initial_counter=3)
        with pytest.raises(InvalidArgument):
            new_totp(EXAMPLE_LABEL, colour="blue")

    @pytest.mark.parametrize("options", [
        {"digits": 7}, {"digits": 10}, {"period": 0}, {"period": -30}, {"algorithm": "MD5"},
    ])
    def test_invalid_totp_options_rejected(self, options):
        """Out-of-domain options are rejected."""
        with pytest.raises(InvalidArgument):
            new_totp(EXAMPLE_LABEL, **options)

    def test_negative_counter_rejected(self):
        """initial_counter must be non-negative."""
        with pytest.raises(InvalidArgument):
            new_hotp(EXAMPLE_LABEL, initial_counter=-1)


class TestSecretModel:
    """Tests for the immutable secret value objects."""

    def test_secret_is_immutable(self):
        """Fields cannot be reassigned."""
        secret = new_hotp(EXAMPLE_LABEL)
        with pytest.raises(dataclasses.FrozenInstanceError):
            secret.counter = 5

    def test_short_key_rejected(self):
        """Keys below 128 bits are rejected."""
        with pytest.raises(InvalidSecretLength):
            TotpSecret(label=EXAMPLE_LABEL, secret_value=b"\x00" * 15)
        # exactly 128 bits is allowed for supplied keys
        assert TotpSecret(label=EXAMPLE_LABEL, secret_value=b"\x00" * 16).period == 30

    def test_base_class_not_instantiable(self):
        """Secret itself is abstract."""
        with pytest.raises(TypeError):
            Secret(label=EXAMPLE_LABEL, secret_value=RFC_KEY)

    def test_secret_value_hidden_from_repr(self):
        """repr never shows the key."""
        secret = TotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY)
        assert "1234567890" not in repr(secret)

    def test_advance_returns_new_secret(self):
        """advance() leaves the original unchanged."""
        secret = new_hotp(EXAMPLE_LABEL, initial_counter=4)
        advanced = secret.advance()
        assert advanced.counter == 5
        assert secret.counter == 4
        assert advanced.secret_value == secret.secret_value

    def test_storage_round_trip(self):
        """to_dict / from_dict restore the same secret."""
        hotp = new_hotp(EXAMPLE_LABEL, issuer=EXAMPLE_ISSUER, digits=8, initial_counter=9)
        totp = new_totp(EXAMPLE_LABEL, algorithm="SHA512", period=60)
        assert Secret.from_dict(hotp.to_dict()) == hotp
        assert Secret.from_dict(totp.to_dict()) == totp

    def test_storage_form_is_json_safe(self):
        """Storage form holds only plain values."""
        data = new_totp(EXAMPLE_LABEL, issuer=EXAMPLE_ISSUER).to_dict()
        assert data["type"] == "totp"
        assert data["algorithm"] == "SHA1"
        assert isinstance(data["secret"], str)
        assert "counter" not in data

    @pytest.mark.parametrize("data", [
        {},
        {"type": "sms", "label": "x", "secret": "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"},
        {"type": "totp", "label": "x"},
        {"type": "totp", "label": "x", "secret": "not base32!"},
    ])
    def test_malformed_storage_rejected(self, data):
        """Broken storage forms raise MalformedSecret."""
        with pytest.raises(MalformedSecret):
            Secret.from_dict(data)


class TestHMACBasedToken:
    """Tests for counter-based tokens."""

    def test_is_well_formed(self):
        """Token value is a digit string of the secret's length."""
        secret = new_hotp(EXAMPLE_LABEL)
        value = generate(secret).value
        assert value.isdigit()
        assert len(value) == secret.digits

    def test_eight_digit_token(self):
        """8-digit secrets give 8-digit tokens."""
        assert len(generate(new_hotp(EXAMPLE_LABEL, digits=8)).value) == 8

    def test_validates(self):
        """Generated token validates against its embedded secret."""
        token = generate(new_hotp(EXAMPLE_LABEL))
        assert validate(token)
        assert token.validate()

    def test_generation_does_not_mutate(self):
        """The input secret keeps its counter."""
        secret = new_hotp(EXAMPLE_LABEL)
        token = generate(secret)
        assert secret.counter == 0
        assert token.secret.counter == 1

    def test_validates_when_chained(self):
        """t0..t3 each validate against the secret returned with them."""
        secret = new_hotp(EXAMPLE_LABEL)
        for i in range(4):
            token = generate(secret)
            assert validate(token)
            assert token.secret.counter == i + 1
            secret = token.secret

    def test_code_matches_counter(self):
        """Generation uses the incremented counter."""
        secret = HotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY, counter=0)
        token = generate(secret)
        assert token.value == "287082"  # RFC 4226 counter 1
        assert generate(token.secret).value == "359152"

    def test_no_implicit_replay_protection(self):
        """Validating the same code twice against a non-advanced secret succeeds."""
        token = generate(new_hotp(EXAMPLE_LABEL))
        assert validate(token.value, token.secret)
        assert validate(token.value, token.secret)

    def test_rejected_after_counter_advanced(self):
        """Once the caller stores the next secret, the old code stops working."""
        secret = HotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY)
        first = generate(secret)
        second = generate(first.secret)
        assert not validate(first.value, second.secret)

    def test_wrong_code_rejected(self):
        """A different code fails."""
        token = generate(new_hotp(EXAMPLE_LABEL))
        assert not validate(other_code(token.value), token.secret)

    def test_tolerance_ignored(self):
        """Time tolerance has no effect on HOTP."""
        token = generate(new_hotp(EXAMPLE_LABEL))
        assert validate(token, time_tolerance=5)

    @pytest.mark.parametrize("tolerance", [-1, 1.5, "1"])
    def test_invalid_tolerance_rejected(self, tolerance):
        """HOTP rejects the same tolerances TOTP does."""
        token = generate(new_hotp(EXAMPLE_LABEL))
        with pytest.raises(InvalidArgument):
            validate(token, time_tolerance=tolerance)
        with pytest.raises(InvalidArgument):
            validate(generate(new_totp(EXAMPLE_LABEL)), time_tolerance=tolerance)

    def test_incomplete_secret_rejected(self):
        """A HOTP secret without counter cannot generate."""
        secret = HotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY, counter=None)
        with pytest.raises(IncompleteSecretState):
            generate(secret)


class TestTimeBasedToken:
    """Tests for time-based tokens."""

    def test_is_well_formed(self):
        """Token value is a digit string of the secret's length."""
        secret = new_totp(EXAMPLE_LABEL)
        value = generate(secret).value
        assert value.isdigit()
        assert len(value) == secret.digits

    def test_validates_immediately(self):
        """A fresh token validates now."""
        secret = new_totp(EXAMPLE_LABEL)
        with patch("time.time", return_value=STEP_START + 5):
            token = generate(secret)
            assert validate(token)

    def test_secret_unchanged(self):
        """TOTP tokens carry the same secret."""
        secret = new_totp(EXAMPLE_LABEL)
        assert generate(secret).secret is secret

    def test_validates_within_period_not_after(self):
        """Tolerance 0: valid at +0.3s, invalid at +1.3s."""
        secret = new_totp(EXAMPLE_LABEL, period=TIME_BASED_TEST_PERIOD)
        token = generate(secret, timestamp=STEP_START)

        assert validate(token, timestamp=STEP_START)
        assert validate(token, timestamp=STEP_START + 0.3)
        assert not validate(token, timestamp=STEP_START + 1.3)

    def test_validates_within_tolerance_not_after(self):
        """Tolerance 1: valid at +1.0s, invalid at +2.0s."""
        secret = new_totp(EXAMPLE_LABEL, period=TIME_BASED_TEST_PERIOD)
        token = generate(secret, timestamp=STEP_START)

        assert validate(token, time_tolerance=1, timestamp=STEP_START)
        assert validate(token, time_tolerance=1, timestamp=STEP_START + 1.0)
        assert not validate(token, time_tolerance=1, timestamp=STEP_START + 2.0)

    def test_real_clock_short_sleep(self):
        """Same step on the wall clock validates."""
        secret = new_totp(EXAMPLE_LABEL, period=2)
        # Stay clear of a step boundary
        while time.time() % 2 > 1.5:
            time.sleep(0.1)
        token = generate(secret)
        time.sleep(0.1)
        assert validate(token, time_tolerance=0)

    def test_token_default_tolerance(self):
        """Token.time_tolerance is used when none is passed."""
        secret = TotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY)
        token = dataclasses.replace(generate(secret, timestamp=STEP_START), time_tolerance=1)
        assert validate(token, timestamp=STEP_START + 30)
        assert not validate(token, time_tolerance=0, timestamp=STEP_START + 30)

    @pytest.mark.parametrize("tolerance", [0, 1, 2])
    def test_window_bounds(self, tolerance):
        """Valid iff the step difference is within +/- tolerance."""
        secret = TotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY, period=30)
        token = generate(secret, timestamp=STEP_START)
        for delta in range(-3, 4):
            later = STEP_START + delta * 30
            expected = abs(delta) <= tolerance
            assert validate(token, time_tolerance=tolerance, timestamp=later) is expected

    def test_negative_tolerance_rejected(self):
        """Negative tolerance is an InvalidArgument."""
        token = generate(new_totp(EXAMPLE_LABEL))
        with pytest.raises(InvalidArgument):
            validate(token, time_tolerance=-1)

    def test_raw_code_requires_secret(self):
        """A bare code cannot be validated without a secret."""
        with pytest.raises(InvalidArgument):
            validate("123456")

    def test_incomplete_secret_rejected(self):
        """A TOTP secret without period cannot generate or validate."""
        secret = TotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY, period=None)
        with pytest.raises(IncompleteSecretState):
            generate(secret)
        with pytest.raises(IncompleteSecretState):
            validate("123456", secret)


class TestValidator:
    """Tests for the low-level validation functions."""

    def test_hotp_next_counter_only(self):
        """Only last_counter + 1 is accepted."""
        assert validate_hotp("287082", RFC_KEY, 0, Algorithm.SHA1, 6)      # counter 1
        assert not validate_hotp("359152", RFC_KEY, 0, Algorithm.SHA1, 6)  # counter 2
        assert not validate_hotp("755224", RFC_KEY, 0, Algorithm.SHA1, 6)  # counter 0

    def test_hotp_first_counter(self):
        """last_counter -1 checks counter 0."""
        assert validate_hotp("755224", RFC_KEY, -1)

    def test_totp_rfc_vector(self):
        """RFC 6238 vector validates at its own timestamp."""
        assert validate_totp("94287082", RFC_KEY, 30, Algorithm.SHA1, 8, 59)
        assert validate_totp("94287082", RFC_KEY, 30, Algorithm.SHA1, 8, 45)
        assert not validate_totp("94287082", RFC_KEY, 30, Algorithm.SHA1, 8, 60)

    def test_totp_window_before_epoch_skipped(self):
        """Steps below zero are skipped, not errors."""
        assert validate_totp("94287082", RFC_KEY, 30, Algorithm.SHA1, 8, 0, time_tolerance=3)

    def test_window_order(self):
        """Nearest steps first, earlier step wins ties."""
        assert list(window_offsets(0)) == [0]
        assert list(window_offsets(2)) == [0, -1, 1, -2, 2]

    def test_window_negative_rejected(self):
        """Negative tolerance raises."""
        with pytest.raises(InvalidArgument):
            validate_totp("000000", RFC_KEY, 30, Algorithm.SHA1, 6, 59, time_tolerance=-1)

    def test_huge_tolerance_stops_at_match(self):
        """A match at the current step returns without walking the window."""
        assert validate_totp("94287082", RFC_KEY, 30, Algorithm.SHA1, 8, 59,
                             time_tolerance=10 ** 15)

    def test_huge_tolerance_garbage_code(self):
        """Malformed codes are rejected before any window step is computed."""
        assert not validate_totp("abc", RFC_KEY, 30, Algorithm.SHA1, 8, 59,
                                 time_tolerance=10 ** 15)

    @pytest.mark.parametrize("tolerance", [1.5, "1", True, None])
    def test_window_non_integer_rejected(self, tolerance):
        """Tolerance must be an int."""
        with pytest.raises(InvalidArgument):
            validate_totp("94287082", RFC_KEY, 30, Algorithm.SHA1, 8, 59,
                          time_tolerance=tolerance)

    def test_spaces_accepted(self):
        """'287 082' is the same code."""
        assert validate_hotp("287 082", RFC_KEY, 0)

    @pytest.mark.parametrize("code", ["", "28708", "2870821", "abcdef", "28708a", "２８７０８２", None])
    def test_garbage_rejected(self, code):
        """Malformed input is rejected, not raised."""
        assert not validate_hotp(code, RFC_KEY, 0)


class TestEnrollmentURI:
    """Tests for otpauth:// URIs."""

    def test_totp_with_issuer(self):
        """TOTP URI with issuer prefix and period."""
        secret = TotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY, issuer="ACME Co")
        assert enrollment_url(secret) == (
            "otpauth://totp/ACME%20Co:bob%40example.com"
            "?secret=GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ&issuer=ACME%20Co&period=30"
        )

    def test_hotp_non_default_fields(self):
        """Non-default algorithm and digits are written; counter always is."""
        secret = HotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY,
                            algorithm=Algorithm.SHA256, digits=8, counter=5)
        assert enrollment_url(secret) == (
            "otpauth://hotp/bob%40example.com"
            "?secret=GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ&algorithm=SHA256&digits=8&counter=5"
        )

    def test_slash_in_label_and_issuer_encoded(self):
        """'/' is percent-encoded in the path so the label stays one segment."""
        secret = TotpSecret(label="team/bob@example.com", secret_value=RFC_KEY, issuer="A/B")
        url = enrollment_url(secret)
        assert url.startswith("otpauth://totp/A%2FB:team%2Fbob%40example.com?")

        parsed = urlparse(url)
        assert "/" not in parsed.path[1:]
        assert parse_qs(parsed.query)["issuer"] == ["A/B"]

    def test_scheme_and_type(self):
        """Scheme is otpauth and host is the lowercase type."""
        for secret in (new_hotp(EXAMPLE_LABEL), new_totp(EXAMPLE_LABEL)):
            parsed = urlparse(enrollment_url(secret))
            assert parsed.scheme == "otpauth"
            assert parsed.netloc == secret.otp_type

    def test_exactly_one_type_field(self):
        """HOTP has counter only, TOTP has period only."""
        hotp_query = parse_qs(urlparse(enrollment_url(new_hotp(EXAMPLE_LABEL))).query)
        totp_query = parse_qs(urlparse(enrollment_url(new_totp(EXAMPLE_LABEL))).query)
        assert "counter" in hotp_query and "period" not in hotp_query
        assert "period" in totp_query and "counter" not in totp_query

    def test_defaults_omitted(self):
        """algorithm, digits and issuer are omitted at defaults."""
        query = parse_qs(urlparse(enrollment_url(new_totp(EXAMPLE_LABEL))).query)
        assert set(query) == {"secret", "period"}

    def test_secret_is_valid_base32(self):
        """secret parameter decodes to the key."""
        secret = new_totp(EXAMPLE_LABEL, bits=200)
        query = parse_qs(urlparse(enrollment_url(secret)).query)
        assert base32_to_secret(query["secret"][0]) == secret.secret_value

    def test_incomplete_secret_rejected(self):
        """Missing counter / period raise IncompleteSecretState."""
        with pytest.raises(IncompleteSecretState):
            enrollment_url(HotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY, counter=None))
        with pytest.raises(IncompleteSecretState):
            enrollment_url(TotpSecret(label=EXAMPLE_LABEL, secret_value=RFC_KEY, period=None))

    def test_token_type_exported(self):
        """Token is part of the public API."""
        assert isinstance(generate(new_totp(EXAMPLE_LABEL)), Token)
