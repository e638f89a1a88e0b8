"""Tests for credential validation and the password strength indicator."""

import pytest

from finance_tracker.models.auth import ProfileUpdate
from finance_tracker.models.report import PasswordStrength
from finance_tracker.validation import (
    CredentialValidator,
    evaluate_password_strength,
    is_valid_email,
)


@pytest.fixture
def validator(auth_settings):
    return CredentialValidator(auth_settings)


class TestEmailPattern:

    @pytest.mark.parametrize("email", [
        "ana@example.com",
        "first.last+tag@sub.example.org",
        "A@B.CO",
    ])
    def test_accepts(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", [
        "ana",
        "ana@example",
        "@example.com",
        "ana@@example.com",
        "ana @example.com",
        "ana@example.com ",
    ])
    def test_rejects(self, email):
        assert not is_valid_email(email)


class TestSignUpValidation:

    def test_valid(self, validator):
        assert validator.validate_sign_up("ana@example.com", "Ana", "secret").is_valid

    def test_missing_fields_short_circuit(self, validator):
        result = validator.validate_sign_up("", "Ana", "secret")
        assert result.error_count == 1
        assert result.first_error.message == "All fields are required"

    def test_reports_every_issue(self, validator):
        result = validator.validate_sign_up("not-an-email", "Ana", "123")
        assert {issue.field for issue in result.issues} == {"email", "password"}

    def test_whitespace_name(self, validator):
        result = validator.validate_sign_up("ana@example.com", "   ", "secret")
        assert result.first_error.field == "name"

    def test_password_length_boundary(self, validator):
        assert not validator.validate_sign_up("ana@example.com", "Ana", "12345").is_valid
        assert validator.validate_sign_up("ana@example.com", "Ana", "123456").is_valid

    def test_password_over_bcrypt_limit(self, validator):
        result = validator.validate_sign_up("ana@example.com", "Ana", "x" * 73)
        assert result.first_error.issue_type == "too_long"


class TestOtherForms:

    def test_sign_in_does_not_check_length(self, validator):
        assert validator.validate_sign_in("ana@example.com", "123").is_valid

    def test_sign_in_missing(self, validator):
        result = validator.validate_sign_in("ana@example.com", "")
        assert result.first_error.message == "Email and password are required"

    def test_reset_request(self, validator):
        assert validator.validate_reset_request("ana@example.com").is_valid
        assert not validator.validate_reset_request("").is_valid

    def test_reset_requires_all_fields(self, validator):
        assert not validator.validate_reset("ana@example.com", "", "secret1").is_valid
        assert validator.validate_reset("ana@example.com", "123456", "secret1").is_valid

    def test_profile_update(self, validator):
        assert validator.validate_profile_update(ProfileUpdate(name="Ana")).is_valid
        assert not validator.validate_profile_update(ProfileUpdate()).is_valid
        assert not validator.validate_profile_update(ProfileUpdate(name="  ")).is_valid
        assert not validator.validate_profile_update(ProfileUpdate(email="nope")).is_valid
        assert not validator.validate_profile_update(ProfileUpdate(email=" ana@example.com")).is_valid


class TestPasswordStrength:

    @pytest.mark.parametrize("password,strength", [
        ("abc", PasswordStrength.WEAK),
        ("abcdefgh", PasswordStrength.WEAK),
        ("Abcdefgh", PasswordStrength.MEDIUM),
        ("Abcdefg1", PasswordStrength.STRONG),
        ("abc1!", PasswordStrength.MEDIUM),
        ("Abcdefg1!", PasswordStrength.STRONG),
    ])
    def test_bands(self, password, strength):
        assert evaluate_password_strength(password).strength == strength

    def test_reports_each_criterion(self):
        evaluation = evaluate_password_strength("abcdefg1")
        assert evaluation.has_min_length
        assert evaluation.has_lower_case
        assert evaluation.has_number
        assert not evaluation.has_upper_case
        assert not evaluation.has_special_char
        assert evaluation.is_valid
