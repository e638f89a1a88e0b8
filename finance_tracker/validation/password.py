"""
Password strength indicator.

Advisory only: sign-up enforces the minimum length, this scores the
password so the form can show weak / medium / strong while typing.
"""

import re

from finance_tracker.models.report import PasswordEvaluation, PasswordStrength

SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


def evaluate_password_strength(password: str) -> PasswordEvaluation:
    """Score a password against five criteria; 4+ is strong, 3 is medium."""
    checks = {
        "has_min_length": len(password) >= 8,
        "has_upper_case": bool(re.search(r"[A-Z]", password)),
        "has_lower_case": bool(re.search(r"[a-z]", password)),
        "has_number": bool(re.search(r"[0-9]", password)),
        "has_special_char": bool(SPECIAL_CHARACTERS.search(password)),
    }
    score = sum(checks.values())

    if score >= 4:
        strength, message = PasswordStrength.STRONG, "Strong password"
    elif score == 3:
        strength, message = PasswordStrength.MEDIUM, "Medium strength password"
    else:
        strength, message = PasswordStrength.WEAK, "Weak password"

    return PasswordEvaluation(
        is_valid=strength != PasswordStrength.WEAK,
        strength=strength,
        message=message,
        **checks,
    )
