"""
Tests for result-style validation
"""
from datetime import date

import pytest

from app.core.validation import validate_date_range, validate_password_strength


@pytest.mark.parametrize("password", ["Passw0rd!", "Xy9#abcd", "Long-Enough-1"])
def test_strong_passwords_pass(password):
    result = validate_password_strength(password)

    assert result.ok
    assert result.value == password


@pytest.mark.parametrize(
    "password,message",
    [
        ("Sh0rt!", "at least 8"),
        ("alllower1!", "uppercase"),
        ("ALLUPPER1!", "lowercase"),
        ("NoDigits!!", "digit"),
        ("NoSpecial12", "special"),
        ("Aa1!" * 40, "longer than 128"),
    ],
)
def test_weak_passwords_report_each_rule(password, message):
    result = validate_password_strength(password)

    assert not result.ok
    assert any(message in error["msg"] for error in result.errors)


def test_blank_password():
    result = validate_password_strength("   ", field_name="new_password")

    assert result.errors == [{"loc": ["new_password"], "msg": "Password is required"}]



def test_date_range_accepts_single_day():
    result = validate_date_range(date(2026, 3, 2), date(2026, 3, 2))

    assert result.ok
    assert result.value == (date(2026, 3, 2), date(2026, 3, 2))


def test_date_range_rejects_reversed_dates():
    result = validate_date_range(date(2026, 3, 5), date(2026, 3, 2))

    assert result.errors == [{"loc": ["end_date"], "msg": "End date cannot be before start date"}]


def test_date_range_reports_missing_dates():
    result = validate_date_range(None, None)

    assert {error["loc"][0] for error in result.errors} == {"start_date", "end_date"}
