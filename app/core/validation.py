"""
Result-style input validation

Validators here return a ValidationResult instead of raising; callers decide
at the service boundary whether a failed result becomes ValidationFailedError.
"""
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


@dataclass
class ValidationResult(Generic[T]):
    value: Optional[T] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, errors: List[Dict[str, Any]]) -> "ValidationResult[T]":
        return cls(errors=errors)


def _error(loc: str, msg: str) -> Dict[str, Any]:
    return {"loc": [loc], "msg": msg}


def validate_password_strength(password: Optional[str], field_name: str = "password") -> ValidationResult[str]:
    """
    Check a new password against the password policy

    8-128 characters with at least one uppercase letter, one lowercase letter,
    one digit and one special character.
    """
    if password is None or not password.strip():
        return ValidationResult.failure([_error(field_name, "Password is required")])

    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(_error(field_name, f"Password must be at least {PASSWORD_MIN_LENGTH} characters"))
    if len(password) > PASSWORD_MAX_LENGTH:
        errors.append(_error(field_name, f"Password cannot be longer than {PASSWORD_MAX_LENGTH} characters"))
    if not re.search(r"[A-Z]", password):
        errors.append(_error(field_name, "Password must contain an uppercase letter"))
    if not re.search(r"[a-z]", password):
        errors.append(_error(field_name, "Password must contain a lowercase letter"))
    if not re.search(r"\d", password):
        errors.append(_error(field_name, "Password must contain a digit"))
    if not re.search(r"[^A-Za-z0-9]", password):
        errors.append(_error(field_name, "Password must contain a special character"))

    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success(password)


def validate_date_range(
    start: Optional[date],
    end: Optional[date],
    start_field: str = "start_date",
    end_field: str = "end_date",
) -> ValidationResult[Tuple[date, date]]:
    """Both dates present and start on or before end"""
    errors = []
    if start is None:
        errors.append(_error(start_field, "Start date is required"))
    if end is None:
        errors.append(_error(end_field, "End date is required"))
    if not errors and start > end:
        errors.append(_error(end_field, "End date cannot be before start date"))

    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success((start, end))
