from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_REGEX = re.compile(r"^\+?[0-9][0-9 ()-]{5,}$")
TOTP_CODE_REGEX = re.compile(r"^[0-9]{6,8}$")


@dataclass
class FormResult:
    values: dict[str, Any]
    field_errors: dict[str, str]

    @property
    def first_error(self) -> str | None:
        return next(iter(self.field_errors.values()), None)

    @property
    def is_valid(self) -> bool:
        return len(self.field_errors) == 0


def _normalize_required_text(value: str | None) -> str:
    return (value or "").strip()


def validate_new_password(new_password: str | None, confirm_password: str | None) -> FormResult:
    password = new_password or ""
    field_errors: dict[str, str] = {}
    if not password.strip():
        field_errors["new_password"] = "New password is required."
    elif password != (confirm_password or ""):
        field_errors["confirm_password"] = "Passwords do not match."
    return FormResult(values={"new_password": password}, field_errors=field_errors)


def validate_password_change(old_password: str | None, new_password: str | None, confirm_password: str | None) -> FormResult:
    result = validate_new_password(new_password, confirm_password)
    if not (old_password or ""):
        result.field_errors = {"old_password": "Current password is required.", **result.field_errors}
    result.values["old_password"] = old_password or ""
    return result


def validate_totp_code(code: str | None) -> FormResult:
    normalized = _normalize_required_text(code).replace(" ", "")
    field_errors: dict[str, str] = {}
    if not normalized:
        field_errors["code"] = "Enter the code from your authenticator app."
    elif not TOTP_CODE_REGEX.match(normalized):
        field_errors["code"] = "The code must be 6 to 8 digits."
    return FormResult(values={"code": normalized}, field_errors=field_errors)


def validate_identifier(identifier: str | None, *, username_is_email: bool) -> FormResult:
    normalized = _normalize_required_text(identifier)
    field_errors: dict[str, str] = {}
    if not normalized:
        field_errors["identifier"] = "Email is required." if username_is_email else "Username or email is required."
    elif username_is_email and not EMAIL_REGEX.match(normalized):
        field_errors["identifier"] = "Enter a valid email address."
    return FormResult(values={"identifier": normalized}, field_errors=field_errors)


def validate_reset_token(token: str | None) -> FormResult:
    normalized = _normalize_required_text(token)
    field_errors: dict[str, str] = {}
    if not normalized:
        field_errors["token"] = "Reset token is required."
    return FormResult(values={"token": normalized}, field_errors=field_errors)


def validate_phone(phone: str | None) -> FormResult:
    normalized = _normalize_required_text(phone)
    field_errors: dict[str, str] = {}
    if not normalized:
        field_errors["phone"] = "Phone number is required."
    elif not PHONE_REGEX.match(normalized):
        field_errors["phone"] = "Enter a valid phone number."
    return FormResult(values={"phone": normalized}, field_errors=field_errors)


def validate_sms_code(code: str | None) -> FormResult:
    normalized = _normalize_required_text(code)
    field_errors: dict[str, str] = {}
    if not normalized:
        field_errors["code"] = "Enter the code you received by SMS."
    elif not normalized.isdigit():
        field_errors["code"] = "The code must contain only digits."
    return FormResult(values={"code": normalized}, field_errors=field_errors)


def validate_signup_form(
    username: str | None,
    email: str | None,
    password: str | None,
    confirm_password: str | None,
    *,
    username_is_email: bool,
) -> FormResult:
    normalized_email = _normalize_required_text(email).lower()
    normalized_username = normalized_email if username_is_email else _normalize_required_text(username)
    field_errors: dict[str, str] = {}
    if not normalized_username:
        field_errors["username"] = "Username is required."
    if not normalized_email:
        field_errors["email"] = "Email is required."
    elif not EMAIL_REGEX.match(normalized_email):
        field_errors["email"] = "Enter a valid email address."
    password_result = validate_new_password(password, confirm_password)
    field_errors.update(password_result.field_errors)
    return FormResult(
        values={"username": normalized_username, "email": normalized_email, "password": password or ""},
        field_errors=field_errors,
    )


def validate_login(username: str | None, password: str | None) -> FormResult:
    normalized_username = _normalize_required_text(username)
    field_errors: dict[str, str] = {}
    if not normalized_username:
        field_errors["username"] = "Username is required."
    if not (password or ""):
        field_errors["password"] = "Password is required."
    return FormResult(values={"username": normalized_username, "password": password or ""}, field_errors=field_errors)
