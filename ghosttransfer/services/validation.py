"""Local field validation for the compose form."""

import re

from ghosttransfer.models.form import FormState

PASSWORD_RE = re.compile(r"""^[A-Za-z0-9!@#$%^&*()_+={}:;"'<>?,.]{6,}$""")

_OCTET = r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
IPV4_RE = re.compile(rf"^{_OCTET}\.{_OCTET}\.{_OCTET}\.{_OCTET}$")

MAX_VIEWS_RE = re.compile(r"[0-9]+")
MAX_VIEWS_LIMIT = 999

PASSWORD_INVALID = "Password must be at least 6 characters and contain only valid symbols."
PASSWORD_REQUIRED_FIRST = "Password is required before confirming"
PASSWORD_MISMATCH = "Passwords do not match"
CONFIRM_REQUIRED = "Please confirm your password"
IP_INVALID = "Please enter a valid IPv4 address (e.g., 192.168.1.1)"
MAX_VIEWS_INVALID = "Enter at least 1 view"
FILES_REQUIRED = "Please upload at least one file"

PASSWORD_FIELDS = ("password", "confirm_password")


def is_valid_password(password: str) -> bool:
    return bool(PASSWORD_RE.fullmatch(password))


def is_valid_ipv4(value: str) -> bool:
    return bool(IPV4_RE.fullmatch(value.strip()))


def parse_max_views(value: str) -> int | None:
    """Parse the raw max-views text; returns None unless it is ASCII digits."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not MAX_VIEWS_RE.fullmatch(value):
        return None
    return int(value)


def accepts_max_views_input(value: str) -> bool:
    """Whether a keystroke in the max-views box should be accepted."""
    if value == "":
        return True
    number = parse_max_views(value)
    return number is not None and number <= MAX_VIEWS_LIMIT and len(value) <= 3


def validate_passwords(password: str, confirm_password: str) -> dict[str, str]:
    """Live checks run whenever either password field changes."""
    errors: dict[str, str] = {}
    if password and not is_valid_password(password):
        errors["password"] = PASSWORD_INVALID
    if confirm_password:
        if not password:
            errors["confirm_password"] = PASSWORD_REQUIRED_FIRST
        elif password != confirm_password:
            errors["confirm_password"] = PASSWORD_MISMATCH
    return errors


def validate_form(state: FormState) -> dict[str, str]:
    """Full validation before submission. An empty dict means valid."""
    errors: dict[str, str] = {}

    if not state.uploaded_urls and not state.message.strip():
        errors["files"] = FILES_REQUIRED

    if not state.unlimited_views:
        views = parse_max_views(state.max_views)
        if views is None or views < 1:
            errors["max_views"] = MAX_VIEWS_INVALID

    if state.allowed_ip.strip() and not is_valid_ipv4(state.allowed_ip):
        errors["allowed_ip"] = IP_INVALID

    if state.password and not state.confirm_password:
        errors["confirm_password"] = CONFIRM_REQUIRED

    errors.update(validate_passwords(state.password, state.confirm_password))
    return errors
