# salestrack/core/validation.py

"""
Form-level validation for sales and passwords.

Both validators report every failing rule instead of stopping at the first
one, so the caller can render per-field messages.
"""

import re
from dataclasses import dataclass, asdict
from datetime import date, datetime

from salestrack.core.errors import ValidationError


CLIENT_NAME_MIN = 2
CLIENT_NAME_MAX = 100
RESERVATION_MIN = 3
RESERVATION_MAX = 50
NOTES_MAX = 500

CLIENT_NAME_RE = re.compile(r"^[A-Za-zÀ-ÿ\s\-']+$")
RESERVATION_RE = re.compile(r"^[A-Za-z0-9\-_]+$")


def _parse_sale_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def validate_sale_form(data: dict, today: date) -> tuple[dict, dict[str, str]]:
    """
    Check a sale form.

    Returns ``(cleaned, errors)``. ``errors`` maps a field name to a message
    and is empty when the form is valid. A missing sale date means today.
    """
    errors: dict[str, str] = {}
    cleaned: dict = {}

    client_name = (data.get("client_name") or "").strip()
    if len(client_name) < CLIENT_NAME_MIN:
        errors["client_name"] = f"Client name must contain at least {CLIENT_NAME_MIN} characters"
    elif len(client_name) > CLIENT_NAME_MAX:
        errors["client_name"] = f"Client name cannot exceed {CLIENT_NAME_MAX} characters"
    elif not CLIENT_NAME_RE.match(client_name):
        errors["client_name"] = "Client name may only contain letters, spaces, hyphens and apostrophes"
    cleaned["client_name"] = client_name

    reservation = (data.get("reservation_number") or "").strip()
    if len(reservation) < RESERVATION_MIN:
        errors["reservation_number"] = f"Reservation number must contain at least {RESERVATION_MIN} characters"
    elif len(reservation) > RESERVATION_MAX:
        errors["reservation_number"] = f"Reservation number cannot exceed {RESERVATION_MAX} characters"
    elif not RESERVATION_RE.match(reservation):
        errors["reservation_number"] = "Reservation number may only contain letters, digits, hyphens and underscores"
    cleaned["reservation_number"] = reservation

    notes = (data.get("notes") or "").strip()
    if len(notes) > NOTES_MAX:
        errors["notes"] = f"Notes cannot exceed {NOTES_MAX} characters"
    cleaned["notes"] = notes or None

    raw_date = data.get("sale_date")
    if raw_date is None or raw_date == "":
        sale_date = today
    else:
        sale_date = _parse_sale_date(raw_date)

    if sale_date is None:
        errors["sale_date"] = "Sale date is not a valid date"
    elif sale_date > today:
        errors["sale_date"] = "Sale date cannot be in the future"
    cleaned["sale_date"] = sale_date

    selected = data.get("insurance_type_ids") or []
    # Keep selection order, drop duplicates
    selected = list(dict.fromkeys(selected))
    if not selected:
        errors["insurance_type_ids"] = "Select at least one insurance"
    cleaned["insurance_type_ids"] = selected

    return cleaned, errors


# =========================================================
# PASSWORD STRENGTH
# =========================================================

PASSWORD_MIN_LENGTH = 8
# bcrypt hashes at most 72 bytes and rejects anything longer
PASSWORD_MAX_BYTES = 72
PASSWORD_SPECIAL_CHARS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

PASSWORD_RULES = [
    ("has_min_length", f"At least {PASSWORD_MIN_LENGTH} characters"),
    ("has_uppercase", "One uppercase letter"),
    ("has_lowercase", "One lowercase letter"),
    ("has_number", "One digit"),
    ("has_special_char", "One special character (!@#$%...)"),
    ("within_max_length", f"At most {PASSWORD_MAX_BYTES} bytes"),
]


@dataclass(frozen=True)
class PasswordCheck:
    has_min_length: bool
    has_uppercase: bool
    has_lowercase: bool
    has_number: bool
    has_special_char: bool
    within_max_length: bool

    @property
    def is_valid(self) -> bool:
        return all(asdict(self).values())

    def failed_rules(self) -> list[str]:
        return [label for key, label in PASSWORD_RULES if not getattr(self, key)]

    def as_dict(self) -> dict:
        result = asdict(self)
        result["is_valid"] = self.is_valid
        return result


def validate_password(password: str | None) -> PasswordCheck:
    password = password or ""
    return PasswordCheck(
        has_min_length=len(password) >= PASSWORD_MIN_LENGTH,
        has_uppercase=any("A" <= c <= "Z" for c in password),
        has_lowercase=any("a" <= c <= "z" for c in password),
        has_number=any("0" <= c <= "9" for c in password),
        has_special_char=any(c in PASSWORD_SPECIAL_CHARS for c in password),
        within_max_length=len(password.encode("utf-8")) <= PASSWORD_MAX_BYTES,
    )


def ensure_strong_password(password: str | None, field: str = "password") -> None:
    """Raise a field-level ValidationError when the password is too weak."""
    check = validate_password(password)
    if not check.is_valid:
        raise ValidationError({field: "Password must contain: " + ", ".join(check.failed_rules()).lower()})
