"""Input validation and sanitization helpers.

Validators return ``bool`` (or a result object for passwords); sanitizers
return a cleaned, length-capped string. None of them raise: callers decide
which HTTP error a failed check maps to.
"""

import re
from dataclasses import dataclass, field
from typing import Literal

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
# Stricter form used for invitations (requires a TLD)
INVITE_EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")

MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_CODE_LENGTH = 100_000
MAX_FOLDER_NAME_LENGTH = 50
MAX_SEARCH_LENGTH = 100

COMMON_PASSWORDS = frozenset({"password", "12345678", "qwerty", "abc123", "password123"})

SUPPORTED_LANGUAGES = (
    "javascript",
    "typescript",
    "python",
    "java",
    "cpp",
    "c",
    "csharp",
    "go",
    "rust",
    "php",
    "ruby",
    "swift",
    "kotlin",
    "html",
    "css",
    "sql",
    "bash",
    "powershell",
    "json",
    "yaml",
    "markdown",
    "plaintext",
)

FOLDER_COLORS = ("emerald", "blue", "purple", "pink", "orange", "red")

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)
_FOLDER_FORBIDDEN = re.compile(r"[<>/\\]")
_SEARCH_FORBIDDEN = re.compile(r"[<>;'\"\\]")

PasswordStrength = Literal["weak", "medium", "strong"]


@dataclass
class PasswordCheck:
    """Result of ``validate_password``."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    strength: PasswordStrength = "weak"


def validate_email(email: str | None) -> bool:
    email = email.strip() if email else email
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return False
    return EMAIL_PATTERN.match(email) is not None


def validate_invite_email(email: str | None) -> bool:
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return False
    return INVITE_EMAIL_PATTERN.match(email) is not None


def validate_password(password: str | None) -> PasswordCheck:
    """Check password rules and estimate its strength.

    Strength is "strong" at 12+ characters meeting all four character
    classes, "weak" under 10 characters or missing any class, otherwise
    "medium". Strength is reported even when the password is invalid.
    """
    if not password:
        return PasswordCheck(is_valid=False, errors=["Password is required"])

    errors: list[str] = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password) > MAX_PASSWORD_LENGTH:
        errors.append(f"Password must be less than {MAX_PASSWORD_LENGTH} characters")

    has_upper = re.search(r"[A-Z]", password) is not None
    has_lower = re.search(r"[a-z]", password) is not None
    has_digit = re.search(r"\d", password) is not None
    has_special = re.search(r"[^A-Za-z0-9]", password) is not None

    if not has_upper:
        errors.append("Password must contain at least one uppercase letter")
    if not has_lower:
        errors.append("Password must contain at least one lowercase letter")
    if not has_digit:
        errors.append("Password must contain at least one number")
    if not has_special:
        errors.append("Password must contain at least one special character")

    lowered = password.lower()
    if any(common in lowered for common in COMMON_PASSWORDS):
        errors.append("This password is too common. Please choose a stronger password")

    criteria = sum((has_upper, has_lower, has_digit, has_special))
    strength: PasswordStrength
    if len(password) >= 12 and criteria == 4:
        strength = "strong"
    elif len(password) < 10 or criteria < 4:
        strength = "weak"
    else:
        strength = "medium"

    return PasswordCheck(is_valid=not errors, errors=errors, strength=strength)


def _strip_markup(value: str) -> str:
    value = _ANGLE_BRACKETS.sub("", value)
    value = _JS_PROTOCOL.sub("", value)
    return _EVENT_HANDLER.sub("", value)


def sanitize_snippet_title(title: str | None) -> str:
    if not title:
        return ""
    return _strip_markup(title.strip())[:MAX_TITLE_LENGTH]


def sanitize_description(description: str | None) -> str:
    if not description:
        return ""
    return _strip_markup(description.strip())[:MAX_DESCRIPTION_LENGTH]


def sanitize_code(code: str | None) -> str:
    # Code is stored verbatim apart from NUL bytes, which Postgres text rejects
    if not code:
        return ""
    return code.replace("\0", "")[:MAX_CODE_LENGTH]


def sanitize_folder_name(name: str | None) -> str:
    if not name:
        return ""
    return _FOLDER_FORBIDDEN.sub("", name.strip())[:MAX_FOLDER_NAME_LENGTH]


def sanitize_search_query(query: str | None) -> str:
    if not query:
        return ""
    return _SEARCH_FORBIDDEN.sub("", query.strip())[:MAX_SEARCH_LENGTH]


def validate_language(language: str | None) -> bool:
    return bool(language) and language.lower() in SUPPORTED_LANGUAGES  # type: ignore[union-attr]


def validate_folder_color(color: str | None) -> bool:
    return isinstance(color, str) and color.lower() in FOLDER_COLORS


def validate_uuid(value: str | None) -> bool:
    return bool(value) and UUID_PATTERN.match(value) is not None  # type: ignore[arg-type]


def validate_username(username: str | None) -> bool:
    return bool(username) and USERNAME_PATTERN.match(username) is not None  # type: ignore[arg-type]


LIKE_ESCAPE = "\\"


def contains_pattern(query: str) -> str:
    """ILIKE pattern matching ``query`` literally anywhere in the value.

    Use with ``escape=LIKE_ESCAPE``.
    """
    escaped = (
        query.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
