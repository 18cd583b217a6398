import re

from email_validator import EmailNotValidError, validate_email

PHONE_RE = re.compile(r"^[+]?[\d\s\-()]{10,15}$")


def is_valid_email(email: str | None) -> bool:
    if not email or not email.strip():
        return False
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_email(email: str) -> str:
    return email.strip().lower()
