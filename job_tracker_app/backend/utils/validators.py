"""
Input validation helpers shared by the request schemas.

Password policy and email checks run before anything reaches the database.
"""
import re
from typing import Any, Dict, List

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_EMAIL_LENGTH = 254

MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes of a secret
MAX_PASSWORD_BYTES = 72
SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')
COMMON_PASSWORDS = frozenset({
    "password", "123456", "password123", "admin", "qwerty",
    "letmein", "welcome", "monkey", "1234567890",
})

COMMON_DOMAIN_TYPOS = {
    "gmail.co": "gmail.com",
    "gmail.con": "gmail.com",
    "gmial.com": "gmail.com",
    "yahoo.co": "yahoo.com",
    "hotmai.com": "hotmail.com",
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def email_errors(email: str) -> List[str]:
    """Return the problems with an email address, empty when it is acceptable."""
    errors = []
    if not EMAIL_PATTERN.match(email):
        errors.append("Please enter a valid email address")
    if len(email) > MAX_EMAIL_LENGTH:
        errors.append("Email address is too long")

    domain = email.split("@")[-1] if "@" in email else ""
    if domain in COMMON_DOMAIN_TYPOS:
        errors.append(f"Did you mean {email.replace(domain, COMMON_DOMAIN_TYPOS[domain])}?")
    return errors


def password_strength(password: str) -> Dict[str, Any]:
    """
    Score a password from 0 to 9 on length, character variety and complexity.

    Returns:
        Dictionary with score, max_score, level and percentage
    """
    score = 0
    if len(password) >= 8:
        score += 1
    if len(password) >= 12:
        score += 1
    if len(password) >= 16:
        score += 1

    if re.search(r"[a-z]", password):
        score += 1
    if re.search(r"[A-Z]", password):
        score += 1
    if re.search(r"\d", password):
        score += 1
    if SPECIAL_CHARACTERS.search(password):
        score += 1

    if len(SPECIAL_CHARACTERS.findall(password)) >= 2:
        score += 1
    if len(re.findall(r"\d", password)) >= 3:
        score += 1

    level = "weak"
    if score >= 7:
        level = "very strong"
    elif score >= 5:
        level = "strong"
    elif score >= 3:
        level = "medium"

    return {
        "score": score,
        "max_score": 9,
        "level": level,
        "percentage": round(score / 9 * 100),
    }


def password_errors(password: str) -> List[str]:
    """Return every password policy violation, empty when the password is acceptable."""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not SPECIAL_CHARACTERS.search(password):
        errors.append("Password must contain at least one special character")
    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common, please choose a more unique password")
    return errors
