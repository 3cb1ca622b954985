"""
Explicit validation for records before they are written.

Every write goes through one of these functions first, so constraint
violations are reported with fixed messages instead of driver errors.
The unique indexes in MongoDB remain the final word on uniqueness.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from store.models import UserRole, ValidationResult

TITLE_MAX_LENGTH = 100
AUTHOR_MAX_LENGTH = 50
MIN_YEAR = 1700

BOOK_FIELDS = ("title", "author", "year")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_book(fields: Dict[str, Any], current_year: Optional[int] = None) -> ValidationResult:
    """
    Validate a complete set of book fields.

    Unknown keys are dropped. Strings are trimmed. The upper bound on year
    is the current UTC calendar year unless one is passed in.

    Args:
        fields: Candidate book fields (title, author, optional year)
        current_year: Override for the latest allowed year

    Returns:
        ValidationResult with the trimmed values in ``cleaned``
    """
    if current_year is None:
        current_year = datetime.utcnow().year

    errors = []
    cleaned: Dict[str, Any] = {}

    title = fields.get("title")
    if _is_blank(title):
        errors.append("The book title is required")
    elif not isinstance(title, str):
        errors.append("The book title must be a string")
    else:
        title = title.strip()
        if len(title) > TITLE_MAX_LENGTH:
            errors.append(f"The book title may be at most {TITLE_MAX_LENGTH} characters long")
        cleaned["title"] = title

    author = fields.get("author")
    if _is_blank(author):
        errors.append("The book author is required")
    elif not isinstance(author, str):
        errors.append("The book author must be a string")
    else:
        author = author.strip()
        if len(author) > AUTHOR_MAX_LENGTH:
            errors.append(f"The author name may be at most {AUTHOR_MAX_LENGTH} characters long")
        cleaned["author"] = author

    year = fields.get("year")
    if year is not None:
        # bool is a subclass of int
        if isinstance(year, bool) or not isinstance(year, int):
            errors.append("Year must be an integer")
        elif year < MIN_YEAR:
            errors.append(f"Year must be {MIN_YEAR} or later")
        elif year > current_year:
            errors.append("Are you from the future?")
        else:
            cleaned["year"] = year
    else:
        cleaned["year"] = None

    return ValidationResult(valid=not errors, errors=errors, cleaned=cleaned)


def merge_book_update(existing: Dict[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
    """Apply a partial update onto existing book fields, ignoring unknown keys."""
    merged = {key: existing.get(key) for key in BOOK_FIELDS}
    for key in BOOK_FIELDS:
        if key in partial:
            merged[key] = partial[key]
    return merged


def validate_registration(
    username: Any,
    email: Any,
    password: Any,
    role: Any = UserRole.USER.value
) -> ValidationResult:
    """Presence checks for a signup request, plus the role enum."""
    errors = []

    if any(_is_blank(value) for value in (username, email, password)):
        errors.append("All fields (username, email, password) are required")
    elif not all(isinstance(value, str) for value in (username, email, password)):
        errors.append("Username, email and password must be strings")

    valid_roles = [r.value for r in UserRole]
    if role is None:
        role = UserRole.USER.value
    if role not in valid_roles:
        errors.append(f"Role must be one of: {valid_roles}")

    cleaned = {}
    if not errors:
        cleaned = {
            "username": username.strip(),
            "email": email.strip(),
            "password": password,
            "role": UserRole(role),
        }
    return ValidationResult(valid=not errors, errors=errors, cleaned=cleaned)


def validate_login(username: Any, password: Any) -> ValidationResult:
    """Presence checks for a login request; username is trimmed as on signup."""
    if _is_blank(username) or _is_blank(password) \
            or not isinstance(username, str) or not isinstance(password, str):
        return ValidationResult(valid=False, errors=["Username and password are required"])
    return ValidationResult(valid=True, cleaned={"username": username.strip(), "password": password})
