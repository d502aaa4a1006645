from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Mapping, Optional

MIN_YEAR = 1000
REQUIRED_TEXT_FIELDS = ("title", "author", "genre")
REQUIRED_FIELDS = REQUIRED_TEXT_FIELDS + ("year",)


def max_year(today: Optional[date] = None) -> int:
    """Latest publication year accepted: next calendar year."""
    return (today or date.today()).year + 1


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a candidate record.

    ``values`` holds the normalized record when validation passed; ``errors``
    maps each failing field to its message otherwise.
    """

    values: Optional[Dict[str, Any]] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        if self.ok:
            return ""
        details = ", ".join(f"{name}: {msg}" for name, msg in self.errors.items())
        return f"Book validation failed: {details}"


class BookValidationError(ValueError):
    """Raised by the store when a candidate record fails validation."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__(result.message)
        self.result = result

    @property
    def errors(self) -> Dict[str, str]:
        return self.result.errors


class TextValidator:
    """Normalization for the free-text fields of a book."""

    @staticmethod
    def normalize(value: Any) -> Optional[str]:
        """Trim text; numbers become text. Returns None for anything else."""
        if value is None:
            return ""
        if isinstance(value, bool):
            return None
        if isinstance(value, (str, int, float)):
            text = str(value).strip()
            # Lone surrogates from JSON escapes cannot be stored
            try:
                text.encode("utf-8")
            except UnicodeEncodeError:
                return None
            return text
        return None


class YearValidator:
    """Coercion and range checks for the publication year."""

    @staticmethod
    def coerce(value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        if isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                try:
                    number = float(text)
                except ValueError:
                    return None
                return int(number) if number.is_integer() else None
        return None

    @staticmethod
    def check(value: Any, today: Optional[date] = None) -> tuple[Optional[int], Optional[str]]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None, "Year is required"
        year = YearValidator.coerce(value)
        if year is None:
            return None, "Year must be a whole number"
        if year < MIN_YEAR:
            return None, "Year must be valid"
        if year > max_year(today):
            return None, "Year cannot be in the future"
        return year, None


def has_required_fields(candidate: Mapping[str, Any]) -> bool:
    """Presence check used before creation: every required field is truthy."""
    return all(candidate.get(name) for name in REQUIRED_FIELDS)


def validate_book(candidate: Mapping[str, Any], today: Optional[date] = None) -> ValidationResult:
    """Validate and normalize a candidate book record.

    Text fields are trimmed, the year is coerced to an integer and bounded to
    ``[1000, current year + 1]`` and the description defaults to an empty
    string. Keys other than the book fields are ignored.
    """
    values: Dict[str, Any] = {}
    errors: Dict[str, str] = {}

    for name in REQUIRED_TEXT_FIELDS:
        text = TextValidator.normalize(candidate.get(name))
        label = name.capitalize()
        if text is None:
            errors[name] = f"{label} must be text"
        elif not text:
            errors[name] = f"{label} is required"
        else:
            values[name] = text

    year, year_error = YearValidator.check(candidate.get("year"), today)
    if year_error:
        errors["year"] = year_error
    else:
        values["year"] = year

    description = TextValidator.normalize(candidate.get("description"))
    if description is None:
        errors["description"] = "Description must be text"
    else:
        values["description"] = description

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(values=values)
