from datetime import date

import pytest

from utils.validators import (
    BookValidationError,
    ValidationResult,
    has_required_fields,
    max_year,
    validate_book,
)

TODAY = date(2026, 10, 19)


def _candidate(**overrides):
    data = {"title": "Dune", "author": "Frank Herbert", "genre": "SciFi", "year": 1965}
    data.update(overrides)
    return data


def test_valid_candidate_is_normalized():
    result = validate_book(
        _candidate(title="  Dune ", author=" Frank Herbert", genre="SciFi  ", description="  Spice  "),
        today=TODAY,
    )
    assert result.ok
    assert result.values == {
        "title": "Dune",
        "author": "Frank Herbert",
        "genre": "SciFi",
        "year": 1965,
        "description": "Spice",
    }
    assert result.message == ""


def test_description_defaults_to_empty():
    result = validate_book(_candidate(), today=TODAY)
    assert result.values["description"] == ""

    result = validate_book(_candidate(description=None), today=TODAY)
    assert result.values["description"] == ""


def test_unknown_and_store_managed_keys_are_ignored():
    result = validate_book(_candidate(id="abc", createdAt="yesterday", rating=5), today=TODAY)
    assert result.ok
    assert set(result.values) == {"title", "author", "genre", "year", "description"}


@pytest.mark.parametrize("field", ["title", "author", "genre"])
def test_missing_text_field(field):
    data = _candidate()
    del data[field]
    result = validate_book(data, today=TODAY)
    assert not result.ok
    assert result.values is None
    assert result.errors == {field: f"{field.capitalize()} is required"}


@pytest.mark.parametrize("field", ["title", "author", "genre"])
def test_whitespace_only_text_counts_as_missing(field):
    result = validate_book(_candidate(**{field: "   "}), today=TODAY)
    assert result.errors[field] == f"{field.capitalize()} is required"


def test_non_scalar_text_is_rejected():
    result = validate_book(_candidate(title=["Dune"]), today=TODAY)
    assert result.errors == {"title": "Title must be text"}


def test_unencodable_text_is_rejected():
    result = validate_book(_candidate(title="Dune\ud800", description="\udfff"), today=TODAY)
    assert result.errors == {"title": "Title must be text", "description": "Description must be text"}


def test_numeric_text_is_cast():
    result = validate_book(_candidate(title=1984), today=TODAY)
    assert result.values["title"] == "1984"


def test_missing_year():
    data = _candidate()
    del data["year"]
    assert validate_book(data, today=TODAY).errors == {"year": "Year is required"}
    assert validate_book(_candidate(year="  "), today=TODAY).errors == {"year": "Year is required"}


@pytest.mark.parametrize("raw, expected", [("1965", 1965), (" 2001 ", 2001), (1999.0, 1999), ("1850.0", 1850)])
def test_year_coercion(raw, expected):
    result = validate_book(_candidate(year=raw), today=TODAY)
    assert result.ok
    assert result.values["year"] == expected


@pytest.mark.parametrize("raw", ["nineteen", 1965.5, True, [1965]])
def test_year_must_be_whole_number(raw):
    result = validate_book(_candidate(year=raw), today=TODAY)
    assert result.errors == {"year": "Year must be a whole number"}


def test_year_bounds():
    assert validate_book(_candidate(year=1000), today=TODAY).ok
    assert validate_book(_candidate(year=2027), today=TODAY).ok
    assert validate_book(_candidate(year=999), today=TODAY).errors == {"year": "Year must be valid"}
    assert validate_book(_candidate(year=2028), today=TODAY).errors == {"year": "Year cannot be in the future"}


def test_max_year_tracks_current_date():
    assert max_year(TODAY) == 2027
    assert max_year() == date.today().year + 1


def test_message_lists_every_failing_field():
    result = validate_book({"title": "Dune", "year": 10}, today=TODAY)
    assert list(result.errors) == ["author", "genre", "year"]
    assert result.message == (
        "Book validation failed: author: Author is required, genre: Genre is required, year: Year must be valid"
    )


def test_has_required_fields():
    assert has_required_fields(_candidate())
    assert not has_required_fields(_candidate(title=""))
    assert not has_required_fields(_candidate(year=0))
    assert not has_required_fields({"title": "Dune", "author": "Herbert", "genre": "SciFi"})


def test_validation_error_carries_result():
    result = ValidationResult(errors={"year": "Year must be valid"})
    err = BookValidationError(result)
    assert isinstance(err, ValueError)
    assert err.errors == {"year": "Year must be valid"}
    assert str(err) == "Book validation failed: year: Year must be valid"
