import os

import pytest

from database import get_db_connection, initialize_database, parse_database_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite:///catalog.db", "catalog.db"),
        ("sqlite:////var/data/catalog.db", "/var/data/catalog.db"),
        ("data/catalog.db", "data/catalog.db"),
    ],
)
def test_parse_database_url(url, expected):
    assert parse_database_url(url) == expected


@pytest.mark.parametrize(
    "url", ["", "sqlite:///", "postgresql://user@localhost/catalog", "sqlite:///:memory:", ":memory:"]
)
def test_parse_database_url_rejects(url):
    with pytest.raises(ValueError):
        parse_database_url(url)


def test_initialize_database_creates_directory_and_table(tmp_path):
    db_file = str(tmp_path / "nested" / "dir" / "catalog.db")

    initialize_database(db_file)
    # Safe to run twice
    initialize_database(db_file)

    assert os.path.exists(db_file)
    conn = get_db_connection(db_file)
    try:
        columns = [row["name"] for row in conn.execute("PRAGMA table_info(books)")]
    finally:
        conn.close()
    assert columns == [
        "seq", "id", "title", "author", "genre", "year", "description", "created_at", "updated_at"
    ]
