import os
import sqlite3

SQLITE_PREFIX = "sqlite:///"


def parse_database_url(database_url: str) -> str:
    """Resolve a connection string to the SQLite database file it names.

    Accepts ``sqlite:///relative.db``, ``sqlite:////absolute/path.db`` or a
    bare file path.
    """
    if not database_url:
        raise ValueError("Database URL cannot be empty.")
    if database_url.startswith(SQLITE_PREFIX):
        path = database_url[len(SQLITE_PREFIX):]
    elif "://" in database_url:
        scheme = database_url.split("://", 1)[0]
        raise ValueError(f"Unsupported database scheme: {scheme}")
    else:
        path = database_url
    if not path:
        raise ValueError("Database URL does not name a file.")
    if path == ":memory:":
        # Connections are opened per operation, so an in-memory database would not persist
        raise ValueError("In-memory databases are not supported.")
    return path


def get_db_connection(db_file: str) -> sqlite3.Connection:
    """Establishes a connection to the SQLite database."""
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_file: str) -> None:
    """Creates the books table and its indexes if they don't exist."""
    conn = get_db_connection(db_file)
    try:
        cursor = conn.cursor()
        # seq orders records created within the same millisecond and, with
        # AUTOINCREMENT, is never handed out twice
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL CHECK(length(trim(title)) > 0),
                author TEXT NOT NULL CHECK(length(trim(author)) > 0),
                genre TEXT NOT NULL CHECK(length(trim(genre)) > 0),
                year INTEGER NOT NULL CHECK(year >= 1000),
                description TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_created_at ON books(created_at)")
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: str) -> None:
    """Initializes the database file, creating its directory and tables if needed."""
    directory = os.path.dirname(os.path.abspath(db_file))
    os.makedirs(directory, exist_ok=True)
    create_tables(db_file)
