#!/usr/bin/env python3
"""Create the DuckDB database used by config/example_config.yaml."""

import duckdb
from pathlib import Path


PEOPLE = [
    (1, "Anna Schmidt", "anna@example.org", "Hauptstrasse", "12", "10115", "Berlin", "Germany"),
    (2, "Bob Miller", "bob@example.com", "Main Street", "7", "02110", "Boston", "USA"),
    (3, "Annika Larsen", "annika@example.dk", "Nyhavn", "3", "1051", "Copenhagen", "Denmark"),
    (4, "carl smith", "carl@example.com", "High Street", "221", "NW1", "London", "UK"),
    (5, "Diana Smith", None, "Rue de Rivoli", "44", "75001", "Paris", "France"),
]


def init_duckdb(db_path: str = "data/people.duckdb"):
    """Initialize the database with a ``people`` table.

    Args:
        db_path: Path to DuckDB database file
    """
    db_file = Path(db_path)
    db_file.parent.mkdir(parents=True, exist_ok=True)

    conn = duckdb.connect(str(db_file))
    print(f"Initializing DuckDB at {db_path}...")

    conn.execute("DROP TABLE IF EXISTS main.people")
    conn.execute("""
        CREATE TABLE main.people (
            Id INTEGER PRIMARY KEY,
            Name VARCHAR NOT NULL,
            Email VARCHAR,
            Location STRUCT(
                Street VARCHAR,
                HouseNumber VARCHAR,
                PostCode VARCHAR,
                City VARCHAR,
                Country VARCHAR
            )
        )
    """)

    for person in PEOPLE:
        conn.execute(
            """
            INSERT INTO main.people VALUES (
                ?, ?, ?,
                {'Street': ?, 'HouseNumber': ?, 'PostCode': ?, 'City': ?, 'Country': ?}
            )
            """,
            list(person),
        )

    count = conn.execute("SELECT COUNT(*) FROM main.people").fetchone()[0]
    print(f"  people: {count} rows")
    conn.close()


if __name__ == "__main__":
    init_duckdb()
