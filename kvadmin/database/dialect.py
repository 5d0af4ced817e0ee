"""SQL placeholder dialects.

Query templates are written with `?` markers. PostgreSQL wants numbered
`$1, $2, ...` placeholders; MySQL and SQLite accept the markers as-is.
"""

from enum import Enum
from typing import Optional

PLACEHOLDER = "?"


class Dialect(Enum):
    NUMBERED = "numbered"      # $1, $2, ...
    SEQUENTIAL = "sequential"  # ?, ?, ...


def dialect_for_driver(driver_name: Optional[str]) -> Dialect:
    """Classify a configured driver name (e.g. "postgres", "mysql", "sqlite3")."""
    if driver_name and "postgres" in driver_name.lower():
        return Dialect.NUMBERED
    return Dialect.SEQUENTIAL


def translate(query: str, dialect: Dialect, marker: str = PLACEHOLDER) -> str:
    """Rewrite positional markers into the placeholder syntax of `dialect`.

    The marker must never appear inside a string literal of the template.
    """
    if dialect is not Dialect.NUMBERED:
        return query

    parts = query.split(marker)
    out = [parts[0]]
    for n, part in enumerate(parts[1:], start=1):
        out.append(f"${n}")
        out.append(part)
    return "".join(out)
