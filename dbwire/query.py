"""A query text with an optional identifier."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Query:
    """SQL text plus the query id sent with it."""

    sql: str
    id: str = ""

    def with_id(self, id: str) -> "Query":
        """Return a copy carrying ``id``."""
        return dataclasses.replace(self, id=str(id))

    def map_sql(self, func: Callable[[str], str]) -> "Query":
        """Return a copy whose SQL is ``func`` applied to this one's."""
        return dataclasses.replace(self, sql=func(self.sql))