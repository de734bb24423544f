"""
Relationship resolution for Entity Auto Generator.

A table's inbound references are read straight from its own foreign-key
columns; this module covers the other direction, the tables that point at it.
"""

from typing import List, Protocol, Dict

from .models import ChildReference


class ChildSource(Protocol):
    """Anything that can report the child tables of a table."""

    def find_children(self, table: str) -> Dict[str, bool]:
        ...


class RelationshipResolver:
    """
    Turns a reader's child lookup into ``ChildReference`` values.

    Kept as its own seam so the builder can be exercised with synthetic
    relationship data, without a database.
    """

    def __init__(self, source: ChildSource):
        self.source = source

    def resolve_children(self, table: str) -> List[ChildReference]:
        return [
            ChildReference(child_table=child, is_unique=is_unique)
            for child, is_unique in self.source.find_children(table).items()
        ]
