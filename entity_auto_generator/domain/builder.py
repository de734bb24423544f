"""
Entity model builder.

Assembles one ``ClassMetadata`` per table from the column scan and the child
scan. Every value is built from finished inputs and returned frozen.
"""

import logging
from typing import Dict, List, Optional, Protocol

from ..exceptions import MalformedConstraintError
from .models import (
    ChildReference,
    ClassMetadata,
    ColumnDescriptor,
    ColumnMapping,
    FieldMetadata,
    FieldRole,
    TypeRef,
    UnmappedScalarType,
)
from .naming import plural_field_name, singular_field_name, to_class_name, to_field_name
from .relationships import RelationshipResolver
from .type_mapping import is_recognized_type, map_scalar_type

logger = logging.getLogger(__name__)


class ColumnSource(Protocol):
    def read_columns(self, table: str) -> List[ColumnDescriptor]:
        ...

    def find_children(self, table: str) -> Dict[str, bool]:
        ...


class EntityModelBuilder:
    """
    Builds class metadata for a single table.

    Args:
        reader: Source of column descriptors (and of child tables, unless a
            resolver is given)
        resolver: Optional child resolver; defaults to one over ``reader``
    """

    def __init__(self, reader: ColumnSource, resolver: Optional[RelationshipResolver] = None):
        self.reader = reader
        self.resolver = resolver or RelationshipResolver(reader)

    def build(self, table: str) -> ClassMetadata:
        """
        Build the metadata of ``table``.

        Raises:
            SchemaAccessError: If the schema cannot be read
            MalformedConstraintError: If the keys of ``table`` cannot be mapped
                to a model with exactly one identifier and unique field names
        """
        columns = self.reader.read_columns(table)
        if not columns:
            raise MalformedConstraintError(f"Table '{table}' has no columns", table=table)

        self._check_primary_key(table, columns)

        fields: List[FieldMetadata] = []
        for column in columns:
            fields.extend(self._column_fields(table, column))
        fields.extend(self._child_field(table, child) for child in self.resolver.resolve_children(table))
        self._check_unique_names(table, fields)

        metadata = ClassMetadata(
            name=to_class_name(table),
            table_name=table,
            fields=tuple(fields),
        )
        logger.debug(f"Built {metadata.name} with {len(fields)} fields from '{table}'")
        return metadata

    @staticmethod
    def _check_primary_key(table: str, columns: List[ColumnDescriptor]) -> None:
        pk_columns = [c.name for c in columns if c.is_primary_key]
        if not pk_columns:
            raise MalformedConstraintError(
                f"Table '{table}' has no primary key",
                table=table,
                suggestions=["Add a single-column primary key or exclude the table"],
            )
        if len(pk_columns) > 1:
            raise MalformedConstraintError(
                f"Table '{table}' has a composite primary key ({', '.join(pk_columns)})",
                table=table,
                column=pk_columns[1],
                suggestions=["Only single-column primary keys can become an identifier field"],
            )

    def _column_fields(self, table: str, column: ColumnDescriptor) -> List[FieldMetadata]:
        if column.is_foreign_key:
            return [self._inbound_field(table, column)]
        if column.is_shared_primary_key:
            return [self._scalar_field(table, column), self._inbound_field(table, column)]
        return [self._scalar_field(table, column)]

    @staticmethod
    def _inbound_field(table: str, column: ColumnDescriptor) -> FieldMetadata:
        if not column.referenced_table:
            raise MalformedConstraintError(
                f"Foreign key '{table}.{column.name}' has no referenced table",
                table=table,
                column=column.name,
            )
        target = column.referenced_table
        return FieldMetadata(
            name=to_field_name(column.name, referenced_table=target),
            type=TypeRef.reference(to_class_name(target), target),
            role=FieldRole.TO_ONE_INBOUND,
            column=ColumnMapping(
                column_name=column.name,
                nullable=column.nullable,
                max_length=column.max_length,
                is_unique=column.is_unique,
                referenced_column=column.referenced_column,
            ),
        )

    @staticmethod
    def _scalar_field(table: str, column: ColumnDescriptor) -> FieldMetadata:
        unmapped = None
        if not is_recognized_type(column.data_type):
            logger.warning(
                f"Column '{table}.{column.name}' has unmapped type '{column.data_type}', using Any"
            )
            unmapped = UnmappedScalarType(db_type=column.data_type, column=column.name)

        return FieldMetadata(
            name=to_field_name(column.name, primary_key=column.is_primary_key),
            type=TypeRef.of_scalar(map_scalar_type(column.data_type)),
            role=FieldRole.IDENTIFIER if column.is_primary_key else FieldRole.SCALAR,
            column=ColumnMapping(
                column_name=column.name,
                nullable=column.nullable,
                max_length=column.max_length,
                is_unique=column.is_unique,
            ),
            unmapped=unmapped,
        )

    @staticmethod
    def _child_field(table: str, child: ChildReference) -> FieldMetadata:
        class_name = to_class_name(child.child_table)
        if child.is_unique:
            return FieldMetadata(
                name=singular_field_name(child.child_table),
                type=TypeRef.reference(class_name, child.child_table),
                role=FieldRole.TO_ONE_OUTBOUND,
                mapped_by=singular_field_name(table),
            )
        return FieldMetadata(
            name=plural_field_name(child.child_table),
            type=TypeRef.collection(class_name, child.child_table),
            role=FieldRole.TO_MANY_OUTBOUND,
            mapped_by=singular_field_name(table),
        )

    @staticmethod
    def _check_unique_names(table: str, fields: List[FieldMetadata]) -> None:
        seen: Dict[str, FieldMetadata] = {}
        for f in fields:
            if f.name in seen:
                first = seen[f.name]
                sources = [
                    g.column.column_name if g.column else g.type.table_name
                    for g in (first, f)
                ]
                raise MalformedConstraintError(
                    f"Table '{table}' maps both '{sources[0]}' and '{sources[1]}' to field '{f.name}'",
                    table=table,
                    column=f.column.column_name if f.column else None,
                    suggestions=[
                        "Foreign keys are named after the table they reference; "
                        "a table with several references to one table cannot be mapped",
                        "Exclude the table via 'exclude_tables' or enable 'continue_on_table_error'",
                    ],
                )
            seen[f.name] = f
