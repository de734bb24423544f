"""
Core domain models for Entity Auto Generator.

Two families of types live here:

* transient descriptors produced by the schema reader for one table scan
  (``ColumnDescriptor``, ``ChildReference``), discarded once folded into
  metadata;
* the metadata values handed to the emitters (``FieldMetadata``,
  ``ClassMetadata``). They are frozen: once the builder returns a
  ``ClassMetadata`` nothing downstream may alter a relationship or type
  decision.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional, Tuple


class ConstraintRole(Enum):
    """Key constraint a column participates in."""

    NONE = "none"
    PRIMARY_KEY = "primary_key"
    FOREIGN_KEY = "foreign_key"


class FieldRole(Enum):
    """Semantic role of a generated field."""

    IDENTIFIER = "identifier"
    SCALAR = "scalar"
    TO_ONE_INBOUND = "to_one_inbound"
    TO_ONE_OUTBOUND = "to_one_outbound"
    TO_MANY_OUTBOUND = "to_many_outbound"

    @property
    def is_relationship(self) -> bool:
        return self in (
            FieldRole.TO_ONE_INBOUND,
            FieldRole.TO_ONE_OUTBOUND,
            FieldRole.TO_MANY_OUTBOUND,
        )


class ScalarType(Enum):
    """Python value types a database column can map to.

    Each member carries a unique key, the annotation name used in generated
    code and the module it must be imported from (``None`` for builtins).
    Several members share an annotation, so the key keeps them distinct.
    """

    BOOLEAN = ("boolean", "bool", None)
    SMALL_INTEGER = ("small_integer", "int", None)
    INTEGER = ("integer", "int", None)
    BIG_INTEGER = ("big_integer", "int", None)
    STRING = ("string", "str", None)
    DECIMAL = ("decimal", "Decimal", "decimal")
    FLOAT = ("float", "float", None)
    DOUBLE = ("double", "float", None)
    DATE = ("date", "date", "datetime")
    TIME = ("time", "time", "datetime")
    TIMESTAMP = ("timestamp", "datetime", "datetime")
    UNKNOWN = ("unknown", "Any", "typing")

    def __init__(self, key: str, python_name: str, import_from: Optional[str]):
        self.key = key
        self.python_name = python_name
        self.import_from = import_from


class TypeKind(Enum):
    """Shape of a field's type."""

    SCALAR = "scalar"
    REFERENCE = "reference"
    COLLECTION = "collection"


@dataclass(frozen=True)
class TypeRef:
    """
    Resolved type of a generated field.

    Scalars carry a ``ScalarType``; references and collections carry the
    target class name and the table it was derived from, so emitters can
    locate the target module without consulting the target's metadata.
    """

    kind: TypeKind
    scalar: Optional[ScalarType] = None
    class_name: Optional[str] = None
    table_name: Optional[str] = None

    @classmethod
    def of_scalar(cls, scalar: ScalarType) -> "TypeRef":
        return cls(kind=TypeKind.SCALAR, scalar=scalar)

    @classmethod
    def reference(cls, class_name: str, table_name: str) -> "TypeRef":
        return cls(kind=TypeKind.REFERENCE, class_name=class_name, table_name=table_name)

    @classmethod
    def collection(cls, class_name: str, table_name: str) -> "TypeRef":
        return cls(kind=TypeKind.COLLECTION, class_name=class_name, table_name=table_name)

    @property
    def is_scalar(self) -> bool:
        return self.kind == TypeKind.SCALAR

    @property
    def is_collection(self) -> bool:
        return self.kind == TypeKind.COLLECTION

    @property
    def display_name(self) -> str:
        """Python-style rendering, e.g. ``int``, ``User`` or ``List[Order]``."""
        if self.kind == TypeKind.SCALAR:
            return self.scalar.python_name
        if self.kind == TypeKind.COLLECTION:
            return f"List[{self.class_name}]"
        return self.class_name


@dataclass(frozen=True)
class ColumnDescriptor:
    """One column of one table as read from the schema. Transient."""

    name: str
    data_type: str
    nullable: bool = True
    max_length: Optional[int] = None
    constraint_role: ConstraintRole = ConstraintRole.NONE
    referenced_table: Optional[str] = None  # set for any column with a foreign key, PK included
    referenced_column: Optional[str] = None
    is_unique: bool = False  # covered by any unique index on the table

    @property
    def is_primary_key(self) -> bool:
        return self.constraint_role == ConstraintRole.PRIMARY_KEY

    @property
    def is_foreign_key(self) -> bool:
        return self.constraint_role == ConstraintRole.FOREIGN_KEY

    @property
    def is_shared_primary_key(self) -> bool:
        """Primary key that is also a foreign key to another table."""
        return self.is_primary_key and self.referenced_table is not None


@dataclass(frozen=True)
class ChildReference:
    """A table whose foreign key points at the table being built. Transient."""

    child_table: str
    is_unique: bool


@dataclass(frozen=True)
class UnmappedScalarType:
    """Non-fatal signal: the column's database type had no Python mapping."""

    db_type: str
    column: str


@dataclass(frozen=True)
class ColumnMapping:
    """Persistence-specific extension of a field backed by a column."""

    column_name: str
    nullable: bool = True
    max_length: Optional[int] = None
    is_unique: bool = False
    referenced_column: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'column_name': self.column_name,
            'nullable': self.nullable,
            'max_length': self.max_length,
            'is_unique': self.is_unique,
            'referenced_column': self.referenced_column,
        }


@dataclass(frozen=True)
class FieldMetadata:
    """A single field of a generated record."""

    name: str
    type: TypeRef
    role: FieldRole
    column: Optional[ColumnMapping] = None
    mapped_by: Optional[str] = None  # inverse field on the child, outbound only
    unmapped: Optional[UnmappedScalarType] = None

    @property
    def is_unmapped(self) -> bool:
        return self.unmapped is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'type': self.type.display_name,
            'role': self.role.value,
            'column': self.column.to_dict() if self.column else None,
            'mapped_by': self.mapped_by,
            'unmapped_db_type': self.unmapped.db_type if self.unmapped else None,
        }


@dataclass(frozen=True)
class ClassMetadata:
    """
    Complete structural description of one table, ready for emission.

    ``fields`` keeps column order for identifier, scalar and inbound fields,
    followed by the outbound relationship fields synthesized from child tables.
    """

    name: str
    table_name: str
    fields: Tuple[FieldMetadata, ...] = field(default_factory=tuple)
    no_arg_constructor: bool = True

    @property
    def identifier(self) -> FieldMetadata:
        return next(f for f in self.fields if f.role == FieldRole.IDENTIFIER)

    def fields_with_role(self, *roles: FieldRole) -> List[FieldMetadata]:
        return [f for f in self.fields if f.role in roles]

    def get_field(self, name: str) -> Optional[FieldMetadata]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def referenced_classes(self) -> Dict[str, str]:
        """Map of class name -> table name for every class this one refers to."""
        refs: Dict[str, str] = {}
        for f in self.fields:
            if f.role.is_relationship and f.type.class_name != self.name:
                refs.setdefault(f.type.class_name, f.type.table_name)
        return refs

    @property
    def unmapped_fields(self) -> List[FieldMetadata]:
        return [f for f in self.fields if f.is_unmapped]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'table_name': self.table_name,
            'no_arg_constructor': self.no_arg_constructor,
            'fields': [f.to_dict() for f in self.fields],
        }
