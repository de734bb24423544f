"""
Domain module for Entity Auto Generator.

This module contains the schema-to-model logic, free of any database driver
or code emission concerns: the metadata types, the naming and type policies,
and the builder that combines them.
"""

from .models import (
    ColumnDescriptor,
    ChildReference,
    ConstraintRole,
    TypeRef,
    TypeKind,
    ScalarType,
    FieldRole,
    ColumnMapping,
    UnmappedScalarType,
    FieldMetadata,
    ClassMetadata,
)

from .type_mapping import (
    map_scalar_type,
    is_recognized_type,
)

from .naming import (
    to_snake_case,
    to_pascal_case,
    to_camel_case,
    lower_first,
    to_class_name,
    to_field_name,
    singular_field_name,
    plural_field_name,
)

from .relationships import RelationshipResolver

from .builder import EntityModelBuilder

__all__ = [
    # Core models
    'ColumnDescriptor',
    'ChildReference',
    'ConstraintRole',
    'TypeRef',
    'TypeKind',
    'ScalarType',
    'FieldRole',
    'ColumnMapping',
    'UnmappedScalarType',
    'FieldMetadata',
    'ClassMetadata',

    # Type mapping
    'map_scalar_type',
    'is_recognized_type',

    # Naming
    'to_snake_case',
    'to_pascal_case',
    'to_camel_case',
    'lower_first',
    'to_class_name',
    'to_field_name',
    'singular_field_name',
    'plural_field_name',

    # Relationships / building
    'RelationshipResolver',
    'EntityModelBuilder',
]
