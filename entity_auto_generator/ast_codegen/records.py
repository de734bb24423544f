import logging
import ast
from typing import List

from entity_auto_generator.ast_codegen.base import (
    create_import, create_class_def, create_docstring, create_annotated_assign,
    create_call, create_keyword, create_name, create_subscript, create_string_constant,
    create_dict_of_strings, create_none_constant, create_dotted_name, add_location,
    field_annotation, scalar_imports, safe_identifier, module_name, render_module,
)
from entity_auto_generator.constants import GeneratedLayout
from entity_auto_generator.domain.models import ClassMetadata, FieldMetadata, ScalarType


logger = logging.getLogger(__name__)


def entity_module_path(package_name: str, table_name: str) -> str:
    """Dotted path of the module holding a table's record class."""
    return f"{package_name}.{GeneratedLayout.ENTITIES_PACKAGE}.{module_name(table_name)}"


def create_record_field(field: FieldMetadata) -> ast.AnnAssign:
    """``name: Optional[T] = None``, or a list default for collections."""
    if field.type.is_collection:
        default = create_call(
            "dataclasses.field",
            keywords=[create_keyword("default_factory", create_name("list"))],
        )
    else:
        default = create_none_constant()
    return create_annotated_assign(safe_identifier(field.name), field_annotation(field), default)


def _typing_names(metadata: ClassMetadata) -> List[str]:
    names = {"ClassVar", "Dict", "Optional"}
    if metadata.referenced_classes():
        names.add("TYPE_CHECKING")
    for f in metadata.fields:
        if f.type.is_collection:
            names.add("List")
        if f.type.is_scalar and f.type.scalar == ScalarType.UNKNOWN:
            names.add("Any")
    return sorted(names)


def create_record_imports(metadata: ClassMetadata, package_name: str) -> List[ast.stmt]:
    imports: List[ast.stmt] = [
        create_import("__future__", ["annotations"]),
        create_import("dataclasses"),
    ]
    imports.extend(scalar_imports(metadata))
    imports.append(create_import("typing", _typing_names(metadata)))

    # Related records appear in annotations only; record modules never import
    # each other at runtime.
    referenced = metadata.referenced_classes()
    if referenced:
        guarded = [
            create_import(entity_module_path(package_name, table), [safe_identifier(class_name)])
            for class_name, table in sorted(referenced.items())
        ]
        imports.append(add_location(ast.If(test=create_name("TYPE_CHECKING"), body=guarded, orelse=[])))
    return imports


def create_record_class(metadata: ClassMetadata) -> ast.ClassDef:
    """Creates the dataclass for one table."""
    body: List[ast.stmt] = [
        create_docstring(f"Record mapped to the '{metadata.table_name}' table."),
        create_annotated_assign(
            "__tablename__",
            create_subscript("ClassVar", [create_name("str")]),
            create_string_constant(metadata.table_name),
        ),
        create_annotated_assign(
            "__columns__",
            create_subscript("ClassVar", [create_subscript("Dict", [create_name("str"), create_name("str")])]),
            create_dict_of_strings([
                (safe_identifier(f.name), f.column.column_name) for f in metadata.fields if f.column
            ]),
        ),
    ]
    body.extend(create_record_field(f) for f in metadata.fields)

    for f in metadata.unmapped_fields:
        logger.debug(f"{metadata.name}.{f.name}: database type '{f.unmapped.db_type}' emitted as Any")

    return create_class_def(
        name=safe_identifier(metadata.name),
        bases=[],
        body=body,
        decorator_list=[create_dotted_name("dataclasses.dataclass")],
    )


def generate_record_ast(metadata: ClassMetadata, package_name: str) -> List[ast.stmt]:
    """Module body for ``entities/<table>.py``."""
    docstring = create_docstring(
        f"\nRecord for the '{metadata.table_name}' table.\n\nGenerated by entity-auto-generator.\n"
    )
    return [docstring] + create_record_imports(metadata, package_name) + [create_record_class(metadata)]


def generate_record_code(metadata: ClassMetadata, package_name: str) -> str:
    """Generates the Python code string for a record module."""
    return render_module(generate_record_ast(metadata, package_name))
