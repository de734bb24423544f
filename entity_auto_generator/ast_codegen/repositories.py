import logging
import ast
from typing import List

from entity_auto_generator.ast_codegen.base import (
    create_import, create_class_def, create_docstring, create_assign, create_name,
    create_subscript, identifier_annotation, identifier_imports, safe_identifier,
    module_name, render_module,
)
from entity_auto_generator.ast_codegen.records import entity_module_path
from entity_auto_generator.constants import GeneratedLayout
from entity_auto_generator.domain.models import ClassMetadata


logger = logging.getLogger(__name__)


def repository_class_name(metadata: ClassMetadata) -> str:
    return safe_identifier(metadata.name) + GeneratedLayout.REPOSITORY_SUFFIX


def repository_module_path(package_name: str, table_name: str) -> str:
    return f"{package_name}.{GeneratedLayout.REPOSITORIES_PACKAGE}.{module_name(table_name)}_repository"


def create_repository_class(metadata: ClassMetadata) -> ast.ClassDef:
    """``XRepository(CrudRepository[X, <id type>])`` bound to the record class."""
    record = safe_identifier(metadata.name)
    base = create_subscript(
        GeneratedLayout.REPOSITORY_BASE_CLASS,
        [create_name(record), identifier_annotation(metadata)],
    )
    body: List[ast.stmt] = [
        create_docstring(f"Data access for {record} records."),
        create_assign("entity_type", create_name(record)),
    ]
    return create_class_def(name=repository_class_name(metadata), bases=[base], body=body)


def generate_repository_ast(metadata: ClassMetadata, package_name: str) -> List[ast.stmt]:
    """Module body for ``repositories/<table>_repository.py``."""
    imports = identifier_imports(metadata) + [
        create_import(entity_module_path(package_name, metadata.table_name), [safe_identifier(metadata.name)]),
        create_import(
            f"{package_name}.{GeneratedLayout.REPOSITORY_BASE_MODULE}",
            [GeneratedLayout.REPOSITORY_BASE_CLASS],
        ),
    ]
    docstring = create_docstring(f"\nRepository for {metadata.name} records.\n\nGenerated by entity-auto-generator.\n")
    return [docstring] + imports + [create_repository_class(metadata)]


def generate_repository_code(metadata: ClassMetadata, package_name: str) -> str:
    """Generates the Python code string for a repository module."""
    return render_module(generate_repository_ast(metadata, package_name))
