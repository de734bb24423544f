import logging
import ast
from typing import List, Tuple

from entity_auto_generator.ast_codegen.base import (
    create_import, create_class_def, create_docstring, create_assign, create_name,
    create_subscript, create_function_def, create_return, create_expr, create_attribute_call,
    create_string_constant, create_integer_constant, create_tuple, create_none_constant,
    identifier_annotation, safe_identifier, module_name, pluralize, render_module,
)
from entity_auto_generator.ast_codegen.records import entity_module_path
from entity_auto_generator.ast_codegen.services import (
    service_class_name, service_module_path, typed_imports, ID, SELF,
)
from entity_auto_generator.constants import GeneratedLayout, HTTPStatus
from entity_auto_generator.domain.models import ClassMetadata


logger = logging.getLogger(__name__)

# (HTTP method, path below the prefix, handler, success status)
ROUTES: List[Tuple[str, str, str, int]] = [
    ("GET", "", "get_all", HTTPStatus.OK),
    ("GET", "/{id}", "get_by_id", HTTPStatus.OK),
    ("POST", "", "create", HTTPStatus.CREATED),
    ("PUT", "/{id}", "replace", HTTPStatus.NO_CONTENT),
    ("PATCH", "/{id}", "patch", HTTPStatus.NO_CONTENT),
    ("DELETE", "/{id}", "delete", HTTPStatus.NO_CONTENT),
]


def controller_class_name(metadata: ClassMetadata) -> str:
    return safe_identifier(metadata.name) + GeneratedLayout.CONTROLLER_SUFFIX


def resource_path(metadata: ClassMetadata) -> str:
    """URL prefix for a table's resource, e.g. ``/order_items``."""
    return "/" + pluralize(module_name(metadata.table_name).rstrip("_"))


def _service_call(method: str, *args: str) -> ast.Call:
    return create_attribute_call("self.service", method, args=[create_name(arg) for arg in args])


def create_controller_methods(metadata: ClassMetadata) -> List[ast.FunctionDef]:
    record = create_name(safe_identifier(metadata.name))
    id_param = (ID, identifier_annotation(metadata))
    changes_annotation = create_subscript("Mapping", [create_name("str"), create_name("Any")])

    return [
        create_function_def(
            "__init__",
            [SELF, ("service", create_name(service_class_name(metadata)))],
            [create_assign("self.service", create_name("service"))],
        ),
        create_function_def(
            "get_all", [SELF],
            [create_return(_service_call("find_all"))],
            returns=create_subscript("List", [record]),
        ),
        create_function_def(
            "get_by_id", [SELF, id_param],
            [create_return(_service_call("find_by_id", ID))],
            returns=record,
        ),
        create_function_def(
            "create", [SELF, ("entity", record)],
            [create_return(_service_call("save", "entity"))],
            returns=record,
        ),
        create_function_def(
            "replace", [SELF, id_param, ("entity", record)],
            [create_expr(_service_call("update", ID, "entity"))],
            returns=create_none_constant(),
        ),
        create_function_def(
            "patch", [SELF, id_param, ("changes", changes_annotation)],
            [create_expr(_service_call("partial_update", ID, "changes"))],
            returns=create_none_constant(),
        ),
        create_function_def(
            "delete", [SELF, id_param],
            [create_expr(_service_call("delete_by_id", ID))],
            returns=create_none_constant(),
        ),
    ]


def create_routes_table() -> ast.Tuple:
    return create_tuple([
        create_tuple([
            create_string_constant(method),
            create_string_constant(path),
            create_string_constant(handler),
            create_integer_constant(status),
        ])
        for method, path, handler, status in ROUTES
    ])


def create_controller_class(metadata: ClassMetadata) -> ast.ClassDef:
    """Framework-neutral API entry class; ``routes`` lists (method, path, handler, status)."""
    body: List[ast.stmt] = [
        create_docstring(f"API entry points for {metadata.name} resources."),
        create_assign("prefix", create_string_constant(resource_path(metadata))),
        create_assign("routes", create_routes_table()),
    ]
    body.extend(create_controller_methods(metadata))
    return create_class_def(name=controller_class_name(metadata), bases=[], body=body)


def generate_controller_ast(metadata: ClassMetadata, package_name: str) -> List[ast.stmt]:
    """Module body for ``controllers/<table>_controller.py``."""
    imports = typed_imports(metadata, ["Any", "List", "Mapping"]) + [
        create_import(entity_module_path(package_name, metadata.table_name), [safe_identifier(metadata.name)]),
        create_import(service_module_path(package_name, metadata.table_name), [service_class_name(metadata)]),
    ]
    docstring = create_docstring(f"\nController for {metadata.name} resources.\n\nGenerated by entity-auto-generator.\n")
    return [docstring] + imports + [create_controller_class(metadata)]


def generate_controller_code(metadata: ClassMetadata, package_name: str) -> str:
    """Generates the Python code string for a controller module."""
    return render_module(generate_controller_ast(metadata, package_name))
