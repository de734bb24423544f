import logging
import ast
from typing import List

from entity_auto_generator.ast_codegen.base import (
    create_import, create_class_def, create_docstring, create_assign, create_name,
    create_subscript, create_function_def, create_return, create_raise, create_if,
    create_expr, create_call, create_attribute_call, create_fstring, create_tuple_of_strings,
    create_dotted_name, create_none_constant, add_location, identifier_annotation, safe_identifier, module_name,
    render_module,
)
from entity_auto_generator.ast_codegen.records import entity_module_path
from entity_auto_generator.ast_codegen.repositories import repository_class_name, repository_module_path
from entity_auto_generator.constants import GeneratedLayout
from entity_auto_generator.domain.models import ClassMetadata, FieldRole


logger = logging.getLogger(__name__)

ID = "id"
SELF = ("self", None)


def service_class_name(metadata: ClassMetadata) -> str:
    return safe_identifier(metadata.name) + GeneratedLayout.SERVICE_SUFFIX


def service_module_path(package_name: str, table_name: str) -> str:
    return f"{package_name}.{GeneratedLayout.SERVICES_PACKAGE}.{module_name(table_name)}_service"


def typed_imports(metadata: ClassMetadata, typing_names: List[str]) -> List[ast.stmt]:
    """``typing`` names plus whatever the identifier annotation needs, merged per module."""
    by_module = {"typing": set(typing_names)}
    scalar = metadata.identifier.type.scalar
    if scalar.import_from:
        by_module.setdefault(scalar.import_from, set()).add(scalar.python_name)
    return [create_import(module, sorted(names)) for module, names in sorted(by_module.items())]


def _not_found(metadata: ClassMetadata) -> ast.Raise:
    message = create_fstring([f"{metadata.name} not found with id: ", create_name(ID)])
    return create_raise(create_call(GeneratedLayout.NOT_FOUND_ERROR, args=[message]))


def _repository_call(method: str, *args: ast.expr) -> ast.Call:
    return create_attribute_call("self.repository", method, args=list(args))


def create_service_methods(metadata: ClassMetadata) -> List[ast.FunctionDef]:
    record = create_name(safe_identifier(metadata.name))
    id_param = (ID, identifier_annotation(metadata))
    entity_param = ("entity", record)

    init = create_function_def(
        "__init__",
        [SELF, ("repository", create_name(repository_class_name(metadata)))],
        [create_assign("self.repository", create_name("repository"))],
    )

    find_all = create_function_def(
        "find_all",
        [SELF],
        [create_return(_repository_call("find_all"))],
        returns=create_subscript("List", [record]),
    )

    find_by_id = create_function_def(
        "find_by_id",
        [SELF, id_param],
        [
            create_assign("entity", _repository_call("find_by_id", create_name(ID))),
            create_if(
                add_location(ast.Compare(
                    left=create_name("entity"), ops=[ast.Is()], comparators=[create_none_constant()]
                )),
                [_not_found(metadata)],
            ),
            create_return(create_name("entity")),
        ],
        returns=record,
    )

    save = create_function_def(
        "save",
        [SELF, entity_param],
        [create_return(_repository_call("save", create_name("entity")))],
        returns=record,
    )

    update = create_function_def(
        "update",
        [SELF, id_param, entity_param],
        [
            create_if(
                add_location(ast.UnaryOp(op=ast.Not(), operand=_repository_call("exists_by_id", create_name(ID)))),
                [_not_found(metadata)],
            ),
            create_assign(f"entity.{ID}", create_name(ID)),
            create_return(_repository_call("save", create_name("entity"))),
        ],
        returns=record,
    )

    # for name in self.updatable_fields: if name in changes: setattr(entity, name, changes[name])
    apply_changes = add_location(ast.For(
        target=create_name("name", ast.Store()),
        iter=create_dotted_name("self.updatable_fields"),
        body=[create_if(
            add_location(ast.Compare(
                left=create_name("name"), ops=[ast.In()], comparators=[create_name("changes")]
            )),
            [create_expr(create_call("setattr", args=[
                create_name("entity"),
                create_name("name"),
                create_subscript("changes", [create_name("name")]),
            ]))],
        )],
        orelse=[],
    ))
    partial_update = create_function_def(
        "partial_update",
        [SELF, id_param, ("changes", create_subscript("Mapping", [create_name("str"), create_name("Any")]))],
        [
            create_assign("entity", create_attribute_call("self", "find_by_id", args=[create_name(ID)])),
            apply_changes,
            create_return(_repository_call("save", create_name("entity"))),
        ],
        returns=record,
    )

    delete_by_id = create_function_def(
        "delete_by_id",
        [SELF, id_param],
        [create_expr(_repository_call("delete_by_id", create_name(ID)))],
        returns=create_none_constant(),
    )

    return [init, find_all, find_by_id, save, update, partial_update, delete_by_id]


def create_service_class(metadata: ClassMetadata) -> ast.ClassDef:
    """Business-layer class delegating to the table's repository."""
    updatable = [
        safe_identifier(f.name) for f in metadata.fields if f.role != FieldRole.IDENTIFIER
    ]
    body: List[ast.stmt] = [
        create_docstring(f"Business operations on {metadata.name} records."),
        create_assign("updatable_fields", create_tuple_of_strings(updatable)),
    ]
    body.extend(create_service_methods(metadata))
    return create_class_def(name=service_class_name(metadata), bases=[], body=body)


def generate_service_ast(metadata: ClassMetadata, package_name: str) -> List[ast.stmt]:
    """Module body for ``services/<table>_service.py``."""
    imports = typed_imports(metadata, ["Any", "List", "Mapping"]) + [
        create_import(entity_module_path(package_name, metadata.table_name), [safe_identifier(metadata.name)]),
        create_import(f"{package_name}.{GeneratedLayout.EXCEPTIONS_MODULE}", [GeneratedLayout.NOT_FOUND_ERROR]),
        create_import(repository_module_path(package_name, metadata.table_name), [repository_class_name(metadata)]),
    ]
    docstring = create_docstring(f"\nService for {metadata.name} records.\n\nGenerated by entity-auto-generator.\n")
    return [docstring] + imports + [create_service_class(metadata)]


def generate_service_code(metadata: ClassMetadata, package_name: str) -> str:
    """Generates the Python code string for a service module."""
    return render_module(generate_service_ast(metadata, package_name))
